import unittest
from datetime import datetime, timezone

from gamebrain import firestore_dao as dao
from gamebrain.firebase_init import set_gateway
from gamebrain.firestore_models import Build, Guide
from gamebrain.gateway import InMemoryGateway


class ModelTests(unittest.TestCase):
    def test_guide_reads_camel_case_fields(self) -> None:
        guide = Guide.from_dict({
            "title": "Margit",
            "authorName": "alice",
            "authorVerified": True,
            "likesCount": "7",
            "createdAt": 1_714_564_800_000,
        }, "g1")
        self.assertEqual(guide.id, "g1")
        self.assertEqual(guide.author_name, "alice")
        self.assertTrue(guide.author_verified)
        self.assertEqual(guide.likes_count, 7)
        self.assertEqual(guide.created_at, datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))

    def test_iso_dates_and_bad_values(self) -> None:
        self.assertEqual(Build.from_dict({"createdAt": "2024-05-01T12:00:00Z"}).created_at,
                         datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))
        self.assertIsNone(Build.from_dict({"createdAt": "yesterday"}).created_at)

    def test_stored_field_names(self) -> None:
        stored = Guide(title="t", game_id="g1", author_id="u1").to_dict()
        self.assertEqual(stored["gameId"], "g1")
        self.assertEqual(stored["authorId"], "u1")
        self.assertEqual(stored["likesCount"], 0)


class DaoTests(unittest.TestCase):
    def setUp(self) -> None:
        self.gateway = InMemoryGateway()
        set_gateway(self.gateway)

    def tearDown(self) -> None:
        set_gateway(None)

    def test_create_user_profile(self) -> None:
        dao.create_user("u1", "u1@gamebrain.io", "player1")
        profile = dao.get_user("u1")
        self.assertEqual(profile.username, "player1")
        self.assertEqual(profile.role, "user")
        self.assertFalse(profile.verified)
        self.assertIsInstance(profile.created_at, datetime)
        stored = self.gateway.get_by_id("users", "u1")
        self.assertEqual(set(stored), {"id", "uid", "email", "username", "role", "verified", "createdAt"})

    def test_created_guides_get_timestamp_and_zero_likes(self) -> None:
        guide_id = dao.create_guide(Guide(title="New", game_id="g1").to_dict())
        guide = dao.get_guide(guide_id)
        self.assertEqual(guide.likes_count, 0)
        self.assertIsNotNone(guide.created_at)

    def test_guides_page_cursor(self) -> None:
        for i in range(3):
            dao.create_guide(Guide(
                title=f"Guide {i}", game_id="g1",
                created_at=datetime(2024, 5, 1 + i, tzinfo=timezone.utc),
            ).to_dict())
        first, cursor = dao.get_guides_page("g1", 2)
        rest, _ = dao.get_guides_page("g1", 2, start_after=cursor)
        self.assertEqual([g.title for g in first], ["Guide 2", "Guide 1"])
        self.assertEqual([g.title for g in rest], ["Guide 0"])

    def test_toggle_favorite(self) -> None:
        self.assertTrue(dao.toggle_favorite("u1", "g1"))
        self.assertEqual(dao.get_user_favorite_ids("u1"), {"g1"})
        self.assertFalse(dao.toggle_favorite("u1", "g1"))
        self.assertEqual(dao.count_favorites_by_user("u1"), 0)

    def test_missing_documents(self) -> None:
        self.assertIsNone(dao.get_game("nope"))
        self.assertIsNone(dao.get_guide("nope"))
        self.assertIsNone(dao.get_user("nope"))


if __name__ == "__main__":
    unittest.main()
