import unittest
from datetime import datetime, timedelta, timezone

from gamebrain.dashboard import load_dashboard
from gamebrain.firebase_init import set_gateway
from gamebrain.gateway import GatewayError, InMemoryGateway

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class BrokenCollectionGateway(InMemoryGateway):
    def __init__(self, data=None, broken=()) -> None:
        super().__init__(data)
        self.broken = set(broken)

    def query(self, collection, *args, **kwargs):
        if collection in self.broken:
            raise GatewayError(f"{collection} unavailable")
        return super().query(collection, *args, **kwargs)


def _data() -> dict:
    guides = {
        f"guide{i}": {
            "gameId": "g1" if i % 2 else "g2",
            "title": f"Guide {i}",
            "content": "x" * 200,
            "authorId": "alice" if i < 3 else "bob",
            "likesCount": i,
            "createdAt": T0 + timedelta(hours=i),
        }
        for i in range(8)
    }
    return {
        "games": {"g1": {"name": "Elden Ring"}, "g2": {"name": "Hollow Knight"}},
        "guides": guides,
        "builds": {
            "b1": {"userId": "alice", "gameId": "g1", "title": "Moonveil", "createdAt": T0},
            "b2": {"userId": "bob", "gameId": "g2", "title": "Glass Soul", "createdAt": T0},
            "b3": {"userId": "alice", "gameId": "gone", "title": "Orphan", "createdAt": T0},
        },
        "favorites": {
            "f1": {"userId": "alice", "guideId": "guide7"},
            "f2": {"userId": "alice", "guideId": "deleted-guide"},
        },
    }


class DashboardTests(unittest.TestCase):
    def tearDown(self) -> None:
        set_gateway(None)

    def _load(self, uid: str = "alice", broken=()) -> dict:
        set_gateway(BrokenCollectionGateway(_data(), broken))
        return load_dashboard(uid)

    def test_recent_guides_newest_first_with_game_names(self) -> None:
        section = self._load()["recent_guides"]
        self.assertTrue(section.ok)
        self.assertEqual([g["id"] for g in section.items],
                         ["guide7", "guide6", "guide5", "guide4", "guide3", "guide2"])
        self.assertEqual(section.items[0]["game_name"], "Elden Ring")
        self.assertEqual(section.items[1]["game_name"], "Hollow Knight")
        self.assertTrue(section.items[0]["is_favorite"])
        self.assertFalse(section.items[1]["is_favorite"])
        self.assertTrue(section.items[0]["preview"].endswith("..."))

    def test_builds_fall_back_to_generic_game_name(self) -> None:
        items = self._load()["my_builds"].items
        names = {b["title"]: b["game_name"] for b in items}
        self.assertEqual(names, {"Moonveil": "Elden Ring", "Orphan": "Game"})

    def test_favorites_skip_deleted_guides(self) -> None:
        section = self._load()["my_favorites"]
        self.assertEqual([g["id"] for g in section.items], ["guide7"])

    def test_stats(self) -> None:
        counts = self._load()["stats"].counts
        self.assertEqual(counts, {"guides": 3, "builds": 2, "favorites": 2})

    def test_user_without_content_gets_empty_sections(self) -> None:
        sections = self._load(uid="newcomer")
        self.assertTrue(sections["my_builds"].empty)
        self.assertTrue(sections["my_favorites"].empty)
        self.assertEqual(sections["stats"].counts, {"guides": 0, "builds": 0, "favorites": 0})

    def test_failing_section_does_not_break_the_others(self) -> None:
        sections = self._load(broken={"builds"})
        self.assertTrue(sections["my_builds"].error)
        self.assertTrue(sections["stats"].error)
        self.assertTrue(sections["recent_guides"].ok)
        self.assertTrue(sections["my_favorites"].ok)


if __name__ == "__main__":
    unittest.main()
