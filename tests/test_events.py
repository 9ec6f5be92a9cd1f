import unittest
from datetime import datetime, timedelta, timezone
from unittest import mock

from config import TestConfig
from gamebrain import create_app, socketio
from gamebrain import events
from gamebrain.firebase_init import get_gateway

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
ALICE = {"uid": "alice", "username": "alice", "email": "alice@gamebrain.io"}


class SocketTestCase(unittest.TestCase):
    user = None

    def setUp(self) -> None:
        self.app = create_app(TestConfig)
        self.gateway = get_gateway()
        self.gateway.put("games", "g1", {"name": "Elden Ring", "description": "Souls-like"})
        for i in range(3):
            self.gateway.put("guides", f"guide{i}", {
                "gameId": "g1",
                "title": f"Margit guide {i}",
                "content": "Roll left.",
                "likesCount": i,
                "createdAt": T0 + timedelta(hours=i),
            })
        patcher = mock.patch("gamebrain.decorators._verify_session", side_effect=lambda: self.user)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client = socketio.test_client(self.app)
        self.client.get_received()

    def tearDown(self) -> None:
        if self.client.is_connected():
            self.client.disconnect()

    def received(self, name: str = None) -> list:
        return [
            msg["args"][0] for msg in self.client.get_received()
            if name is None or msg["name"] == name
        ]

    def open_game(self, game_id: str = "g1") -> list:
        self.client.emit("open_game", {"game_id": game_id})
        return self.client.get_received()


class AnonymousSocketTests(SocketTestCase):
    def test_open_game_pushes_header_and_first_page(self) -> None:
        messages = self.open_game()
        names = [m["name"] for m in messages]
        self.assertIn("game", names)
        game = next(m["args"][0] for m in messages if m["name"] == "game")
        self.assertEqual(game["name"], "Elden Ring")
        self.assertEqual(game["image"], "/static/img/game-placeholder.svg")

        guides = [m["args"][0] for m in messages if m["name"] == "guides"]
        self.assertEqual(guides[0]["status"], "skeleton")
        self.assertEqual(guides[-1]["status"], "ok")
        self.assertIn("Margit guide 2", guides[-1]["html"])
        self.assertFalse(guides[-1]["show_load_more"])

        identity = next(m["args"][0] for m in messages if m["name"] == "identity")
        self.assertFalse(identity["show_create"])

        loader = [m["args"][0]["visible"] for m in messages if m["name"] == "loader"]
        self.assertEqual(loader[-1], False)

    def test_unknown_game_redirects(self) -> None:
        messages = self.open_game("missing")
        redirects = [m["args"][0] for m in messages if m["name"] == "redirect"]
        self.assertEqual(redirects, [{"url": "/"}])
        self.assertEqual(events.page_sessions, {})

    def test_action_without_open_page(self) -> None:
        self.client.emit("guide_action", {"action": "load_more"})
        errors = self.received("error")
        self.assertEqual(errors, [{"message": "Page session expired. Reload the page."}])

    def test_anonymous_like_is_refused(self) -> None:
        self.open_game()
        self.client.emit("guide_action", {"action": "like", "guide_id": "guide2"})
        toasts = self.received("toast")
        self.assertEqual(toasts[0]["message"], "Sign in to like guides.")
        self.assertEqual(toasts[0]["kind"], "warning")
        self.assertEqual(self.gateway.get_by_id("guides", "guide2")["likesCount"], 2)

    def test_search_filters_loaded_guides(self) -> None:
        self.open_game()
        self.client.emit("guide_action", {"action": "search", "keyword": "guide 1"})
        view = self.received("guides")[-1]
        self.assertIn("Margit guide 1", view["html"])
        self.assertNotIn("Margit guide 2", view["html"])

        self.client.emit("guide_action", {"action": "search", "keyword": "zelda"})
        self.assertEqual(self.received("guides")[-1]["status"], "no_results")

    def test_bad_action(self) -> None:
        self.open_game()
        self.client.emit("guide_action", {"action": "explode"})
        self.assertEqual(self.received("error"), [{"message": "unknown action 'explode'"}])

    def test_disconnect_closes_page(self) -> None:
        self.open_game()
        self.assertEqual(len(events.page_sessions), 1)
        self.client.disconnect()
        self.assertEqual(events.page_sessions, {})


class SignedInSocketTests(SocketTestCase):
    user = ALICE

    def test_like_updates_card_and_store(self) -> None:
        self.open_game()
        self.client.emit("guide_action", {"action": "like", "guide_id": "guide2"})
        messages = self.client.get_received()
        card = [m["args"][0] for m in messages if m["name"] == "card"][-1]
        self.assertEqual(card["likes_count"], 3)
        self.assertTrue(card["liked"])
        toast = [m["args"][0] for m in messages if m["name"] == "toast"][-1]
        self.assertEqual(toast["message"], "Guide liked!")
        self.assertEqual(self.gateway.get_by_id("guides", "guide2")["likesCount"], 3)

    def test_favorite_toggle(self) -> None:
        self.open_game()
        self.client.emit("guide_action", {"action": "favorite", "guide_id": "guide0"})
        card = self.received("card")[-1]
        self.assertTrue(card["is_favorite"])
        self.assertEqual(card["star"], "★")
        self.assertEqual(self.gateway.count("favorites"), 1)

    def test_signed_in_user_sees_create_control(self) -> None:
        messages = self.open_game()
        identity = next(m["args"][0] for m in messages if m["name"] == "identity")
        self.assertTrue(identity["show_create"])


if __name__ == "__main__":
    unittest.main()
