import base64
import json
import unittest

from flask import Response

from gamebrain.history import (
    HISTORY_KEY, HISTORY_MAX, HISTORY_MAX_BYTES, TITLE_MAX, HistoryCookie, ViewHistory,
)


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.value = start

    def __call__(self) -> int:
        self.value += 1000
        return self.value


class BrokenStore(dict):
    def get(self, key, default=None):
        raise OSError("storage unavailable")

    def __setitem__(self, key, value):
        raise OSError("storage unavailable")


class ViewHistoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = {}
        self.history = ViewHistory(self.store, clock=FakeClock())

    def _track(self, guide_id: str) -> None:
        self.history.track(guide_id, f"Title {guide_id}", "Elden Ring", "alice")

    def test_revisit_moves_entry_to_front(self) -> None:
        self._track("a")
        self._track("b")
        self._track("a")
        entries = self.history.entries()
        self.assertEqual([e["id"] for e in entries], ["a", "b"])
        self.assertEqual(entries[0]["gameName"], "Elden Ring")
        self.assertGreater(entries[0]["viewedAt"], entries[1]["viewedAt"])

    def test_capped_at_twenty(self) -> None:
        for i in range(25):
            self._track(str(i))
        entries = self.history.entries()
        self.assertEqual(len(entries), HISTORY_MAX)
        self.assertEqual(entries[0]["id"], "24")
        self.assertEqual(entries[-1]["id"], "5")

    def test_stored_as_json_under_one_key(self) -> None:
        self._track("a")
        self.assertEqual(list(self.store), [HISTORY_KEY])
        self.assertEqual(json.loads(self.store[HISTORY_KEY])[0]["authorName"], "alice")

    def test_corrupt_value_reads_as_empty(self) -> None:
        self.store[HISTORY_KEY] = "{not json"
        self.assertEqual(self.history.entries(), [])
        self._track("a")
        self.assertEqual(len(self.history), 1)

    def test_storage_errors_are_swallowed(self) -> None:
        history = ViewHistory(BrokenStore())
        history.track("a", "A", "Game", "bob")
        self.assertEqual(history.entries(), [])

    def test_clear(self) -> None:
        self._track("a")
        self.history.clear()
        self.assertEqual(len(self.history), 0)

    def test_time_ago_has_no_absolute_cutoff(self) -> None:
        day = 24 * 60 * 60 * 1000
        entry = {"viewedAt": 1_000 * day}
        self.assertEqual(ViewHistory.time_ago(entry, now=1_060 * day), "60d ago")
        self.assertEqual(ViewHistory.time_ago({}), "")

    def test_long_titles_stay_within_byte_budget(self) -> None:
        long_title = "Every boss, every route, every secret " * 4
        for i in range(HISTORY_MAX):
            self.history.track(str(i), long_title, "Elden Ring", "alice")
        raw = self.store[HISTORY_KEY]
        self.assertLessEqual(len(raw.encode("utf-8")), HISTORY_MAX_BYTES)
        entries = self.history.entries()
        self.assertLess(len(entries), HISTORY_MAX)
        newest = [str(i) for i in range(HISTORY_MAX - 1, -1, -1)]
        self.assertEqual([e["id"] for e in entries], newest[:len(entries)])
        self.assertEqual(len(entries[0]["title"]), TITLE_MAX)
        self.assertTrue(entries[0]["title"].endswith("\u2026"))

    def test_short_titles_are_kept_as_is(self) -> None:
        self._track("a")
        self.assertEqual(self.history.entries()[0]["title"], "Title a")


class HistoryCookieTests(unittest.TestCase):
    def test_reads_base64_cookie(self) -> None:
        raw = base64.urlsafe_b64encode(b'[{"id": "a"}]').decode("ascii")
        history = ViewHistory(HistoryCookie({HISTORY_KEY: raw}))
        self.assertEqual(history.entries(), [{"id": "a"}])

    def test_bad_cookie_reads_as_empty(self) -> None:
        history = ViewHistory(HistoryCookie({HISTORY_KEY: "%%%"}))
        self.assertEqual(history.entries(), [])

    def test_writes_are_applied_to_response(self) -> None:
        store = HistoryCookie({})
        ViewHistory(store).track("a", "A", "Elden Ring", "bob")
        response = store.apply(Response())
        header = response.headers.getlist("Set-Cookie")[0]
        self.assertTrue(header.startswith(f"{HISTORY_KEY}="))
        self.assertIn("HttpOnly", header)
        self.assertEqual(ViewHistory(store).entries()[0]["id"], "a")

    def test_clear_deletes_cookie(self) -> None:
        store = HistoryCookie({HISTORY_KEY: "W10="})
        ViewHistory(store).clear()
        self.assertEqual(ViewHistory(store).entries(), [])
        header = store.apply(Response()).headers.getlist("Set-Cookie")[0]
        self.assertIn("Max-Age=0", header)


if __name__ == "__main__":
    unittest.main()
