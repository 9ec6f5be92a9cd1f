"""
Recently viewed guides.

The history lives in a client-local mapping under a single namespaced key, as
a JSON list of records ``{id, title, gameName, authorName, viewedAt}``, most
recent first. In the web app that mapping is :class:`HistoryCookie`, a cookie
of its own, kept apart from the signed session that carries the sign-in
cookie. The JSON is held to a byte budget so the cookie always fits in a
browser.

It is a best-effort feature: storage errors are logged at debug level and the
history reads as empty.
"""

import base64
import json
import logging
from datetime import datetime, timezone

from flask import g, request

from gamebrain.utils import now_ms, time_ago

logger = logging.getLogger(__name__)

HISTORY_KEY = 'gb_history'
HISTORY_MAX = 20
# Base64 grows this by a third; the cookie stays under ~3.3 KB
HISTORY_MAX_BYTES = 2400
TITLE_MAX = 80
HISTORY_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


def _shorten(value, limit):
    value = value or ''
    return value if len(value) <= limit else value[:limit - 1] + '…'


def _encode(entries):
    return json.dumps(entries, separators=(',', ':'))


class ViewHistory:
    def __init__(self, store, max_entries=HISTORY_MAX, clock=now_ms,
                 max_bytes=HISTORY_MAX_BYTES):
        self._store = store
        self.max_entries = max_entries
        self.max_bytes = max_bytes
        self._clock = clock

    def entries(self):
        try:
            raw = self._store.get(HISTORY_KEY)
            if not raw:
                return []
            entries = json.loads(raw)
            if not isinstance(entries, list):
                return []
            return entries
        except Exception as exc:
            logger.debug('Could not read view history: %s', exc)
            return []

    def track(self, guide_id, title, game_name, author_name):
        """Move (or add) a guide to the front of the history.

        Oldest entries are dropped until the encoded list fits ``max_bytes``.
        """
        try:
            history = [h for h in self.entries() if h.get('id') != guide_id]
            history.insert(0, {
                'id': guide_id,
                'title': _shorten(title, TITLE_MAX),
                'gameName': _shorten(game_name, TITLE_MAX),
                'authorName': _shorten(author_name, TITLE_MAX),
                'viewedAt': self._clock(),
            })
            history = history[:self.max_entries]
            encoded = _encode(history)
            while len(history) > 1 and len(encoded.encode('utf-8')) > self.max_bytes:
                history.pop()
                encoded = _encode(history)
            self._store[HISTORY_KEY] = encoded
        except Exception as exc:
            logger.debug('Could not write view history: %s', exc)

    def clear(self):
        try:
            self._store.pop(HISTORY_KEY, None)
        except Exception as exc:
            logger.debug('Could not clear view history: %s', exc)

    def __len__(self):
        return len(self.entries())

    @staticmethod
    def time_ago(entry, now=None):
        viewed_at = entry.get('viewedAt')
        if viewed_at is None:
            return ''
        if isinstance(now, (int, float)):
            now = datetime.fromtimestamp(now / 1000, tz=timezone.utc)
        return time_ago(viewed_at, now=now, max_days=None)


class HistoryCookie:
    """Mapping over the request's cookies; writes are applied to the response.

    Values are stored base64-encoded so the cookie needs no quoting.
    """

    def __init__(self, cookies):
        self._cookies = cookies
        self.changes = {}

    def get(self, key, default=None):
        if key in self.changes:
            value = self.changes[key]
            return default if value is None else value
        raw = self._cookies.get(key)
        if raw is None:
            return default
        return base64.urlsafe_b64decode(raw.encode('ascii')).decode('utf-8')

    def __setitem__(self, key, value):
        self.changes[key] = value

    def pop(self, key, default=None):
        self.changes[key] = None
        return default

    def apply(self, response):
        for key, value in self.changes.items():
            if value is None:
                response.delete_cookie(key)
            else:
                response.set_cookie(
                    key, base64.urlsafe_b64encode(value.encode('utf-8')).decode('ascii'),
                    max_age=HISTORY_COOKIE_MAX_AGE, httponly=True, samesite='Lax',
                )
        return response


def request_history(max_entries=HISTORY_MAX):
    """View history of the browser making the current request."""
    if 'history_cookie' not in g:
        g.history_cookie = HistoryCookie(request.cookies)
    return ViewHistory(g.history_cookie, max_entries=max_entries)


def save_history_cookie(response):
    """``after_request`` hook writing pending history changes."""
    store = g.pop('history_cookie', None)
    if store is not None:
        store.apply(response)
    return response
