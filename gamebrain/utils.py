import threading
import time
from datetime import datetime, timezone

SORT_NEWEST = 'newest'
SORT_OLDEST = 'oldest'
SORT_LIKES = 'likes'
SORT_CRITERIA = (SORT_NEWEST, SORT_OLDEST, SORT_LIKES)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _field(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def filter_by_keyword(items, keyword, fields=('title',)):
    """Case-insensitive substring match of ``keyword`` on any of ``fields``.

    A blank keyword returns ``items`` unchanged.
    """
    if not keyword or not keyword.strip():
        return list(items)
    kw = keyword.strip().lower()
    return [
        item for item in items
        if any(kw in (_field(item, f) or '').lower() for f in fields)
    ]


def _created_key(guide):
    created = _field(guide, 'created_at')
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def sort_guides(guides, criterion=SORT_NEWEST):
    """Return a sorted copy; unknown criteria sort newest first."""
    if criterion == SORT_LIKES:
        return sorted(guides, key=lambda g: _field(g, 'likes_count') or 0, reverse=True)
    if criterion == SORT_OLDEST:
        return sorted(guides, key=_created_key)
    return sorted(guides, key=_created_key, reverse=True)


def _to_datetime(value):
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def format_date(value):
    if not value:
        return 'Unknown date'
    return _to_datetime(value).strftime('%d %b %Y')


def time_ago(value, now=None, max_days=30):
    """Relative time with minute/hour/day granularity.

    ``value`` is a datetime or epoch milliseconds. Past ``max_days`` the
    absolute date is shown instead; ``max_days=None`` never switches.
    """
    if not value:
        return ''
    now = now or datetime.now(timezone.utc)
    seconds = (now - _to_datetime(value)).total_seconds()
    mins = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if mins < 1:
        return 'just now'
    if mins < 60:
        return f'{mins} min ago'
    if hours < 24:
        return f'{hours}h ago'
    if max_days is None or days < max_days:
        return f'{days}d ago'
    return format_date(value)


def now_ms():
    return int(time.time() * 1000)


class Debouncer:
    """Run ``func`` once input has been quiet for ``wait`` seconds.

    Each :meth:`call` supersedes the previous pending one. ``spawn`` and
    ``sleep`` default to plain threads; the Socket.IO layer passes its own
    so the timer cooperates with the server's async mode. A zero wait calls
    through synchronously.
    """

    def __init__(self, wait, func, spawn=None, sleep=None):
        self.wait = wait
        self.func = func
        self._spawn = spawn or self._thread_spawn
        self._sleep = sleep or time.sleep
        self._generation = 0
        self._lock = threading.Lock()

    @staticmethod
    def _thread_spawn(target, *args):
        t = threading.Thread(target=target, args=args, daemon=True)
        t.start()
        return t

    def call(self, *args, **kwargs):
        if self.wait <= 0:
            return self.func(*args, **kwargs)
        with self._lock:
            self._generation += 1
            generation = self._generation
        self._spawn(self._fire, generation, args, kwargs)
        return None

    def cancel(self):
        with self._lock:
            self._generation += 1

    def _fire(self, generation, args, kwargs):
        self._sleep(self.wait)
        with self._lock:
            if generation != self._generation:
                return
        self.func(*args, **kwargs)
