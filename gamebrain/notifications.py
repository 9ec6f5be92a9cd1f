"""Toast notifications and the reference-counted loading indicator."""

import logging
import threading
from collections import deque
from contextlib import contextmanager
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)

TOAST_KINDS = ('success', 'error', 'info', 'warning')
DEFAULT_TOAST_DURATION_MS = 3500
# Older toasts are dropped past this many
MAX_TOASTS = 50

TOAST_ICONS = {
    'success': '✓',
    'error': '✕',
    'info': 'ℹ',
    'warning': '⚠',
}


@dataclass(frozen=True)
class Toast:
    message: str
    kind: str = 'info'
    duration_ms: int = DEFAULT_TOAST_DURATION_MS

    @property
    def icon(self):
        return TOAST_ICONS.get(self.kind, TOAST_ICONS['info'])

    def to_dict(self):
        return asdict(self)


class Notifier:
    """Fire-and-forget toast dispatch.

    Toasts go to ``sink`` when one is given, otherwise they are queued until
    :meth:`drain` is called. Unknown kinds are shown as ``info``. Both the
    queue and ``sent`` keep only the latest ``max_toasts``.
    """

    def __init__(self, sink=None, default_duration_ms=DEFAULT_TOAST_DURATION_MS,
                 max_toasts=MAX_TOASTS):
        self._sink = sink
        self._default_duration_ms = default_duration_ms
        self._pending = deque(maxlen=max_toasts)
        self.sent = deque(maxlen=max_toasts)

    def notify(self, message, kind='info', duration_ms=None):
        if kind not in TOAST_KINDS:
            kind = 'info'
        toast = Toast(message, kind, duration_ms or self._default_duration_ms)
        self.sent.append(toast)
        if self._sink is not None:
            self._sink(toast)
        else:
            self._pending.append(toast)
        return toast

    def drain(self):
        pending = list(self._pending)
        self._pending.clear()
        return pending


class LoadingIndicator:
    """Reference-counted show/hide overlay.

    ``on_change(visible)`` is called only when the indicator switches between
    hidden and visible, so nested or concurrent sections do not flicker it.
    """

    def __init__(self, on_change=None):
        self._on_change = on_change
        self._count = 0
        self._lock = threading.Lock()

    @property
    def depth(self):
        return self._count

    @property
    def visible(self):
        return self._count > 0

    def acquire(self):
        with self._lock:
            self._count += 1
            changed = self._count == 1
        if changed and self._on_change:
            self._on_change(True)

    def release(self):
        with self._lock:
            if self._count == 0:
                logger.debug('release() called on a hidden loading indicator')
                return
            self._count -= 1
            changed = self._count == 0
        if changed and self._on_change:
            self._on_change(False)

    @contextmanager
    def busy(self):
        self.acquire()
        try:
            yield self
        finally:
            self.release()
