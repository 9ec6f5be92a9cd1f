"""
User dashboard.

Loads the four dashboard sections (recent guides, own builds, own favorites
and stats) concurrently and waits for all of them before rendering. Each
section fails on its own: a gateway error turns that section into an error
placeholder and leaves the others intact.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List

from gamebrain import firestore_dao as dao
from gamebrain.gateway import GatewayError
from gamebrain.utils import time_ago

logger = logging.getLogger(__name__)

RECENT_GUIDES_LIMIT = 6
BUILDS_LIMIT = 20
FAVORITES_LIMIT = 6
DEFAULT_GAME_NAME = 'Game'


@dataclass
class Section:
    status: str = 'ok'
    items: List[Dict[str, Any]] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def ok(self):
        return self.status == 'ok'

    @property
    def empty(self):
        return self.status == 'empty'

    @property
    def error(self):
        return self.status == 'error'


def _guide_item(guide, game_names, favorite):
    return {
        'id': guide.id,
        'title': guide.title,
        'preview': (guide.content or '')[:120] + '...',
        'author_name': guide.author_name or 'Anonymous',
        'verified': guide.author_verified,
        'date_label': time_ago(guide.created_at),
        'likes_count': guide.likes_count,
        'game_name': game_names.get(guide.game_id) or DEFAULT_GAME_NAME,
        'is_favorite': favorite,
    }


def _build_item(build, game_names):
    return {
        'id': build.id,
        'title': build.title,
        'preview': (build.description or '')[:100] + '...',
        'date_label': time_ago(build.created_at),
        'game_name': game_names.get(build.game_id) or DEFAULT_GAME_NAME,
    }


def _section(name, loader):
    try:
        items = loader()
    except GatewayError:
        logger.exception('Dashboard section %s failed', name)
        return Section(status='error')
    if not items:
        return Section(status='empty')
    return Section(items=items)


def load_recent_guides(uid, game_names):
    guides = dao.get_recent_guides(RECENT_GUIDES_LIMIT)
    if not guides:
        return []
    favorite_ids = dao.get_user_favorite_ids(uid)
    names = game_names()
    return [_guide_item(g, names, g.id in favorite_ids) for g in guides]


def load_my_builds(uid, game_names):
    builds = dao.get_builds_by_user(uid, BUILDS_LIMIT)
    if not builds:
        return []
    names = game_names()
    return [_build_item(b, names) for b in builds]


def load_my_favorites(uid, game_names):
    favorites = dao.get_favorites_by_user(uid, FAVORITES_LIMIT)
    if not favorites:
        return []
    names = game_names()
    items = []
    for favorite in favorites[:FAVORITES_LIMIT]:
        guide = dao.get_guide(favorite.guide_id)
        # Favorites can outlive the guide they point to
        if guide is not None:
            items.append(_guide_item(guide, names, True))
    return items


def load_stats(uid):
    return {
        'guides': dao.count_guides_by_author(uid),
        'builds': dao.count_builds_by_user(uid),
        'favorites': dao.count_favorites_by_user(uid),
    }


def load_dashboard(uid, max_workers=5):
    """Fetch every dashboard section for ``uid``.

    Returns a dict of :class:`Section` keyed by ``recent_guides``,
    ``my_builds``, ``my_favorites`` and ``stats``.
    """
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        names_future = executor.submit(dao.get_game_names)
        game_names = names_future.result

        futures = {
            'recent_guides': executor.submit(_section, 'recent_guides',
                                             lambda: load_recent_guides(uid, game_names)),
            'my_builds': executor.submit(_section, 'my_builds',
                                         lambda: load_my_builds(uid, game_names)),
            'my_favorites': executor.submit(_section, 'my_favorites',
                                            lambda: load_my_favorites(uid, game_names)),
            'stats': executor.submit(_stats_section, uid),
        }
        return {name: future.result() for name, future in futures.items()}


def _stats_section(uid):
    try:
        return Section(counts=load_stats(uid))
    except GatewayError:
        logger.exception('Dashboard stats failed for %s', uid)
        return Section(status='error')
