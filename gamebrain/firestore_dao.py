"""
Firestore Data Access Object (DAO) layer.

Route files, page sessions and the dashboard call functions from this module
instead of querying the gateway directly. Every function returns model
objects from :mod:`gamebrain.firestore_models` (or ``None`` when a document
does not exist) and lets :class:`gamebrain.gateway.GatewayError` propagate to
the caller.
"""

from gamebrain.firebase_init import get_gateway
from gamebrain.firestore_models import Build, Favorite, Game, Guide, UserProfile
from gamebrain.gateway import ASCENDING, DESCENDING, SERVER_TIMESTAMP

GAMES = 'games'
GUIDES = 'guides'
FAVORITES = 'favorites'
BUILDS = 'builds'
USERS = 'users'


# ========================================================================
# Users  (collection: users)
# ========================================================================

def get_user(uid):
    """Get a user profile by UID. Returns UserProfile or None."""
    data = get_gateway().get_by_id(USERS, uid)
    return UserProfile.from_dict(data, uid) if data else None


def create_user(uid, email, username):
    """Create the profile document of a newly registered user."""
    profile = UserProfile(uid=uid, email=email, username=username, created_at=SERVER_TIMESTAMP)
    get_gateway().put(USERS, uid, profile.to_dict())


# ========================================================================
# Games  (collection: games)
# ========================================================================

def get_game(game_id):
    """Get a game by ID. Returns Game or None."""
    data = get_gateway().get_by_id(GAMES, game_id)
    return Game.from_dict(data, game_id) if data else None


def get_games():
    """Get all games ordered by name."""
    result = get_gateway().query(GAMES, order_by=('name', ASCENDING))
    return [Game.from_dict(d, d['id']) for d in result]


def get_game_names():
    """Map every game ID to its display name."""
    return {d['id']: d.get('name', '') for d in get_gateway().query(GAMES)}


def create_game(data):
    return get_gateway().insert(GAMES, data)


# ========================================================================
# Guides  (collection: guides)
# ========================================================================

def get_guide(guide_id):
    """Get a guide by ID. Returns Guide or None."""
    data = get_gateway().get_by_id(GUIDES, guide_id)
    return Guide.from_dict(data, guide_id) if data else None


def get_guides_page(game_id, limit, start_after=None):
    """Get one page of a game's guides, newest first.

    Returns a ``(guides, cursor)`` tuple; pass the cursor back as
    ``start_after`` to fetch the following page.
    """
    result = get_gateway().query(
        GUIDES,
        filters=[('gameId', '==', game_id)],
        order_by=('createdAt', DESCENDING),
        limit=limit,
        start_after=start_after,
    )
    return [Guide.from_dict(d, d['id']) for d in result], result.cursor


def get_recent_guides(limit=6):
    """Newest guides across all games."""
    result = get_gateway().query(GUIDES, order_by=('createdAt', DESCENDING), limit=limit)
    return [Guide.from_dict(d, d['id']) for d in result]


def count_guides_by_author(uid):
    return len(get_gateway().query(GUIDES, filters=[('authorId', '==', uid)]))


def increment_guide_likes(guide_id, amount=1):
    """Atomically add to a guide's like counter."""
    get_gateway().increment(GUIDES, guide_id, 'likesCount', amount)


def create_guide(data):
    data.setdefault('likesCount', 0)
    if data.get('createdAt') is None:
        data['createdAt'] = SERVER_TIMESTAMP
    return get_gateway().insert(GUIDES, data)


# ========================================================================
# Favorites  (collection: favorites)
# ========================================================================

def get_favorites_by_user(uid, limit=None):
    result = get_gateway().query(FAVORITES, filters=[('userId', '==', uid)], limit=limit)
    return [Favorite.from_dict(d, d['id']) for d in result]


def get_user_favorite_ids(uid):
    """Set of guide IDs the user has marked as favorite."""
    return {f.guide_id for f in get_favorites_by_user(uid)}


def count_favorites_by_user(uid):
    return len(get_favorites_by_user(uid))


def find_favorites(uid, guide_id):
    """All favorite rows for a (user, guide) pair. Normally zero or one."""
    result = get_gateway().query(
        FAVORITES,
        filters=[('userId', '==', uid), ('guideId', '==', guide_id)],
    )
    return [Favorite.from_dict(d, d['id']) for d in result]


def create_favorite(uid, guide_id):
    """Create a favorite row. Returns the generated doc ID."""
    favorite = Favorite(user_id=uid, guide_id=guide_id, created_at=SERVER_TIMESTAMP)
    return get_gateway().insert(FAVORITES, favorite.to_dict())


def delete_favorite(favorite_id):
    get_gateway().delete(FAVORITES, favorite_id)


def toggle_favorite(uid, guide_id):
    """Add the favorite if absent, otherwise remove every matching row.

    Returns True when the guide ends up favorited. Duplicate rows left behind
    by earlier races are all removed on toggle-off.
    """
    existing = find_favorites(uid, guide_id)
    if not existing:
        create_favorite(uid, guide_id)
        return True
    for favorite in existing:
        delete_favorite(favorite.id)
    return False


# ========================================================================
# Builds  (collection: builds)
# ========================================================================

def get_builds_by_user(uid, limit=20):
    result = get_gateway().query(BUILDS, filters=[('userId', '==', uid)], limit=limit)
    return [Build.from_dict(d, d['id']) for d in result]


def count_builds_by_user(uid):
    return len(get_gateway().query(BUILDS, filters=[('userId', '==', uid)]))


def create_build(data):
    if data.get('createdAt') is None:
        data['createdAt'] = SERVER_TIMESTAMP
    return get_gateway().insert(BUILDS, data)
