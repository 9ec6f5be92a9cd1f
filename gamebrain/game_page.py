"""
Guide browser for a single game.

A :class:`GuidePage` is the state of one loaded game page: the game being
browsed, who is signed in, which guides they favorited, every guide loaded
so far and the cursor of the next page. It never touches HTML itself;
everything it wants shown goes through a :class:`PageView`.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from gamebrain import firestore_dao as dao
from gamebrain.gateway import GatewayError
from gamebrain.notifications import LoadingIndicator, Notifier
from gamebrain.utils import (
    SORT_CRITERIA, SORT_NEWEST, Debouncer, filter_by_keyword, sort_guides, time_ago,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 9
SEARCH_DEBOUNCE_SECONDS = 0.3
SEARCH_FIELDS = ('title', 'content')
PREVIEW_LENGTH = 150

LANDING_URL = '/'
CREATE_GUIDE_URL = '/create-guide?gameId={game_id}'
PLACEHOLDER_IMAGE = 'img/game-placeholder.svg'

STATUS_OK = 'ok'
STATUS_SKELETON = 'skeleton'
STATUS_EMPTY = 'empty'
STATUS_NO_RESULTS = 'no_results'
STATUS_ERROR = 'error'

MODE_REPLACE = 'replace'
MODE_APPEND = 'append'


@dataclass
class GameHeader:
    id: str
    name: str
    description: str
    image: str
    create_url: str

    @property
    def page_title(self):
        return f'{self.name} — GameBrain'


@dataclass
class GuideCard:
    id: str
    title: str
    preview: str
    author_name: str
    verified: bool
    date_label: str
    likes_count: int
    is_favorite: bool = False
    liked: bool = False

    @property
    def favorite_label(self):
        return 'Remove from favorites' if self.is_favorite else 'Add to favorites'

    @property
    def star(self):
        return '★' if self.is_favorite else '☆'


@dataclass
class GuideListView:
    mode: str
    status: str
    cards: List[GuideCard] = field(default_factory=list)
    show_load_more: bool = False


class PageView:
    """Receives everything a GuidePage wants displayed. Methods are no-ops."""

    def show_game(self, header):
        pass

    def render_list(self, view):
        pass

    def update_card(self, card):
        pass

    def show_create_control(self, visible):
        pass

    def navigate(self, url):
        pass


class GuidePage:
    def __init__(self, identity, view=None, notifier=None, loader=None,
                 page_size=PAGE_SIZE, search_debounce=SEARCH_DEBOUNCE_SECONDS,
                 spawn=None, sleep=None):
        self.identity = identity
        self.view = view or PageView()
        self.notifier = notifier or Notifier()
        self.loader = loader or LoadingIndicator()
        self.page_size = page_size

        self.game_id = None
        self.game = None
        self.user = None
        self.favorites = set()
        self.liked = set()
        self.guides = []
        self.cursor = None
        self.has_more = False
        self.keyword = ''
        self.sort_by = SORT_NEWEST

        self._unsubscribe = None
        self._search = Debouncer(search_debounce, self.search, spawn=spawn, sleep=sleep)

        self.actions = {
            'favorite': (self.toggle_favorite, 'guide_id'),
            'like': (self.like_guide, 'guide_id'),
            'search': (self.search_debounced, 'keyword'),
            'sort': (self.sort, 'criterion'),
            'load_more': (self.load_more, None),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, game_id):
        """Open the page for ``game_id``. Returns False when redirected away."""
        self.game_id = (game_id or '').strip() or None
        if not self.game_id:
            self.view.navigate(LANDING_URL)
            return False

        self._unsubscribe = self.identity.on_auth_state_changed(self._on_auth_state_changed)
        # Resolves the provider if nobody has yet; the listener fires either way.
        self.identity.current_user()

        if not self.load_game_info():
            return False
        self.load_guides_page(reset=True)
        return True

    def close(self):
        self._search.cancel()
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_auth_state_changed(self, user):
        self.user = user
        if user:
            try:
                self.favorites = dao.get_user_favorite_ids(user.uid)
            except GatewayError:
                logger.exception('Could not load favorites of %s', user.uid)
                self.favorites = set()
                self.notifier.notify('Could not load your favorites.', 'error')
            self.view.show_create_control(True)
        else:
            self.favorites = set()
            self.view.show_create_control(False)

        if self.guides:
            self._render_current(MODE_REPLACE)

    # ------------------------------------------------------------------
    # Game metadata
    # ------------------------------------------------------------------

    def load_game_info(self):
        """Returns False when the game does not exist."""
        try:
            with self.loader.busy():
                game = dao.get_game(self.game_id)
        except GatewayError:
            logger.exception('Could not load game %s', self.game_id)
            self.notifier.notify('Error while loading the game.', 'error')
            return True

        if game is None:
            self.notifier.notify('Game not found.', 'error')
            self.view.navigate(LANDING_URL)
            return False

        self.game = GameHeader(
            id=self.game_id,
            name=game.name,
            description=game.description or '',
            image=game.image or PLACEHOLDER_IMAGE,
            create_url=CREATE_GUIDE_URL.format(game_id=self.game_id),
        )
        self.view.show_game(self.game)
        return True

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def load_guides_page(self, reset=False):
        if not self.game_id:
            return
        if reset:
            self.guides = []
            self.cursor = None
            self.has_more = False
            self.view.render_list(GuideListView(MODE_REPLACE, STATUS_SKELETON))
        elif self.cursor is None or not self.has_more:
            # Nothing loaded yet, or the list already ended
            return

        try:
            with self.loader.busy():
                guides, cursor = dao.get_guides_page(
                    self.game_id, self.page_size,
                    start_after=None if reset else self.cursor,
                )
        except GatewayError:
            logger.exception('Could not load guides of game %s', self.game_id)
            self.has_more = False
            self.view.render_list(GuideListView(MODE_REPLACE, STATUS_ERROR))
            return

        if not guides and reset:
            self.view.render_list(GuideListView(MODE_REPLACE, STATUS_EMPTY))
            return

        if guides:
            self.cursor = cursor
        self.has_more = len(guides) >= self.page_size
        self.guides.extend(guides)

        if reset or self._view_transformed():
            self._render_current(MODE_REPLACE)
        else:
            cards = [self._card(g) for g in guides]
            self.view.render_list(GuideListView(MODE_APPEND, STATUS_OK, cards, self.has_more))

    def load_more(self):
        self.load_guides_page(reset=False)

    # ------------------------------------------------------------------
    # Search and sort
    # ------------------------------------------------------------------

    def search(self, keyword):
        self.keyword = (keyword or '').strip()
        return self._render_current(MODE_REPLACE)

    def search_debounced(self, keyword):
        return self._search.call(keyword)

    def sort(self, criterion):
        self.sort_by = criterion if criterion in SORT_CRITERIA else SORT_NEWEST
        return self._render_current(MODE_REPLACE)

    def visible_guides(self):
        """Loaded guides after the active keyword filter and sort."""
        guides = filter_by_keyword(self.guides, self.keyword, SEARCH_FIELDS)
        if self.sort_by != SORT_NEWEST:
            guides = sort_guides(guides, self.sort_by)
        return guides

    def _view_transformed(self):
        return bool(self.keyword) or self.sort_by != SORT_NEWEST

    def _render_current(self, mode):
        cards = [self._card(g) for g in self.visible_guides()]
        status = STATUS_OK if cards else STATUS_NO_RESULTS
        view = GuideListView(mode, status, cards, self.has_more)
        self.view.render_list(view)
        return view

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    def toggle_favorite(self, guide_id):
        """Returns the new favorite state, or None when nothing changed."""
        if not self.user:
            self.notifier.notify('Sign in to add favorites.', 'warning')
            return None

        uid = self.user.uid
        try:
            existing = dao.find_favorites(uid, guide_id)
        except GatewayError:
            logger.exception('Could not read favorite %s/%s', uid, guide_id)
            self.notifier.notify('Could not update favorites.', 'error')
            return None

        adding = not existing
        self._set_favorite(guide_id, adding)
        try:
            if adding:
                dao.create_favorite(uid, guide_id)
            else:
                for favorite in existing:
                    dao.delete_favorite(favorite.id)
        except GatewayError:
            logger.exception('Could not write favorite %s/%s', uid, guide_id)
            self._set_favorite(guide_id, not adding)
            self.notifier.notify('Could not update favorites.', 'error')
            return None

        if adding:
            self.notifier.notify('Added to favorites!', 'success')
        else:
            self.notifier.notify('Removed from favorites.', 'info')
        return adding

    def _set_favorite(self, guide_id, favorite):
        if favorite:
            self.favorites.add(guide_id)
        else:
            self.favorites.discard(guide_id)
        self._refresh_card(guide_id)

    # ------------------------------------------------------------------
    # Likes
    # ------------------------------------------------------------------

    def like_guide(self, guide_id):
        """Returns True when the like went through."""
        if not self.user:
            self.notifier.notify('Sign in to like guides.', 'warning')
            return False
        if guide_id in self.liked:
            self.notifier.notify('You already liked this guide!', 'warning')
            return False

        self.liked.add(guide_id)
        self._adjust_likes(guide_id, 1)
        try:
            dao.increment_guide_likes(guide_id, 1)
        except GatewayError:
            logger.exception('Could not like guide %s', guide_id)
            self.liked.discard(guide_id)
            self._adjust_likes(guide_id, -1)
            self.notifier.notify('Error while liking the guide.', 'error')
            return False

        self.notifier.notify('Guide liked!', 'success')
        return True

    def _adjust_likes(self, guide_id, delta):
        guide = self._find_guide(guide_id)
        if guide is not None:
            guide.likes_count = max(0, guide.likes_count + delta)
        self._refresh_card(guide_id)

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    def _find_guide(self, guide_id):
        for guide in self.guides:
            if guide.id == guide_id:
                return guide
        return None

    def card(self, guide_id) -> Optional[GuideCard]:
        guide = self._find_guide(guide_id)
        return self._card(guide) if guide is not None else None

    def _refresh_card(self, guide_id):
        card = self.card(guide_id)
        if card is not None:
            self.view.update_card(card)

    def _card(self, guide):
        content = guide.content or ''
        return GuideCard(
            id=guide.id,
            title=guide.title,
            preview=content[:PREVIEW_LENGTH] + '...',
            author_name=guide.author_name or 'Anonymous',
            verified=guide.author_verified,
            date_label=time_ago(guide.created_at),
            likes_count=guide.likes_count,
            is_favorite=guide.id in self.favorites,
            liked=guide.id in self.liked,
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action, payload=None):
        """Run a user action by name, e.g. ``dispatch('like', {'guide_id': ...})``."""
        try:
            handler, arg = self.actions[action]
        except KeyError:
            raise ValueError(f'unknown action {action!r}') from None
        if arg is None:
            return handler()
        value = (payload or {}).get(arg)
        if arg == 'keyword':
            return handler(value or '')
        if not value:
            raise ValueError(f'{action} requires {arg}')
        return handler(value)
