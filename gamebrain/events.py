import logging
from flask import request, current_app
from flask_socketio import emit
from gamebrain import socketio
from gamebrain.decorators import get_current_user
from gamebrain.game_page import GuidePage, PageView
from gamebrain.identity import IdentityProvider
from gamebrain.notifications import LoadingIndicator, Notifier

logger = logging.getLogger(__name__)

# One guide browser per connected game page, keyed by Socket.IO sid
page_sessions = {}


def _get_socket_user():
    """Get current user from the Flask session context in Socket.IO events."""
    return get_current_user()


def _static_url(path):
    if path.startswith(('http://', 'https://', '/')):
        return path
    return f'/static/{path}'


class SocketPageView(PageView):
    """Pushes page updates to a single Socket.IO client."""

    def __init__(self, sid, app):
        self.sid = sid
        self.app = app

    def _emit(self, event, data):
        socketio.emit(event, data, to=self.sid)

    def _render_cards(self, cards):
        # Rendered straight from the Jinja env: debounced searches run outside
        # any request context.
        template = self.app.jinja_env.get_template('partials/guide_cards.html')
        return template.render(cards=cards)

    def show_game(self, header):
        self._emit('game', {
            'id': header.id,
            'name': header.name,
            'description': header.description,
            'image': _static_url(header.image),
            'page_title': header.page_title,
            'create_url': header.create_url,
        })

    def render_list(self, view):
        self._emit('guides', {
            'mode': view.mode,
            'status': view.status,
            'html': self._render_cards(view.cards) if view.cards else '',
            'show_load_more': view.show_load_more,
        })

    def update_card(self, card):
        self._emit('card', {
            'guide_id': card.id,
            'is_favorite': card.is_favorite,
            'star': card.star,
            'favorite_label': card.favorite_label,
            'liked': card.liked,
            'likes_count': card.likes_count,
        })

    def show_create_control(self, visible):
        self._emit('identity', {'signed_in': visible, 'show_create': visible})

    def navigate(self, url):
        self._emit('redirect', {'url': url})


def _close_page(sid):
    page = page_sessions.pop(sid, None)
    if page is not None:
        page.close()


def _new_page(sid):
    app = current_app._get_current_object()
    config = app.config

    notifier = Notifier(
        sink=lambda toast: socketio.emit('toast', toast.to_dict(), to=sid),
        default_duration_ms=config['TOAST_DURATION_MS'],
    )
    loader = LoadingIndicator(
        on_change=lambda visible: socketio.emit('loader', {'visible': visible}, to=sid),
    )
    return GuidePage(
        IdentityProvider(resolver=_get_socket_user),
        view=SocketPageView(sid, app),
        notifier=notifier,
        loader=loader,
        page_size=config['PAGE_SIZE'],
        search_debounce=config['SEARCH_DEBOUNCE_MS'] / 1000.0,
        spawn=socketio.start_background_task,
        sleep=socketio.sleep,
    )


@socketio.on('open_game')
def handle_open_game(data):
    sid = request.sid
    _close_page(sid)

    game_id = (data or {}).get('game_id')
    page = _new_page(sid)
    page_sessions[sid] = page
    if not page.initialize(game_id):
        _close_page(sid)
        return
    logger.debug('Opened game %s for %s', game_id, sid)


@socketio.on('guide_action')
def handle_guide_action(data):
    page = page_sessions.get(request.sid)
    if page is None:
        emit('error', {'message': 'Page session expired. Reload the page.'})
        return

    data = data or {}
    # Sign-in/out since the last event re-triggers the identity listeners
    page.identity.refresh()
    try:
        page.dispatch(data.get('action'), data)
    except ValueError as exc:
        emit('error', {'message': str(exc)})


@socketio.on('disconnect')
def handle_disconnect(reason=None):
    _close_page(request.sid)
