import logging
from functools import wraps
from flask import request, redirect, url_for, flash, g, session
from gamebrain.firebase_init import get_auth
from gamebrain.gateway import GatewayError
from gamebrain import firestore_dao as dao

logger = logging.getLogger(__name__)

SESSION_COOKIE_KEY = 'firebase_session'


def _verify_session():
    """Verify Firebase session cookie and return the user's data, or None."""
    session_cookie = session.get(SESSION_COOKIE_KEY)
    if not session_cookie:
        return None

    auth = get_auth()
    try:
        decoded = auth.verify_session_cookie(session_cookie, check_revoked=True)
    except (auth.InvalidSessionCookieError, auth.UserDisabledError,
            auth.CertificateFetchError, ValueError) as exc:
        logger.info('Rejected session cookie: %s', exc)
        return None

    uid = decoded['uid']
    user_data = {
        'uid': uid,
        'email': decoded.get('email', ''),
        'username': decoded.get('name', ''),
    }

    try:
        profile = dao.get_user(uid)
    except GatewayError:
        logger.warning('Could not load profile for %s', uid, exc_info=True)
        profile = None
    if profile:
        user_data.update({
            'email': profile.email or user_data['email'],
            'username': profile.username or user_data['username'],
            'role': profile.role,
            'verified': profile.verified,
        })
    return user_data


class CurrentUser:
    """Proxy object providing attribute access to the current user dict."""

    def __init__(self, data=None):
        self._data = data or {}

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        return self._data.get(name)

    def __eq__(self, other):
        if not isinstance(other, CurrentUser):
            return NotImplemented
        return self.uid == other.uid

    def __hash__(self):
        return hash(self.uid)

    @property
    def is_authenticated(self):
        return bool(self._data.get('uid'))

    @property
    def uid(self):
        return self._data.get('uid', '')

    @property
    def role(self):
        return self._data.get('role', 'user')

    @property
    def display_name(self):
        return self._data.get('username') or 'Player'

    @property
    def initial(self):
        name = self.display_name
        return name[0].upper() if name else '?'

    @property
    def role_label(self):
        return 'Admin' if self.is_admin() else 'Player'

    def is_admin(self):
        return self.role == 'admin'


ANONYMOUS = CurrentUser()


def load_current_user():
    """Load current user into g before each request."""
    if hasattr(g, '_current_user'):
        return
    user_data = _verify_session()
    g._current_user = CurrentUser(user_data)


def get_current_user():
    if not hasattr(g, '_current_user'):
        load_current_user()
    return g._current_user


def auth_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        user = get_current_user()
        if not user.is_authenticated:
            flash('Please sign in first.', 'info')
            return redirect(url_for('auth.login', next=request.url))
        g.current_user = user
        return f(*args, **kwargs)
    return decorated


def redirect_if_logged_in(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        if get_current_user().is_authenticated:
            return redirect(url_for('dashboard.index'))
        return f(*args, **kwargs)
    return decorated
