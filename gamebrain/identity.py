"""
Identity provider.

Wraps Firebase Auth: password sign-in through the Auth REST API, account
creation through the Admin SDK, and a reactive "current user" stream that
page sessions subscribe to.
"""

import logging
from datetime import timedelta

import requests as http_requests
from flask import current_app

from gamebrain import firestore_dao as dao
from gamebrain.decorators import ANONYMOUS, CurrentUser, get_current_user
from gamebrain.firebase_init import get_auth

logger = logging.getLogger(__name__)

FIREBASE_SIGN_IN_URL = (
    'https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword'
)
SESSION_COOKIE_TTL = timedelta(days=5)

AUTH_ERRORS = {
    'auth/email-already-in-use': 'This email is already in use.',
    'auth/invalid-email': 'Invalid email address.',
    'auth/weak-password': 'Password too weak (min. 6 characters).',
    'auth/user-not-found': 'No account found with this email.',
    'auth/wrong-password': 'Incorrect password.',
    'auth/too-many-requests': 'Too many attempts. Try again later.',
    'auth/network-request-failed': 'Network error. Check your connection.',
    'auth/invalid-credential': 'Invalid credentials.',
    'auth/user-disabled': 'This account has been disabled.',
}

# Error strings returned by the Auth REST API
_REST_ERROR_CODES = {
    'EMAIL_NOT_FOUND': 'auth/user-not-found',
    'INVALID_PASSWORD': 'auth/wrong-password',
    'INVALID_LOGIN_CREDENTIALS': 'auth/invalid-credential',
    'INVALID_EMAIL': 'auth/invalid-email',
    'USER_DISABLED': 'auth/user-disabled',
    'TOO_MANY_ATTEMPTS_TRY_LATER': 'auth/too-many-requests',
}


class AuthError(Exception):
    def __init__(self, code):
        super().__init__(code)
        self.code = code

    @property
    def message(self):
        return translate_auth_error(self.code)


def translate_auth_error(code):
    return AUTH_ERRORS.get(code, 'Something went wrong. Please try again.')


def _firebase_sign_in(email, password):
    """Verify email/password via Firebase Auth REST API.

    Returns the ID token. Raises AuthError on failure.
    """
    api_key = current_app.config.get('FIREBASE_WEB_API_KEY')
    if not api_key:
        raise AuthError('auth/invalid-credential')

    try:
        resp = http_requests.post(
            f'{FIREBASE_SIGN_IN_URL}?key={api_key}',
            json={
                'email': email,
                'password': password,
                'returnSecureToken': True,
            },
            timeout=10,
        )
    except http_requests.RequestException as exc:
        logger.warning('Sign-in request failed: %s', exc)
        raise AuthError('auth/network-request-failed') from exc

    if resp.status_code == 200:
        return resp.json().get('idToken')

    try:
        message = resp.json().get('error', {}).get('message', '')
    except ValueError:
        message = ''
    # e.g. "TOO_MANY_ATTEMPTS_TRY_LATER : Access to this account..."
    reason = message.split(' ')[0] if message else ''
    raise AuthError(_REST_ERROR_CODES.get(reason, 'auth/invalid-credential'))


def sign_in(email, password):
    """Check credentials and return a session cookie for the signed-in user."""
    id_token = _firebase_sign_in(email, password)
    auth = get_auth()
    try:
        return auth.create_session_cookie(id_token, expires_in=SESSION_COOKIE_TTL)
    except (auth.InvalidIdTokenError, ValueError) as exc:
        logger.warning('Could not create session cookie: %s', exc)
        raise AuthError('auth/invalid-credential') from exc


def register_user(email, password, username):
    """Create the Firebase Auth account and its users/{uid} profile.

    Returns the new UID. Raises AuthError with a provider error code.
    """
    auth = get_auth()
    try:
        firebase_user = auth.create_user(
            email=email,
            password=password,
            display_name=username,
        )
    except auth.EmailAlreadyExistsError as exc:
        raise AuthError('auth/email-already-in-use') from exc
    except ValueError as exc:
        code = 'auth/weak-password' if 'password' in str(exc).lower() else 'auth/invalid-email'
        raise AuthError(code) from exc

    dao.create_user(firebase_user.uid, email, username)
    logger.info('Registered user %s', firebase_user.uid)
    return firebase_user.uid


class IdentityProvider:
    """Reactive view of who is signed in.

    ``resolver`` returns the current user (a CurrentUser or a data dict);
    by default it is the user of the current request. Listeners registered
    with :meth:`on_auth_state_changed` are called with the resolved user as
    soon as the provider is initialized and again on every sign-in/sign-out
    transition.
    """

    def __init__(self, resolver=None):
        self._resolver = resolver
        self._user = ANONYMOUS
        self._initialized = False
        self._listeners = []

    def _resolve(self):
        if self._resolver is None:
            return get_current_user()
        data = self._resolver()
        if isinstance(data, CurrentUser):
            return data
        return CurrentUser(data)

    def current_user(self):
        if not self._initialized:
            self.refresh()
        return self._user if self._user.is_authenticated else None

    def refresh(self):
        """Re-resolve the signed-in user and emit on change."""
        self.set_user(self._resolve())
        return self.current_user()

    def set_user(self, user):
        user = user or ANONYMOUS
        first = not self._initialized
        changed = first or user.uid != self._user.uid
        self._user = user
        self._initialized = True
        if changed:
            for listener in list(self._listeners):
                listener(self.current_user())

    def on_auth_state_changed(self, callback):
        self._listeners.append(callback)
        if self._initialized:
            callback(self.current_user())

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return unsubscribe
