import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return int(value)


class Config:
    SECRET_KEY = os.environ.get('SESSION_SECRET') or os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None

    # Firebase
    FIREBASE_WEB_API_KEY = os.environ.get('FIREBASE_WEB_API_KEY', '')
    # 'firestore' in production, 'memory' for local development without credentials
    GAMEBRAIN_GATEWAY = os.environ.get('GAMEBRAIN_GATEWAY', 'firestore')

    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'eventlet')
    CORS_ALLOWED_ORIGINS = os.environ.get('CORS_ALLOWED_ORIGINS', '')

    # Guide browser
    PAGE_SIZE = _int_env('PAGE_SIZE', 9)
    SEARCH_DEBOUNCE_MS = _int_env('SEARCH_DEBOUNCE_MS', 300)
    TOAST_DURATION_MS = _int_env('TOAST_DURATION_MS', 3500)
    HISTORY_MAX = _int_env('HISTORY_MAX', 20)

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    WTF_CSRF_ENABLED = False
    GAMEBRAIN_GATEWAY = 'memory'
    SOCKETIO_ASYNC_MODE = 'threading'
    SEARCH_DEBOUNCE_MS = 0
