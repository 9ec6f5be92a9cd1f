import logging
import os
import firebase_admin
from firebase_admin import credentials, firestore, auth

from gamebrain.gateway import FirestoreGateway, InMemoryGateway

logger = logging.getLogger(__name__)

_app = None
_db = None
_gateway = None


def init_firebase(app_config=None):
    global _app, _db

    if _app is not None:
        return

    cred_path = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS', './firebase-service-account.json')

    if os.path.exists(cred_path):
        cred = credentials.Certificate(cred_path)
    else:
        cred = credentials.ApplicationDefault()

    project_id = ''
    if app_config:
        project_id = app_config.get('FIREBASE_PROJECT_ID', '')
    if not project_id:
        project_id = os.environ.get('FIREBASE_PROJECT_ID', '')

    options = {}
    if project_id:
        options['projectId'] = project_id

    _app = firebase_admin.initialize_app(cred, options=options if options else None)
    _db = firestore.client()
    logger.info('Firebase initialized (project=%s)', project_id or 'default')


def init_gateway(app_config=None):
    """Select the document store backend from configuration."""
    global _gateway

    kind = 'firestore'
    if app_config:
        kind = app_config.get('GAMEBRAIN_GATEWAY', 'firestore')

    if kind == 'memory':
        _gateway = InMemoryGateway()
    else:
        init_firebase(app_config)
        _gateway = FirestoreGateway(_db)
    logger.info('Using %s gateway', kind)
    return _gateway


def set_gateway(gateway):
    global _gateway
    _gateway = gateway


def get_gateway():
    global _gateway
    if _gateway is None:
        init_gateway()
    return _gateway


def get_auth():
    return auth
