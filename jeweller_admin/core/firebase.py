"""
Firebase Bootstrap
==================

Builds the firebase-admin App from service account settings split across
FIREBASE_* config keys. Called once by JewellerAdmin.init_app; the returned
App is handed to the document store and the FCM transport explicitly.
"""

import logging

import firebase_admin
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)

APP_NAME = 'jeweller-admin'


def build_credentials(config):
    """Service account certificate from FIREBASE_* keys"""
    private_key = config.get('FIREBASE_PRIVATE_KEY') or ''
    # Env files store the PEM with literal \n sequences
    private_key = private_key.replace('\\n', '\n')

    return credentials.Certificate({
        'type': 'service_account',
        'project_id': config.get('FIREBASE_PROJECT_ID'),
        'private_key_id': config.get('FIREBASE_PRIVATE_KEY_ID'),
        'private_key': private_key,
        'client_email': config.get('FIREBASE_CLIENT_EMAIL'),
        'client_id': config.get('FIREBASE_CLIENT_ID'),
        'token_uri': 'https://oauth2.googleapis.com/token',
    })


def init_firebase_app(config):
    """Return the named firebase-admin App, initializing it on first call"""
    try:
        return firebase_admin.get_app(APP_NAME)
    except ValueError:
        pass

    options = {
        'projectId': config.get('FIREBASE_PROJECT_ID'),
        # Seconds; bounds every FCM and Firestore HTTP call
        'httpTimeout': config.get('PUSH_TIMEOUT', 30),
    }
    fb_app = firebase_admin.initialize_app(build_credentials(config), options, name=APP_NAME)
    logger.info(f"Firebase app initialized for project {options['projectId']}")
    return fb_app


def firestore_client(fb_app):
    return firestore.client(app=fb_app)
