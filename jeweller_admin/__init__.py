"""
Jeweller Admin
==============

Flask backend for the jewellery news app's admin panel:
- Article, category and location management on Cloud Firestore
- Push notification fan-out to the mobile app (Expo or FCM)

Usage:
    from flask import Flask
    from jeweller_admin import JewellerAdmin

    app = Flask(__name__)
    JewellerAdmin(app)

Tests and embedding apps can pass their own store and transport:
    JewellerAdmin(app, store=fake_store, transport=stub_transport)
"""

import logging
import os

from .core.config import Config

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

# Config keys copied from Config into app.config when the app has not set them
CONFIG_KEYS = [
    'DB_DIR', 'LOG_DB',
    'FIREBASE_PROJECT_ID', 'FIREBASE_CLIENT_EMAIL', 'FIREBASE_PRIVATE_KEY',
    'FIREBASE_PRIVATE_KEY_ID', 'FIREBASE_CLIENT_ID',
    'PUSH_PROVIDER', 'EXPO_PUSH_URL', 'EXPO_ACCESS_TOKEN', 'PUSH_BATCH_SIZE',
    'PUSH_TIMEOUT', 'PUSH_MAX_WORKERS', 'PUSH_BRAND_NAME', 'PUSH_CHANNEL_ID',
]

DEFAULT_FEATURES = {
    'articles': True,
    'taxonomy': True,
    'notifications': True,
}


class JewellerAdmin:
    """
    Flask extension wiring the document store, push transport and
    notification service into an app, and registering the API blueprints.

    The store and transport are built once here and reused by every request.
    """

    def __init__(self, app=None, config=None, store=None, transport=None):
        self._config = config or {}
        self._registered = []
        self.store = store
        self.transport = transport
        self.notification_service = None
        self.firebase_app = None

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        for key in CONFIG_KEYS:
            app.config.setdefault(key, getattr(Config, key))

        self._setup_database_dir(app)

        if self.store is None or self.transport is None:
            self._init_firebase_clients(app)

        from .modules.notifications import NotificationService
        self.notification_service = NotificationService.from_config(app.config, self.store, self.transport)

        app.extensions['jeweller_admin'] = self
        self._register_blueprints(app)
        logger.info(f"Jeweller admin initialized (push provider: {self.transport.name})")

    def _setup_database_dir(self, app):
        """Create DB_DIR for the app_logs sink"""
        db_dir = app.config.get('DB_DIR')
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def _init_firebase_clients(self, app):
        """Build whatever was not injected from the FIREBASE_* settings"""
        from .core.document_store import DocumentStore
        from .core.firebase import firestore_client, init_firebase_app
        from .modules.notifications.transports import create_transport

        self.firebase_app = init_firebase_app(app.config)
        if self.store is None:
            self.store = DocumentStore(firestore_client(self.firebase_app))
        if self.transport is None:
            self.transport = create_transport(app.config, fb_app=self.firebase_app)

    def _register_blueprints(self, app):
        features = {**DEFAULT_FEATURES, **self._config.get('features', {})}

        if features.get('articles'):
            from .modules.articles import articles_bp
            app.register_blueprint(articles_bp)
            self._registered.append('articles')

        if features.get('taxonomy'):
            from .modules.taxonomy import taxonomy_bp
            app.register_blueprint(taxonomy_bp)
            self._registered.append('taxonomy')

        if features.get('notifications'):
            from .modules.notifications import notifications_bp
            app.register_blueprint(notifications_bp)
            self._registered.append('notifications')

    def get_registered_modules(self):
        return list(self._registered)


__all__ = ['JewellerAdmin']
