"""
Notifications Module
====================

Push notification fan-out to the companion mobile app.

Provides:
- NotificationService: preference filtering, concurrent batch sends, result reconciliation
- Expo and FCM push transports, selected with PUSH_PROVIDER
- JSON API at /api/notifications for article, targeted and topic sends
"""

from flask import Blueprint

from ...core.errors import NotificationError, ValidationError, NotFoundError, StoreError, TransportError

notifications_bp = Blueprint(
    'notifications',
    __name__,
    url_prefix='/api/notifications'
)

from .notification_service import NotificationService
from . import routes

__all__ = [
    'notifications_bp', 'NotificationService',
    'NotificationError', 'ValidationError', 'NotFoundError', 'StoreError', 'TransportError',
]
