"""
Push Transports
===============

- expo: Expo push service (ExponentPushToken[...] tokens in users.pushToken)
- fcm: Firebase Cloud Messaging (tokens in users.fcmToken)

Selected with the PUSH_PROVIDER config key.
"""

import logging

from .base import PushTransport
from .expo import ExpoTransport
from .fcm import FCMTransport

logger = logging.getLogger(__name__)


def create_transport(config, fb_app=None):
    """Build the configured transport from an app.config-like mapping"""
    provider = (config.get('PUSH_PROVIDER') or 'expo').lower()

    if provider == 'fcm':
        logger.info("Push provider: FCM")
        return FCMTransport(fb_app=fb_app)

    if provider != 'expo':
        logger.warning(f"Unknown PUSH_PROVIDER '{provider}', falling back to expo")

    logger.info("Push provider: Expo")
    return ExpoTransport(
        push_url=config.get('EXPO_PUSH_URL'),
        access_token=config.get('EXPO_ACCESS_TOKEN'),
        timeout=config.get('PUSH_TIMEOUT', 30),
    )


__all__ = ['PushTransport', 'ExpoTransport', 'FCMTransport', 'create_transport']
