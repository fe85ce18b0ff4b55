"""
FCM Push Adapter
================

Sends through Firebase Cloud Messaging with the firebase-admin SDK (HTTP v1
API). FCM addresses one token per message, so a batch becomes one
send_each() call carrying a message per token. The SDK's httpTimeout app
option bounds each call.
"""

import json

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from ....core.errors import TransportError
from ..models import BatchSuccess, Receipt
from .base import PushTransport


def _stringify_data(data):
    """FCM data payload values must be strings"""
    result = {}
    for key, value in (data or {}).items():
        if value is None:
            continue
        if isinstance(value, str):
            result[key] = value
        else:
            result[key] = json.dumps(value)
    return result


class FCMTransport(PushTransport):
    """Firebase Cloud Messaging via firebase-admin"""

    name = 'fcm'
    token_field = 'fcmToken'

    def __init__(self, fb_app=None, icon='ic_notification', color='#e63946',
                 click_action='FLUTTER_NOTIFICATION_CLICK'):
        self.fb_app = fb_app
        self.icon = icon
        self.color = color
        self.click_action = click_action

    def _android_config(self, message):
        return messaging.AndroidConfig(
            priority='high' if message.priority == 'high' else 'normal',
            notification=messaging.AndroidNotification(
                icon=self.icon,
                color=self.color,
                channel_id=message.channel_id,
                click_action=self.click_action,
                image=message.image_url,
            ),
        )

    def _apns_config(self, message):
        return messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    badge=message.badge,
                    sound=message.sound,
                    mutable_content=True if message.image_url else None,
                ),
            ),
            fcm_options=messaging.APNSFCMOptions(image=message.image_url) if message.image_url else None,
        )

    def build_message(self, message, token=None, topic=None):
        return messaging.Message(
            token=token,
            topic=topic,
            notification=messaging.Notification(title=message.title, body=message.body),
            data=_stringify_data(message.data),
            android=self._android_config(message),
            apns=self._apns_config(message),
        )

    def send_batch(self, batch, message):
        messages = [self.build_message(message, token=token) for token in batch.tokens]
        try:
            response = messaging.send_each(messages, app=self.fb_app)
        except firebase_exceptions.FirebaseError as e:
            raise TransportError(f'FCM error: {e}') from e

        receipts = []
        for token, send_response in zip(batch.tokens, response.responses):
            if send_response.success:
                receipts.append(Receipt(
                    token=token,
                    status='ok',
                    details={'messageId': send_response.message_id},
                ))
            else:
                error = send_response.exception
                receipts.append(Receipt(
                    token=token,
                    status='error',
                    message=str(error),
                    details={'code': getattr(error, 'code', None)},
                ))
        return BatchSuccess(batch=batch, receipts=tuple(receipts))

    def send_to_topic(self, topic, message):
        try:
            return messaging.send(self.build_message(message, topic=topic), app=self.fb_app)
        except firebase_exceptions.FirebaseError as e:
            raise TransportError(f'FCM topic error: {e}') from e
