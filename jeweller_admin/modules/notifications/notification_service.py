"""
Notification Service
====================

Entry point for push notifications. Built once by JewellerAdmin.init_app
with an explicit document store and push transport, then reached through
app.extensions by the article handlers and the notifications API.

Every public method returns a DispatchOutcome; no exception escapes.
"""

import logging
from datetime import datetime, timezone

from ...core.errors import NotFoundError, NotificationError, ValidationError
from ...core.logging_service import LoggingService
from .dispatcher import BatchDispatcher, MAX_BATCH_SIZE
from .filters import filter_tokens
from .models import ArticleNotificationPayload, DispatchOutcome, PushMessage
from .reconciler import reconcile
from .token_store import TokenStoreReader

logger = logging.getLogger(__name__)

DEFAULT_TITLE = 'New Article'


def _as_list(value):
    """List field from a stored record: list as is, scalar wrapped, empty -> []"""
    if isinstance(value, (list, tuple)):
        return list(value)
    if value:
        return [value]
    return []


class NotificationService:
    """
    Push notification fan-out.

    Configuration (keyword arguments, usually from app.config):
        brand_name: Shown as "From <brand>" and used as the fallback category
        channel_id: Android notification channel
        batch_size: Tokens per transport call (capped at 100)
        max_workers: Concurrent batch sends
        timeout: Per-batch timeout in seconds
    """

    def __init__(self, store, transport, brand_name='TheNewJeweller', channel_id='new-articles',
                 batch_size=MAX_BATCH_SIZE, max_workers=8, timeout=30):
        self.store = store
        self.transport = transport
        self.brand_name = brand_name
        self.channel_id = channel_id
        self.reader = TokenStoreReader(store, transport.token_field, transport.is_valid_token)
        self.dispatcher = BatchDispatcher(
            transport, batch_size=batch_size, max_workers=max_workers, timeout=timeout
        )

    @classmethod
    def from_config(cls, config, store, transport):
        return cls(
            store,
            transport,
            brand_name=config.get('PUSH_BRAND_NAME', 'TheNewJeweller'),
            channel_id=config.get('PUSH_CHANNEL_ID', 'new-articles'),
            batch_size=config.get('PUSH_BATCH_SIZE', MAX_BATCH_SIZE),
            max_workers=config.get('PUSH_MAX_WORKERS', 8),
            timeout=config.get('PUSH_TIMEOUT', 30),
        )

    # ===== Article notifications =====

    def resolve_payload(self, article_id, title=None, categories=None, locations=None, image_url=None):
        """
        Build the payload, backfilling missing fields from the article record.

        The record is only read when the title is missing or no categories
        were supplied.
        """
        if not article_id:
            raise ValidationError('articleId is required')

        categories = _as_list(categories)
        locations = _as_list(locations)

        if not title or not categories:
            article = self.store.get_article(article_id)
            if article is None:
                raise NotFoundError(f'Article {article_id} not found')

            if not title:
                title = article.get('title') or DEFAULT_TITLE
            if not categories:
                categories = _as_list(article.get('categories')) or _as_list(article.get('category'))
            if not locations:
                locations = _as_list(article.get('locations')) or _as_list(article.get('location'))
            if not image_url:
                image_url = article.get('imageUrl')

        return ArticleNotificationPayload(
            article_id=article_id,
            title=title,
            categories=categories,
            locations=locations,
            image_url=image_url or None,
        )

    def dispatch_article(self, payload):
        """Reader -> filter -> dispatcher -> reconciler for a resolved payload"""
        profiles = self.reader.read_profiles()
        if not profiles:
            logger.info("No users with push tokens found")
            return DispatchOutcome(success=True, tokens_count=0, message='No users to notify')

        tokens = filter_tokens(profiles, payload)
        if not tokens:
            logger.info("No valid push tokens found after preference filtering")
            return DispatchOutcome(success=True, tokens_count=0, message='No matching recipients found')

        logger.info(f"Sending push notifications to {len(tokens)} devices via {self.transport.name}")
        message = PushMessage.for_article(payload, self.brand_name, self.channel_id)
        return reconcile(self.dispatcher.dispatch(tokens, message))

    def notify_new_article(self, article_id, title=None, categories=None, locations=None, image_url=None):
        """
        Notify subscribed devices about a new or updated article.

        Returns:
            DispatchOutcome; failures come back with success=False and error set
        """
        try:
            payload = self.resolve_payload(article_id, title, categories, locations, image_url)
            outcome = self.dispatch_article(payload)
        except (ValidationError, NotFoundError) as e:
            logger.info(f"Article notification rejected: {e}")
            return DispatchOutcome.failure(str(e), e.kind)
        except NotificationError as e:
            logger.error(f"Error sending push notifications: {e}")
            LoggingService.error('notifications', f"Article notification failed: {e}",
                                 {'article_id': article_id, 'error_kind': e.kind})
            return DispatchOutcome.failure(str(e) or 'Unknown error sending notifications', e.kind)
        except Exception as e:
            logger.exception("Unexpected error sending push notifications")
            LoggingService.log_error_with_traceback('notifications', e, {'article_id': article_id})
            return DispatchOutcome.failure(str(e) or 'Unknown error sending notifications')

        self._record(outcome, {'article_id': article_id})
        return outcome

    # ===== Targeted / topic notifications =====

    def send_targeted_notification(self, title, body, tokens=(), user_ids=(), data=None,
                                   channel_id=None, image_url=None):
        """
        Send to explicit tokens and/or the tokens of specific users.
        No preference filtering; duplicates are removed.
        """
        try:
            if not title or not body:
                raise ValidationError('title and body are required')

            target = []
            for token in list(tokens or []) + self.reader.read_tokens_for_users(user_ids or []):
                if token and token not in target:
                    target.append(token)

            if not target:
                return DispatchOutcome(success=True, tokens_count=0, message='No valid recipients found')

            message = PushMessage(
                title=title,
                body=body,
                data={**(data or {}), 'timestamp': datetime.now(timezone.utc).isoformat()},
                badge=None,
                channel_id=channel_id or self.channel_id,
                image_url=image_url,
            )
            outcome = reconcile(self.dispatcher.dispatch(target, message))
        except NotificationError as e:
            logger.error(f"Error sending targeted notifications: {e}")
            return DispatchOutcome.failure(str(e), e.kind)
        except Exception as e:
            logger.exception("Unexpected error sending targeted notifications")
            LoggingService.log_error_with_traceback('notifications', e)
            return DispatchOutcome.failure(str(e) or 'Unknown error sending notifications')

        self._record(outcome, {'targeted': True})
        return outcome

    def send_topic_notification(self, topic, title, body, data=None, image_url=None):
        """Broadcast to a topic subscription (FCM only)"""
        if not topic:
            return DispatchOutcome.failure('Topic is required', ValidationError.kind)
        if not title or not body:
            return DispatchOutcome.failure('Title and body are required', ValidationError.kind)
        if not self.transport.supports_topics:
            return DispatchOutcome.failure(
                f'{self.transport.name} transport does not support topic notifications',
                ValidationError.kind,
            )

        message = PushMessage(
            title=title,
            body=body,
            data={**(data or {}), 'timestamp': datetime.now(timezone.utc).isoformat()},
            channel_id=self.channel_id,
            image_url=image_url,
        )
        try:
            message_id = self.transport.send_to_topic(topic, message)
        except NotificationError as e:
            logger.error(f"Error sending topic notification: {e}")
            return DispatchOutcome.failure(str(e), e.kind)
        except Exception as e:
            logger.exception("Unexpected error sending topic notification")
            return DispatchOutcome.failure(str(e) or 'Unknown error sending topic notification')

        outcome = DispatchOutcome(
            success=True,
            message=f'Notification sent to topic: {topic}',
            details={'messageId': message_id},
        )
        self._record(outcome, {'topic': topic})
        return outcome

    def _record(self, outcome, context):
        """Write a dispatch summary to the app_logs sink"""
        level = 'info' if outcome.success and not outcome.errors else 'warning'
        LoggingService.log(level, 'notifications', outcome.message or outcome.error or 'dispatch finished', {
            **context,
            'provider': self.transport.name,
            'success': outcome.success,
            'tokens_count': outcome.tokens_count,
            'error_count': len(outcome.errors),
        })
