"""
Notification Models
===================

Value types passed between the token reader, preference filter, batch
dispatcher and reconciler.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from ...core.errors import ValidationError

# Receipt statuses that count as accepted by the gateway
SUCCESS_STATUSES = frozenset({'ok', 'success'})


@dataclass(frozen=True)
class UserNotificationProfile:
    """One registered device/user as read from the users collection"""

    user_id: str
    token: str
    category_preferences: FrozenSet[str] = frozenset()
    location_preferences: FrozenSet[str] = frozenset()

    @classmethod
    def from_document(cls, user_id, data, token_field):
        return cls(
            user_id=user_id,
            token=data.get(token_field),
            category_preferences=frozenset(data.get('pushNotificationCategories') or ()),
            location_preferences=frozenset(data.get('pushNotificationLocations') or ()),
        )


@dataclass(frozen=True)
class ArticleNotificationPayload:
    """The article a notification is about"""

    article_id: str
    title: str
    categories: Tuple[str, ...] = ()
    locations: Tuple[str, ...] = ()
    image_url: Optional[str] = None

    def __post_init__(self):
        if not self.article_id:
            raise ValidationError('articleId is required')
        if not self.title:
            raise ValidationError('title is required')
        # Accept lists from JSON bodies and store records
        object.__setattr__(self, 'categories', tuple(self.categories or ()))
        object.__setattr__(self, 'locations', tuple(self.locations or ()))

    def primary_category(self, default):
        return self.categories[0] if self.categories else default


@dataclass(frozen=True)
class PushMessage:
    """Message fields shared by every batch of one dispatch"""

    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)
    sound: str = 'default'
    badge: Optional[int] = 1
    channel_id: str = 'new-articles'
    priority: str = 'high'
    image_url: Optional[str] = None

    @classmethod
    def for_article(cls, payload, brand_name, channel_id='new-articles'):
        return cls(
            title=f"From {brand_name}",
            body=payload.title,
            data={
                'articleId': payload.article_id,
                'type': 'new_article',
                'category': payload.primary_category(brand_name),
                'categories': list(payload.categories),
                'locations': list(payload.locations),
                'timestamp': datetime.now(timezone.utc).isoformat(),
            },
            channel_id=channel_id,
            image_url=payload.image_url,
        )


@dataclass(frozen=True)
class DispatchBatch:
    """At most batch_size tokens sent in one transport call"""

    index: int
    tokens: Tuple[str, ...]

    def __len__(self):
        return len(self.tokens)


@dataclass(frozen=True)
class Receipt:
    """Gateway acknowledgment for a single token"""

    token: Optional[str]
    status: str
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @property
    def ok(self):
        return self.status in SUCCESS_STATUSES

    def to_error_entry(self):
        entry = {'token': self.token, 'status': self.status}
        if self.message:
            entry['message'] = self.message
        if self.details:
            entry['details'] = self.details
        return entry


@dataclass(frozen=True)
class BatchSuccess:
    """Transport call completed; receipts may still contain rejections"""

    batch: DispatchBatch
    receipts: Tuple[Receipt, ...] = ()


@dataclass(frozen=True)
class BatchError:
    """Transport call failed before any receipt was obtained"""

    batch: DispatchBatch
    message: str


@dataclass
class DispatchOutcome:
    """Aggregated result returned to the HTTP layer"""

    success: bool
    tokens_count: int = 0
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    # validation / not_found / store / error; lets routes pick a status code
    error_kind: Optional[str] = None

    @classmethod
    def failure(cls, error, error_kind='error'):
        return cls(success=False, error=error, error_kind=error_kind)

    def to_dict(self):
        result = {'success': self.success}
        if self.message is not None:
            result['message'] = self.message
        if self.success or self.tokens_count:
            result['tokensCount'] = self.tokens_count
        if self.details is not None:
            result['details'] = self.details
        if self.error is not None:
            result['error'] = self.error
        return result

    @property
    def errors(self) -> List[Dict[str, Any]]:
        if not self.details:
            return []
        return self.details.get('errors', [])
