"""
Notification Errors
===================

Exception taxonomy for the push notification pipeline.

ValidationError and NotFoundError stop the pipeline before anything is sent.
StoreError aborts before batching. TransportError is raised by a push
transport for one batch and is captured by the dispatcher, never propagated
past it. Rejections of individual tokens are receipts, not exceptions.
"""


class NotificationError(Exception):
    """Base class for notification pipeline errors"""

    kind = 'error'


class ValidationError(NotificationError):
    """Required input (article id, title) is missing"""

    kind = 'validation'


class NotFoundError(NotificationError):
    """Referenced article does not exist"""

    kind = 'not_found'


class StoreError(NotificationError):
    """Document store unreachable or refused the query"""

    kind = 'store'


class TransportError(NotificationError):
    """Push gateway unreachable, timed out, or answered with a non-2xx status"""

    kind = 'transport'

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code
