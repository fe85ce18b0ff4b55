"""
Jeweller Admin Core
===================

Core utilities and shared functionality for Jeweller admin modules.
"""

from .config import Config
from .database import Database
from .errors import NotificationError, ValidationError, NotFoundError, StoreError, TransportError
from .logging_service import LoggingService

__all__ = [
    'Config', 'Database', 'LoggingService',
    'NotificationError', 'ValidationError', 'NotFoundError', 'StoreError', 'TransportError',
]
