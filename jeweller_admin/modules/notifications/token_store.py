"""
Token Store Reader
==================

Reads every user with a registered push token and turns the documents into
UserNotificationProfile values. Malformed tokens are skipped so one bad
record cannot block the fan-out; store failures abort it.
"""

import logging

from ...core.errors import StoreError
from .models import UserNotificationProfile

logger = logging.getLogger(__name__)


class TokenStoreReader:
    """Reads push-capable user profiles for one transport's token field"""

    def __init__(self, store, token_field, token_validator):
        self.store = store
        self.token_field = token_field
        self.token_validator = token_validator

    def read_profiles(self):
        try:
            documents = self.store.list_users_with_field(self.token_field)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to read users with {self.token_field}: {e}") from e

        profiles = []
        skipped = 0
        for user_id, data in documents:
            token = data.get(self.token_field)
            if not self.token_validator(token):
                skipped += 1
                continue
            profiles.append(UserNotificationProfile.from_document(user_id, data, self.token_field))

        if skipped:
            logger.debug(f"Skipped {skipped} users with malformed {self.token_field}")
        return profiles

    def read_tokens_for_users(self, user_ids):
        """Valid tokens for specific user ids; unknown users are ignored"""
        tokens = []
        for user_id in user_ids:
            try:
                data = self.store.get_user(user_id)
            except StoreError:
                raise
            except Exception as e:
                raise StoreError(f"Failed to read user {user_id}: {e}") from e
            if not data:
                continue
            token = data.get(self.token_field)
            if self.token_validator(token):
                tokens.append(token)
        return tokens
