"""
Document Store
==============

Thin wrapper around a Firestore client for the collections the admin backend
touches: articles, users, categories and locations.

Documents come back as plain dicts with their document id under 'id'.
Any google-api failure is re-raised as StoreError so callers never see SDK
exception types.
"""

import logging
from functools import wraps

from google.api_core import exceptions as google_exceptions
from google.cloud.firestore import ArrayRemove, FieldFilter, SERVER_TIMESTAMP

from .config import Config
from .errors import StoreError

logger = logging.getLogger(__name__)


def _store_call(f):
    """Translate SDK failures into StoreError"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Document store error in {f.__name__}: {e}")
            raise StoreError(f"Document store unavailable: {e}") from e
    return decorated_function


def _as_dict(snapshot):
    data = snapshot.to_dict() or {}
    data['id'] = snapshot.id
    return data


class DocumentStore:
    """Firestore-backed store used by the notification pipeline and admin API"""

    def __init__(self, client, collections=None):
        collections = collections or {}
        self.client = client
        self.articles = collections.get('articles', Config.ARTICLES_COLLECTION)
        self.users = collections.get('users', Config.USERS_COLLECTION)
        self.categories = collections.get('categories', Config.CATEGORIES_COLLECTION)
        self.locations = collections.get('locations', Config.LOCATIONS_COLLECTION)

    # ===== Articles =====

    @_store_call
    def get_article(self, article_id):
        """Article dict, or None when the document does not exist"""
        snapshot = self.client.collection(self.articles).document(article_id).get()
        if not snapshot.exists:
            return None
        return _as_dict(snapshot)

    @_store_call
    def list_articles(self):
        return [_as_dict(doc) for doc in self.client.collection(self.articles).stream()]

    @_store_call
    def create_article(self, data):
        ref = self.client.collection(self.articles).document()
        ref.set({**data, 'createdAt': SERVER_TIMESTAMP, 'updatedAt': SERVER_TIMESTAMP})
        return ref.id

    @_store_call
    def update_article(self, article_id, data):
        """Merge fields into an existing article. False if it does not exist."""
        ref = self.client.collection(self.articles).document(article_id)
        if not ref.get().exists:
            return False
        ref.update({**data, 'updatedAt': SERVER_TIMESTAMP})
        return True

    @_store_call
    def delete_article(self, article_id):
        """
        Delete an article and pull its id from every user's savedArticleIds.

        Returns:
            False if the article does not exist, otherwise the number of user
            documents that had it saved.
        """
        ref = self.client.collection(self.articles).document(article_id)
        if not ref.get().exists:
            return False

        ref.delete()

        saved_by = (
            self.client.collection(self.users)
            .where(filter=FieldFilter('savedArticleIds', 'array_contains', article_id))
            .stream()
        )
        batch = self.client.batch()
        count = 0
        for user_doc in saved_by:
            batch.update(user_doc.reference, {'savedArticleIds': ArrayRemove([article_id])})
            count += 1
        batch.commit()
        return count

    # ===== Users =====

    @_store_call
    def list_users_with_field(self, field):
        """(user_id, data) for every user whose `field` is set"""
        query = self.client.collection(self.users).where(filter=FieldFilter(field, '!=', None))
        return [(doc.id, doc.to_dict() or {}) for doc in query.stream()]

    @_store_call
    def get_user(self, user_id):
        snapshot = self.client.collection(self.users).document(user_id).get()
        if not snapshot.exists:
            return None
        return _as_dict(snapshot)

    # ===== Categories / locations =====

    @_store_call
    def list_documents(self, collection):
        docs = [_as_dict(doc) for doc in self.client.collection(collection).stream()]
        return sorted(docs, key=lambda d: (d.get('name') or '').lower())

    @_store_call
    def add_document(self, collection, data):
        ref = self.client.collection(collection).document()
        ref.set(data)
        return ref.id

    @_store_call
    def get_document(self, collection, document_id):
        snapshot = self.client.collection(collection).document(document_id).get()
        if not snapshot.exists:
            return None
        return _as_dict(snapshot)

    @_store_call
    def update_document(self, collection, document_id, data):
        self.client.collection(collection).document(document_id).update({**data, 'updatedAt': SERVER_TIMESTAMP})

    @_store_call
    def commit_article_updates(self, updates, delete=None):
        """
        Apply {article_id: fields} updates in one write batch, optionally
        deleting a (collection, document_id) in the same batch.
        """
        batch = self.client.batch()
        for article_id, fields in updates.items():
            ref = self.client.collection(self.articles).document(article_id)
            batch.update(ref, {**fields, 'lastUpdated': SERVER_TIMESTAMP})
        if delete:
            collection, document_id = delete
            batch.delete(self.client.collection(collection).document(document_id))
        batch.commit()
