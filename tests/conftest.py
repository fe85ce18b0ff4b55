"""
Shared fixtures: an in-memory document store, a recording push transport,
and a Flask app wired with both.
"""

import itertools
import os
import shutil
import tempfile
import threading

import pytest
from flask import Flask

from jeweller_admin import JewellerAdmin
from jeweller_admin.core.config import Config
from jeweller_admin.core.errors import TransportError
from jeweller_admin.modules.notifications.models import BatchSuccess, Receipt
from jeweller_admin.modules.notifications.transports.base import PushTransport


class FakeStore:
    """In-memory stand-in for DocumentStore"""

    articles = 'articles'
    users = 'users'
    categories = 'categories'
    locations = 'locations'

    def __init__(self, articles=None, users=None, categories=None, locations=None):
        self.collections = {
            'articles': {k: dict(v) for k, v in (articles or {}).items()},
            'users': {k: dict(v) for k, v in (users or {}).items()},
            'categories': {k: dict(v) for k, v in (categories or {}).items()},
            'locations': {k: dict(v) for k, v in (locations or {}).items()},
        }
        self._ids = itertools.count(1)
        self.user_reads = 0
        self.article_reads = 0
        self.fail_user_reads = None

    def _with_id(self, collection, doc_id):
        doc = self.collections[collection].get(doc_id)
        if doc is None:
            return None
        return {**doc, 'id': doc_id}

    def get_article(self, article_id):
        self.article_reads += 1
        return self._with_id('articles', article_id)

    def list_articles(self):
        return [self._with_id('articles', k) for k in self.collections['articles']]

    def create_article(self, data):
        doc_id = f"article-{next(self._ids)}"
        self.collections['articles'][doc_id] = dict(data)
        return doc_id

    def update_article(self, article_id, data):
        if article_id not in self.collections['articles']:
            return False
        self.collections['articles'][article_id].update(data)
        return True

    def delete_article(self, article_id):
        if article_id not in self.collections['articles']:
            return False
        del self.collections['articles'][article_id]
        count = 0
        for user in self.collections['users'].values():
            saved = user.get('savedArticleIds') or []
            if article_id in saved:
                user['savedArticleIds'] = [a for a in saved if a != article_id]
                count += 1
        return count

    def list_users_with_field(self, field):
        self.user_reads += 1
        if self.fail_user_reads:
            raise self.fail_user_reads
        return [(k, dict(v)) for k, v in self.collections['users'].items() if v.get(field) is not None]

    def get_user(self, user_id):
        return self._with_id('users', user_id)

    def list_documents(self, collection):
        docs = [self._with_id(collection, k) for k in self.collections[collection]]
        return sorted(docs, key=lambda d: (d.get('name') or '').lower())

    def add_document(self, collection, data):
        doc_id = f"{collection}-{next(self._ids)}"
        self.collections[collection][doc_id] = dict(data)
        return doc_id

    def get_document(self, collection, document_id):
        return self._with_id(collection, document_id)

    def update_document(self, collection, document_id, data):
        self.collections[collection][document_id].update(data)

    def commit_article_updates(self, updates, delete=None):
        for article_id, fields in updates.items():
            self.collections['articles'][article_id].update(fields)
        if delete:
            collection, document_id = delete
            self.collections[collection].pop(document_id, None)


class RecordingTransport(PushTransport):
    """
    Push transport that records every batch it is asked to send.

    fail_batches: batch indexes that raise TransportError
    rejected_tokens: tokens answered with an error receipt
    """

    name = 'recording'
    token_field = 'pushToken'

    def __init__(self, fail_batches=(), rejected_tokens=(), supports_topic=False):
        self.fail_batches = set(fail_batches)
        self.rejected_tokens = set(rejected_tokens)
        self.batches = []
        self.messages = []
        self.topics = []
        self.threads = set()
        self._lock = threading.Lock()
        self._supports_topic = supports_topic

    def is_valid_token(self, token):
        return isinstance(token, str) and token.startswith('ExponentPushToken')

    def send_batch(self, batch, message):
        with self._lock:
            self.batches.append(batch)
            self.messages.append(message)
            self.threads.add(threading.current_thread().name)
        if batch.index in self.fail_batches:
            raise TransportError('Expo Push API error: 503 Service Unavailable', status_code=503)
        return BatchSuccess(batch=batch, receipts=tuple(
            Receipt(token=token, status='error', message='DeviceNotRegistered')
            if token in self.rejected_tokens else Receipt(token=token, status='ok')
            for token in batch.tokens
        ))

    @property
    def supports_topics(self):
        return self._supports_topic

    def send_to_topic(self, topic, message):
        self.topics.append((topic, message))
        return f"projects/demo/messages/{len(self.topics)}"

    @property
    def sent_tokens(self):
        return [token for batch in sorted(self.batches, key=lambda b: b.index) for token in batch.tokens]


def expo_token(n):
    return f"ExponentPushToken[device-{n:04d}]"


def make_users(count, **prefs):
    """count users with valid Expo tokens and the same preferences"""
    return {
        f"user-{n}": {'pushToken': expo_token(n), **prefs}
        for n in range(count)
    }


@pytest.fixture(autouse=True)
def tmp_log_db(monkeypatch):
    """Send app_logs writes to a throwaway database"""
    d = tempfile.mkdtemp(prefix="jeweller-test-")
    monkeypatch.setattr(Config, 'LOG_DB', os.path.join(d, 'app_logs.db'))
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def store():
    return FakeStore(
        articles={
            'abc123': {
                'title': 'Fall Collection',
                'categories': ['Bracelets', 'Rings'],
                'category': 'Bracelets',
                'locations': ['NY'],
                'location': 'NY',
                'imageUrl': 'https://cdn.example.com/fall.jpg',
                'content': '<p>New pieces</p>',
            },
        },
        users={
            'alice': {'pushToken': expo_token(1), 'pushNotificationCategories': ['Rings']},
            'bob': {'pushToken': expo_token(2), 'pushNotificationCategories': ['Necklaces']},
            'carol': {'pushToken': expo_token(3)},
            'dave': {'pushToken': 'not-an-expo-token'},
            'erin': {'pushToken': expo_token(5), 'savedArticleIds': ['abc123', 'other']},
        },
        categories={
            'cat-1': {'name': 'Rings'},
            'cat-2': {'name': 'Bracelets'},
        },
        locations={
            'loc-1': {'name': 'NY'},
        },
    )


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def app(store, transport, tmp_log_db):
    """Flask app with JewellerAdmin using the fake store and recording transport"""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_log_db
    app.config["LOG_DB"] = os.path.join(tmp_log_db, "app_logs.db")
    JewellerAdmin(app, store=store, transport=transport)
    return app


@pytest.fixture
def client(app):
    return app.test_client()
