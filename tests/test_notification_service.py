"""
Notification service (article fan-out, targeted and topic sends)
================================================================
"""

from unittest.mock import patch

from conftest import FakeStore, RecordingTransport, expo_token, make_users

from jeweller_admin.core.errors import StoreError
from jeweller_admin.modules.notifications import NotificationService


def service(store, transport, **kwargs):
    return NotificationService(store, transport, **kwargs)


# ---------------------------------------------------------------------------
# Article notifications
# ---------------------------------------------------------------------------

def test_fan_out_to_250_devices():
    store = FakeStore(users=make_users(250))
    transport = RecordingTransport()

    outcome = service(store, transport).notify_new_article("a1", "Title", ["Rings"])

    assert outcome.success is True
    assert outcome.tokens_count == 250
    assert sorted(len(b) for b in transport.batches) == [50, 100, 100]
    assert outcome.details == {"success": True}


def test_one_failed_batch_keeps_overall_success():
    store = FakeStore(users=make_users(250))
    transport = RecordingTransport(fail_batches={1})

    outcome = service(store, transport).notify_new_article("a1", "Title", ["Rings"])

    assert outcome.success is True
    assert outcome.tokens_count == 250
    failed = {e["token"] for e in outcome.errors}
    assert failed == {expo_token(n) for n in range(100, 200)}


def test_store_failure_aborts_before_dispatch():
    store = FakeStore(users=make_users(3))
    store.fail_user_reads = ConnectionError("firestore.googleapis.com unreachable")
    transport = RecordingTransport()

    outcome = service(store, transport).notify_new_article("a1", "Title", ["Rings"])

    assert outcome.success is False
    assert "unreachable" in outcome.error
    assert outcome.error_kind == StoreError.kind
    assert transport.batches == []
    assert outcome.to_dict() == {"success": False, "error": outcome.error}


def test_backfills_from_article_record(store, transport):
    backfilled = service(store, transport).notify_new_article("abc123")

    explicit_transport = RecordingTransport()
    explicit = service(store, explicit_transport).notify_new_article(
        "abc123", "Fall Collection", ["Bracelets", "Rings"], ["NY"], "https://cdn.example.com/fall.jpg"
    )

    assert backfilled.to_dict() == explicit.to_dict()
    assert transport.sent_tokens == explicit_transport.sent_tokens

    message = transport.messages[0]
    assert message.body == "Fall Collection"
    assert message.title == "From TheNewJeweller"
    assert message.image_url == "https://cdn.example.com/fall.jpg"
    assert message.data["categories"] == ["Bracelets", "Rings"]
    assert message.data["category"] == "Bracelets"
    assert message.data["type"] == "new_article"


def test_article_read_only_when_needed(store, transport):
    service(store, transport).notify_new_article("abc123", "Fall Collection", ["Rings"])
    assert store.article_reads == 0


def test_preferences_select_recipients(store, transport):
    outcome = service(store, transport).notify_new_article("abc123", "Fall Collection", ["Rings"])

    # alice wants Rings, carol and erin have no filter, bob wants Necklaces,
    # dave's token is malformed
    assert set(transport.sent_tokens) == {expo_token(1), expo_token(3), expo_token(5)}
    assert outcome.tokens_count == 3


def test_legacy_single_category_field(transport):
    store = FakeStore(
        articles={"old": {"title": "Vintage", "category": "Necklaces", "location": "Paris"}},
        users={
            "bob": {"pushToken": expo_token(2), "pushNotificationCategories": ["Necklaces"]},
            "alice": {"pushToken": expo_token(1), "pushNotificationCategories": ["Rings"]},
        },
    )
    outcome = service(store, transport).notify_new_article("old")

    assert outcome.tokens_count == 1
    assert transport.sent_tokens == [expo_token(2)]
    assert transport.messages[0].data["locations"] == ["Paris"]


def test_missing_title_defaults(transport):
    store = FakeStore(articles={"untitled": {"categories": []}}, users=make_users(1))
    service(store, transport).notify_new_article("untitled")
    assert transport.messages[0].body == "New Article"


def test_missing_article_id(store, transport):
    outcome = service(store, transport).notify_new_article(None, "Title")
    assert outcome.success is False
    assert outcome.error_kind == "validation"
    assert store.user_reads == 0


def test_unknown_article(store, transport):
    outcome = service(store, transport).notify_new_article("nope")
    assert outcome.success is False
    assert outcome.error_kind == "not_found"
    assert transport.batches == []


def test_nobody_to_notify(transport):
    outcome = service(FakeStore(), transport).notify_new_article("a1", "Title", ["Rings"])
    assert outcome.success is True
    assert outcome.tokens_count == 0
    assert outcome.message == "No users to notify"


def test_no_matching_recipients(transport):
    store = FakeStore(users=make_users(4, pushNotificationCategories=["Watches"]))
    outcome = service(store, transport).notify_new_article("a1", "Title", ["Rings"])
    assert outcome.success is True
    assert outcome.tokens_count == 0
    assert outcome.message == "No matching recipients found"
    assert transport.batches == []


def test_unexpected_error_is_contained(store, transport):
    svc = service(store, transport)
    with patch.object(svc.dispatcher, "dispatch", side_effect=RuntimeError("boom")):
        outcome = svc.notify_new_article("abc123", "Fall Collection", ["Rings"])
    assert outcome.success is False
    assert outcome.error == "boom"


def test_identical_inputs_give_identical_outcomes():
    store = FakeStore(users=make_users(130))
    svc = service(store, RecordingTransport())

    first = svc.notify_new_article("a1", "Title", ["Rings"], ["NY"])
    second = svc.notify_new_article("a1", "Title", ["Rings"], ["NY"])

    assert first == second
    assert first.to_dict() == second.to_dict()


def test_brand_name_and_batch_size_from_config():
    store = FakeStore(articles={"a1": {"title": "Title"}}, users=make_users(30))
    transport = RecordingTransport()
    svc = NotificationService.from_config(
        {"PUSH_BRAND_NAME": "Atelier", "PUSH_BATCH_SIZE": 10}, store, transport
    )
    svc.notify_new_article("a1", "Title")

    assert len(transport.batches) == 3
    assert transport.messages[0].title == "From Atelier"
    assert transport.messages[0].data["category"] == "Atelier"


# ---------------------------------------------------------------------------
# Targeted and topic notifications
# ---------------------------------------------------------------------------

def test_targeted_merges_tokens_and_users(store, transport):
    outcome = service(store, transport).send_targeted_notification(
        "Hello", "Body",
        tokens=[expo_token(1), expo_token(9)],
        user_ids=["alice", "carol", "dave", "ghost"],
        data={"screen": "offers"},
    )

    assert outcome.success is True
    assert transport.sent_tokens == [expo_token(1), expo_token(9), expo_token(3)]
    assert transport.messages[0].data["screen"] == "offers"
    assert transport.messages[0].badge is None


def test_targeted_requires_title_and_body(store, transport):
    outcome = service(store, transport).send_targeted_notification("", "Body", tokens=[expo_token(1)])
    assert outcome.success is False
    assert outcome.error_kind == "validation"


def test_targeted_without_recipients(store, transport):
    outcome = service(store, transport).send_targeted_notification("Hi", "Body")
    assert outcome.success is True
    assert outcome.tokens_count == 0


def test_topic_not_supported_by_transport(store, transport):
    outcome = service(store, transport).send_topic_notification("news", "Hi", "Body")
    assert outcome.success is False
    assert "does not support" in outcome.error


def test_topic_send(store):
    transport = RecordingTransport(supports_topic=True)
    outcome = service(store, transport).send_topic_notification("news", "Hi", "Body")

    assert outcome.success is True
    assert outcome.details == {"messageId": "projects/demo/messages/1"}
    assert transport.topics[0][0] == "news"
