"""
Tests for the UsageTracker class and the usage stores.
"""
import pytest

from pdf_chat.models.subscription import UNLIMITED, LimitDimension, Subscription
from pdf_chat.services.usage_store import SqliteUsageStore
from pdf_chat.services.usage_tracker import LimitCheck, UsageTracker

USER = "user-1"


def test_free_user_at_upload_limit(tracker):
    tracker.increment(USER, LimitDimension.MONTHLY_UPLOADS, 3)

    check = tracker.check_limit(USER, LimitDimension.MONTHLY_UPLOADS)

    assert check == LimitCheck(allowed=False, remaining=0, limit=3)


def test_check_limit_is_idempotent(tracker):
    tracker.increment(USER, LimitDimension.MONTHLY_UPLOADS)
    assert tracker.check_limit(USER, LimitDimension.MONTHLY_UPLOADS) == \
        tracker.check_limit(USER, LimitDimension.MONTHLY_UPLOADS)


def test_increment_reflected_in_check(tracker):
    before = tracker.check_limit(USER, LimitDimension.MONTHLY_UPLOADS)
    assert tracker.increment(USER, LimitDimension.MONTHLY_UPLOADS, 1) == 1
    after = tracker.check_limit(USER, LimitDimension.MONTHLY_UPLOADS)

    assert before.remaining == 3
    assert after.remaining == before.remaining - 1
    assert after.allowed


def test_increment_is_not_clamped(tracker):
    for _ in range(5):
        tracker.increment(USER, LimitDimension.MONTHLY_UPLOADS)

    assert tracker.get_usage(USER)[LimitDimension.MONTHLY_UPLOADS.value] == 5
    assert tracker.check_limit(USER, LimitDimension.MONTHLY_UPLOADS) == LimitCheck(False, 0, 3)


@pytest.mark.parametrize("plan_key", ["premium", "pro"])
def test_paid_plans_always_allowed(tracker, subscriptions, plan_key):
    subscriptions.set_subscription(USER, Subscription(status="active", plan_key=plan_key))
    tracker.increment(USER, LimitDimension.MONTHLY_UPLOADS, 10_000)
    tracker.increment(USER, LimitDimension.QUESTIONS_PER_PDF, 10_000)

    for dimension in (LimitDimension.MONTHLY_UPLOADS, LimitDimension.QUESTIONS_PER_PDF):
        check = tracker.check_limit(USER, dimension)
        assert check.allowed
        assert check.remaining == UNLIMITED
        assert check.unlimited


def test_inactive_subscription_uses_free_limits(tracker, subscriptions):
    subscriptions.set_subscription(USER, Subscription(status="past_due", plan_key="premium"))
    assert tracker.check_limit(USER, LimitDimension.QUESTIONS_PER_PDF).limit == 10


def test_unmapped_subscription_is_denied(tracker, subscriptions):
    subscriptions.set_subscription(USER, Subscription(status="active", plan_key="enterprise"))
    assert tracker.check_limit(USER, LimitDimension.MONTHLY_UPLOADS) == LimitCheck(False, 0, 0)


def test_questions_are_document_scoped(tracker, usage_store):
    tracker.increment(USER, LimitDimension.QUESTIONS_PER_PDF, 4)
    tracker.increment(USER, LimitDimension.MONTHLY_UPLOADS)

    assert tracker.check_limit(USER, LimitDimension.QUESTIONS_PER_PDF).remaining == 6
    assert LimitDimension.QUESTIONS_PER_PDF.value not in usage_store.load(USER)

    tracker.reset_document_questions(USER)

    assert tracker.check_limit(USER, LimitDimension.QUESTIONS_PER_PDF).remaining == 10
    assert tracker.get_usage(USER)[LimitDimension.MONTHLY_UPLOADS.value] == 1


def test_users_are_independent(tracker):
    tracker.increment("alice", LimitDimension.MONTHLY_UPLOADS, 3)
    assert tracker.check_limit("bob", LimitDimension.MONTHLY_UPLOADS).allowed


def test_ai_responses_is_a_capability(tracker, subscriptions):
    assert tracker.check_limit(USER, LimitDimension.AI_RESPONSES) == LimitCheck(False, 0, 0)
    assert tracker.has_access(USER, LimitDimension.AI_RESPONSES) is False

    subscriptions.set_subscription(USER, Subscription(status="active", plan_key="pro"))
    assert tracker.check_limit(USER, LimitDimension.AI_RESPONSES).allowed
    assert tracker.has_access(USER, LimitDimension.AI_RESPONSES) is True

    with pytest.raises(ValueError):
        tracker.increment(USER, LimitDimension.AI_RESPONSES)


def test_reset_usage(tracker):
    tracker.increment(USER, LimitDimension.MONTHLY_UPLOADS, 2)
    tracker.increment(USER, LimitDimension.QUESTIONS_PER_PDF, 2)

    tracker.reset_usage(USER)

    assert tracker.get_usage(USER) == {"monthlyUploads": 0, "questionsPerPDF": 0}


def test_sqlite_store_persists_between_instances(tmp_path, subscriptions):
    db_path = tmp_path / "usage.db"
    first = UsageTracker(SqliteUsageStore(db_path), subscriptions)
    first.increment(USER, LimitDimension.MONTHLY_UPLOADS)
    first.increment(USER, LimitDimension.MONTHLY_UPLOADS)
    first.increment(USER, LimitDimension.QUESTIONS_PER_PDF)

    second = UsageTracker(SqliteUsageStore(db_path), subscriptions)

    assert second.get_usage(USER) == {"monthlyUploads": 2, "questionsPerPDF": 0}
    assert second.check_limit(USER, LimitDimension.MONTHLY_UPLOADS) == LimitCheck(True, 1, 3)


def test_sqlite_store_save_load_and_clear(tmp_path):
    store = SqliteUsageStore(tmp_path / "nested" / "usage.db")
    store.save(USER, {"monthlyUploads": 7})

    assert store.load(USER) == {"monthlyUploads": 7}
    assert store.increment(USER, "monthlyUploads", 3) == 10
    assert store.load("someone-else") == {}

    store.clear()
    assert store.load(USER) == {}


def test_question_counts_are_kept_per_document(tracker):
    tracker.increment(USER, LimitDimension.QUESTIONS_PER_PDF, 5, document_id="doc-a")
    tracker.increment(USER, LimitDimension.QUESTIONS_PER_PDF, 2, document_id="doc-b")

    assert tracker.check_limit(USER, LimitDimension.QUESTIONS_PER_PDF, document_id="doc-a").remaining == 5
    assert tracker.check_limit(USER, LimitDimension.QUESTIONS_PER_PDF, document_id="doc-b").remaining == 8
    assert tracker.get_usage(USER, document_id="doc-a")["questionsPerPDF"] == 5

    tracker.reset_document_questions(USER, "doc-b")

    assert tracker.check_limit(USER, LimitDimension.QUESTIONS_PER_PDF, document_id="doc-a").remaining == 5
    assert tracker.check_limit(USER, LimitDimension.QUESTIONS_PER_PDF, document_id="doc-b").remaining == 10


def test_reset_usage_clears_every_document(tracker):
    tracker.increment(USER, LimitDimension.QUESTIONS_PER_PDF, 3, document_id="doc-a")
    tracker.increment("someone-else", LimitDimension.QUESTIONS_PER_PDF, 3, document_id="doc-a")

    tracker.reset_usage(USER)

    assert tracker.get_usage(USER, document_id="doc-a")["questionsPerPDF"] == 0
    assert tracker.get_usage("someone-else", document_id="doc-a")["questionsPerPDF"] == 3
