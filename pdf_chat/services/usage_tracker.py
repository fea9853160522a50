"""
Per-user usage counters and limit checks.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from loguru import logger

from pdf_chat.models.subscription import UNLIMITED, LimitDimension
from pdf_chat.services.entitlement_service import EntitlementEvaluator
from pdf_chat.services.subscription_service import InMemorySubscriptionStore
from pdf_chat.services.usage_store import UsageStore

# Counters kept in the usage store
PERSISTED_DIMENSIONS = (LimitDimension.MONTHLY_UPLOADS,)
# Counters scoped to one loaded document, keyed by (user_id, document_id)
DOCUMENT_DIMENSIONS = (LimitDimension.QUESTIONS_PER_PDF,)


@dataclass(frozen=True)
class LimitCheck:
    """Result of comparing current usage to the plan limit."""
    allowed: bool
    remaining: int
    limit: int

    @property
    def unlimited(self) -> bool:
        return self.limit == UNLIMITED


class UsageTracker:
    """
    Tracks usage per user and dimension.

    Checks are advisory: callers check before acting and increment afterwards.
    Increments are never clamped to the limit.
    """

    def __init__(
        self,
        store: UsageStore,
        subscriptions: InMemorySubscriptionStore,
        evaluator: Optional[EntitlementEvaluator] = None
    ):
        self.store = store
        self.subscriptions = subscriptions
        self.evaluator = evaluator or EntitlementEvaluator()
        self._document_counters: Dict[Tuple[str, Optional[str]], Dict[str, int]] = {}

    def _current(self, user_id: str, dimension: LimitDimension, document_id: Optional[str]) -> int:
        if dimension in DOCUMENT_DIMENSIONS:
            return self._document_counters.get((user_id, document_id), {}).get(dimension.value, 0)
        if dimension in PERSISTED_DIMENSIONS:
            return self.store.load(user_id).get(dimension.value, 0)
        return 0

    def increment(
        self,
        user_id: str,
        dimension: LimitDimension,
        delta: int = 1,
        document_id: Optional[str] = None
    ) -> int:
        """
        Add delta to a usage counter and return the new total.

        document_id selects the document for per-document counters and is
        ignored for the others.

        Raises:
            ValueError: For dimensions that are capabilities rather than counters
        """
        if dimension in DOCUMENT_DIMENSIONS:
            counters = self._document_counters.setdefault((user_id, document_id), {})
            counters[dimension.value] = counters.get(dimension.value, 0) + delta
            total = counters[dimension.value]
        elif dimension in PERSISTED_DIMENSIONS:
            total = self.store.increment(user_id, dimension.value, delta)
        else:
            raise ValueError(f"{dimension.value} is not a usage counter")

        logger.debug(f"Usage {dimension.value} for {user_id} is now {total}")
        return total

    def check_limit(
        self,
        user_id: str,
        dimension: LimitDimension,
        document_id: Optional[str] = None
    ) -> LimitCheck:
        """Compare the user's usage with the limit of their plan. Has no side effects."""
        subscription = self.subscriptions.get_subscription(user_id)
        limit = self.evaluator.limit_for(subscription, dimension)
        if limit == UNLIMITED:
            return LimitCheck(allowed=True, remaining=UNLIMITED, limit=UNLIMITED)

        remaining = max(0, limit - self._current(user_id, dimension, document_id))
        return LimitCheck(allowed=remaining > 0, remaining=remaining, limit=limit)

    def has_access(self, user_id: str, dimension: LimitDimension) -> bool:
        return self.evaluator.has_access(self.subscriptions.get_subscription(user_id), dimension)

    def get_usage(self, user_id: str, document_id: Optional[str] = None) -> Dict[str, int]:
        """Snapshot of the user's counters, with question counts for document_id."""
        usage = {dimension.value: 0 for dimension in PERSISTED_DIMENSIONS + DOCUMENT_DIMENSIONS}
        usage.update(self.store.load(user_id))
        usage.update(self._document_counters.get((user_id, document_id), {}))
        return usage

    def reset_document_questions(self, user_id: str, document_id: Optional[str] = None) -> None:
        """Drop the question counter of one document."""
        self._document_counters.pop((user_id, document_id), None)

    def reset_usage(self, user_id: str) -> None:
        """Reset every counter for the user."""
        self.store.save(user_id, {})
        for key in [key for key in self._document_counters if key[0] == user_id]:
            del self._document_counters[key]
        logger.info(f"Usage reset for {user_id}")
