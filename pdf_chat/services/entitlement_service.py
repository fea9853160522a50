"""
Resolves plan limits for a user's subscription.
"""
from typing import Mapping, Optional

from pdf_chat.models.subscription import (
    SUBSCRIPTION_PLANS,
    UNLIMITED,
    LimitDimension,
    PlanKey,
    Subscription,
    SubscriptionPlan
)

NO_ACCESS = 0


class EntitlementEvaluator:
    """
    Looks up limits under the plan a subscription grants.

    A missing or inactive subscription is always evaluated as FREE. An active
    subscription whose plan is not in the catalog grants nothing, and neither
    does a dimension the plan does not define. Never raises.
    """

    def __init__(self, plans: Mapping[PlanKey, SubscriptionPlan] = SUBSCRIPTION_PLANS):
        self.plans = plans

    @property
    def free_plan(self) -> SubscriptionPlan:
        return self.plans[PlanKey.FREE]

    def resolve_plan(self, subscription: Optional[Subscription]) -> Optional[SubscriptionPlan]:
        """Return the plan in effect, or None for an active subscription to an unknown plan."""
        if subscription is None or not subscription.is_active:
            return self.free_plan

        identifier = subscription.plan_key
        if not identifier:
            return None
        try:
            return self.plans.get(PlanKey(identifier))
        except ValueError:
            pass
        for plan in self.plans.values():
            if plan.price_id and plan.price_id == identifier:
                return plan
        return None

    def limit_for(self, subscription: Optional[Subscription], dimension: LimitDimension) -> int:
        """Numeric cap for the dimension, UNLIMITED for no cap, 0 when disallowed."""
        plan = self.resolve_plan(subscription)
        if plan is None:
            return NO_ACCESS

        value = plan.limits.get(dimension)
        if value is None:
            return NO_ACCESS
        if isinstance(value, bool):
            return UNLIMITED if value else NO_ACCESS
        return value

    def has_access(self, subscription: Optional[Subscription], dimension: LimitDimension) -> bool:
        """Whether the plan grants the dimension at all."""
        plan = self.resolve_plan(subscription)
        if plan is None:
            return False

        value = plan.limits.get(dimension)
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        return value != NO_ACCESS
