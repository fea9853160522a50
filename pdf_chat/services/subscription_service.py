"""
Subscription lookup and checkout initiation.

Billing itself is handled by an external provider; this module only records
what the provider reports and hands checkout requests to it.
"""
from datetime import datetime
from typing import Callable, Dict, Mapping, Optional

from loguru import logger

from pdf_chat.models.subscription import (
    ACTIVE_STATUS,
    SUBSCRIPTION_PLANS,
    PlanKey,
    Subscription,
    SubscriptionPlan
)

# (price_id, success_url, cancel_url) -> redirect URL
SessionCreator = Callable[[str, str, str], str]
# (customer_id, return_url) -> redirect URL
PortalCreator = Callable[[str, str], str]


class CheckoutError(Exception):
    """A checkout or billing portal request failed."""
    pass


class InMemorySubscriptionStore:
    """Subscription records keyed by user id."""

    def __init__(self):
        self._subscriptions: Dict[str, Subscription] = {}

    def get_subscription(self, user_id: str) -> Optional[Subscription]:
        return self._subscriptions.get(user_id)

    def set_subscription(self, user_id: str, subscription: Subscription) -> None:
        self._subscriptions[user_id] = subscription

    def remove_subscription(self, user_id: str) -> None:
        self._subscriptions.pop(user_id, None)


class CheckoutService:
    """Checkout and billing portal requests against the billing provider."""

    def __init__(
        self,
        session_creator: SessionCreator,
        subscriptions: InMemorySubscriptionStore,
        plans: Mapping[PlanKey, SubscriptionPlan] = SUBSCRIPTION_PLANS,
        portal_creator: Optional[PortalCreator] = None
    ):
        self.session_creator = session_creator
        self.subscriptions = subscriptions
        self.plans = plans
        self.portal_creator = portal_creator

    def _paid_plan(self, plan_key) -> SubscriptionPlan:
        try:
            plan = self.plans[PlanKey(plan_key)]
        except (ValueError, KeyError) as e:
            raise CheckoutError(f"Unknown plan: {plan_key}") from e
        if not plan.is_paid or not plan.price_id:
            raise CheckoutError(f"Plan {plan.display_name} does not require checkout")
        return plan

    def start_checkout(self, plan_key, success_url: str, cancel_url: str, user_id: Optional[str] = None) -> str:
        """
        Ask the provider for a checkout session.

        Returns:
            The URL the user should be redirected to

        Raises:
            CheckoutError: Unknown or free plan, or the provider failed
        """
        plan = self._paid_plan(plan_key)
        logger.info(f"Starting checkout for plan {plan.key.value} (user={user_id})")
        try:
            return self.session_creator(plan.price_id, success_url, cancel_url)
        except Exception as e:
            logger.error(f"Checkout session creation failed: {e}")
            raise CheckoutError(str(e)) from e

    def complete_checkout(
        self,
        user_id: str,
        plan_key,
        customer_id: Optional[str] = None,
        current_period_end: Optional[datetime] = None
    ) -> Subscription:
        """Record an active subscription once the provider confirms payment."""
        plan = self._paid_plan(plan_key)
        subscription = Subscription(
            status=ACTIVE_STATUS,
            plan_key=plan.key.value,
            customer_id=customer_id,
            current_period_end=current_period_end
        )
        self.subscriptions.set_subscription(user_id, subscription)
        logger.info(f"User {user_id} subscribed to {plan.display_name}")
        return subscription

    def open_billing_portal(self, user_id: str, return_url: str) -> str:
        """
        Ask the provider for a billing portal session for the user's customer record.

        Raises:
            CheckoutError: No portal provider, no customer record, or the provider failed
        """
        if self.portal_creator is None:
            raise CheckoutError("Billing portal is not configured")
        subscription = self.subscriptions.get_subscription(user_id)
        if subscription is None or not subscription.customer_id:
            raise CheckoutError("No billing account found for this user")

        logger.info(f"Opening billing portal for user {user_id}")
        try:
            return self.portal_creator(subscription.customer_id, return_url)
        except Exception as e:
            logger.error(f"Billing portal session creation failed: {e}")
            raise CheckoutError(str(e)) from e
