"""
Tests for the EntitlementEvaluator class.
"""
from types import MappingProxyType

import pytest

from pdf_chat.models.subscription import (
    SUBSCRIPTION_PLANS,
    UNLIMITED,
    LimitDimension,
    PlanKey,
    Subscription,
    SubscriptionPlan
)
from pdf_chat.services.entitlement_service import EntitlementEvaluator


@pytest.fixture
def evaluator():
    return EntitlementEvaluator()


def test_no_subscription_equals_inactive_equals_free(evaluator):
    no_subscription = evaluator.limit_for(None, LimitDimension.MONTHLY_UPLOADS)
    inactive = evaluator.limit_for(Subscription(status="inactive"), LimitDimension.MONTHLY_UPLOADS)

    assert no_subscription == inactive == 3


def test_inactive_paid_plan_is_free(evaluator):
    canceled = Subscription(status="canceled", plan_key="pro")
    assert evaluator.limit_for(canceled, LimitDimension.QUESTIONS_PER_PDF) == 10
    assert evaluator.has_access(canceled, LimitDimension.AI_RESPONSES) is False


def test_free_limits(evaluator):
    assert evaluator.limit_for(None, LimitDimension.QUESTIONS_PER_PDF) == 10
    assert evaluator.limit_for(None, LimitDimension.AI_RESPONSES) == 0
    assert evaluator.has_access(None, LimitDimension.AI_RESPONSES) is False
    assert evaluator.has_access(None, LimitDimension.MONTHLY_UPLOADS) is True


@pytest.mark.parametrize("plan_key", ["premium", "pro", "price_premium_monthly", "price_pro_monthly"])
def test_paid_plans_are_unlimited(evaluator, plan_key):
    subscription = Subscription(status="active", plan_key=plan_key)

    assert evaluator.limit_for(subscription, LimitDimension.MONTHLY_UPLOADS) == UNLIMITED
    assert evaluator.limit_for(subscription, LimitDimension.QUESTIONS_PER_PDF) == UNLIMITED
    assert evaluator.limit_for(subscription, LimitDimension.AI_RESPONSES) == UNLIMITED
    assert evaluator.has_access(subscription, LimitDimension.AI_RESPONSES) is True


def test_resolve_plan_by_price_id(evaluator):
    subscription = Subscription(status="active", plan_key="price_pro_monthly")
    assert evaluator.resolve_plan(subscription) is SUBSCRIPTION_PLANS[PlanKey.PRO]


@pytest.mark.parametrize("plan_key", ["gold", "price_unknown", None, ""])
def test_unmapped_active_plan_grants_nothing(evaluator, plan_key):
    subscription = Subscription(status="active", plan_key=plan_key)

    assert evaluator.resolve_plan(subscription) is None
    assert evaluator.limit_for(subscription, LimitDimension.MONTHLY_UPLOADS) == 0
    assert evaluator.has_access(subscription, LimitDimension.AI_RESPONSES) is False


def test_missing_dimension_is_disallowed():
    plans = MappingProxyType({
        PlanKey.FREE: SubscriptionPlan(
            key=PlanKey.FREE,
            display_name="Free",
            price=0,
            limits={LimitDimension.MONTHLY_UPLOADS: 3}
        )
    })
    evaluator = EntitlementEvaluator(plans)

    assert evaluator.limit_for(None, LimitDimension.QUESTIONS_PER_PDF) == 0
    assert evaluator.has_access(None, LimitDimension.AI_RESPONSES) is False
    assert evaluator.limit_for(None, LimitDimension.MONTHLY_UPLOADS) == 3


def test_every_plan_defines_every_dimension():
    for plan in SUBSCRIPTION_PLANS.values():
        assert set(plan.limits) == set(LimitDimension)


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        SUBSCRIPTION_PLANS[PlanKey.FREE] = None
    with pytest.raises(TypeError):
        SUBSCRIPTION_PLANS[PlanKey.FREE].limits[LimitDimension.MONTHLY_UPLOADS] = 100
