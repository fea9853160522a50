"""
Subscription plans, limit dimensions and per-user subscription records.

The plan catalog is read-only process-wide configuration. A limit value of
UNLIMITED (-1) means "no cap"; every other integer is a non-negative cap.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union

UNLIMITED = -1

ACTIVE_STATUS = "active"


class LimitDimension(str, Enum):
    """Closed set of usage restrictions. Every plan must define each one."""
    MONTHLY_UPLOADS = "monthlyUploads"
    QUESTIONS_PER_PDF = "questionsPerPDF"
    AI_RESPONSES = "aiResponses"


class PlanKey(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    PRO = "pro"


LimitValue = Union[int, bool]


@dataclass(frozen=True)
class SubscriptionPlan:
    """Static catalog entry for a subscription tier."""
    key: PlanKey
    display_name: str
    price: float
    limits: Mapping[LimitDimension, LimitValue]
    currency: str = "usd"
    billing_interval: str = "month"
    price_id: Optional[str] = None
    features: Tuple[str, ...] = ()
    flags: Mapping[str, bool] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.price > 0

    @property
    def price_label(self) -> str:
        """Price for display, e.g. "9.99 USD/month"."""
        return f"{self.price:.2f} {self.currency.upper()}/{self.billing_interval}"

    @property
    def enabled_flags(self) -> Tuple[str, ...]:
        return tuple(name for name, enabled in self.flags.items() if enabled)


@dataclass(frozen=True)
class Subscription:
    """
    A user's subscription as reported by the billing provider.

    plan_key is the provider's opaque plan identifier: either a PlanKey value
    or a plan's checkout price_id.
    """
    status: str
    plan_key: Optional[str] = None
    customer_id: Optional[str] = None
    current_period_end: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE_STATUS


FREE_PLAN = SubscriptionPlan(
    key=PlanKey.FREE,
    display_name="Free",
    price=0,
    features=(
        "3 PDF uploads per month",
        "Basic chat responses",
        "10 questions per PDF",
        "Standard support",
    ),
    limits=MappingProxyType({
        LimitDimension.MONTHLY_UPLOADS: 3,
        LimitDimension.QUESTIONS_PER_PDF: 10,
        LimitDimension.AI_RESPONSES: False,
    }),
    flags=MappingProxyType({"prioritySupport": False}),
)

PREMIUM_PLAN = SubscriptionPlan(
    key=PlanKey.PREMIUM,
    display_name="Premium",
    price=9.99,
    price_id="price_premium_monthly",
    features=(
        "Unlimited PDF uploads",
        "AI-powered responses (OpenAI)",
        "Unlimited questions",
        "Priority support",
        "Advanced analytics",
        "Export conversations",
    ),
    limits=MappingProxyType({
        LimitDimension.MONTHLY_UPLOADS: UNLIMITED,
        LimitDimension.QUESTIONS_PER_PDF: UNLIMITED,
        LimitDimension.AI_RESPONSES: True,
    }),
    flags=MappingProxyType({"prioritySupport": True}),
)

PRO_PLAN = SubscriptionPlan(
    key=PlanKey.PRO,
    display_name="Pro",
    price=19.99,
    price_id="price_pro_monthly",
    features=(
        "Everything in Premium",
        "API access",
        "Custom AI models",
        "Team collaboration",
        "Advanced integrations",
        "White-label options",
    ),
    limits=MappingProxyType({
        LimitDimension.MONTHLY_UPLOADS: UNLIMITED,
        LimitDimension.QUESTIONS_PER_PDF: UNLIMITED,
        LimitDimension.AI_RESPONSES: True,
    }),
    flags=MappingProxyType({
        "prioritySupport": True,
        "apiAccess": True,
        "teamFeatures": True,
    }),
)

SUBSCRIPTION_PLANS: Mapping[PlanKey, SubscriptionPlan] = MappingProxyType({
    PlanKey.FREE: FREE_PLAN,
    PlanKey.PREMIUM: PREMIUM_PLAN,
    PlanKey.PRO: PRO_PLAN,
})
