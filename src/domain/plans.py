"""
Subscription plans offered at signup.
"""

from enum import Enum


class PlanKey(str, Enum):
    trial = "trial"
    monthly = "monthly"
    quarterly = "quarterly"
    semiannual = "semiannual"
    annual = "annual"


PLAN_DAYS = {
    PlanKey.trial: 30,
    PlanKey.monthly: 30,
    PlanKey.quarterly: 90,
    PlanKey.semiannual: 180,
    PlanKey.annual: 365,
}

TRIAL_PERIOD_DAYS = 30


def normalize_plan(value, fallback: PlanKey = PlanKey.monthly) -> PlanKey:
    """Map an untrusted plan string (e.g. from payment metadata) to a PlanKey."""
    if not value:
        return fallback
    try:
        return PlanKey(value)
    except ValueError:
        return fallback
