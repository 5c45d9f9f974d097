"""
Subscription status changes coming from the billing side.

Payment processing lives elsewhere; this module only maps a provider status
to the premium flag on the profile and fires the recompute that keeps the
`special` badges in step.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from moodjournal.core.errors import ValidationError
from moodjournal.services.recalculation import RecomputeResult, on_subscription_changed

# Provider statuses (Stripe vocabulary) plus the profile's own two values.
PREMIUM_STATUSES = frozenset({"active", "trialing", "premium"})
FREE_STATUSES = frozenset({
    "free",
    "not_started",
    "incomplete",
    "incomplete_expired",
    "past_due",
    "canceled",
    "unpaid",
    "paused",
})


def is_premium_status(status: str) -> bool:
    normalized = status.strip().lower()
    if normalized in PREMIUM_STATUSES:
        return True
    if normalized in FREE_STATUSES:
        return False
    raise ValidationError(
        message=f"Unknown subscription status {status!r}.",
        details={
            "status": status,
            "allowed": sorted(PREMIUM_STATUSES | FREE_STATUSES),
        },
    )


def set_subscription_status(db: Session, user_id: str, status: str) -> RecomputeResult:
    return on_subscription_changed(db, user_id, is_premium_status(status))
