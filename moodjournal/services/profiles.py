"""
Profile Aggregate Updater: reads and writes the per-user summary row.

Nothing here increments a counter. Streak fields are replaced wholesale
from a StreakResult, and total_badges_earned is always a fresh COUNT over
user_badges.
"""
from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from moodjournal.core.errors import ProfileNotFoundError
from moodjournal.models.badge import BadgeProgress
from moodjournal.models.profile import SubscriptionStatus, UserProgressProfile
from moodjournal.services.streaks import StreakResult

logger = logging.getLogger(__name__)


def get_profile(db: Session, user_id: str) -> UserProgressProfile:
    profile = db.get(UserProgressProfile, user_id)
    if profile is None:
        raise ProfileNotFoundError(user_id=user_id)
    return profile


# Dialects whose INSERT supports ON CONFLICT DO NOTHING.
_CONFLICT_FREE_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _insert_zeroed_profile(db: Session, user_id: str) -> None:
    """Insert a zeroed profile; a row inserted concurrently by another session wins."""
    values = dict(
        user_id=user_id,
        current_streak=0,
        best_streak=0,
        last_entry_date=None,
        total_badges_earned=0,
        subscription_status=SubscriptionStatus.FREE,
    )
    insert = _CONFLICT_FREE_INSERTS.get(db.get_bind().dialect.name)
    if insert is None:
        db.add(UserProgressProfile(**values))
        db.flush()
        return
    result = db.execute(
        insert(UserProgressProfile)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["user_id"])
    )
    if result.rowcount:
        logger.info("Created progress profile for user %s", user_id)


def get_or_create_profile(db: Session, user_id: str, lock: bool = False) -> UserProgressProfile:
    """
    Return the profile, creating a zeroed one (not committed) when missing.
    With lock=True the row is selected FOR UPDATE so concurrent recomputes
    for the same user queue behind each other. Two sessions creating the
    same profile at once both end up with the one row.
    """
    stmt = select(UserProgressProfile).where(UserProgressProfile.user_id == user_id)
    if lock:
        stmt = stmt.with_for_update()
    profile = db.execute(stmt).scalar_one_or_none()
    if profile is not None:
        return profile

    _insert_zeroed_profile(db, user_id)
    return db.execute(stmt).scalar_one()


def apply_streaks(profile: UserProgressProfile, streaks: StreakResult) -> None:
    """Full replacement; best_streak is never merged with the stored value."""
    profile.current_streak = streaks.current
    profile.best_streak = streaks.best
    profile.last_entry_date = streaks.last_entry_date


def recount_badges_earned(db: Session, profile: UserProgressProfile) -> int:
    """Set total_badges_earned from the live user_badges rows. Caller flushes first."""
    total = (
        db.query(func.count(BadgeProgress.id))
        .filter(
            BadgeProgress.user_id == profile.user_id,
            BadgeProgress.earned.is_(True),
        )
        .scalar()
        or 0
    )
    profile.total_badges_earned = total
    return total
