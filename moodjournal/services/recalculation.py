"""
Recalculation Trigger — the single recompute path for a user's progress.

Entry points
------------
  on_entry_created(db, entry)                    entry inserted
  on_entry_deleted(db, entry)                    entry removed
  on_entry_updated(db, entry)                    mood edited
  on_subscription_changed(db, user_id, premium)  subscription flipped
  refresh(db, user_id)                           manual / client fallback
  refresh_all_users(db)                          maintenance sweep

All of them end in `recompute(db, user_id)`:
  1. load the user's entries (created_at, mood)
  2. Streak Calculator            → current / best / last_entry_date
  3. write streaks to the profile (full replacement, never max(old, new))
  4. metrics: total_entries, entries_this_month (month of last_entry_date),
     distinct_moods, is_premium
  5. Badge Progress Evaluator over the whole catalog, upsert user_badges
  6. total_badges_earned = COUNT(earned rows)

Empty history is a terminal state: streak fields are zeroed and every badge
except the `special` (subscription-gated) ones is reset to 0 / unearned.

Guarantees
----------
- Idempotent: a second call with no data change leaves every row identical.
- At most one recompute per user at a time: an in-process lock per user_id
  plus SELECT … FOR UPDATE on the profile row.
- A failure while evaluating one badge is logged and that badge's row is
  left as it was; the remaining badges and the recount still run.
- Validation problems raise before anything is committed; storage failures
  roll back and surface as TransientStorageError. Both are safe to retry.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterator, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from moodjournal.core.config import settings
from moodjournal.core.enums import enum_value
from moodjournal.core.errors import MoodJournalException, TransientStorageError
from moodjournal.models.badge import BadgeCategory, BadgeProgress
from moodjournal.models.journal_entry import JournalEntry
from moodjournal.models.profile import SubscriptionStatus, UserProgressProfile
from moodjournal.services.badge_catalog import list_badge_definitions, validate_definition
from moodjournal.services.badge_evaluator import (
    ZERO_METRICS,
    UserMetrics,
    apply_evaluation,
    evaluate_badge,
    reset_evaluation,
)
from moodjournal.services.profiles import (
    apply_streaks,
    get_or_create_profile,
    recount_badges_earned,
)
from moodjournal.services.streaks import EMPTY_STREAKS, compute_streaks, entry_day, today_in

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class RecomputeResult:
    """Summary of one recompute pass."""
    user_id: str
    current_streak: int
    best_streak: int
    last_entry_date: Optional[date]
    total_entries: int
    total_badges_earned: int = 0
    newly_earned: list[str] = field(default_factory=list)
    revoked: list[str] = field(default_factory=list)
    failed_badges: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Per-user serialisation
# ---------------------------------------------------------------------------

_locks_guard = threading.Lock()
# user_id -> [lock, number of threads holding or waiting on it]
_user_locks: dict[str, list] = {}


@contextmanager
def user_lock(user_id: str) -> Iterator[None]:
    """
    Serialise work on one user within this process. Callers that own the
    transaction hold it until after their commit. Re-entrant; the registry
    entry is dropped once no thread holds or waits on it.
    """
    with _locks_guard:
        slot = _user_locks.setdefault(user_id, [threading.RLock(), 0])
        slot[1] += 1
    try:
        with slot[0]:
            yield
    finally:
        with _locks_guard:
            slot[1] -= 1
            if slot[1] == 0:
                del _user_locks[user_id]


@contextmanager
def storage_guard(db: Session, user_id: str) -> Iterator[None]:
    """
    Roll back on any failure. Application errors propagate as they are;
    database errors become TransientStorageError (retryable, HTTP 503).
    """
    try:
        yield
    except MoodJournalException:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Storage failure for user %s: %s", user_id, exc)
        raise TransientStorageError(
            message="Progress could not be saved; storage unavailable.",
            user_id=user_id,
        ) from exc


def log_recompute(result: RecomputeResult, level: int = logging.INFO) -> None:
    logger.log(
        level,
        "Recomputed user %s: current=%d best=%d entries=%d badges=%d earned=%s revoked=%s failed=%s",
        result.user_id,
        result.current_streak,
        result.best_streak,
        result.total_entries,
        result.total_badges_earned,
        result.newly_earned,
        result.revoked,
        result.failed_badges,
    )



# ---------------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------------

def _collect_metrics(
    rows: list,
    days: list[date],
    streak_current: int,
    streak_best: int,
    last_entry_date: Optional[date],
    is_premium: bool,
) -> UserMetrics:
    if not rows:
        return replace(ZERO_METRICS, is_premium=is_premium)
    month = (last_entry_date.year, last_entry_date.month)
    return UserMetrics(
        total_entries=len(rows),
        current_streak=streak_current,
        best_streak=streak_best,
        entries_this_month=sum(1 for d in days if (d.year, d.month) == month),
        distinct_moods=len({enum_value(r.mood) for r in rows}),
        is_premium=is_premium,
    )


def _recompute_locked(db: Session, user_id: str, today: date) -> RecomputeResult:
    profile = get_or_create_profile(db, user_id, lock=True)

    rows = db.execute(
        select(JournalEntry.created_at, JournalEntry.mood)
        .where(JournalEntry.user_id == user_id)
    ).all()
    tz = settings.reference_tz
    days = [entry_day(r.created_at, tz) for r in rows]

    definitions = list_badge_definitions(db)
    for defn in definitions:
        validate_definition(defn)

    streaks = compute_streaks(days, today) if rows else EMPTY_STREAKS
    metrics = _collect_metrics(
        rows, days, streaks.current, streaks.best, streaks.last_entry_date,
        profile.is_premium,
    )
    metrics.validate()

    apply_streaks(profile, streaks)

    result = RecomputeResult(
        user_id=user_id,
        current_streak=streaks.current,
        best_streak=streaks.best,
        last_entry_date=streaks.last_entry_date,
        total_entries=metrics.total_entries,
    )

    existing = {
        row.badge_id: row
        for row in db.query(BadgeProgress).filter(BadgeProgress.user_id == user_id).all()
    }
    now = datetime.now(tz=timezone.utc)
    empty_history = metrics.total_entries == 0

    for defn in definitions:
        row = existing.get(defn.id)
        if row is None:
            row = BadgeProgress(
                user_id=user_id,
                badge_id=defn.id,
                progress_current=0,
                progress_percentage=Decimal("0.00"),
                earned=False,
                earned_at=None,
            )
            db.add(row)
        try:
            if empty_history and enum_value(defn.category) != BadgeCategory.special.value:
                evaluation = reset_evaluation(defn)
            else:
                evaluation = evaluate_badge(defn, metrics)
            transition = apply_evaluation(row, evaluation, now)
        except Exception:
            logger.exception(
                "Badge %s evaluation failed for user %s; progress left unchanged",
                defn.id, user_id,
            )
            result.failed_badges.append(defn.id)
            continue
        if transition == "earned":
            result.newly_earned.append(defn.id)
        elif transition == "revoked":
            result.revoked.append(defn.id)

    db.flush()
    result.total_badges_earned = recount_badges_earned(db, profile)
    db.flush()
    return result


# ---------------------------------------------------------------------------
# Public — recompute
# ---------------------------------------------------------------------------

def recompute(
    db: Session,
    user_id: str,
    today: Optional[date] = None,
    commit: bool = True,
) -> RecomputeResult:
    """
    Re-derive streaks and badge progress for one user from the raw entries.
    With commit=False the caller owns the transaction (e.g. the entry
    mutation that triggered this): it must hold `user_lock` until it has
    committed, and logs the result via `log_recompute` afterwards.
    """
    reference_day = today or today_in(settings.reference_tz)
    with user_lock(user_id), storage_guard(db, user_id):
        result = _recompute_locked(db, user_id, reference_day)
        if commit:
            db.commit()

    log_recompute(result, logging.INFO if commit else logging.DEBUG)
    return result


# ---------------------------------------------------------------------------
# Public — event entry points
# ---------------------------------------------------------------------------

def on_entry_created(db: Session, entry: JournalEntry, commit: bool = True) -> RecomputeResult:
    return recompute(db, entry.user_id, commit=commit)


def on_entry_deleted(db: Session, entry: JournalEntry, commit: bool = True) -> RecomputeResult:
    return recompute(db, entry.user_id, commit=commit)


def on_entry_updated(db: Session, entry: JournalEntry, commit: bool = True) -> RecomputeResult:
    return recompute(db, entry.user_id, commit=commit)


def on_subscription_changed(
    db: Session,
    user_id: str,
    is_premium: bool,
    commit: bool = True,
) -> RecomputeResult:
    """Persist the new subscription flag, then recompute in the same transaction."""
    with user_lock(user_id), storage_guard(db, user_id):
        profile = get_or_create_profile(db, user_id, lock=True)
        profile.subscription_status = (
            SubscriptionStatus.PREMIUM if is_premium else SubscriptionStatus.FREE
        )
        result = recompute(db, user_id, commit=commit)
        logger.info("Subscription for user %s is now %s", user_id, profile.subscription_status)
    return result


def refresh(db: Session, user_id: str) -> RecomputeResult:
    """Manual refresh; clients call this when they suspect a missed trigger."""
    return recompute(db, user_id)


@dataclass
class RefreshAllResult:
    results: list[RecomputeResult] = field(default_factory=list)
    failed_users: list[str] = field(default_factory=list)


def refresh_all_users(db: Session, today: Optional[date] = None) -> RefreshAllResult:
    """
    Recompute every user that has a profile or at least one entry. A user
    whose recompute fails is logged and listed in `failed_users`; the sweep
    carries on with the next one.
    """
    profile_ids = {uid for (uid,) in db.query(UserProgressProfile.user_id).all()}
    entry_ids = {uid for (uid,) in db.query(JournalEntry.user_id).distinct().all()}
    sweep = RefreshAllResult()
    for user_id in sorted(profile_ids | entry_ids):
        try:
            sweep.results.append(recompute(db, user_id, today=today))
        except MoodJournalException as exc:
            logger.warning("Refresh of user %s failed: %s", user_id, exc.message)
            sweep.failed_users.append(user_id)
    logger.info(
        "Refreshed %d user(s), %d failed",
        len(sweep.results), len(sweep.failed_users),
    )
    return sweep
