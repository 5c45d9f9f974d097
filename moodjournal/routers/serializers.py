"""
ORM / dataclass → response model helpers shared by the routers.
"""
from __future__ import annotations

from typing import Optional

from moodjournal.core.config import settings
from moodjournal.core.enums import enum_value
from moodjournal.models.badge import BadgeDefinition, BadgeProgress
from moodjournal.models.journal_entry import JournalEntry
from moodjournal.models.profile import UserProgressProfile
from moodjournal.schemas.entry import EntryResponse
from moodjournal.schemas.progress import (
    BadgeDefinitionResponse,
    BadgeProgressResponse,
    ProfileResponse,
    RecomputeResponse,
)
from moodjournal.services.recalculation import RecomputeResult
from moodjournal.services.streaks import entry_day


def entry_to_response(entry: JournalEntry) -> EntryResponse:
    return EntryResponse(
        id=entry.id,
        user_id=entry.user_id,
        title=entry.title,
        content=entry.content,
        mood=enum_value(entry.mood),
        affirmation_text=entry.affirmation_text,
        created_at=entry.created_at.isoformat() if entry.created_at else "",
        entry_day=str(entry_day(entry.created_at, settings.reference_tz)),
    )


def profile_to_response(profile: UserProgressProfile) -> ProfileResponse:
    return ProfileResponse(
        user_id=profile.user_id,
        current_streak=profile.current_streak,
        best_streak=profile.best_streak,
        last_entry_date=str(profile.last_entry_date) if profile.last_entry_date else None,
        total_badges_earned=profile.total_badges_earned,
        subscription_status=profile.subscription_status,
        is_premium=profile.is_premium,
    )


def badge_to_response(defn: BadgeDefinition) -> BadgeDefinitionResponse:
    return BadgeDefinitionResponse(
        id=defn.id,
        name=defn.name,
        description=defn.description,
        icon=defn.icon,
        category=defn.category,
        rule=defn.rule,
        rarity=defn.rarity,
        progress_target=defn.progress_target,
    )


def badge_progress_to_response(
    defn: BadgeDefinition,
    row: Optional[BadgeProgress],
) -> BadgeProgressResponse:
    if row is None:
        return BadgeProgressResponse(
            badge=badge_to_response(defn),
            progress_current=0,
            progress_percentage=0.0,
            earned=False,
            earned_at=None,
        )
    return BadgeProgressResponse(
        badge=badge_to_response(defn),
        progress_current=row.progress_current,
        progress_percentage=float(row.progress_percentage),
        earned=row.earned,
        earned_at=row.earned_at.isoformat() if row.earned_at else None,
    )


def recompute_to_response(result: RecomputeResult) -> RecomputeResponse:
    return RecomputeResponse(
        user_id=result.user_id,
        current_streak=result.current_streak,
        best_streak=result.best_streak,
        last_entry_date=str(result.last_entry_date) if result.last_entry_date else None,
        total_entries=result.total_entries,
        total_badges_earned=result.total_badges_earned,
        newly_earned=list(result.newly_earned),
        revoked=list(result.revoked),
        failed_badges=list(result.failed_badges),
    )
