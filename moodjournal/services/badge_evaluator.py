"""
Badge Progress Evaluator.

Progress source by category
---------------------------
  | category    | rule          | progress_current                      |
  |-------------|---------------|---------------------------------------|
  | milestone   | –             | total_entries                         |
  | streak      | –             | current_streak                        |
  | monthly     | –             | entries_this_month                    |
  | achievement | first_entry   | 1 if total_entries > 0 else 0         |
  | achievement | best_streak   | min(best_streak, progress_target)     |
  | achievement | mood_variety  | distinct_moods, capped at MOOD_COUNT  |
  | special     | premium       | 1 if is_premium else 0                |

Then, uniformly:
  progress_percentage = min(100, current / target * 100), 2 dp, 0 if target == 0
  earned              = current >= target

`evaluate()` is pure. `apply_evaluation()` folds one result into a
BadgeProgress row with the earned_at lifecycle:
  false → true   earned_at = now
  true  → true   earned_at kept
  *     → false  earned_at cleared
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable

from moodjournal.core.enums import enum_value
from moodjournal.core.errors import UnknownBadgeCategoryError, ValidationError
from moodjournal.models.badge import BadgeCategory, BadgeDefinition, BadgeProgress, BadgeRule
from moodjournal.models.journal_entry import MOOD_COUNT


# ---------------------------------------------------------------------------
# Input / output types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UserMetrics:
    total_entries: int
    current_streak: int
    best_streak: int
    entries_this_month: int
    distinct_moods: int
    is_premium: bool

    def validate(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "is_premium":
                if not isinstance(value, bool):
                    raise ValidationError(
                        message="is_premium must be a boolean.",
                        details={"field": f.name, "value": repr(value)},
                    )
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(
                    message=f"{f.name} must be an integer.",
                    details={"field": f.name, "value": repr(value)},
                )
            if value < 0:
                raise ValidationError(
                    message=f"{f.name} must not be negative.",
                    details={"field": f.name, "value": value},
                )


ZERO_METRICS = UserMetrics(
    total_entries=0,
    current_streak=0,
    best_streak=0,
    entries_this_month=0,
    distinct_moods=0,
    is_premium=False,
)


@dataclass(frozen=True)
class BadgeEvaluation:
    badge_id: str
    progress_current: int
    progress_percentage: Decimal
    earned: bool


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

ProgressSource = Callable[[UserMetrics, int], int]

_PROGRESS_SOURCES: dict[tuple[str, str | None], ProgressSource] = {
    (BadgeCategory.milestone.value, None):
        lambda m, target: m.total_entries,
    (BadgeCategory.streak.value, None):
        lambda m, target: m.current_streak,
    (BadgeCategory.monthly.value, None):
        lambda m, target: m.entries_this_month,
    (BadgeCategory.achievement.value, BadgeRule.first_entry.value):
        lambda m, target: 1 if m.total_entries > 0 else 0,
    (BadgeCategory.achievement.value, BadgeRule.best_streak.value):
        lambda m, target: min(m.best_streak, target),
    (BadgeCategory.achievement.value, BadgeRule.mood_variety.value):
        lambda m, target: min(m.distinct_moods, MOOD_COUNT),
    (BadgeCategory.special.value, BadgeRule.premium.value):
        lambda m, target: 1 if m.is_premium else 0,
}

_PERCENT_STEP = Decimal("0.01")
_HUNDRED = Decimal("100")


def _source_for(defn: BadgeDefinition) -> ProgressSource:
    category = enum_value(defn.category)
    if category not in {c.value for c in BadgeCategory}:
        raise UnknownBadgeCategoryError(badge_id=defn.id, category=category)
    source = _PROGRESS_SOURCES.get((category, enum_value(defn.rule)))
    if source is None:
        raise ValidationError(
            message=f"Badge {defn.id!r}: no progress source for ({category}, {enum_value(defn.rule)}).",
            details={"badge_id": defn.id, "category": category, "rule": enum_value(defn.rule)},
        )
    return source


# ---------------------------------------------------------------------------
# Public — pure evaluation
# ---------------------------------------------------------------------------

def progress_percentage(current: int, target: int) -> Decimal:
    if target <= 0:
        return Decimal("0.00")
    raw = Decimal(current) * _HUNDRED / Decimal(target)
    return min(_HUNDRED, max(Decimal(0), raw)).quantize(_PERCENT_STEP, rounding=ROUND_HALF_UP)


def evaluate_badge(defn: BadgeDefinition, metrics: UserMetrics) -> BadgeEvaluation:
    current = _source_for(defn)(metrics, defn.progress_target)
    return BadgeEvaluation(
        badge_id=defn.id,
        progress_current=current,
        progress_percentage=progress_percentage(current, defn.progress_target),
        earned=current >= defn.progress_target,
    )


def evaluate(
    badge_defs: Iterable[BadgeDefinition],
    metrics: UserMetrics,
) -> list[BadgeEvaluation]:
    metrics.validate()
    return [evaluate_badge(defn, metrics) for defn in badge_defs]


def reset_evaluation(defn: BadgeDefinition) -> BadgeEvaluation:
    """Zeroed, unearned result used when a user's history is empty."""
    return BadgeEvaluation(
        badge_id=defn.id,
        progress_current=0,
        progress_percentage=Decimal("0.00"),
        earned=False,
    )


# ---------------------------------------------------------------------------
# Public — row update
# ---------------------------------------------------------------------------

def apply_evaluation(row: BadgeProgress, evaluation: BadgeEvaluation, now: datetime) -> str | None:
    """
    Write an evaluation into a BadgeProgress row.
    Returns "earned" / "revoked" on a state transition, else None.
    """
    was_earned = bool(row.earned)
    row.progress_current = evaluation.progress_current
    row.progress_percentage = evaluation.progress_percentage
    row.earned = evaluation.earned

    if evaluation.earned and not was_earned:
        row.earned_at = now
        return "earned"
    if evaluation.earned and row.earned_at is None:
        row.earned_at = now
        return None
    if not evaluation.earned:
        row.earned_at = None
        return "revoked" if was_earned else None
    return None
