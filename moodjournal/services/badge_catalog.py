"""
Badge Catalog — the static list of badge definitions.

Each definition is keyed by a stable string id. Ids drifted historically
(`first-entry` / `first_entry` / `first-step` all meant the same badge), so
every lookup goes through `canonical_badge_id()`.

Category → progress source is resolved by the evaluator. `achievement` and
`special` badges also need a `rule` naming which variant they are.

Public API
----------
DEFAULT_BADGES                       — the seeded catalog
canonical_badge_id(badge_id)         -> str
validate_definition(defn)            -> None   (raises ValidationError)
sync_badge_catalog(db, definitions)  -> int    (rows inserted or changed)
list_badge_definitions(db)           -> list[BadgeDefinition]
get_badge_definition(db, badge_id)   -> BadgeDefinition
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from moodjournal.core.enums import enum_value
from moodjournal.core.errors import BadgeNotFoundError, UnknownBadgeCategoryError, ValidationError
from moodjournal.models.badge import BadgeCategory, BadgeDefinition, BadgeRule

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Catalog data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BadgeSeed:
    """Catalog row as plain data; what the seed migration and fixtures load."""
    id: str
    name: str
    description: str
    icon: str
    category: str
    rarity: str
    progress_target: int
    rule: Optional[str] = None


DEFAULT_BADGES: tuple[BadgeSeed, ...] = (
    BadgeSeed("first-step", "First Steps", "Complete your very first journal entry",
              "🌱", BadgeCategory.achievement, "common", 1, BadgeRule.first_entry),
    BadgeSeed("streak-3", "Daily Habit", "Maintain a 3-day journaling streak",
              "🔥", BadgeCategory.streak, "common", 3),
    BadgeSeed("streak-7", "Week Warrior", "Maintain a 7-day journaling streak",
              "⚡", BadgeCategory.streak, "rare", 7),
    BadgeSeed("streak-14", "Fortnight Focus", "Maintain a 14-day journaling streak",
              "🌟", BadgeCategory.streak, "rare", 14),
    BadgeSeed("streak-30", "Monthly Master", "Maintain a 30-day journaling streak",
              "🏆", BadgeCategory.streak, "epic", 30),
    BadgeSeed("streak-100", "Century Club", "Maintain a 100-day journaling streak",
              "💯", BadgeCategory.streak, "legendary", 100),
    BadgeSeed("entries-5", "Getting Started", "Write 5 journal entries",
              "📝", BadgeCategory.milestone, "common", 5),
    BadgeSeed("entries-10", "Regular Writer", "Write 10 journal entries",
              "📔", BadgeCategory.milestone, "common", 10),
    BadgeSeed("entries-25", "Dedicated Diarist", "Write 25 journal entries",
              "📚", BadgeCategory.milestone, "rare", 25),
    BadgeSeed("entries-50", "Journaling Enthusiast", "Write 50 journal entries",
              "✨", BadgeCategory.milestone, "epic", 50),
    BadgeSeed("entries-100", "Journaling Expert", "Write 100 journal entries",
              "🌈", BadgeCategory.milestone, "legendary", 100),
    BadgeSeed("monthly-10", "Monthly Regular", "Write 10 entries in one calendar month",
              "📅", BadgeCategory.monthly, "common", 10),
    BadgeSeed("monthly-20", "Monthly Devotee", "Write 20 entries in one calendar month",
              "🗓️", BadgeCategory.monthly, "rare", 20),
    BadgeSeed("best-streak-7", "Streak Seeker", "Achieve a 7-day streak at any point",
              "🎯", BadgeCategory.achievement, "rare", 7, BadgeRule.best_streak),
    BadgeSeed("mood-variety", "Emotional Range", "Use all 5 different mood options in your entries",
              "🎭", BadgeCategory.achievement, "rare", 5, BadgeRule.mood_variety),
    BadgeSeed("premium-supporter", "Premium Supporter", "Support the journal with a premium subscription",
              "👑", BadgeCategory.special, "epic", 1, BadgeRule.premium),
)

# Historical ids → stable id.
BADGE_ID_ALIASES: dict[str, str] = {
    "first-entry":     "first-step",
    "first_entry":     "first-step",
    "first_step":      "first-step",
    "emotional-range": "mood-variety",
    "streak-seeker":   "best-streak-7",
    "daily-habit":     "streak-3",
    "week-warrior":    "streak-7",
}

# Categories whose progress source depends on `rule`, and the rules each allows.
_RULES_BY_CATEGORY: dict[str, frozenset[str]] = {
    BadgeCategory.achievement: frozenset({
        BadgeRule.first_entry, BadgeRule.best_streak, BadgeRule.mood_variety,
    }),
    BadgeCategory.special: frozenset({BadgeRule.premium}),
}


def canonical_badge_id(badge_id: str) -> str:
    key = badge_id.strip().lower()
    return BADGE_ID_ALIASES.get(key, key)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_definition(defn: BadgeSeed | BadgeDefinition) -> None:
    """Reject definitions the evaluator could not dispatch."""
    category = enum_value(defn.category)
    if category not in {c.value for c in BadgeCategory}:
        raise UnknownBadgeCategoryError(badge_id=defn.id, category=category)

    if defn.progress_target is None or defn.progress_target < 0:
        raise ValidationError(
            message=f"Badge {defn.id!r} has a negative or missing progress target.",
            details={"badge_id": defn.id, "progress_target": defn.progress_target},
        )

    allowed = _RULES_BY_CATEGORY.get(category)
    rule = enum_value(defn.rule)
    if allowed is None:
        if rule is not None:
            raise ValidationError(
                message=f"Badge {defn.id!r}: category {category!r} takes no rule.",
                details={"badge_id": defn.id, "rule": rule},
            )
    elif rule not in {enum_value(r) for r in allowed}:
        raise ValidationError(
            message=f"Badge {defn.id!r}: rule {rule!r} is not valid for category {category!r}.",
            details={"badge_id": defn.id, "category": category, "rule": rule},
        )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def sync_badge_catalog(db: Session, definitions: Iterable[BadgeSeed] = DEFAULT_BADGES) -> int:
    """
    Upsert catalog rows by canonical id. Never deletes: user_badges rows
    reference badges by FK. Idempotent; commits once at the end.
    """
    changed = 0
    for seed in definitions:
        validate_definition(seed)
        badge_id = canonical_badge_id(seed.id)
        values = {
            "name": seed.name,
            "description": seed.description,
            "icon": seed.icon,
            "category": enum_value(seed.category),
            "rule": enum_value(seed.rule),
            "rarity": seed.rarity,
            "progress_target": seed.progress_target,
        }
        existing = db.get(BadgeDefinition, badge_id)
        if existing is None:
            db.add(BadgeDefinition(id=badge_id, **values))
            changed += 1
            continue
        dirty = False
        for attr, value in values.items():
            if getattr(existing, attr) != value:
                setattr(existing, attr, value)
                dirty = True
        if dirty:
            changed += 1

    db.commit()
    if changed:
        logger.info("Badge catalog synced: %d definition(s) inserted or updated", changed)
    return changed


def list_badge_definitions(db: Session) -> list[BadgeDefinition]:
    return (
        db.query(BadgeDefinition)
        .order_by(
            BadgeDefinition.category,
            BadgeDefinition.progress_target,
            BadgeDefinition.id,
        )
        .all()
    )


def get_badge_definition(db: Session, badge_id: str) -> BadgeDefinition:
    canonical = canonical_badge_id(badge_id)
    defn = db.get(BadgeDefinition, canonical)
    if defn is None:
        raise BadgeNotFoundError(badge_id=badge_id)
    return defn
