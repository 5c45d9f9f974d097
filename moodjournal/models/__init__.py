from .journal_entry import JournalEntry, Mood
from .profile import UserProgressProfile, SubscriptionStatus
from .badge import BadgeDefinition, BadgeProgress, BadgeCategory, BadgeRule

__all__ = [
    "JournalEntry",
    "Mood",
    "UserProgressProfile",
    "SubscriptionStatus",
    "BadgeDefinition",
    "BadgeProgress",
    "BadgeCategory",
    "BadgeRule",
]
