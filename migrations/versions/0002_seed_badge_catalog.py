"""seed badge catalog

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-17 00:00:01.000000

Catalog rows are frozen here; later catalog edits get their own revision.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


badges_table = sa.table(
    "badges",
    sa.column("id", sa.String),
    sa.column("name", sa.String),
    sa.column("description", sa.Text),
    sa.column("icon", sa.String),
    sa.column("category", sa.String),
    sa.column("rule", sa.String),
    sa.column("rarity", sa.String),
    sa.column("progress_target", sa.Integer),
)

# (id, name, description, icon, category, rule, rarity, progress_target)
BADGES = [
    ("first-step", "First Steps", "Complete your very first journal entry",
     "🌱", "achievement", "first_entry", "common", 1),
    ("streak-3", "Daily Habit", "Maintain a 3-day journaling streak",
     "🔥", "streak", None, "common", 3),
    ("streak-7", "Week Warrior", "Maintain a 7-day journaling streak",
     "⚡", "streak", None, "rare", 7),
    ("streak-14", "Fortnight Focus", "Maintain a 14-day journaling streak",
     "🌟", "streak", None, "rare", 14),
    ("streak-30", "Monthly Master", "Maintain a 30-day journaling streak",
     "🏆", "streak", None, "epic", 30),
    ("streak-100", "Century Club", "Maintain a 100-day journaling streak",
     "💯", "streak", None, "legendary", 100),
    ("entries-5", "Getting Started", "Write 5 journal entries",
     "📝", "milestone", None, "common", 5),
    ("entries-10", "Regular Writer", "Write 10 journal entries",
     "📔", "milestone", None, "common", 10),
    ("entries-25", "Dedicated Diarist", "Write 25 journal entries",
     "📚", "milestone", None, "rare", 25),
    ("entries-50", "Journaling Enthusiast", "Write 50 journal entries",
     "✨", "milestone", None, "epic", 50),
    ("entries-100", "Journaling Expert", "Write 100 journal entries",
     "🌈", "milestone", None, "legendary", 100),
    ("monthly-10", "Monthly Regular", "Write 10 entries in one calendar month",
     "📅", "monthly", None, "common", 10),
    ("monthly-20", "Monthly Devotee", "Write 20 entries in one calendar month",
     "🗓️", "monthly", None, "rare", 20),
    ("best-streak-7", "Streak Seeker", "Achieve a 7-day streak at any point",
     "🎯", "achievement", "best_streak", "rare", 7),
    ("mood-variety", "Emotional Range", "Use all 5 different mood options in your entries",
     "🎭", "achievement", "mood_variety", "rare", 5),
    ("premium-supporter", "Premium Supporter", "Support the journal with a premium subscription",
     "👑", "special", "premium", "epic", 1),
]

_COLUMNS = ("id", "name", "description", "icon", "category", "rule", "rarity", "progress_target")


def upgrade() -> None:
    op.bulk_insert(badges_table, [dict(zip(_COLUMNS, row)) for row in BADGES])


def downgrade() -> None:
    op.execute(
        badges_table.delete().where(badges_table.c.id.in_([row[0] for row in BADGES]))
    )
