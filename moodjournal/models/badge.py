"""
Badge catalog and per-user badge progress.

BadgeDefinition (`badges`) is static catalog data seeded by migration.
BadgeProgress (`user_badges`) holds one row per (user_id, badge_id); rows are
upserted on every recompute and never deleted while the user exists. The
unique constraint is the DB-level guard against duplicate badge rows.
"""
from datetime import datetime
from decimal import Decimal
import enum

from sqlalchemy import (
    Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey, func, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from moodjournal.db.base import Base


class BadgeCategory(str, enum.Enum):
    milestone = "milestone"
    streak = "streak"
    monthly = "monthly"
    achievement = "achievement"
    special = "special"


class BadgeRule(str, enum.Enum):
    """Variant selector for the `achievement` and `special` categories."""
    first_entry = "first_entry"
    best_streak = "best_streak"
    mood_variety = "mood_variety"
    premium = "premium"


class BadgeDefinition(Base):
    __tablename__ = "badges"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    category: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    rule: Mapped[str | None] = mapped_column(
        String(32), nullable=True,
        comment="Required for achievement/special badges, NULL otherwise",
    )
    rarity: Mapped[str] = mapped_column(String(16), nullable=False, default="common")
    progress_target: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class BadgeProgress(Base):
    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    badge_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("badges.id", ondelete="CASCADE"), nullable=False
    )
    progress_current: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0.00"),
        comment="0.00–100.00",
    )
    earned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    earned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
