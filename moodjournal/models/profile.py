"""
UserProgressProfile — per-user summary written by the recompute pass.

Every numeric column here is derived from `journal_entries` and
`user_badges`; nothing is incremented in place. `subscription_status`
is the only field owned by an outside event (subscription changes).
"""
from datetime import datetime, date
from sqlalchemy import Integer, String, DateTime, Date, func
from sqlalchemy.orm import Mapped, mapped_column

from moodjournal.db.base import Base


class SubscriptionStatus:
    FREE    = "free"
    PREMIUM = "premium"


class UserProgressProfile(Base):
    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_entry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_badges_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subscription_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=SubscriptionStatus.FREE,
        comment='"free" or "premium"',
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_premium(self) -> bool:
        return self.subscription_status == SubscriptionStatus.PREMIUM
