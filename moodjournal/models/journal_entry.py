from datetime import datetime
from sqlalchemy import Integer, String, Text, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column
import enum

from moodjournal.db.base import Base


class Mood(str, enum.Enum):
    struggling = "struggling"
    low = "low"
    neutral = "neutral"
    good = "good"
    amazing = "amazing"


MOOD_COUNT = len(Mood)


class JournalEntry(Base):
    """
    A diary entry. `created_at` and `user_id` never change after insert;
    only its calendar day (in the reference timezone) matters for streaks.
    """

    __tablename__ = "journal_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(String(256), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    mood: Mapped[Mood] = mapped_column(Enum(Mood, name="mood_enum"), nullable=False)
    affirmation_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
