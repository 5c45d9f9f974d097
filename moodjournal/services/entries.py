"""
Entry Store: journal entry CRUD plus the recompute each mutation fires.

Public API
----------
list_entries(db, user_id)                 -> list[JournalEntry]  (newest first)
get_entry(db, entry_id)                   -> JournalEntry
create_entry(db, user_id, content, mood…) -> EntryMutation
update_entry(db, entry_id, …)             -> EntryMutation
delete_entry(db, entry_id)                -> EntryMutation

Each mutation and its recompute share one transaction, held under the
user's lock until committed: the operation is only done once the user's
progress matches the new entry log. Storage failures roll the whole
mutation back and raise TransientStorageError.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from moodjournal.core.errors import EntryNotFoundError, ValidationError
from moodjournal.models.journal_entry import JournalEntry, Mood
from moodjournal.services.recalculation import (
    RecomputeResult,
    log_recompute,
    on_entry_created,
    on_entry_deleted,
    on_entry_updated,
    storage_guard,
    user_lock,
)


@dataclass
class EntryMutation:
    entry_id: int
    user_id: str
    entry: Optional[JournalEntry]          # None once deleted
    progress: Optional[RecomputeResult]    # None when no recompute was needed


def _coerce_mood(mood: Mood | str) -> Mood:
    try:
        return Mood(mood)
    except ValueError as exc:
        raise ValidationError(
            message=f"Unknown mood {mood!r}.",
            details={"mood": str(mood), "allowed": [m.value for m in Mood]},
        ) from exc


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_entries(db: Session, user_id: str) -> list[JournalEntry]:
    return (
        db.query(JournalEntry)
        .filter(JournalEntry.user_id == user_id)
        .order_by(JournalEntry.created_at.desc(), JournalEntry.id.desc())
        .all()
    )


def get_entry(db: Session, entry_id: int) -> JournalEntry:
    entry = db.get(JournalEntry, entry_id)
    if entry is None:
        raise EntryNotFoundError(entry_id=entry_id)
    return entry


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

def create_entry(
    db: Session,
    user_id: str,
    content: str,
    mood: Mood | str,
    title: Optional[str] = None,
    affirmation_text: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> EntryMutation:
    stamp = created_at or datetime.now(tz=timezone.utc)
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)

    entry = JournalEntry(
        user_id=user_id,
        title=title,
        content=content,
        mood=_coerce_mood(mood),
        affirmation_text=affirmation_text,
        created_at=stamp.astimezone(timezone.utc),
    )
    with user_lock(user_id), storage_guard(db, user_id):
        db.add(entry)
        db.flush()  # entry visible to the recompute query
        progress = on_entry_created(db, entry, commit=False)
        db.commit()
        db.refresh(entry)

    log_recompute(progress)
    return EntryMutation(entry_id=entry.id, user_id=entry.user_id, entry=entry, progress=progress)


def update_entry(
    db: Session,
    entry_id: int,
    content: Optional[str] = None,
    title: Optional[str] = None,
    mood: Optional[Mood | str] = None,
) -> EntryMutation:
    """Content edits only; created_at and user_id never change."""
    new_mood = _coerce_mood(mood) if mood is not None else None
    entry = get_entry(db, entry_id)
    user_id = entry.user_id

    progress = None
    with user_lock(user_id), storage_guard(db, user_id):
        if content is not None:
            entry.content = content
        if title is not None:
            entry.title = title
        if new_mood is not None and new_mood != entry.mood:
            entry.mood = new_mood
            db.flush()
            progress = on_entry_updated(db, entry, commit=False)
        db.commit()
        db.refresh(entry)

    if progress is not None:
        log_recompute(progress)
    return EntryMutation(entry_id=entry.id, user_id=user_id, entry=entry, progress=progress)


def delete_entry(db: Session, entry_id: int) -> EntryMutation:
    entry = get_entry(db, entry_id)
    user_id = entry.user_id

    with user_lock(user_id), storage_guard(db, user_id):
        db.delete(entry)
        db.flush()
        progress = on_entry_deleted(db, entry, commit=False)
        db.commit()

    log_recompute(progress)
    return EntryMutation(entry_id=entry_id, user_id=user_id, entry=None, progress=progress)
