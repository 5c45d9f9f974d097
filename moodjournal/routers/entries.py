"""
Entries router.

POST   /users/{user_id}/entries   — write an entry (fires recompute)
GET    /users/{user_id}/entries   — list a user's entries, newest first
PATCH  /entries/{entry_id}        — edit content / title / mood
DELETE /entries/{entry_id}        — delete an entry (fires full recompute)
"""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from moodjournal.db.base import get_db
from moodjournal.routers.serializers import entry_to_response, recompute_to_response
from moodjournal.schemas.common import ErrorResponse
from moodjournal.schemas.entry import (
    EntryCreateRequest,
    EntryListResponse,
    EntryMutationResponse,
    EntryUpdateRequest,
)
from moodjournal.services.entries import (
    EntryMutation,
    create_entry,
    delete_entry,
    list_entries,
    update_entry,
)

router = APIRouter(tags=["entries"])

UserId = Annotated[str, Path(min_length=1, max_length=64, description="Owning user id.")]


def _mutation_to_response(m: EntryMutation) -> EntryMutationResponse:
    return EntryMutationResponse(
        entry_id=m.entry_id,
        user_id=m.user_id,
        entry=entry_to_response(m.entry) if m.entry is not None else None,
        progress=recompute_to_response(m.progress) if m.progress is not None else None,
    )


# ---------------------------------------------------------------------------
# POST /users/{user_id}/entries
# ---------------------------------------------------------------------------

@router.post(
    "/users/{user_id}/entries",
    response_model=EntryMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Write a journal entry",
    responses={
        422: {"model": ErrorResponse, "description": "Empty content or unknown mood."},
        503: {"model": ErrorResponse, "description": "Storage unavailable; nothing was saved."},
    },
)
def post_entry(
    payload: EntryCreateRequest,
    user_id: UserId,
    db: Session = Depends(get_db),
):
    """
    Persist an entry and recompute the user's streaks and badges in the same
    transaction. The response carries the recompute summary, including any
    badges earned by this entry.
    """
    mutation = create_entry(
        db=db,
        user_id=user_id,
        content=payload.content,
        mood=payload.mood,
        title=payload.title,
        affirmation_text=payload.affirmation_text,
        created_at=payload.created_at,
    )
    return _mutation_to_response(mutation)


# ---------------------------------------------------------------------------
# GET /users/{user_id}/entries
# ---------------------------------------------------------------------------

@router.get(
    "/users/{user_id}/entries",
    response_model=EntryListResponse,
    summary="List a user's entries (newest first)",
)
def get_entries(user_id: UserId, db: Session = Depends(get_db)):
    items = list_entries(db=db, user_id=user_id)
    return EntryListResponse(
        total=len(items),
        items=[entry_to_response(e) for e in items],
    )


# ---------------------------------------------------------------------------
# PATCH /entries/{entry_id}
# ---------------------------------------------------------------------------

@router.patch(
    "/entries/{entry_id}",
    response_model=EntryMutationResponse,
    summary="Edit an entry's content, title or mood",
    responses={404: {"model": ErrorResponse, "description": "Entry does not exist."}},
)
def patch_entry(
    entry_id: int,
    payload: EntryUpdateRequest,
    db: Session = Depends(get_db),
):
    """
    `created_at` and the owning user are immutable. Changing the mood
    recomputes progress (mood variety); other edits do not.
    """
    mutation = update_entry(
        db=db,
        entry_id=entry_id,
        content=payload.content,
        title=payload.title,
        mood=payload.mood,
    )
    return _mutation_to_response(mutation)


# ---------------------------------------------------------------------------
# DELETE /entries/{entry_id}
# ---------------------------------------------------------------------------

@router.delete(
    "/entries/{entry_id}",
    response_model=EntryMutationResponse,
    summary="Delete an entry",
    responses={404: {"model": ErrorResponse, "description": "Entry does not exist."}},
)
def remove_entry(entry_id: int, db: Session = Depends(get_db)):
    """
    Delete an entry and fully recompute the owner's progress. Best streak
    may shrink; badges that fall below target are revoked.
    """
    mutation = delete_entry(db=db, entry_id=entry_id)
    return _mutation_to_response(mutation)
