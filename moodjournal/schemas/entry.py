"""
Journal entry request / response schemas.

POST   /users/{user_id}/entries → EntryCreateRequest → EntryMutationResponse
GET    /users/{user_id}/entries → EntryListResponse
PATCH  /entries/{entry_id}      → EntryUpdateRequest → EntryMutationResponse
DELETE /entries/{entry_id}      → EntryMutationResponse
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from moodjournal.models.journal_entry import Mood
from moodjournal.schemas.progress import RecomputeResponse


def _strip_non_empty(v):
    stripped = v.strip() if isinstance(v, str) else v
    if not stripped:
        raise ValueError("content must not be empty after stripping whitespace")
    return stripped


class EntryCreateRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    content: Annotated[str, Field(
        min_length=1,
        max_length=20_000,
        description="Diary text. Stripped of leading/trailing whitespace.",
        examples=["Long walk after work, felt lighter."],
    )]
    mood: Mood = Field(description="One of the five mood levels.", examples=["good"])
    title: Optional[str] = Field(default=None, max_length=256)
    affirmation_text: Optional[str] = Field(
        default=None,
        max_length=2_000,
        description="Affirmation produced for this entry, stored verbatim.",
    )
    created_at: Optional[datetime] = Field(
        default=None,
        description="Entry timestamp (ISO 8601). Defaults to now (UTC). Naive values are UTC.",
        examples=["2026-02-20T21:15:00Z"],
    )

    @field_validator("content", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        return _strip_non_empty(v)


class EntryUpdateRequest(BaseModel):
    """Content edits. created_at and the owning user cannot be changed."""
    model_config = ConfigDict(use_enum_values=True, extra="forbid")

    content: Optional[str] = Field(default=None, min_length=1, max_length=20_000)
    title: Optional[str] = Field(default=None, max_length=256)
    mood: Optional[Mood] = None

    @field_validator("content", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v):
        if v is None:
            return v
        return _strip_non_empty(v)


class EntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    title: Optional[str] = None
    content: str
    mood: str
    affirmation_text: Optional[str] = None
    created_at: str = Field(description="Timestamp of creation.")
    entry_day: str = Field(description="Calendar day used for streaks (reference timezone).")


class EntryListResponse(BaseModel):
    total: int
    items: list[EntryResponse]


class EntryMutationResponse(BaseModel):
    entry_id: int
    user_id: str
    entry: Optional[EntryResponse] = Field(
        default=None,
        description="The stored entry; null after a delete.",
    )
    progress: Optional[RecomputeResponse] = Field(
        default=None,
        description="Recompute summary; null when the edit did not affect progress.",
    )
