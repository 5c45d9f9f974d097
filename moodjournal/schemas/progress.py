"""
Progress schemas: profile, badge catalog, per-user badge progress, recompute.

GET  /users/{user_id}/progress            → ProfileResponse
GET  /users/{user_id}/badges              → BadgeProgressListResponse
GET  /users/{user_id}/badges/{badge_id}   → BadgeProgressResponse
POST /users/{user_id}/refresh             → RecomputeResponse
POST /progress/refresh-all                → RefreshAllResponse
GET  /badges                              → BadgeCatalogResponse
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    current_streak: int = Field(description="Active run ending today or yesterday; 0 if broken.")
    best_streak: int = Field(description="Longest run in the current entry history.")
    last_entry_date: Optional[str] = Field(default=None, description="ISO date or null.")
    total_badges_earned: int
    subscription_status: str = Field(description='"free" | "premium"')
    is_premium: bool


class BadgeDefinitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    icon: str
    category: str
    rule: Optional[str] = None
    rarity: str
    progress_target: int


class BadgeCatalogResponse(BaseModel):
    total: int
    items: list[BadgeDefinitionResponse]


class BadgeProgressResponse(BaseModel):
    """A catalog badge joined with the user's progress row (zeroed if absent)."""
    badge: BadgeDefinitionResponse
    progress_current: int
    progress_percentage: float = Field(description="0.0–100.0, two decimals.", examples=[42.86])
    earned: bool
    earned_at: Optional[str] = None


class BadgeProgressListResponse(BaseModel):
    user_id: str
    total_badges_earned: int
    items: list[BadgeProgressResponse]


class RecomputeResponse(BaseModel):
    user_id: str
    current_streak: int
    best_streak: int
    last_entry_date: Optional[str] = None
    total_entries: int
    total_badges_earned: int
    newly_earned: list[str] = Field(description="Badge ids that flipped to earned in this pass.")
    revoked: list[str] = Field(description="Badge ids that dropped below target in this pass.")
    failed_badges: list[str] = Field(description="Badge ids whose evaluation failed and were left unchanged.")


class RefreshAllResponse(BaseModel):
    total: int
    items: list[RecomputeResponse]
    failed_users: list[str] = Field(
        default_factory=list,
        description="Users whose recompute failed; safe to retry individually.",
    )
