"""
Progress router.

GET  /users/{user_id}/progress
GET  /users/{user_id}/badges
GET  /users/{user_id}/badges/{badge_id}
POST /users/{user_id}/refresh
POST /progress/refresh-all
GET  /badges
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from moodjournal.db.base import get_db
from moodjournal.models.badge import BadgeProgress
from moodjournal.models.profile import UserProgressProfile
from moodjournal.routers.serializers import (
    badge_progress_to_response,
    badge_to_response,
    profile_to_response,
    recompute_to_response,
)
from moodjournal.schemas.common import ErrorResponse
from moodjournal.schemas.progress import (
    BadgeCatalogResponse,
    BadgeProgressListResponse,
    BadgeProgressResponse,
    ProfileResponse,
    RecomputeResponse,
    RefreshAllResponse,
)
from moodjournal.services.badge_catalog import get_badge_definition, list_badge_definitions
from moodjournal.services.profiles import get_profile
from moodjournal.services.recalculation import refresh, refresh_all_users

router = APIRouter(tags=["progress"])

UserId = Annotated[str, Path(min_length=1, max_length=64, description="User id.")]


def _progress_rows(db: Session, user_id: str) -> dict[str, BadgeProgress]:
    return {
        row.badge_id: row
        for row in db.query(BadgeProgress).filter(BadgeProgress.user_id == user_id).all()
    }


@router.get(
    "/users/{user_id}/progress",
    response_model=ProfileResponse,
    summary="Streaks and badge count for a user",
    responses={404: {"model": ErrorResponse, "description": "User has no progress profile yet."}},
)
def user_progress(user_id: UserId, db: Session = Depends(get_db)):
    """A profile exists once the user has written an entry or been refreshed."""
    return profile_to_response(get_profile(db, user_id))


@router.get(
    "/users/{user_id}/badges",
    response_model=BadgeProgressListResponse,
    summary="Every catalog badge with the user's progress",
)
def user_badges(user_id: UserId, db: Session = Depends(get_db)):
    """
    One item per catalog badge. Badges the user has no row for yet are
    reported as zero progress, not earned.
    """
    rows = _progress_rows(db, user_id)
    profile: Optional[UserProgressProfile] = db.get(UserProgressProfile, user_id)
    return BadgeProgressListResponse(
        user_id=user_id,
        total_badges_earned=profile.total_badges_earned if profile else 0,
        items=[
            badge_progress_to_response(defn, rows.get(defn.id))
            for defn in list_badge_definitions(db)
        ],
    )


@router.get(
    "/users/{user_id}/badges/{badge_id}",
    response_model=BadgeProgressResponse,
    summary="One badge's progress for a user",
    responses={404: {"model": ErrorResponse, "description": "Badge id (after alias folding) is not in the catalog."}},
)
def user_badge(
    badge_id: str,
    user_id: UserId,
    db: Session = Depends(get_db),
):
    """Legacy ids such as `first-entry` resolve to their canonical badge."""
    defn = get_badge_definition(db, badge_id)
    row = (
        db.query(BadgeProgress)
        .filter(BadgeProgress.user_id == user_id, BadgeProgress.badge_id == defn.id)
        .first()
    )
    return badge_progress_to_response(defn, row)


@router.post(
    "/users/{user_id}/refresh",
    response_model=RecomputeResponse,
    summary="Recompute a user's streaks and badges from their entries",
    responses={503: {"model": ErrorResponse, "description": "Storage unavailable; retry."}},
)
def refresh_user(user_id: UserId, db: Session = Depends(get_db)):
    """Idempotent. Creates the profile if it does not exist yet."""
    return recompute_to_response(refresh(db, user_id))


@router.post(
    "/progress/refresh-all",
    response_model=RefreshAllResponse,
    summary="Recompute every known user",
)
def refresh_everyone(db: Session = Depends(get_db)):
    sweep = refresh_all_users(db)
    return RefreshAllResponse(
        total=len(sweep.results),
        items=[recompute_to_response(r) for r in sweep.results],
        failed_users=sweep.failed_users,
    )


@router.get(
    "/badges",
    response_model=BadgeCatalogResponse,
    summary="Badge catalog",
)
def badge_catalog(db: Session = Depends(get_db)):
    defs = list_badge_definitions(db)
    return BadgeCatalogResponse(
        total=len(defs),
        items=[badge_to_response(d) for d in defs],
    )
