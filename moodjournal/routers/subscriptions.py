"""
Subscriptions router.

PUT /users/{user_id}/subscription
"""
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from moodjournal.db.base import get_db
from moodjournal.routers.serializers import recompute_to_response
from moodjournal.schemas.common import ErrorResponse
from moodjournal.schemas.progress import RecomputeResponse
from moodjournal.schemas.subscription import SubscriptionUpdateRequest
from moodjournal.services.subscriptions import set_subscription_status

router = APIRouter(tags=["subscriptions"])


@router.put(
    "/users/{user_id}/subscription",
    response_model=RecomputeResponse,
    summary="Record a subscription status change",
    responses={
        200: {"description": "Status stored and progress recomputed."},
        422: {"model": ErrorResponse, "description": "Unknown subscription status."},
    },
)
def put_subscription(
    payload: SubscriptionUpdateRequest,
    user_id: str = Path(min_length=1, max_length=64),
    db: Session = Depends(get_db),
):
    """
    Map a billing status onto the premium flag and recompute, so the
    premium badge is granted or revoked immediately.
    """
    result = set_subscription_status(db, user_id, payload.status)
    return recompute_to_response(result)
