from typing import Annotated

from pydantic import BaseModel, Field


class SubscriptionUpdateRequest(BaseModel):
    status: Annotated[str, Field(
        min_length=1,
        max_length=32,
        description='Provider status ("active", "trialing", "canceled", …) or "premium" / "free".',
        examples=["active"],
    )]
