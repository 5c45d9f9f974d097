"""
Error envelope shared by every router's `responses=` documentation.
"""
from typing import Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """`{code, message, details}`; `code` is the stable, machine-readable part."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None
