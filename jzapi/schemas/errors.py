"""Error response schemas for the management API."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Machine-readable error information."""

    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Standard error body."""

    error: ErrorDetail
    request_id: Optional[str] = None
    timestamp: datetime
