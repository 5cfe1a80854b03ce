"""Account schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class BanInfoResponse(BaseModel):
    blocked: bool
    permanent: bool
    reason: Optional[str] = None
    until: Optional[str] = Field(None, description="ISO-8601 end of a time-bound block")
    remaining_text: Optional[str] = None
    message: Optional[str] = None


class AccountStatusResponse(BaseModel):
    """Ban status of the signed-in user, after lazy normalization."""

    user_id: str
    plan: str
    role: str
    ban: BanInfoResponse
    poll_interval_ms: int = Field(..., description="Suggested client polling interval")
    checked_at: str
