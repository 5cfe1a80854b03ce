"""Response envelope of the proxied marketplace endpoints."""

from typing import Any, Optional

from pydantic import BaseModel


class EnvelopeResponse(BaseModel):
    """``{status, code, creator, result?, remaining_limit?, message?}``.

    Fields that are None are omitted when rendered.
    """

    status: bool
    code: int
    creator: str
    result: Optional[Any] = None
    remaining_limit: Optional[int] = None
    message: Optional[str] = None

    def render(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
