"""API key model: bearer credential scoped to one user."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from jzapi.database import Base
from jzapi.models.user import User


class ApiKeyStatus(StrEnum):
    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"


class ApiKey(Base):
    """API key with its own base daily limit."""

    __tablename__ = "api_keys"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )

    key: Mapped[str] = mapped_column(String(191), unique=True, index=True)
    label: Mapped[str | None] = mapped_column(String(191))
    status: Mapped[str] = mapped_column(
        String(20), default=ApiKeyStatus.ACTIVE, server_default=ApiKeyStatus.ACTIVE.value
    )
    daily_limit: Mapped[int] = mapped_column(Integer, default=100, server_default="100")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped[User] = relationship("User", back_populates="api_keys")

    def __repr__(self):
        return f"<ApiKey(id='{self.id}', status='{self.status}', daily_limit={self.daily_limit})>"

    @property
    def masked_key(self) -> str:
        """Key value with everything but the last four characters hidden."""
        if len(self.key) <= 4:
            return "*" * len(self.key)
        return f"{self.key[:3]}{'*' * 8}{self.key[-4:]}"
