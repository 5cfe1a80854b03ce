"""User model: identity, plan/role, ban fields and referral bonus."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Integer, String, Uuid, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from jzapi.database import Base

if TYPE_CHECKING:
    from jzapi.models.api_key import ApiKey


class User(Base):
    """Marketplace account."""

    __tablename__ = "users"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Identity
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255))

    # Plan (FREE / PAID / RESELLER) and role (USER / SUPERADMIN)
    plan: Mapped[str] = mapped_column(String(20), default="FREE", server_default="FREE")
    role: Mapped[str] = mapped_column(String(20), default="USER", server_default="USER")

    # Ban state. ban_until NULL with is_blocked => permanent.
    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    blocked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ban_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ban_reason: Mapped[str | None] = mapped_column(String(191))

    # Referral bonus added to every key's daily limit
    referral_bonus_daily: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    referral_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    api_keys: Mapped[list[ApiKey]] = relationship(
        "ApiKey", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self):
        return f"<User(email='{self.email}', plan='{self.plan}', role='{self.role}')>"
