"""Usage log model: per-key, per-UTC-day request counter."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column
from jzapi.database import Base


class UsageLog(Base):
    """Daily request counter per API key."""

    __tablename__ = "usage_logs"
    __table_args__ = (
        UniqueConstraint("api_key_id", "usage_date", name="uq_usage_logs_key_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    api_key_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("api_keys.id", ondelete="CASCADE"), index=True
    )
    usage_date: Mapped[date] = mapped_column(Date)
    requests_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return (
            f"<UsageLog(api_key_id='{self.api_key_id}', date='{self.usage_date}', "
            f"requests={self.requests_count})>"
        )
