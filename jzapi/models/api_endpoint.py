"""Operational state of each proxied endpoint."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column
from jzapi.database import Base


class EndpointStatus(StrEnum):
    ACTIVE = "ACTIVE"
    NON_ACTIVE = "NON_ACTIVE"
    MAINTENANCE = "MAINTENANCE"


class ApiEndpoint(Base):
    """Catalog row for a proxied endpoint."""

    __tablename__ = "api_endpoints"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    slug: Mapped[str] = mapped_column(String(191), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(191))
    path: Mapped[str] = mapped_column(String(191), unique=True)
    description: Mapped[str] = mapped_column(String(500), default="")
    sample_query: Mapped[str] = mapped_column(String(500), default="")
    status: Mapped[str] = mapped_column(
        String(20), default=EndpointStatus.ACTIVE, server_default=EndpointStatus.ACTIVE.value
    )
    maintenance_note: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<ApiEndpoint(slug='{self.slug}', status='{self.status}')>"
