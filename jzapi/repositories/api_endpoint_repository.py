"""Repository for the proxied endpoint catalog."""

from typing import Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jzapi.models.api_endpoint import ApiEndpoint
from jzapi.utils.logger import get_logger

log = get_logger(__name__)


class ApiEndpointRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_slug(self, slug: str) -> Optional[ApiEndpoint]:
        result = await self.session.execute(select(ApiEndpoint).where(ApiEndpoint.slug == slug))
        return result.scalar_one_or_none()

    async def get_status(self, slug: str) -> Optional[str]:
        """Operational status for a slug, or None when the slug has no row."""
        result = await self.session.execute(
            select(ApiEndpoint.status).where(ApiEndpoint.slug == slug)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[ApiEndpoint]:
        result = await self.session.execute(select(ApiEndpoint).order_by(ApiEndpoint.name))
        return list(result.scalars().all())

    async def ensure_seeded(self, definitions: Iterable[dict]) -> int:
        """
        Insert missing catalog rows and refresh descriptive fields of existing ones.

        Operational status of existing rows is never overwritten.
        Caller is responsible for committing the transaction.
        """
        existing = {row.slug: row for row in await self.list_all()}
        created = 0
        for definition in definitions:
            row = existing.get(definition["slug"])
            if row is None:
                self.session.add(
                    ApiEndpoint(
                        slug=definition["slug"],
                        name=definition["name"],
                        path=definition["path"],
                        description=definition["description"],
                        sample_query=definition["sample_query"],
                        status=definition["default_status"],
                    )
                )
                created += 1
                continue
            row.name = definition["name"]
            row.path = definition["path"]
            row.description = definition["description"]
            row.sample_query = definition["sample_query"]
        await self.session.flush()
        log.info("api catalog seeded", created=created, existing=len(existing))
        return created

    async def update_status(
        self, endpoint: ApiEndpoint, status: str, maintenance_note: Optional[str]
    ) -> ApiEndpoint:
        """
        Set operational status and maintenance note.

        Caller is responsible for committing the transaction.
        """
        await self.session.execute(
            update(ApiEndpoint)
            .where(ApiEndpoint.id == endpoint.id)
            .values(status=status, maintenance_note=maintenance_note)
        )
        await self.session.flush()
        await self.session.refresh(endpoint)
        log.info("api endpoint status updated", slug=endpoint.slug, status=status)
        return endpoint
