"""Shared request flow for every proxied marketplace endpoint."""

from typing import Mapping

from sqlalchemy.exc import SQLAlchemyError

from jzapi.adapters.base import EndpointAdapter
from jzapi.exceptions import (
    BaseAPIException,
    DatabaseError,
    MissingParameterError,
    UpstreamError,
)
from jzapi.schemas.envelope import EnvelopeResponse
from jzapi.services.gate_service import GateService
from jzapi.utils.logger import get_logger

log = get_logger(__name__)


class ProxyService:
    """Runs availability, validation, the gate and the adapter in that order."""

    def __init__(self, gate: GateService, creator: str):
        self.gate = gate
        self.creator = creator

    def success(self, result, remaining_limit: int) -> EnvelopeResponse:
        return EnvelopeResponse(
            status=True,
            code=200,
            creator=self.creator,
            result=result,
            remaining_limit=remaining_limit,
        )

    def failure(self, exc: BaseAPIException) -> EnvelopeResponse:
        return EnvelopeResponse(
            status=False,
            code=exc.status_code,
            creator=self.creator,
            message=exc.message,
        )

    async def handle(self, adapter: EndpointAdapter, params: Mapping[str, str]) -> EnvelopeResponse:
        """Serve one proxied request; errors are returned as failure envelopes."""
        try:
            await self.gate.check_availability(adapter.slug)
            validated = adapter.validate(params)
            api_key = (params.get("apikey") or "").strip()
            if not api_key:
                raise MissingParameterError("apikey")
            adapter.check_ready()

            admission = await self.gate.authorize_and_consume(api_key)

            try:
                result = await adapter.fetch(validated)
            except BaseAPIException:
                raise
            except Exception as e:
                log.error(
                    "adapter fetch failed",
                    slug=adapter.slug,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise UpstreamError() from e
        except BaseAPIException as exc:
            log.info(
                "proxied request rejected",
                slug=adapter.slug,
                status_code=exc.status_code,
                error_code=exc.error_code,
            )
            return self.failure(exc)
        except SQLAlchemyError as e:
            log.error("proxied request database error", slug=adapter.slug, error=str(e))
            return self.failure(DatabaseError("Database operation failed"))

        log.info("proxied request served", slug=adapter.slug, remaining=admission.remaining)
        return self.success(result, admission.remaining)
