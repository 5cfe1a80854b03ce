"""Health check router."""

from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy import text

from jzapi import __version__
from jzapi.dependencies import DbSession
from jzapi.schemas.health import HealthResponse, ServiceStatus
from jzapi.utils.logger import get_logger

router = APIRouter()
log = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession) -> HealthResponse:
    """Database reachability check."""
    services = {}
    overall_status = "ok"

    try:
        await db.execute(text("SELECT 1"))
        services["database"] = ServiceStatus(status="healthy", message="Connected")
    except Exception as e:
        log.error("health check failed", service="database", error=str(e))
        services["database"] = ServiceStatus(status="unhealthy", message="Service unavailable")
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=__version__,
        services=services,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )
