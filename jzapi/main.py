"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jzapi import __version__
from jzapi.adapters import catalog_definitions
from jzapi.config import get_settings
from jzapi.database import AsyncSessionLocal, engine, init_db
from jzapi.middleware import logging_middleware, register_exception_handlers
from jzapi.repositories.api_endpoint_repository import ApiEndpointRepository
from jzapi.routers import account, admin, api_keys, catalog, health, proxy
from jzapi.utils.logger import configure_logging, get_logger
from jzapi.utils.rate_limit import AdminRateLimiter, InMemoryRateLimitStore, RedisRateLimitStore

settings = get_settings()

# Configure logging early
configure_logging(log_level=settings.log_level, debug=settings.debug)
log = get_logger(__name__)


async def seed_api_catalog() -> None:
    """Make sure every adapter has a catalog row."""
    async with AsyncSessionLocal() as db:
        created = await ApiEndpointRepository(db).ensure_seeded(catalog_definitions())
        await db.commit()
    log.info("api catalog ready", created=created)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    log.info("starting application", debug=settings.debug, log_level=settings.log_level)
    await init_db()
    log.info("database initialized")
    await seed_api_catalog()

    redis = None
    if settings.rate_limit_backend == "redis":
        import redis.asyncio as aioredis

        redis = aioredis.from_url(settings.redis_url, decode_responses=True)
        app.state.rate_limiter = AdminRateLimiter(RedisRateLimitStore(redis))
        log.info("admin rate limiter using redis")
    else:
        app.state.rate_limiter = AdminRateLimiter(InMemoryRateLimitStore())
        log.info("admin rate limiter using process memory")

    yield

    if redis is not None:
        await redis.aclose()

    log.info("shutting down application")
    await engine.dispose()
    log.info("database connections closed")


app = FastAPI(
    title="JzProject API",
    description="API marketplace: metered access to third-party data endpoints",
    version=__version__,
    lifespan=lifespan,
)

# Register exception handlers first
register_exception_handlers(app)

_cors_origins = settings.get_cors_origins_list()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins or ["*"],
    allow_credentials=bool(_cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging middleware (function-based)
app.middleware("http")(logging_middleware)

# Public proxied endpoints (/api/<slug>)
app.include_router(proxy.router, tags=["Marketplace"])

# Management API
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(catalog.router, prefix="/api/v1", tags=["Catalog"])
app.include_router(account.router, prefix="/api/v1")
app.include_router(api_keys.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "JzProject API",
        "version": __version__,
        "endpoints": {
            "health": "/api/v1/health",
            "apis": "/api/v1/apis",
            "api_keys": "/api/v1/api-keys",
            "account": "/api/v1/account/status",
            "admin": "/api/v1/admin",
        },
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "jzapi.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
