"""
FastAPI Application Entry Point.

This is the main application file for the Ledgerly API.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from ledgerly.app.core.config import settings
from ledgerly.app.api.v1.router import router as api_router
from ledgerly.app.core.observability import ObservabilityMiddleware, configure_logging
from ledgerly.app.core.redis_client import get_redis
from ledgerly.app.db.session import engine, Base
from ledgerly.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from ledgerly.app.models.user import User
from ledgerly.app.models.user_profile import UserProfile
from ledgerly.app.models.customer import Customer
from ledgerly.app.models.custom_field import CustomFieldDefinition
from ledgerly.app.models.transaction import Transaction
from ledgerly.app.models.subscription import Subscription
from ledgerly.app.models.sync_queue import SyncQueueItem
from ledgerly.app.models.config_entry import ConfigEntry
from ledgerly.app.models.audit_log import AuditLog

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s started", settings.app_name)
    yield


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    description="Credit ledger for small merchants: customers, debts and payments",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(redis=Depends(get_redis)):
    """
    Health check endpoint.

    Redis only backs logout revocation, so an unreachable Redis degrades
    the status instead of failing the check.
    """
    try:
        redis_ok = bool(await redis.ping())
    except Exception as e:
        logger.warning("Redis ping failed: %s", e)
        redis_ok = False

    return {
        "status": "healthy" if redis_ok else "degraded",
        "app_name": settings.app_name,
        "redis": "ok" if redis_ok else "unavailable",
    }


app.include_router(api_router, prefix=settings.api_prefix)
