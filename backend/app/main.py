# backend/app/main.py

import logging
import os
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as SA_TimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  (registers every table on Base.metadata)
from .api import (
    api_booking,
    api_contractor_booking,
    api_contractor_calendar,
    api_service,
)
from .core.config import settings
from .core.observability import setup_logging, setup_tracer
from .database import Base, engine
from .utils.errors import DomainError, domain_error_response
from .utils.redis_cache import close_redis_client
from .utils.status_logger import register_status_listeners

# Configure logging before creating any loggers
setup_logging()
logger = logging.getLogger(__name__)

_BOOT_TS = time.time()

# Migrations are out of scope; tables are created on import.
Base.metadata.create_all(bind=engine)
register_status_listeners()

app = FastAPI(title="Contractor Booking API", default_response_class=ORJSONResponse)
setup_tracer(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    # Browsers reject credentials with a wildcard origin.
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)


@app.middleware("http")
async def catch_exceptions(request: Request, call_next):
    """Return JSON responses for HTTP errors and log them."""
    try:
        response = await call_next(request)
    except StarletteHTTPException as exc:  # return the original status and detail
        logger.error(
            "HTTP error %s at %s: %s", exc.status_code, request.url.path, exc.detail
        )
        response = ORJSONResponse(
            status_code=exc.status_code, content={"detail": exc.detail}
        )
    except SA_TimeoutError as exc:  # DB pool timeout -> 503 to reduce retry storms
        logger.error("DB timeout at %s: %s", request.url.path, str(exc))
        response = ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Database busy, please retry"},
        )
    except Exception as exc:  # pragma: no cover - generic handler
        logger.exception("Unhandled error at %s: %s", request.url.path, exc)
        response = ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error"},
        )
    return response


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    """Map scheduling errors to their status code with a uniform payload."""
    http_exc = domain_error_response(exc)
    return ORJSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors with details and log them for debugging."""
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    field_errors = {}
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field_errors[".".join(loc) or "body"] = err.get("msg", "invalid")
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": {
                "message": "Validation error",
                "code": "request_validation",
                "field_errors": field_errors,
                "conflicts": [],
            }
        },
    )


@app.get("/healthz", tags=["health"])
def healthz():
    """Liveness plus a database ping."""
    started = time.perf_counter()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except OperationalError as exc:
        logger.warning("Health check DB ping failed: %s", exc)
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "reason": "db_unreachable"},
            headers={"Cache-Control": "no-store"},
        )
    return ORJSONResponse(
        content={
            "status": "ok",
            "db_ping_ms": round((time.perf_counter() - started) * 1000, 1),
            "uptime_s": round(time.time() - _BOOT_TS, 1),
            "pid": os.getpid(),
        },
        headers={"Cache-Control": "no-store"},
    )


api_prefix = settings.API_V1_STR  # usually something like "/api/v1"

# ─── BOOKINGS (client side) ───────────────────────────────────────────────────────
app.include_router(
    api_booking.router, prefix=f"{api_prefix}/bookings", tags=["bookings"]
)

# ─── SERVICES (public slot query) ─────────────────────────────────────────────────
app.include_router(
    api_service.router, prefix=f"{api_prefix}/services", tags=["services"]
)

# ─── CONTRACTOR CALENDAR & BOOKINGS ───────────────────────────────────────────────
app.include_router(
    api_contractor_calendar.router,
    prefix=f"{api_prefix}/contractor/calendar",
    tags=["contractor-calendar"],
)
app.include_router(
    api_contractor_booking.router,
    prefix=f"{api_prefix}/contractor",
    tags=["contractor-bookings"],
)


@app.on_event("shutdown")
def shutdown_redis_client() -> None:
    """Release the Redis connection pool on shutdown."""
    close_redis_client()
