"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from review_api.api.admin import router as admin_router
from review_api.api.auth import router as auth_router
from review_api.api.dependencies import build_request_gate
from review_api.api.middleware import CorrelationIdMiddleware, RequestLoggingMiddleware
from review_api.config import get_settings
from review_api.errors import AuthError, AuthErrorCode
from review_api.services.logging_service import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.environment)
    logger = get_logger("main")

    app.state.request_gate = build_request_gate(settings)

    database_ready = False
    try:
        from review_api.database import init_database, run_migrations

        await init_database()
        await run_migrations()
        database_ready = True
        logger.info("database_initialized")
    except Exception as e:
        logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Continuing without database - authenticated routes will fail",
        )

    try:
        from review_api.services.redis_service import get_redis

        await get_redis()
    except Exception as e:
        logger.warning(
            "redis_initialization_failed",
            error=str(e),
            note="Continuing without Redis - login rate limiting is disabled",
        )

    if database_ready and settings.bootstrap_admin_email and settings.bootstrap_admin_password:
        try:
            from review_api.services.auth_service import AuthService

            await AuthService(settings=settings).ensure_bootstrap_admin(
                settings.bootstrap_admin_email,
                settings.bootstrap_admin_password,
            )
        except Exception as e:
            logger.error("bootstrap_admin_failed", error=str(e))

    session_sweeper = None
    if database_ready and settings.session_sweep_interval_seconds > 0:
        from review_api.services.session_sweeper import SessionSweeper

        session_sweeper = SessionSweeper(settings.session_sweep_interval_seconds)
        session_sweeper.start()

    logger.info(
        "application_started",
        environment=settings.environment,
        session_verification=settings.session_verification.value,
        log_level=settings.log_level,
    )

    yield

    if session_sweeper is not None:
        await session_sweeper.stop()

    try:
        from review_api.database import close_database

        await close_database()
    except Exception:
        pass

    try:
        from review_api.services.redis_service import close_redis

        await close_redis()
    except Exception:
        pass

    logger.info("application_shutdown")


app = FastAPI(
    title="Performance Review - Auth API",
    description="Authentication, session and two-factor endpoints for the performance review system",
    version="1.0.0",
    lifespan=lifespan,
)


def _error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", None)
    headers = {"X-Correlation-Id": correlation_id} if correlation_id else None
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
        headers=headers,
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Translate a named auth failure into its status code and error envelope."""
    return _error_response(request, exc.status_code, exc.code.value, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Answer malformed or missing fields with 400 INVALID_INPUT."""
    logger = structlog.get_logger()

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]) if loc != "body")
        message = first_error.get("msg", "Validation failed").removeprefix("Value error, ")
        detail = f"Field '{field}': {message}" if field else message
    else:
        detail = "Request validation failed"

    logger.info("validation_error", path=request.url.path, detail=detail)

    return _error_response(request, 400, AuthErrorCode.INVALID_INPUT.value, detail)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures; clients only ever see a generic message."""
    logger = structlog.get_logger()
    settings = get_settings()

    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=not settings.is_production,
    )

    return _error_response(
        request,
        500,
        AuthErrorCode.INTERNAL_ERROR.value,
        "An unexpected error occurred",
    )


@app.get("/health")
async def health() -> dict:
    """Liveness plus database reachability."""
    from review_api.database import health_check

    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": await health_check(),
    }


app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging runs inside the correlation ID scope
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(auth_router)
app.include_router(admin_router)
