import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import (
    DatabaseError,
    DBAPIError,
    IntegrityError,
    OperationalError,
)
from sqlalchemy.exc import (
    TimeoutError as SQLAlchemyTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncEngine

from freet.db.connection import (
    create_all_tables,
    dispose_engine,
)
from freet.db.connection import (
    get_database_type as _connection_get_database_type,
)
from freet.db.connection import (
    get_database_url as _connection_get_database_url,
)
from freet.db.connection import (
    get_engine as _connection_get_engine,
)
from freet.settings import AppSettings, get_settings

from .api import circles, follows, freets, reactions, users
from .errors import FreetError
from .schemas.error import ErrorType, ValidationErrorDetail
from .utils.error_responses import (
    build_domain_error_response,
    build_error_response,
    build_validation_error_response,
)
from .utils.request_context import clear_request_id, get_request_id, set_request_id

settings = get_settings()

logging.basicConfig(
    level=settings.log_level_numeric,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def validate_environment(active_settings: AppSettings | None = None) -> None:
    """Log warnings for optional configuration that is not set."""
    warnings = (active_settings or get_settings()).optional_config_warnings()
    if warnings:
        logger.warning("=" * 60)
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning("  - %s", warning)
        logger.warning("=" * 60)


def _sanitize_database_url(url: str) -> str:
    """Hide the password of a database URL for logging."""
    if "://" not in url:
        return url

    scheme, rest = url.split("://", 1)
    if "@" in rest:
        auth, host_db = rest.split("@", 1)
        if ":" in auth:
            user, _ = auth.split(":", 1)
            return f"{scheme}://{user}:***@{host_db}"
        return f"{scheme}://{auth}@{host_db}"
    return url


def get_database_type() -> str:
    """Module-level proxy so tests can patch ``freet.main.get_database_type``."""

    return _connection_get_database_type()


def get_database_url() -> str:
    return _connection_get_database_url()


def get_engine() -> AsyncEngine:
    return _connection_get_engine()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup preflight, schema bootstrap for SQLite, warmup; cleanup on exit."""
    validate_environment()

    db_type = get_database_type()
    sanitized_url = _sanitize_database_url(get_database_url())

    logger.info("=" * 60)
    logger.info("Freet API - Database Preflight Check")
    logger.info("=" * 60)
    logger.info("Database Type: %s", db_type.upper())
    logger.info("Database URL: %s", sanitized_url)

    if db_type == "sqlite":
        if get_settings().auto_create_tables:
            await create_all_tables(get_engine())
            logger.info("SQLite mode - tables created from ORM metadata")
        else:
            logger.info("SQLite mode - AUTO_CREATE_TABLES disabled, expecting existing schema")
    else:
        logger.info("PostgreSQL mode - using Alembic migrations")
        logger.info("Ensure migrations are up to date (run: alembic upgrade head)")
    logger.info("=" * 60)

    from freet.warmup import warmup_all

    await warmup_all(resolve_engine=get_engine)

    yield

    from freet.cache import close_redis

    logger.info("Shutting down Freet API")
    await close_redis()
    await dispose_engine()


app = FastAPI(
    title="Freet API",
    version="0.1.0",
    description="Follows, likes, refreets and circles for the Freet microblog.",
    lifespan=lifespan,
    redirect_slashes=False,
)


def _default_origins() -> list[str]:
    ports = list(range(3000, 3011)) + [5173, 8080]
    origins = []
    for host in ("localhost", "127.0.0.1"):
        origins.extend([f"http://{host}:{port}" for port in ports])
    origins.append("http://localhost")
    origins.append("http://127.0.0.1")
    return origins


def _combine_origins(*origin_groups: list[str]) -> list[str]:
    """Merge origins preserving order and removing duplicates."""
    seen: set[str] = set()
    combined: list[str] = []
    for group in origin_groups:
        for origin in group:
            normalized = origin.rstrip("/")
            if normalized and normalized not in seen:
                seen.add(normalized)
                combined.append(normalized)
    return combined


allow_origins = _combine_origins(_default_origins(), settings.cors_allow_origins)
cors_origin_regex = settings.cors_allow_origin_regex or None

logger.info("Configured CORS allow_origins: %s", ", ".join(allow_origins))
if cors_origin_regex:
    logger.info("Configured CORS allow_origin_regex: %s", cors_origin_regex)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_origin_regex=cors_origin_regex,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Tag each request with an id, echoed back in ``X-Request-ID``."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    token = set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        clear_request_id(token)
    response.headers["X-Request-ID"] = request_id
    return response


def _error_json(status_code: int, tag: ErrorType, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=build_error_response(tag=tag, message=message).model_dump(mode="json"),
    )


def _field_errors(errors) -> list[ValidationErrorDetail]:
    return [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
        )
        for error in errors
    ]


@app.exception_handler(FreetError)
async def freet_error_handler(request: Request, exc: FreetError):
    """Render domain errors into the ``{"error": {tag: message}}`` envelope."""
    logger.info(
        "Request %s to %s failed with %s (%s): %s",
        get_request_id(),
        request.url.path,
        type(exc).__name__,
        exc.status_code,
        exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=build_domain_error_response(exc).model_dump(mode="json"),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed identifiers and missing fields are ``validationFailure`` (400)."""
    errors = _field_errors(exc.errors())
    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=build_validation_error_response(errors=errors).model_dump(mode="json"),
    )


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    errors = _field_errors(exc.errors())
    logger.warning(
        "Pydantic validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=build_validation_error_response(errors=errors).model_dump(mode="json"),
    )


@app.exception_handler(OperationalError)
@app.exception_handler(DBAPIError)
async def database_connection_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Database connection error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )
    return _error_json(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorType.DATABASE_ERROR,
        "Unable to connect to the database. Please try again later.",
    )


@app.exception_handler(SQLAlchemyTimeoutError)
async def database_timeout_exception_handler(
    request: Request, exc: SQLAlchemyTimeoutError
):
    logger.error(
        "Database timeout error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )
    return _error_json(
        status.HTTP_504_GATEWAY_TIMEOUT,
        ErrorType.TIMEOUT_ERROR,
        "The database query took too long to complete. Please try again.",
    )


@app.exception_handler(IntegrityError)
async def database_integrity_exception_handler(request: Request, exc: IntegrityError):
    """Constraint violations, e.g. two concurrent creates for one anchor."""
    logger.error(
        "Database integrity error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )
    return _error_json(
        status.HTTP_409_CONFLICT,
        ErrorType.INTEGRITY_ERROR,
        "The operation would violate a database constraint.",
    )


@app.exception_handler(DatabaseError)
async def database_generic_exception_handler(request: Request, exc: DatabaseError):
    logger.error(
        "Database error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )
    return _error_json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorType.DATABASE_ERROR,
        "An error occurred while accessing the database. Please try again.",
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        type(exc).__name__,
    )
    return _error_json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorType.INTERNAL_ERROR,
        f"An unexpected error occurred: {type(exc).__name__}",
    )


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple health endpoint for readiness checks."""
    return {"status": "ok"}


app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(freets.router, prefix="/api/freets", tags=["freets"])
app.include_router(follows.router, prefix="/api/follows", tags=["follows"])
app.include_router(reactions.likes_router, prefix="/api/likes", tags=["likes"])
app.include_router(reactions.refreets_router, prefix="/api/refreets", tags=["refreets"])
app.include_router(circles.router, prefix="/api/circles", tags=["circles"])
