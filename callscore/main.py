"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from callscore.analytics.errors import DashboardError
from callscore.api.dashboard import router as dashboard_router
from callscore.api.middleware import CorrelationIdMiddleware
from callscore.api.routes import router
from callscore.config import get_settings
from callscore.models.dashboard import ErrorResponse
from callscore.services.logging_service import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    try:
        from callscore.database import init_database, run_migrations

        await init_database()
        applied = await run_migrations()
        logger.info("database_initialized", migrations_applied=applied)
    except Exception as e:
        logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Continuing without database - dashboard requests will fail until it is reachable",
        )

    logger.info("application_started", log_level=settings.log_level)

    yield

    try:
        from callscore.database import close_database

        await close_database()
    except Exception as e:
        logger.warning("database_close_failed", error=str(e))

    logger.info("application_shutdown")


app = FastAPI(
    title="Call Evaluation Dashboard API",
    description="Pass-rate analytics over LLM-graded call transcripts",
    version="0.1.0",
    lifespan=lifespan,
)


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid4())


@app.exception_handler(DashboardError)
async def dashboard_exception_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """Render dashboard errors as a single structured body.

    Either the full aggregate is returned or none of it: this handler is the
    only error path out of the dashboard endpoints.
    """
    correlation_id = _correlation_id(request)
    logger = structlog.get_logger()

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "dashboard_request_failed",
        correlation_id=correlation_id,
        error_type=type(exc).__name__,
        stage=getattr(exc, "stage", None),
        status_code=exc.status_code,
        detail=exc.detail,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.message,
            detail=exc.detail,
            correlation_id=correlation_id,
            retryable=exc.retryable,
        ).model_dump(),
        headers={"X-Correlation-Id": correlation_id},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with a 400 and the first failing field."""
    correlation_id = _correlation_id(request)
    logger = structlog.get_logger()

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = first_error.get("msg", "Validation failed")
        detail = f"Field '{field}': {message}"
    else:
        detail = "Request validation failed"

    logger.warning(
        "validation_error",
        correlation_id=correlation_id,
        detail=detail,
    )

    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error="Validation error",
            detail=detail,
            correlation_id=correlation_id,
        ).model_dump(),
        headers={"X-Correlation-Id": correlation_id},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(CorrelationIdMiddleware)

app.include_router(dashboard_router)
app.include_router(router)
