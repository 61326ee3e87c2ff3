"""HTTP surface of the abuse-prevention core.

Every failure leaves the service in the same envelope the web client
already understands: {"success": false, "error", "message", "code"}.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from brainrot import __version__
from brainrot.api.dependencies import reset_dependencies
from brainrot.api.exceptions import BrainrotAPIError
from brainrot.api.models.errors import ErrorCode, ErrorDetail, ErrorResponse
from brainrot.api.routes import register_routes
from brainrot.config import get_settings
from brainrot.exceptions import ConfigurationError
from brainrot.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


def envelope(
    status_code: int,
    code: ErrorCode,
    error: str,
    message: str,
    details: list[ErrorDetail] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, code=code, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
    )


async def handle_api_error(request: Request, exc: BrainrotAPIError) -> JSONResponse:
    logger.warning(
        "api_error",
        error_code=exc.error_code.value,
        error=exc.error,
        message=exc.message,
        path=request.url.path,
    )
    return envelope(exc.status_code, exc.error_code, exc.error, exc.message)


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies are a 400, never FastAPI's default 422."""
    problems = exc.errors()
    logger.warning("validation_error", errors=problems, path=request.url.path)
    details = [
        ErrorDetail(field=".".join(map(str, problem["loc"])), message=problem["msg"])
        for problem in problems
    ]
    return envelope(
        400,
        ErrorCode.INVALID_REQUEST,
        "Validation failed",
        "Request validation failed",
        details,
    )


async def handle_configuration_error(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    # The detail names the missing variable; it stays in the log only
    logger.error("configuration_error", error=str(exc), path=request.url.path)
    return envelope(
        503,
        ErrorCode.SERVICE_UNAVAILABLE,
        "Service not configured",
        "This feature is not available right now",
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unexpected_error",
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return envelope(
        500,
        ErrorCode.INTERNAL_ERROR,
        "Internal server error",
        "An unexpected error occurred",
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    await reset_dependencies()
    logger.info("dependencies_closed")


def create_app() -> FastAPI:
    """Build the application.

    Logging is configured first so that startup events are already
    redacted.
    """
    settings = get_settings()
    logging_config = settings.observability.logging
    setup_logging(
        level=logging_config.level,
        format=logging_config.format,
        redact_pii=logging_config.redact_pii,
    )

    app = FastAPI(
        title="Brain-rot Factory API",
        summary="Rate limiting, rewarded-ad credits and TTS tokens",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BrainrotAPIError, handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(ConfigurationError, handle_configuration_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected_error)

    register_routes(app)

    logger.info("app_created", debug=settings.debug, version=__version__)
    return app


app = create_app()
