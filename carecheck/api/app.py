"""ASGI entry point for the carecheck API.

Errors leave the service in one envelope, ``{"error": {"code", "message", "details"}}``,
whether they come from a route, a verification service or request validation.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carecheck.api.dependencies import get_failure_notifier
from carecheck.api.exceptions import CarecheckAPIError, to_api_error
from carecheck.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from carecheck.api.routes import register_routes
from carecheck.config import get_settings
from carecheck.jobs.worker import run_worker
from carecheck.observability.logging import get_logger, setup_logging
from carecheck.verification.errors import VerificationError

logger = get_logger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the Hatchet worker with the app when jobs are enabled."""
    settings = get_settings()
    worker_task: asyncio.Task[None] | None = None
    if settings.jobs.hatchet.enabled:
        worker_task = asyncio.create_task(
            run_worker(get_failure_notifier(settings), settings.jobs.hatchet)
        )

    yield

    if worker_task is not None:
        worker_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker_task


def create_app() -> FastAPI:
    """Build the API: logging from settings, CORS, error handlers and every router."""
    settings = get_settings()
    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_pii=log_config.redact_pii,
    )

    app = FastAPI(
        title="Carecheck API",
        description="Credential verification for childcare-worker candidates",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    register_routes(app)

    logger.info(
        "app_created",
        debug=settings.debug,
        cors_origins=settings.api.cors_origins,
    )

    return app


def _json_error(
    status_code: int,
    code: ErrorCode,
    message: str,
    details: list[ErrorDetail] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


def _render_api_error(exc: CarecheckAPIError) -> JSONResponse:
    details = [ErrorDetail(field=name, message="Required") for name in exc.fields] or None
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _json_error(exc.status_code, exc.error_code, exc.message, details, headers)


async def handle_api_error(request: Request, exc: CarecheckAPIError) -> JSONResponse:
    logger.warning(
        "api_error",
        error_code=exc.error_code.value,
        message=exc.message,
        path=request.url.path,
    )
    return _render_api_error(exc)


async def handle_verification_error(request: Request, exc: VerificationError) -> JSONResponse:
    """Domain errors raised below the routes map onto API error codes."""
    api_error = to_api_error(exc)
    logger.warning(
        "verification_error",
        error_code=api_error.error_code.value,
        error_type=type(exc).__name__,
        message=exc.message,
        path=request.url.path,
    )
    return _render_api_error(api_error)


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = exc.errors()
    logger.warning("request_invalid", errors=problems, path=request.url.path)
    details = [
        ErrorDetail(field=".".join(str(part) for part in problem["loc"]), message=problem["msg"])
        for problem in problems
    ]
    return _json_error(400, ErrorCode.VALIDATION_ERROR, "Request validation failed", details)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unexpected_error",
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return _json_error(500, ErrorCode.INTERNAL_ERROR, "An unexpected error occurred")


def _register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CarecheckAPIError, handle_api_error)
    app.add_exception_handler(VerificationError, handle_verification_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)


app = create_app()
