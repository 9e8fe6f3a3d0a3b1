"""
FastAPI application setup.

Creates the app with its lifespan (cache connection, search capability
probe, detached task shutdown), error handling and health check.
"""
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from serenity import __version__
from serenity.api.container import ServiceContainer
from serenity.api.deps import Container
from serenity.api.v1 import router as v1_router
from serenity.config import get_settings
from serenity.exceptions import NotFoundError, ServiceError, ValidationError
from serenity.models.responses import ErrorResponse, HealthCheckResponse
from serenity.utils.logger import get_logger

logger = get_logger(__name__)

SERVER_NAME = "serenity-backend"

# Seconds to let write-behind and analytics tasks finish at shutdown
SHUTDOWN_GRACE_SECONDS = 5.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: verify the cache connection (warn and continue when it is
    down) and probe the search capability once.
    Shutdown: drain detached tasks, then close the cache connection.
    """
    container: ServiceContainer = app.state.container

    logger.info("server_starting", name=SERVER_NAME, version=__version__)

    if not await container.connection.connect():
        logger.warning("redis_unavailable_at_startup", detail="serving without cache")

    await container.capability.check()

    logger.info("server_ready", search=container.capability.available)

    yield

    await container.tasks.wait(timeout=SHUTDOWN_GRACE_SECONDS)
    await container.tasks.cancel_all()
    await container.connection.close()

    logger.info("server_shutdown_complete")


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Pre-built collaborators; defaults to the production wiring

    Example:
        >>> app = create_app()
        >>> # uvicorn.run(app)
    """
    app = FastAPI(title=SERVER_NAME, version=__version__, lifespan=lifespan)
    app.state.container = container or ServiceContainer()

    app.include_router(v1_router, prefix="/api/v1")

    setup_error_handling(app)
    register_health_check(app)

    logger.info("app_initialized", name=SERVER_NAME, version=__version__)
    return app


def _error_response(status_code: int, message: str, data: Optional[dict] = None) -> JSONResponse:
    body = ErrorResponse(message=message, data=data)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def setup_error_handling(app: FastAPI) -> None:
    """
    Map exceptions to JSON error responses.

    Status Codes:
        401: Missing user identity (AuthenticationError)
        404: Unknown or deleted resource (NotFoundError)
        422: Invalid parameters (ValidationError, request validation)
        500: Unexpected error
    """

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, error: ServiceError) -> JSONResponse:
        data = None
        if isinstance(error, NotFoundError):
            data = {"resource_type": error.resource_type, "resource_id": error.resource_id}
        elif isinstance(error, ValidationError) and error.field:
            data = {"field": error.field}

        logger.warning(
            "service_error",
            path=request.url.path,
            error_type=type(error).__name__,
            status_code=error.status_code,
            message=error.message,
        )
        return _error_response(error.status_code, error.message, data)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, error: RequestValidationError) -> JSONResponse:
        logger.warning("validation_error", path=request.url.path, errors=len(error.errors()))
        return _error_response(
            422,
            "Invalid parameters",
            {"errors": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in error.errors()]},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, error: Exception) -> JSONResponse:
        logger.error(
            "unexpected_error",
            path=request.url.path,
            error_type=type(error).__name__,
            error_message=str(error),
            traceback=traceback.format_exc(),
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            {
                "error_type": type(error).__name__,
                "environment": get_settings().environment,
            },
        )


def register_health_check(app: FastAPI) -> None:
    """Register GET /health."""

    @app.get("/health", response_model=HealthCheckResponse)
    async def health_check(container: Container) -> HealthCheckResponse:
        """
        Server health and component availability.

        The cache being down degrades the service but does not make it
        unhealthy: every read falls through to the document store.
        """
        connection = container.connection
        if connection.client is None:
            redis_status = "disabled"
        elif connection.gave_up:
            # Cache operations short-circuit until reset(), whatever PING says
            redis_status = "abandoned"
        elif await connection.ping():
            redis_status = "healthy"
        else:
            redis_status = "unhealthy"

        components = {
            "server": "healthy",
            "redis": redis_status,
            "search": "ranked" if container.capability.available else "basic",
        }

        overall_status = "healthy" if redis_status in ("healthy", "disabled") else "degraded"

        logger.debug("health_check_performed", status=overall_status, redis=redis_status)

        return HealthCheckResponse(
            status=overall_status,
            version=__version__,
            components=components,
        )
