"""
Serenity backend - Main Entry Point

Configures structured logging and serves the FastAPI application
with uvicorn.
"""
import uvicorn

from serenity import __version__
from serenity.api import create_app
from serenity.config import get_settings
from serenity.utils.logger import get_logger, setup_logging

# Initialize logger (will be reconfigured in main())
logger = get_logger(__name__)


def main() -> None:
    """
    Main entry point.

    Initializes:
        1. Structured logging
        2. Service container (repository, Redis cache, services)
        3. HTTP server
    """
    settings = get_settings()
    setup_logging(level=settings.log_level, environment=settings.environment)

    logger.info(
        "server_starting",
        version=__version__,
        environment=settings.environment,
        log_level=settings.log_level,
    )

    app = create_app()

    try:
        # Blocks until shutdown; SIGINT/SIGTERM are handled by uvicorn
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    except Exception as e:
        logger.error(
            "server_error",
            error=str(e),
            exc_info=True,
        )
        raise
    finally:
        logger.info("server_shutdown_complete")


if __name__ == "__main__":
    main()
