"""Process entrypoint for the health service.

Builds the FastAPI app at import time so ``uvicorn entrypoint:app`` works,
and runs uvicorn with the configured bind address when executed directly.
"""

from sqlalchemy.engine import make_url

from app.core.app import create_app
from app.core.config import AppSettings, settings
from app.core.logging_config import setup_logging

logger = setup_logging().bind(module=__name__)

app = create_app()


def log_startup(config: AppSettings = settings) -> None:
    """Announce the bind address and the dependencies readiness will check."""
    logger.info(
        "Starting health service",
        host=config.host,
        port=config.port,
        version=config.version,
        yunikorn=config.yunikorn_base_url,
        database=make_url(config.database_url).render_as_string(hide_password=True),
        health_check_timeout=config.health_check_timeout,
    )


if __name__ == "__main__":
    import uvicorn

    log_startup()
    uvicorn.run(
        "entrypoint:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
