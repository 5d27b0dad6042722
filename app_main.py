"""Application entry point for the exam portal service."""

from __future__ import annotations

from exam_portal.core.services.session_registry import SessionRegistry
from exam_portal.server.api_server import create_api_app, run_api_server
from exam_portal.settings import load_settings
from exam_portal.storage.exam_storage import connect_storage
from exam_portal.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, connect storage, and serve the API."""
    logger = configure_logging()
    settings = load_settings()
    logger.info("Starting exam portal on port %d", settings.port)

    storage = connect_storage(settings)
    registry = SessionRegistry(storage, duration_seconds=settings.exam_duration_seconds)
    app = create_api_app(registry=registry, storage=storage, settings=settings)
    run_api_server(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
