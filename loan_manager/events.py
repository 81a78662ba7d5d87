import logging

from fastapi import FastAPI

from loan_manager.core.settings import settings
from loan_manager.db.init_db import init_db
from loan_manager.db.session import engine

logger = logging.getLogger(__name__)


def register_event_handlers(app: FastAPI) -> None:
    @app.on_event("startup")
    async def create_tables_for_development() -> None:
        logger.info(
            "Starting loan manager (environment=%s, auto_create=%s)",
            settings.environment,
            settings.db_auto_create,
        )
        if settings.db_auto_create:
            await init_db()

    @app.on_event("shutdown")
    async def release_connections() -> None:
        await engine.dispose()
        logger.info("Database connections released")
