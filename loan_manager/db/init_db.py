import logging

from loan_manager.db.base import Base
from loan_manager.db.session import engine
from loan_manager import models  # noqa: F401 - register mappers on Base.metadata

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Create missing tables directly from the models (local development only)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured: %s", ", ".join(sorted(Base.metadata.tables)))
