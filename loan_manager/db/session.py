from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from loan_manager.core.settings import settings
from loan_manager.db.url import normalize_database_url

engine = create_async_engine(normalize_database_url(settings.database_url), pool_pre_ping=True)

# Objects stay usable after commit; handlers serialise them after the service returns
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request."""
    async with AsyncSessionLocal() as session:
        yield session
