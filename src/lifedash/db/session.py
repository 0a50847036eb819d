from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lifedash.config import settings

# Do not log SQL statement parameters by default (they can contain provider
# tokens). Even if DB_ECHO=true leaks into non-dev, keep it off.
async_engine = create_async_engine(
    settings.database_url,
    echo=(settings.db_echo if settings.app_env.lower() == "development" else False),
    future=True,
)

AsyncSessionLocal = async_sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def init_models() -> None:
    """Create any missing tables for the registered models."""
    from lifedash.models.base import Base
    import lifedash.models  # noqa: F401  (registers tables on Base.metadata)

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
