# db.py
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config import settings
from db_base import Base


engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Objects stay readable after commit; responses are built from them
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_db() -> None:
    """Create the complaint and user tables directly. Deployments run Alembic instead."""
    import db_models  # noqa: F401  registers the models on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    await engine.dispose()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session dependency."""
    async with AsyncSessionLocal() as session:
        yield session
