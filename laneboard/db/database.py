from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession
from sqlalchemy.pool import NullPool
from sqlalchemy import select
from typing import AsyncGenerator

from laneboard.core import get_settings

# Get application settings
settings = get_settings()

# Create async engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    future=True,
    poolclass=NullPool,
)

# Create session factory
async_session_factory = async_sessionmaker(
    engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


# Dependency for FastAPI
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def seed_labels(session: AsyncSession) -> None:
    """Insert any palette colors that are missing from the labels table"""
    from laneboard.models.label import Label, LABEL_COLORS

    result = await session.execute(select(Label.color))
    existing = set(result.scalars().all())
    for color in LABEL_COLORS:
        if color not in existing:
            session.add(Label(color=color))
    await session.commit()


# Initialize database
async def init_db():
    async with engine.begin() as conn:
        # Import here to avoid circular imports
        from laneboard.db.models import Base
        # Create tables if they don't exist
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        await seed_labels(session)
