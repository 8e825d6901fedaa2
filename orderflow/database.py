"""
Database engine and session factory.

Services receive an ``AsyncSession`` (or, for the referral cascade, an
``async_sessionmaker``) created here.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from orderflow.config.settings import settings
from orderflow.models import Base


def create_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """Create the async engine for the configured database."""
    url = database_url or settings.database_url
    connect_args = {}
    if url.startswith("sqlite"):
        # Concurrent writers wait for the file lock instead of failing
        connect_args["timeout"] = 30
    return create_async_engine(
        url,
        echo=settings.database_echo if echo is None else echo,
        connect_args=connect_args,
    )


def create_session_maker(engine: AsyncEngine | None = None) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to ``engine``."""
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create all database tables (checkfirst=True)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
