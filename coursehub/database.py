"""
coursehub/database.py
Engine, session factory and the per-app service context
"""
import logging
import uuid
from dataclasses import dataclass, field

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker

from coursehub.config import Settings
from coursehub.orm.base import Base
import coursehub.orm  # registers every model on Base.metadata

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a request handler needs besides the request itself."""
    settings: Settings
    engine: AsyncEngine
    sessionmaker: async_sessionmaker
    # Scopes per-app state kept outside the app, such as rate limit counters
    instance_id: str = field(default_factory=lambda: uuid.uuid4().hex)


def create_engine_for(settings: Settings) -> AsyncEngine:
    url = make_url(settings.database_url)

    if url.get_backend_name() == "sqlite":
        # SQLite picks its own pool class (StaticPool for :memory:), so
        # pool sizing arguments are not accepted here
        return create_async_engine(
            settings.database_url,
            echo=False,
            connect_args={
                "timeout": float(settings.db_pool_timeout),
            }
        )

    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=0,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=3600,
    )


def create_context(settings: Settings) -> AppContext:
    engine = create_engine_for(settings)
    factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    logger.info(f"Database dialect: {engine.url.get_backend_name()}")
    return AppContext(settings=settings, engine=engine, sessionmaker=factory)


def get_settings(request: Request) -> Settings:
    return request.app.state.context.settings


async def get_db(request: Request):
    """Dependency for getting async database session"""
    factory = request.app.state.context.sessionmaker
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(engine: AsyncEngine) -> None:
    """Create any missing tables"""
    logger.info("Initializing database...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✓ Database initialization complete")


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("Database connection closed")
