from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from logitrack.config import settings

engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
    pool_recycle=settings.db_pool_recycle_seconds,
    echo=settings.environment == "development",
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Seeder and Alembic only; Celery tasks reuse the async session factory
sync_engine = create_engine(
    settings.database_url_sync,
    pool_size=settings.db_sync_pool_size,
    max_overflow=0,
    pool_pre_ping=True,
)
