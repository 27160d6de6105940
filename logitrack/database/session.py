from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.database.engine import async_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a database session.

    The whole request runs in one transaction: an order update and the
    tracking event describing it are committed together or not at all.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
