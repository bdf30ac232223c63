"""
Async SQLAlchemy engine, session factory and connectivity check
"""

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from typing import AsyncGenerator
from core.config import settings
import logging

logger = logging.getLogger(__name__)

# Connections are opened lazily, so importing this module never needs a database
engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool, future=True)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per unit of work; closed when the caller is done"""
    async with async_session_maker() as session:
        yield session


async def check_connection(session: AsyncSession) -> bool:
    """Run SELECT 1; False when the database cannot be reached"""
    try:
        await session.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database connection failed: {str(e)}")
        return False
