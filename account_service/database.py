"""SQLAlchemy async database configuration for the account service.

This module exposes the async engine, session factory, the declarative
``Base`` shared by every model and a dependency provider for FastAPI
endpoints. The configuration expects the ``DATABASE_URL`` environment
variable to be set and will raise an error if it is missing to fail fast
during application startup.
"""

from __future__ import annotations

import logging
import os
from typing import AsyncGenerator, Optional

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_ENV_KEY = "DATABASE_URL"
database_url: Optional[str] = os.getenv(DATABASE_ENV_KEY)

if not database_url:
    raise RuntimeError(f"{DATABASE_ENV_KEY} environment variable is not set!")

DATABASE_ECHO = os.getenv("DATABASE_ECHO", "0") == "1"

engine = create_async_engine(database_url, echo=DATABASE_ECHO)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(AsyncAttrs, declarative_base()):
    """Abstract base class for all ORM models."""

    __abstract__ = True
    # Models annotate plain Column attributes rather than Mapped[].
    __allow_unmapped__ = True


async def init_db() -> None:
    """Create all tables that do not exist yet."""
    # Registers every mapped class on Base.metadata.
    import account_service.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized.")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an asynchronous database session.

    Sessions are created from :data:`AsyncSessionLocal`. Using a dependency
    ensures proper lifecycle management of the session for each request.
    """
    async with AsyncSessionLocal() as session:
        yield session
