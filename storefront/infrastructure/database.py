"""Database configuration and session management.

The engine and session factory are built once at application start-up
(see ``storefront.main.lifespan``) and handed to the catalog store.
Nothing here is created at import time.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from storefront.infrastructure.config import Settings


class Base(DeclarativeBase):
    """Base class for ORM models."""


@dataclass
class Database:
    """Engine plus session factory for one process.

    Attributes:
        engine: Async SQLAlchemy engine.
        session_factory: Factory producing short-lived read sessions.
    """

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Create engine and session factory from settings.

        Args:
            settings: Application settings.

        Returns:
            Database handle.
        """
        engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_pre_ping=True,
        )
        return cls.from_engine(engine)

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "Database":
        """Wrap an existing engine.

        Args:
            engine: Async engine.

        Returns:
            Database handle.
        """
        session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        return cls(engine=engine, session_factory=session_factory)

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
