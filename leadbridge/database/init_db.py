"""
Database initialization and connection management
SQLite by default, any SQLAlchemy async URL works
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy import text
from sqlalchemy.engine import make_url

from ..config import get_settings
from .models import Base

__all__ = ["DatabaseManager", "db_manager", "init_database"]

logger = structlog.get_logger("leadbridge.database")


class DatabaseManager:
    """Database connection and session management"""

    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None):
        settings = get_settings()
        self.database_url = database_url or settings.database_url
        self.echo = settings.debug if echo is None else echo
        self.engine = None
        self.session_factory = None

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and make_url(self.database_url).database in (None, "", ":memory:")

    async def init_database(self):
        """Initialize database connection and create tables"""
        engine_kwargs = {"echo": self.echo, "pool_pre_ping": True}

        if self.is_sqlite:
            # timeout is the busy wait while another connection holds the write lock
            engine_kwargs["connect_args"] = {
                "check_same_thread": False,
                "timeout": 30,
            }
            if self.is_memory:
                # One shared connection so the in-memory database survives across sessions
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_recycle"] = 3600  # Recycle connections every hour

        self.engine = create_async_engine(self.database_url, **engine_kwargs)

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

            if self.is_sqlite and not self.is_memory:
                await conn.execute(text("PRAGMA journal_mode=WAL"))
                await conn.execute(text("PRAGMA synchronous=NORMAL"))

        logger.info("Database initialized", url=self.engine.url.render_as_string(hide_password=True))

    @asynccontextmanager
    async def get_session(self):
        """Get database session as async context manager"""
        if not self.session_factory:
            await self.init_database()

        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def close(self):
        """Close database connections"""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None


# Global database manager instance
db_manager = DatabaseManager()


async def init_database():
    """Initialize database - called on startup"""
    await db_manager.init_database()

