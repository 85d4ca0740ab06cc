"""Database - Async engine and session factory management"""
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .tables import Base
from ..config.settings import Settings, get_settings
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _configure_sqlite(engine: AsyncEngine) -> None:
    """
    Take over transaction control from pysqlite.

    The driver's implicit BEGIN is disabled so that every transaction starts
    with BEGIN IMMEDIATE and holds the write lock from its first read.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Owns the async engine and hands out sessions"""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or get_settings()
        self.url = make_url(self.config.database_url)
        self.is_sqlite = self.url.get_backend_name() == "sqlite"

        engine_kwargs: Dict[str, Any] = {"echo": self.config.database_echo}
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"timeout": self.config.database_busy_timeout}
        else:
            engine_kwargs["pool_pre_ping"] = True

        logger.info(f"Creating database engine: {self.url.render_as_string(hide_password=True)}")
        self.engine: AsyncEngine = create_async_engine(self.url, **engine_kwargs)
        if self.is_sqlite:
            _configure_sqlite(self.engine)

        self.sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
        )

    @property
    def backend_name(self) -> str:
        return self.url.get_backend_name()

    def _ensure_sqlite_directory(self) -> None:
        database = self.url.database
        if not database or database == ":memory:":
            return
        Path(database).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)

    async def create_schema(self) -> None:
        """Create all tables that do not exist yet"""
        if self.is_sqlite:
            self._ensure_sqlite_directory()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    async def drop_schema(self) -> None:
        """Drop all tables (used by the seed script's --reset flag)"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database schema dropped")

    async def dispose(self) -> None:
        """Close pooled connections"""
        await self.engine.dispose()
        logger.info("Database connections closed")

    async def health_check(self) -> Dict[str, Any]:
        """Check store connectivity"""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "database": self.backend_name,
                "connection": "ok"
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {
                "status": "unhealthy",
                "database": self.backend_name,
                "error": str(e)
            }
