"""
Database connection and session management for Spin League.

Provides the async engine, session factory and schema utilities. The engine
services never reach for a global handle: the API owns one ``Database``
instance and hands its sessions to the services it builds per request.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy import event, text
from contextlib import asynccontextmanager
import logging
import time
import asyncio
from datetime import datetime, timezone
from typing import AsyncGenerator, Dict
from .models.base import Base

logger = logging.getLogger(__name__)

SLOW_QUERY_SECONDS = 1.0


class Database:
    """
    Owner of the async engine and its session factory.

    Works against PostgreSQL through asyncpg and against SQLite through
    aiosqlite. Nothing connects until ``initialize`` runs.
    """

    def __init__(self, database_url: str, echo: bool = False, pool_size: int = 10):
        """
        Args:
            database_url: SQLAlchemy async URL (postgresql+asyncpg or sqlite+aiosqlite)
            echo: Log every SQL statement
            pool_size: Connection pool size, ignored for SQLite
        """
        self.database_url = database_url
        self.echo = echo
        self.pool_size = pool_size
        self.engine = None
        self.async_session = None

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def _engine_options(self) -> Dict:
        if not self.is_sqlite:
            return {
                "pool_pre_ping": True,
                "pool_recycle": 3600,
                "pool_size": self.pool_size,
                "max_overflow": 20,
            }
        if ":memory:" in self.database_url:
            # one shared connection, otherwise every checkout is a new empty database
            return {"poolclass": StaticPool}
        return {}

    async def initialize(self, max_retries: int = 3, retry_delay: float = 2.0):
        """
        Build the engine and check that the database answers.

        Failed attempts are retried with exponential backoff; the last
        failure is re-raised.
        """
        delay = retry_delay
        for attempt in range(1, max_retries + 1):
            try:
                await self._connect()
                logger.info(f"Connected to {self.engine.dialect.name} database")
                return
            except Exception as e:
                logger.error(f"Database connection attempt {attempt}/{max_retries} failed: {e}")
                if self.engine is not None:
                    await self.engine.dispose()
                    self.engine = None
                if attempt == max_retries:
                    raise
                await asyncio.sleep(delay)
                delay *= 2

    async def _connect(self):
        self.engine = create_async_engine(self.database_url, echo=self.echo, **self._engine_options())
        self._install_listeners()
        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=True
        )

        async with self.engine.connect() as conn:
            if (await conn.execute(text("SELECT 1"))).scalar() != 1:
                raise RuntimeError("Database did not answer SELECT 1")

    def _install_listeners(self):
        sync_engine = self.engine.sync_engine

        if self.is_sqlite:
            @event.listens_for(sync_engine, "connect")
            def enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        @event.listens_for(sync_engine, "before_cursor_execute")
        def start_timer(conn, cursor, statement, parameters, context, executemany):
            conn.info.setdefault("query_started", []).append(time.perf_counter())

        @event.listens_for(sync_engine, "after_cursor_execute")
        def log_slow_query(conn, cursor, statement, parameters, context, executemany):
            elapsed = time.perf_counter() - conn.info["query_started"].pop()
            if elapsed > SLOW_QUERY_SECONDS:
                logger.warning(f"Slow query ({elapsed:.2f}s): {statement[:100]}")

    async def create_tables(self, drop_first: bool = False):
        """Create every table of the league schema, optionally dropping it first."""
        if self.engine is None:
            await self.initialize()

        async with self.engine.begin() as conn:
            if drop_first:
                await conn.run_sync(Base.metadata.drop_all)
                logger.info("Dropped league tables")
            await conn.run_sync(Base.metadata.create_all)

        logger.info(f"League schema ready ({len(Base.metadata.tables)} tables)")

    async def drop_tables(self):
        if self.engine is None:
            await self.initialize()

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Dropped league tables")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session that commits when the block exits cleanly.

        Any exception rolls the session back and propagates.
        """
        if self.async_session is None:
            await self.initialize()

        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.debug(f"Session rolled back: {e!r}")
                raise

    async def close(self):
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database connections closed")

    async def health_check(self) -> Dict:
        """
        Report whether the database answers and how fast.

        Returns:
            ``status`` ("healthy" or "unhealthy"), a timestamp and per-check details
        """
        report = {
            "status": "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {}
        }
        if self.engine is None:
            report["error"] = "not_initialized"
            return report

        try:
            started = time.perf_counter()
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            report["checks"]["connectivity"] = {
                "status": "pass",
                "response_time_ms": round((time.perf_counter() - started) * 1000, 2)
            }
            report["checks"]["backend"] = {
                "status": "pass",
                "dialect": self.engine.dialect.name
            }
            report["status"] = "healthy"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            report["error"] = str(e)

        return report
