"""
Async PostgreSQL engine, session factory and the request session dependency
"""

from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import text
import structlog

from core.config import settings

logger = structlog.get_logger()

class DatabaseConnectionManager:
    """Builds the engine and session factory once per process"""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            options = {
                "echo": settings.DEBUG,
                "connect_args": {
                    "server_settings": {"application_name": settings.APP_NAME.lower()},
                    "command_timeout": 60,
                },
            }
            if settings.TESTING:
                # no pooled connections shared across test event loops
                options["poolclass"] = NullPool
            else:
                options.update(
                    pool_size=settings.DB_POOL_SIZE,
                    max_overflow=settings.DB_MAX_OVERFLOW,
                    pool_pre_ping=True,
                    pool_recycle=3600,
                )
            self._engine = create_async_engine(self.url, **options)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=True
            )
        return self._session_factory

    async def ping(self) -> bool:
        """True when the database answers a trivial query"""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database ping failed", error=str(e))
            return False

db_manager = DatabaseConnectionManager()

engine = db_manager.engine
AsyncSessionLocal = db_manager.session_factory

Base = declarative_base()

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session

    Commits after the endpoint returns and rolls back if it raised.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error("Database session error", error=str(e), error_type=type(e).__name__)
            await session.rollback()
            raise

async def validate_database_connection() -> bool:
    """Readiness probe used at startup and by /health/ready"""
    return await db_manager.ping()
