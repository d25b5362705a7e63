# =============================================================================
# Database Engine & Session Management
# =============================================================================
#
# Async SQLAlchemy engine shared by every SQL-backed store. All queries use
# `await`; the default URL is a local SQLite file through aiosqlite, and a
# PostgreSQL URL (postgresql+asyncpg://...) works unchanged.
#
# SESSION LIFECYCLE:
# 1. A store method opens a session from the factory it was built with
# 2. It reads/writes inside `async with session.begin()`
# 3. The transaction commits on exit, or rolls back on exception
#
# Stores take the session factory as a constructor argument so tests can
# point them at a temporary database (see build_session_factory).
# =============================================================================

from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from agent_hub.config import settings


def _ensure_sqlite_dir(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    Pool sizing only applies to server databases; SQLite uses
    SQLAlchemy's default pool for aiosqlite.
    """
    _ensure_sqlite_dir(database_url)
    kwargs: dict = {"echo": echo}
    if make_url(database_url).get_backend_name() != "sqlite":
        kwargs.update(pool_size=5, max_overflow=10)
    return create_async_engine(database_url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: rows stay readable after the transaction closes
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# ---------------------------------------------------------------------------
# Application Engine
# ---------------------------------------------------------------------------

async_engine = build_engine(settings.database_url, echo=settings.debug)
async_session_factory = build_session_factory(async_engine)


async def init_models(engine: AsyncEngine | None = None) -> None:
    """Create all tables that do not exist yet."""
    from agent_hub.db.models import Base

    async with (engine or async_engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

