"""
Async database access.

The engine and session factory are built on first use so that tests and the
CLI can import models without a database configured.
"""
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, declarative_base
from sqlalchemy.pool import NullPool

from thinkify.core.config import settings

Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url() -> str:
    """DATABASE_URL with a plain postgresql:// scheme switched to asyncpg"""
    url = settings.DATABASE_URL
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def _engine_options(url: str) -> Dict[str, Any]:
    # SQLite and dev servers get a fresh connection per checkout; production pools
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "poolclass": NullPool}
    if settings.is_dev_mode():
        return {"poolclass": NullPool}
    return {"pool_pre_ping": True}


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        url = get_database_url()
        _engine = create_async_engine(url, echo=settings.DB_ECHO, **_engine_options(url))
    return _engine


def get_session_local() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Services commit their own unit of work; anything still pending when the
    route returns is committed here, and any exception rolls the session back.
    """
    async with get_session_local()() as session:
        try:
            yield session
            if session.new or session.dirty or session.deleted:
                await session.commit()
        except Exception:
            await session.rollback()
            raise


@event.listens_for(Session, "before_flush")
def apply_persistence_hooks(session, flush_context, instances):
    """Run model save hooks (status refresh, validation) on every new or dirty row.

    Models opt in by defining ``before_save()``.
    """
    for obj in list(session.new) + list(session.dirty):
        hook = getattr(obj, "before_save", None)
        if hook is not None:
            hook()


async def init_db() -> None:
    """Create missing tables"""
    import thinkify.models  # noqa: F401  registers every model on Base.metadata

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
