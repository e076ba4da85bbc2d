"""
Async engine and session factory.

The engine is built once at import time from settings; request handlers
receive a session through the `get_db` dependency. The session wraps the
whole request in one transaction: commit on success, rollback on any error,
so a reservation insert and its seat adjustment land (or fail) together.

Side effects that must only see committed data (cache invalidation) are
queued with `run_after_commit` and awaited once the commit has gone through.
On rollback they are dropped.
"""

from typing import AsyncGenerator, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from booknest.core.config import get_settings

settings = get_settings()

AFTER_COMMIT_KEY = "after_commit"

AfterCommitCallback = Callable[[], Awaitable[None]]


def _engine_options() -> dict:
    if settings.is_sqlite:
        # SQLite uses a static/single-connection pool; sizing options don't apply
        return {"echo": settings.DB_ECHO}
    return {
        "echo": settings.DB_ECHO,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_options())
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def run_after_commit(session: AsyncSession, callback: AfterCommitCallback) -> None:
    """Queue `callback` to run once this request's transaction commits."""
    callbacks = session.info.setdefault(AFTER_COMMIT_KEY, [])
    if callback not in callbacks:
        callbacks.append(callback)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            session.info.pop(AFTER_COMMIT_KEY, None)
            await session.rollback()
            raise

        for callback in session.info.pop(AFTER_COMMIT_KEY, []):
            await callback()
