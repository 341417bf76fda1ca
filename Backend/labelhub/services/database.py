import datetime
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def utcnow() -> datetime.datetime:
    """Naive UTC timestamp, the representation every DateTime column stores."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def _register_models() -> None:
    # Importing the models registers them on Base.metadata
    from labelhub.models import artist, interaction_note, label, release, track, user  # noqa: F401


class Database:
    """
    Owns the async engine and session factory for one store.

    Usage:
        database = Database(settings.DATABASE_URL)
        await database.init()
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, url: str, echo: bool = False):
        engine_kwargs = {"echo": echo}
        # An in-memory SQLite database only lives as long as its connection,
        # so every session has to share the same one.
        if url.startswith("sqlite") and (":memory:" in url or url.endswith("://")):
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        self.url = url
        self.engine = create_async_engine(url, **engine_kwargs)
        self.SessionLocal = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def init(self) -> None:
        """Create every table registered on Base."""
        _register_models()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        _register_models()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.SessionLocal() as session:
            yield session


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency that provides a database session from the application's Database.
    Session is automatically closed after the request.

    Usage:
        @router.get("/labels/")
        async def list_labels(db: AsyncSession = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
