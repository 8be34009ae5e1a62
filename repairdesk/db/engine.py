"""Database engine for the shop's single SQLite file."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from repairdesk.config import get_settings

_SQLITE_PREFIX = "sqlite+aiosqlite:///"

_settings = get_settings()
_url = _settings.database_url

if _url.startswith(_SQLITE_PREFIX) and ":memory:" not in _url:
    Path(_url[len(_SQLITE_PREFIX):]).parent.mkdir(parents=True, exist_ok=True)

engine = create_async_engine(_url, echo=False)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

if _url.startswith("sqlite"):
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def get_db():
    async with async_session_factory() as session:
        yield session


async def create_tables():
    from repairdesk.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine():
    await engine.dispose()
