from __future__ import annotations
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from storybot.config import Settings

def sqlite_url(path: str) -> str:
    return f"sqlite+aiosqlite:///{path}"

def make_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(sqlite_url(settings.sqlite_path), echo=False)

def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # contexts are read after commit, keep attributes loaded
    return async_sessionmaker(engine, expire_on_commit=False)
