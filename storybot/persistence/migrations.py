from __future__ import annotations
import os
from sqlalchemy.ext.asyncio import AsyncEngine
from storybot.persistence.schema import Base

async def init_db(engine: AsyncEngine) -> None:
    database = engine.url.database
    if database and os.path.dirname(database):
        os.makedirs(os.path.dirname(database), exist_ok=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
