from __future__ import annotations
from datetime import datetime
from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession
from storybot.persistence.schema import ContextRow

class Repo:
    def __init__(self, session: AsyncSession):
        self.s = session

    async def get_context(self, key: str) -> dict[str, Any] | None:
        row = await self.s.get(ContextRow, key)
        if row is None:
            return None
        return {"interaction": row.interaction, "items": dict(row.items or {})}

    async def upsert_context(self, key: str, channel: str, chat_id: str, payload: dict[str, Any]) -> None:
        row = await self.s.get(ContextRow, key)
        now = datetime.utcnow()
        if row is None:
            self.s.add(ContextRow(
                key=key, channel=channel, chat_id=chat_id,
                interaction=payload.get("interaction"), items=payload.get("items") or {},
                updated_at=now,
            ))
        else:
            row.interaction = payload.get("interaction")
            row.items = payload.get("items") or {}
            row.updated_at = now

    async def delete_context(self, key: str) -> None:
        row = await self.s.get(ContextRow, key)
        if row is not None:
            await self.s.delete(row)
