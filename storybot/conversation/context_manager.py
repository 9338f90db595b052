from __future__ import annotations
import abc
import copy
from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from storybot.channels.base import Driver
from storybot.conversation.context import Context
from storybot.domain.models import Channel
from storybot.observability.logging import get_logger
from storybot.persistence.repo import Repo

log = get_logger("context")

class ContextStore(abc.ABC):
    """Key/value storage for serialized contexts. Last write wins."""

    @abc.abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        ...

    @abc.abstractmethod
    async def put(self, key: str, context: Context) -> None:
        ...

    @abc.abstractmethod
    async def delete(self, key: str) -> None:
        ...

class MemoryContextStore(ContextStore):
    def __init__(self):
        self._data: dict[str, dict[str, Any]] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        payload = self._data.get(key)
        return copy.deepcopy(payload) if payload is not None else None

    async def put(self, key: str, context: Context) -> None:
        self._data[key] = copy.deepcopy(context.to_dict())

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

class SqlContextStore(ContextStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get(self, key: str) -> dict[str, Any] | None:
        async with self.session_factory() as s:
            return await Repo(s).get_context(key)

    async def put(self, key: str, context: Context) -> None:
        async with self.session_factory() as s:
            await Repo(s).upsert_context(key, context.channel.name, context.chat.id, context.to_dict())
            await s.commit()

    async def delete(self, key: str) -> None:
        async with self.session_factory() as s:
            await Repo(s).delete_context(key)
            await s.commit()

class ContextManager:
    """Loads and stores one Context per (channel, chat)."""
    def __init__(self, store: ContextStore | None = None):
        self.store = store or MemoryContextStore()

    @staticmethod
    def key(channel_name: str, chat_id: str) -> str:
        return f"context.{channel_name}.{chat_id}"

    async def resolve(self, channel: Channel, driver: Driver) -> Context:
        chat = driver.get_chat()
        user = driver.get_user()
        payload = await self.store.get(self.key(channel.name, chat.id)) or {}
        log.debug("context_resolved", chat_id=chat.id, stored=bool(payload))
        return Context(
            channel=channel,
            chat=chat,
            user=user,
            items=payload.get("items") or {},
            interaction=payload.get("interaction"),
        )

    async def save(self, context: Context) -> None:
        await self.store.put(self.key(context.channel.name, context.chat.id), context)

    async def clear(self, context: Context) -> None:
        await self.store.delete(self.key(context.channel.name, context.chat.id))
