from __future__ import annotations
from typing import TYPE_CHECKING, Any, Mapping, Optional
from storybot.domain.models import Channel, Chat, User

if TYPE_CHECKING:
    from storybot.conversation.story import Story

class Context:
    """Persisted state of one conversation, identified by (channel, chat).

    ``items`` is an open scratch space; keys are a convention owned by story
    authors. Only ``interaction`` and ``items`` are serialized, the identity
    fields form the storage key.
    """
    def __init__(
        self,
        channel: Channel,
        chat: Chat,
        user: User,
        items: Optional[Mapping[str, Any]] = None,
        story: Optional[Story] = None,
        interaction: Optional[str] = None,
    ):
        self.channel = channel
        self.chat = chat
        self.user = user
        self.items: dict[str, Any] = dict(items or {})
        self.story = story
        self.interaction = interaction

    def get(self, key: str, default: Any = None) -> Any:
        return self.items.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.items[key] = value

    def set_values(self, values: Mapping[str, Any]) -> None:
        self.items.update(values)

    def to_dict(self) -> dict[str, Any]:
        return {"interaction": self.interaction, "items": dict(self.items)}

    def __repr__(self) -> str:
        return f"Context(channel={self.channel.name!r}, chat={self.chat.id!r}, interaction={self.interaction!r})"
