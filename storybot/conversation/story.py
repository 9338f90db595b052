"""Base classes for conversation scripts."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from storybot.conversation.activators import Activator
from storybot.domain.models import IncomingMessage

if TYPE_CHECKING:
    from storybot.core.bot import Bot


class Story(ABC):
    """A reusable conversation script.

    A story is selected when any of its activators matches the incoming
    message. ``handle`` then drives the turn through the bot: sending
    replies, reading and writing context items, starting interactions.
    """

    name: str = ""

    def __init__(self) -> None:
        if not self.name:
            self.name = type(self).__name__

    @abstractmethod
    def activators(self) -> list[Activator]:
        """Predicates that select this story."""

    @abstractmethod
    async def handle(self, bot: Bot) -> None:
        """Run the story for the current turn."""

    def matches(self, message: IncomingMessage) -> bool:
        return any(a.matches(message) for a in self.activators())


class Interaction(ABC):
    """One step of a story that waits on the user.

    ``Bot.converse`` records the interaction name on the context before
    running it, so the stored conversation shows what the bot asked last.
    """

    name: str = ""

    def __init__(self) -> None:
        if not self.name:
            self.name = type(self).__name__

    @abstractmethod
    async def run(self, bot: Bot) -> None:
        pass
