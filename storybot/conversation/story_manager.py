from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional
from storybot.conversation.context import Context
from storybot.conversation.story import Story
from storybot.domain.models import IncomingMessage
from storybot.observability.logging import get_logger

log = get_logger("stories")

@dataclass(frozen=True)
class StoryMatch:
    story: Optional[Story]
    fallback: bool = False

    @classmethod
    def none(cls) -> StoryMatch:
        return cls(story=None)

    @property
    def found(self) -> bool:
        return self.story is not None

class StoryManager:
    """Selects the story for an incoming message.

    Stories are scanned in registration order and the first match wins.
    """
    def __init__(self, stories: Iterable[Story] = (), fallback: Story | None = None):
        self._stories: list[Story] = list(stories)
        self.fallback = fallback

    def add(self, story: Story) -> None:
        self._stories.append(story)

    def stories(self) -> list[Story]:
        return list(self._stories)

    def find(self, context: Context, message: IncomingMessage) -> StoryMatch:
        for story in self._stories:
            if story.matches(message):
                return StoryMatch(story=story)
        if self.fallback is not None:
            log.debug("story_fallback", story=self.fallback.name)
            return StoryMatch(story=self.fallback, fallback=True)
        return StoryMatch.none()
