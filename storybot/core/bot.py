from __future__ import annotations
from typing import Any, Mapping, Optional
from storybot.channels.base import Driver, SendResult, WebhookVerification
from storybot.conversation.context import Context
from storybot.conversation.context_manager import ContextManager
from storybot.conversation.story import Interaction
from storybot.conversation.story_manager import StoryManager
from storybot.domain.models import Channel, IncomingMessage, Keyboard
from storybot.observability import metrics
from storybot.observability.logging import get_logger

log = get_logger("bot")

class Bot:
    """Runs one conversation turn for a filled driver.

    Pipeline: webhook handshake short-circuit, request verification,
    context resolve, message extraction, story selection, story handler,
    context save. Stories receive the bot itself and talk back through it.
    """
    def __init__(
        self,
        channel: Channel,
        driver: Driver,
        context_manager: ContextManager,
        story_manager: StoryManager,
    ):
        self.channel = channel
        self.driver = driver
        self.context_manager = context_manager
        self.story_manager = story_manager
        self._context: Optional[Context] = None
        self._message: Optional[IncomingMessage] = None

    @property
    def context(self) -> Context:
        if self._context is None:
            raise RuntimeError("context is not resolved yet")
        return self._context

    @property
    def message(self) -> IncomingMessage:
        if self._message is None:
            raise RuntimeError("message is not received yet")
        return self._message

    async def process(self, values: Mapping[str, Any] | None = None) -> str | None:
        """Handle the request the driver was filled with.

        Returns the handshake token or the invalid-request message when the
        pipeline short-circuits, None after a handled turn.
        """
        with metrics.process_latency.time():
            if isinstance(self.driver, WebhookVerification) and self.driver.is_verification_request():
                log.info("webhook_verified", driver=self.driver.name)
                metrics.requests.labels(channel=self.channel.name, outcome="verification").inc()
                return self.driver.verify_webhook()

            invalid = self.driver.verify_request()
            if invalid is not None:
                log.warning("request_invalid", driver=self.driver.name, reason=invalid.message)
                metrics.requests.labels(channel=self.channel.name, outcome="invalid").inc()
                return invalid.message

            self._context = await self.context_manager.resolve(self.channel, self.driver)
            self._message = await self.driver.get_message()

            match = self.story_manager.find(self._context, self._message)
            self._context.story = match.story
            self._context.interaction = None
            self._context.set_values(values or {})

            if match.found:
                log.info("story_matched", story=match.story.name, fallback=match.fallback)
                metrics.stories_matched.labels(story=match.story.name).inc()
                await match.story.handle(self)
            else:
                log.info("story_not_matched", chat_id=self._context.chat.id)

            await self.context_manager.save(self._context)
            metrics.requests.labels(channel=self.channel.name, outcome="handled").inc()
            return None

    async def send_message(self, text: str, keyboard: Keyboard | None = None) -> SendResult:
        """Reply to the user of the current conversation."""
        return await self.driver.send_message(self.context.user, text, keyboard)

    async def converse(self, interaction: Interaction) -> None:
        self.context.interaction = interaction.name
        await interaction.run(self)
