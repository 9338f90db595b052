import httpx
import pytest
from storybot.channels.base import Driver, InvalidRequest, SendResult, WebhookVerification
from storybot.conversation.activators import ExactActivator
from storybot.conversation.context import Context
from storybot.conversation.context_manager import ContextManager, MemoryContextStore
from storybot.conversation.story import Interaction, Story
from storybot.conversation.story_manager import StoryManager
from storybot.core.bot import Bot
from storybot.domain.models import Channel, Chat, IncomingMessage, OutgoingMessage, User

class FakeDriver(Driver):
    name = "fake"

    def __init__(self, calls, invalid=None, message=None):
        super().__init__()
        self.calls = calls
        self.invalid = invalid
        self.message = message or IncomingMessage(text="/start")
        self.sent = []

    def get_config(self):
        return []

    def verify_request(self):
        self.calls.append("verify_request")
        return self.invalid

    def get_chat(self):
        return Chat(id="chat-1")

    def get_user(self):
        return User(id="user-1", name="Ada")

    async def get_message(self):
        self.calls.append("get_message")
        return self.message

    async def send_message(self, recipient, text, keyboard=None):
        self.sent.append((recipient.id, text))
        return SendResult(message=OutgoingMessage(recipient=recipient, text=text, keyboard=keyboard))

    async def install_webhook(self, url):
        return None

class VerifyingDriver(FakeDriver, WebhookVerification):
    def __init__(self, calls, token):
        super().__init__(calls)
        self.token = token

    def is_verification_request(self):
        return self.get_request().get("verification") is not None

    def verify_webhook(self):
        return self.get_request()["verification"]

class RecordingContextManager(ContextManager):
    def __init__(self, calls):
        super().__init__(MemoryContextStore())
        self.calls = calls

    async def resolve(self, channel, driver):
        self.calls.append("resolve")
        return await super().resolve(channel, driver)

    async def save(self, context):
        self.calls.append("save")
        await super().save(context)

class RecordingStoryManager(StoryManager):
    def __init__(self, calls, stories=(), fallback=None):
        super().__init__(stories, fallback)
        self.calls = calls

    def find(self, context, message):
        self.calls.append("find")
        return super().find(context, message)

class StartStory(Story):
    name = "start"

    def __init__(self, calls):
        super().__init__()
        self.calls = calls
        self.seen = None

    def activators(self):
        return [ExactActivator("/start")]

    async def handle(self, bot):
        self.calls.append("handle")
        ctx = bot.context
        self.seen = (ctx.story, ctx.interaction, dict(ctx.items))
        await bot.send_message("hello")

@pytest.fixture
def channel():
    return Channel(name="tg-main", driver="fake")

@pytest.mark.asyncio
async def test_process_without_verification(channel):
    calls = []
    driver = FakeDriver(calls)
    story = StartStory(calls)
    contexts = RecordingContextManager(calls)
    await contexts.store.put("context.tg-main.chat-1", _stored(channel, interaction="old", items={"a": 1}))

    bot = Bot(channel, driver, contexts, RecordingStoryManager(calls, [story]))
    result = await bot.process({"b": 2})

    assert result is None
    assert calls == ["verify_request", "resolve", "get_message", "find", "handle", "save"]
    assert story.seen == (story, None, {"a": 1, "b": 2})
    assert driver.sent == [("user-1", "hello")]
    stored = await contexts.store.get("context.tg-main.chat-1")
    assert stored == {"interaction": None, "items": {"a": 1, "b": 2}}

@pytest.mark.asyncio
async def test_process_invalid_request(channel):
    calls = []
    driver = FakeDriver(calls, invalid=InvalidRequest("Invalid request."))
    bot = Bot(channel, driver, RecordingContextManager(calls), RecordingStoryManager(calls, [StartStory(calls)]))

    assert await bot.process() == "Invalid request."
    assert calls == ["verify_request"]

@pytest.mark.asyncio
async def test_process_with_webhook_verification(channel):
    calls = []
    driver = VerifyingDriver(calls, token="abc")
    driver.fill({}, {"verification": "abc123"})
    bot = Bot(channel, driver, RecordingContextManager(calls), RecordingStoryManager(calls, [StartStory(calls)]))

    assert await bot.process() == "abc123"
    assert calls == []

@pytest.mark.asyncio
async def test_verification_capability_falls_through_for_regular_requests(channel):
    calls = []
    driver = VerifyingDriver(calls, token="abc")
    driver.fill({}, {"message": {}})
    bot = Bot(channel, driver, RecordingContextManager(calls), RecordingStoryManager(calls, [StartStory(calls)]))

    assert await bot.process() is None
    assert calls == ["verify_request", "resolve", "get_message", "find", "handle", "save"]

@pytest.mark.asyncio
async def test_process_without_matching_story_still_saves(channel):
    calls = []
    driver = FakeDriver(calls, message=IncomingMessage(text="unknown"))
    contexts = RecordingContextManager(calls)
    bot = Bot(channel, driver, contexts, RecordingStoryManager(calls, [StartStory(calls)]))

    assert await bot.process({"k": "v"}) is None
    assert calls == ["verify_request", "resolve", "get_message", "find", "save"]
    assert bot.context.story is None
    assert await contexts.store.get("context.tg-main.chat-1") == {"interaction": None, "items": {"k": "v"}}

@pytest.mark.asyncio
async def test_message_fetch_failure_propagates(channel):
    calls = []

    class BrokenDriver(FakeDriver):
        async def get_message(self):
            raise httpx.ConnectError("boom")

    bot = Bot(channel, BrokenDriver(calls), RecordingContextManager(calls), RecordingStoryManager(calls))
    with pytest.raises(httpx.ConnectError):
        await bot.process()
    assert "save" not in calls

@pytest.mark.asyncio
async def test_converse_records_interaction(channel):
    calls = []

    class AskName(Interaction):
        name = "ask_name"

        async def run(self, bot):
            await bot.send_message("What is your name?")

    class AskStory(StartStory):
        async def handle(self, bot):
            await bot.converse(AskName())

    driver = FakeDriver(calls)
    contexts = RecordingContextManager(calls)
    bot = Bot(channel, driver, contexts, StoryManager([AskStory(calls)]))
    await bot.process()

    assert driver.sent == [("user-1", "What is your name?")]
    stored = await contexts.store.get("context.tg-main.chat-1")
    assert stored["interaction"] == "ask_name"

def _stored(channel, interaction=None, items=None):
    return Context(channel, Chat(id="chat-1"), User(id="user-1"), items=items, interaction=interaction)
