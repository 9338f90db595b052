from urllib.parse import parse_qs
import httpx
import pytest
from fastapi.testclient import TestClient
from storybot.channels.base import Driver, InvalidRequest, SendResult, WebhookVerification
from storybot.channels.manager import ChannelManager
from storybot.channels.telegram import TelegramDriver
from storybot.config import ChannelSettings, Settings
from storybot.conversation.activators import ExactActivator
from storybot.conversation.context_manager import ContextManager
from storybot.conversation.story import Story
from storybot.conversation.story_manager import StoryManager
from storybot.domain.models import Chat, IncomingMessage, OutgoingMessage, User
from storybot.server.app import create_app

class EchoStory(Story):
    name = "echo"

    def activators(self):
        return [ExactActivator("/start")]

    async def handle(self, bot):
        bot.context.set("seen", bot.context.get("seen", 0) + 1)
        await bot.send_message("welcome")

class HandshakeDriver(Driver, WebhookVerification):
    name = "handshake"

    def get_config(self):
        return ["verify_token"]

    def is_verification_request(self):
        return self.get_request().get("hub.mode") == "subscribe"

    def verify_webhook(self):
        return self.get_request().get("hub.challenge", "")

    def verify_request(self):
        return InvalidRequest("Invalid payload")

    def get_chat(self):
        return Chat(id="x")

    def get_user(self):
        return User(id="x")

    async def get_message(self):
        return IncomingMessage()

    async def send_message(self, recipient, text, keyboard=None):
        return SendResult(message=OutgoingMessage(recipient=recipient, text=text))

    async def install_webhook(self, url):
        return None

@pytest.fixture
def sent():
    return []

@pytest.fixture
def contexts():
    return ContextManager()

@pytest.fixture
def client(sent, contexts):
    def handler(request: httpx.Request) -> httpx.Response:
        sent.append({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
        return httpx.Response(200, json={"ok": True, "result": {}})

    settings = Settings(
        json_logs=False,
        channels={
            "tg": ChannelSettings(driver="telegram", parameters={"token": "t0k"}),
            "hs": ChannelSettings(driver="handshake"),
        },
    )
    channels = ChannelManager(settings.channels)
    channels.register_driver("telegram", lambda: TelegramDriver(httpx.AsyncClient(transport=httpx.MockTransport(handler))))
    channels.register_driver("handshake", HandshakeDriver)
    app = create_app(settings, story_manager=StoryManager([EchoStory()]), context_manager=contexts, channel_manager=channels)
    with TestClient(app) as c:
        yield c

def _update(text="/start"):
    return {"update_id": 1, "message": {
        "message_id": 10, "from": {"id": 7, "first_name": "Ada"},
        "chat": {"id": 7, "type": "private"}, "text": text,
    }}

def test_healthz(client):
    assert client.get("/healthz").json()["ok"] is True

def test_metrics(client):
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "sbot_requests" in r.text

def test_webhook_handles_turn(client, sent, contexts):
    r = client.post("/channels/tg/webhook", json=_update())
    assert r.status_code == 200
    assert r.text == ""
    assert sent == [{"chat_id": "7", "text": "welcome"}]

    client.post("/channels/tg/webhook", json=_update())
    assert contexts.store._data["context.tg.7"]["items"] == {"seen": 2}

def test_webhook_invalid_payload(client, sent):
    r = client.post("/channels/tg/webhook", json={"update_id": 2})
    assert r.status_code == 200
    assert r.text == "Invalid payload"
    assert sent == []

def test_webhook_unknown_channel(client):
    assert client.post("/channels/nope/webhook", json=_update()).status_code == 404

def test_webhook_handshake(client, contexts):
    r = client.get("/channels/hs/webhook", params={"hub.mode": "subscribe", "hub.challenge": "12345"})
    assert r.status_code == 200
    assert r.text == "12345"
    assert contexts.store._data == {}
