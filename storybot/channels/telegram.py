from __future__ import annotations
import json
from typing import Any, Optional
import httpx
from storybot.channels.base import Driver, InvalidRequest, SendResult
from storybot.domain.models import (
    Attachment, AttachmentType, Chat, Contact, IncomingMessage, Keyboard, Location,
    OutgoingMessage, User, Venue,
)
from storybot.observability import metrics
from storybot.observability.logging import get_logger
from storybot.security.auth import verify_secret

log = get_logger("telegram")

DEFAULT_API_BASE = "https://api.telegram.org"
SECRET_TOKEN_HEADER = "X-Telegram-Bot-Api-Secret-Token"

# Payload fields that carry a file, in lookup order.
ATTACHMENT_FIELDS: dict[str, AttachmentType] = {
    "audio": AttachmentType.audio,
    "document": AttachmentType.file,
    "photo": AttachmentType.image,
    "sticker": AttachmentType.image,
    "video": AttachmentType.video,
    "voice": AttachmentType.audio,
}

def _describe(e: httpx.HTTPError) -> str:
    # request URLs embed the bot token, keep them out of logs
    if isinstance(e, httpx.HTTPStatusError):
        return f"HTTP {e.response.status_code}"
    return type(e).__name__

class TelegramDriver(Driver):
    """Telegram Bot API driver (webhook mode).

    Attachments resolve in two steps: ``getFile`` maps the file id to a
    path while the message is built, the binary itself is downloaded only
    when ``Attachment.get_contents`` is awaited.
    """
    name = "telegram"

    def __init__(self, http: httpx.AsyncClient | None = None):
        super().__init__()
        self._http = http
        self._owns_http = http is None

    def get_config(self) -> list[str]:
        return ["token", "secret_token", "api_base"]

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=30.0)
        return self._http

    async def aclose(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    def _api_base(self) -> str:
        return str(self.get_parameter("api_base", DEFAULT_API_BASE)).rstrip("/")

    def _endpoint(self, method: str) -> str:
        return f"{self._api_base()}/bot{self.get_parameter('token')}/{method}"

    def _file_url(self, path: str) -> str:
        return f"{self._api_base()}/file/bot{self.get_parameter('token')}/{path}"

    def _message(self) -> dict[str, Any]:
        return self._request.get("message") or {}

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def verify_request(self) -> InvalidRequest | None:
        message = self._request.get("message")
        if not isinstance(message, dict):
            return InvalidRequest("Invalid payload")
        sender = message.get("from")
        if not isinstance(sender, dict) or sender.get("id") is None:
            return InvalidRequest("Invalid payload")
        if not verify_secret(self.get_parameter("secret_token"), self.get_header(SECRET_TOKEN_HEADER)):
            return InvalidRequest("Invalid secret token")
        return None

    def get_user(self) -> User:
        sender = self._message().get("from") or {}
        parts = [sender.get("first_name"), sender.get("last_name")]
        name = " ".join(p for p in parts if p) or None
        return User(id=str(sender.get("id")), name=name, username=sender.get("username"))

    def get_chat(self) -> Chat:
        chat = self._message().get("chat")
        if not chat:
            # private chats share the sender id
            return Chat(id=self.get_user().id, type="private")
        return Chat(id=str(chat["id"]), title=chat.get("title"), type=chat.get("type"))

    async def get_message(self) -> IncomingMessage:
        message = self._message()
        return IncomingMessage(
            text=message.get("text"),
            attachment=await self._attachment(message),
            location=self._location(message.get("location")),
            venue=self._venue(message.get("venue")),
            contact=self._contact(message.get("contact")),
        )

    async def _attachment(self, message: dict[str, Any]) -> Optional[Attachment]:
        for field, type_ in ATTACHMENT_FIELDS.items():
            payload = message.get(field)
            if not payload:
                continue
            if isinstance(payload, list):
                # photos arrive in several resolutions, largest last
                payload = payload[-1]
            path = await self._file_path(payload["file_id"])
            url = self._file_url(path)
            return Attachment.lazy(type_, url, lambda: self._download(url))
        return None

    async def _file_path(self, file_id: str) -> str:
        response = await self.http.post(self._endpoint("getFile"), data={"file_id": file_id})
        response.raise_for_status()
        return response.json()["result"]["file_path"]

    async def _download(self, url: str) -> bytes:
        response = await self.http.get(url)
        response.raise_for_status()
        metrics.attachment_fetches.labels(driver=self.name).inc()
        log.debug("attachment_downloaded", size=len(response.content))
        return response.content

    @staticmethod
    def _location(payload: Optional[dict[str, Any]]) -> Optional[Location]:
        if not payload:
            return None
        return Location(latitude=payload["latitude"], longitude=payload["longitude"])

    @classmethod
    def _venue(cls, payload: Optional[dict[str, Any]]) -> Optional[Venue]:
        if not payload:
            return None
        return Venue(
            location=cls._location(payload["location"]),
            title=payload["title"],
            address=payload["address"],
            foursquare_id=payload.get("foursquare_id"),
        )

    @staticmethod
    def _contact(payload: Optional[dict[str, Any]]) -> Optional[Contact]:
        if not payload:
            return None
        return Contact(
            phone_number=payload["phone_number"],
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
            user_id=payload.get("user_id"),
        )

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    @staticmethod
    def reply_markup(keyboard: Keyboard) -> dict[str, Any]:
        return {
            "keyboard": [[{"text": button.label} for button in row] for row in keyboard.rows],
            "resize_keyboard": True,
        }

    async def send_message(self, recipient: User, text: str, keyboard: Keyboard | None = None) -> SendResult:
        form = {"chat_id": recipient.id, "text": text}
        if keyboard is not None:
            form["reply_markup"] = json.dumps(self.reply_markup(keyboard))
        outgoing = OutgoingMessage(recipient=recipient, text=text, keyboard=keyboard)
        try:
            response = await self.http.post(self._endpoint("sendMessage"), data=form)
            response.raise_for_status()
        except httpx.HTTPError as e:
            error = _describe(e)
            metrics.send_failures.labels(driver=self.name).inc()
            log.warning("send_failed", driver=self.name, chat_id=recipient.id, err=error)
            return SendResult(message=outgoing, error=error)
        return SendResult(message=outgoing)

    async def install_webhook(self, url: str) -> None:
        form = {"url": url}
        secret = self.get_parameter("secret_token")
        if secret:
            form["secret_token"] = secret
        await self.http.post(self._endpoint("setWebhook"), data=form)
        log.info("webhook_installed", driver=self.name, url=url)
