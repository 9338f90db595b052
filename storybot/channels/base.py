from __future__ import annotations
import abc
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from storybot.domain.models import Chat, IncomingMessage, Keyboard, OutgoingMessage, User

@dataclass(frozen=True)
class InvalidRequest:
    """Structural validation failure of a webhook payload."""
    message: str

@dataclass(frozen=True)
class SendResult:
    """Outcome of an outbound send. Transport errors end up in ``error``, never raised."""
    message: OutgoingMessage
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

class Driver(abc.ABC):
    """Provider driver interface.

    A driver is filled with the channel parameters and the raw webhook
    request, then translates between the provider wire format and the
    normalized message model.
    """
    name: str = ""

    def __init__(self) -> None:
        self._parameters: dict[str, Any] = {}
        self._request: dict[str, Any] = {}
        self._headers: dict[str, str] = {}

    def fill(
        self,
        parameters: Mapping[str, Any],
        request: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Driver:
        self._parameters = {k: parameters.get(k) for k in self.get_config()}
        self._request = dict(request or {})
        self._headers = dict(headers or {})
        return self

    @abc.abstractmethod
    def get_config(self) -> list[str]:
        """Parameter names this driver reads from the channel configuration."""

    def get_parameter(self, name: str, default: Any = None) -> Any:
        value = self._parameters.get(name)
        return default if value is None else value

    def get_request(self) -> dict[str, Any]:
        return self._request

    def get_headers(self) -> dict[str, str]:
        return self._headers

    def get_header(self, name: str) -> str | None:
        # header names are case-insensitive on the wire
        wanted = name.lower()
        for key, value in self._headers.items():
            if key.lower() == wanted:
                return value
        return None

    @abc.abstractmethod
    def verify_request(self) -> InvalidRequest | None:
        """Validate the payload structure locally. Returns None when valid."""

    @abc.abstractmethod
    def get_chat(self) -> Chat:
        ...

    @abc.abstractmethod
    def get_user(self) -> User:
        ...

    @abc.abstractmethod
    async def get_message(self) -> IncomingMessage:
        ...

    @abc.abstractmethod
    async def send_message(self, recipient: User, text: str, keyboard: Keyboard | None = None) -> SendResult:
        ...

    @abc.abstractmethod
    async def install_webhook(self, url: str) -> None:
        ...

    async def aclose(self) -> None:
        """Release transport resources owned by the driver."""
        return None

class WebhookVerification(abc.ABC):
    """Optional capability for providers with a challenge/response handshake."""

    @abc.abstractmethod
    def is_verification_request(self) -> bool:
        ...

    @abc.abstractmethod
    def verify_webhook(self) -> str:
        ...
