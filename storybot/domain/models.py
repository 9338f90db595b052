"""Provider-agnostic message model shared by every driver."""
from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


# ============================================================================
# Channels and participants
# ============================================================================


class Channel(BaseModel):
    """A configured bot endpoint for one provider."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Stable identifier, used as the context lookup key")
    driver: str = Field(description="Driver name, e.g. 'telegram'")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Provider credentials")


class Chat(BaseModel):
    """Conversation thread on the provider side. The id is opaque outside the driver."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: Optional[str] = None
    type: Optional[str] = None


class User(BaseModel):
    """Human participant."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    username: Optional[str] = None


# ============================================================================
# Message payload
# ============================================================================


class AttachmentType(str, Enum):
    """Closed, provider-independent set of attachment kinds."""

    file = "file"
    image = "image"
    audio = "audio"
    video = "video"


ContentsLoader = Callable[[], Awaitable[bytes]]


class Attachment(BaseModel):
    """Media reference. Contents are fetched on first access, never before."""

    model_config = ConfigDict(frozen=True)

    type: AttachmentType
    path: str = Field(description="Fully-qualified remote URL")

    _loader: Optional[ContentsLoader] = PrivateAttr(default=None)
    _contents: Optional[bytes] = PrivateAttr(default=None)

    @classmethod
    def create(cls, type: AttachmentType | str, path: str, contents: bytes | None = None) -> Attachment:
        attachment = cls(type=type, path=path)
        attachment._contents = contents
        return attachment

    @classmethod
    def lazy(cls, type: AttachmentType | str, path: str, loader: ContentsLoader) -> Attachment:
        attachment = cls(type=type, path=path)
        attachment._loader = loader
        return attachment

    @classmethod
    def possible_types(cls) -> list[str]:
        return [t.value for t in AttachmentType]

    @property
    def loaded(self) -> bool:
        return self._contents is not None

    async def get_contents(self) -> bytes | None:
        if self._contents is None and self._loader is not None:
            self._contents = await self._loader()
            self._loader = None
        return self._contents

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.value, "path": self.path}


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class Venue(BaseModel):
    model_config = ConfigDict(frozen=True)

    location: Location
    title: str
    address: str
    foursquare_id: Optional[str] = None


class Contact(BaseModel):
    model_config = ConfigDict(frozen=True)

    phone_number: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_id: Optional[int | str] = None


class IncomingMessage(BaseModel):
    """One normalized inbound turn. Fields the provider did not send stay None."""

    model_config = ConfigDict(frozen=True)

    text: Optional[str] = None
    attachment: Optional[Attachment] = None
    location: Optional[Location] = None
    venue: Optional[Venue] = None
    contact: Optional[Contact] = None

    def has_attachment(self) -> bool:
        return self.attachment is not None


# ============================================================================
# Outbound
# ============================================================================


class Button(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str


class Keyboard(BaseModel):
    """Reply keyboard, one inner list per row."""

    model_config = ConfigDict(frozen=True)

    rows: list[list[Button]] = Field(default_factory=list)

    @classmethod
    def basic(cls, buttons: list[Button]) -> Keyboard:
        return cls(rows=[list(buttons)])

    def buttons(self) -> list[Button]:
        return [b for row in self.rows for b in row]


class OutgoingMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    recipient: User
    text: str
    keyboard: Optional[Keyboard] = None
