from __future__ import annotations
import abc
import re
from typing import Iterable
from storybot.domain.models import AttachmentType, IncomingMessage

class Activator(abc.ABC):
    """Decides whether an incoming message qualifies for a story."""

    @abc.abstractmethod
    def matches(self, message: IncomingMessage) -> bool:
        ...

class AttachmentActivator(Activator):
    """Matches messages carrying an attachment, optionally of one type.

    The type comparison is plain equality: "image" never matches "Image".
    """
    def __init__(self, type: AttachmentType | str | None = None):
        self.type = type

    def file(self) -> AttachmentActivator:
        self.type = AttachmentType.file
        return self

    def image(self) -> AttachmentActivator:
        self.type = AttachmentType.image
        return self

    def audio(self) -> AttachmentActivator:
        self.type = AttachmentType.audio
        return self

    def video(self) -> AttachmentActivator:
        self.type = AttachmentType.video
        return self

    def matches(self, message: IncomingMessage) -> bool:
        if not message.has_attachment():
            return False
        if self.type is None:
            return True
        return message.attachment.type == self.type

class ExactActivator(Activator):
    def __init__(self, value: str, case_sensitive: bool = True):
        self.value = value
        self.case_sensitive = case_sensitive

    def matches(self, message: IncomingMessage) -> bool:
        if message.text is None:
            return False
        if self.case_sensitive:
            return message.text == self.value
        return message.text.lower() == self.value.lower()

class ContainsActivator(Activator):
    def __init__(self, needles: str | Iterable[str]):
        self.needles = [needles] if isinstance(needles, str) else list(needles)

    def matches(self, message: IncomingMessage) -> bool:
        if message.text is None:
            return False
        return any(n in message.text for n in self.needles)

class PatternActivator(Activator):
    def __init__(self, pattern: str | re.Pattern[str]):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def matches(self, message: IncomingMessage) -> bool:
        if message.text is None:
            return False
        return self.pattern.search(message.text) is not None

class InArrayActivator(Activator):
    def __init__(self, values: Iterable[str]):
        self.values = list(values)

    def matches(self, message: IncomingMessage) -> bool:
        return message.text is not None and message.text in self.values
