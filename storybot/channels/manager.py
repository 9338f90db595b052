from __future__ import annotations
from typing import Callable, Mapping
from storybot.channels.base import Driver
from storybot.channels.telegram import TelegramDriver
from storybot.config import ChannelSettings
from storybot.domain.models import Channel

DriverFactory = Callable[[], Driver]

class UnknownChannel(LookupError):
    pass

class UnknownDriver(LookupError):
    pass

class ChannelManager:
    """Configured channels and the drivers that serve them."""
    def __init__(self, channels: Mapping[str, ChannelSettings] | None = None):
        self._drivers: dict[str, DriverFactory] = {"telegram": TelegramDriver}
        self._channels: dict[str, Channel] = {}
        for name, cfg in (channels or {}).items():
            self.add(Channel(name=name, driver=cfg.driver, parameters=cfg.parameters))

    def register_driver(self, name: str, factory: DriverFactory) -> None:
        self._drivers[name] = factory

    def add(self, channel: Channel) -> None:
        self._channels[channel.name] = channel

    def get(self, name: str) -> Channel:
        channel = self._channels.get(name)
        if channel is None:
            raise UnknownChannel(name)
        return channel

    def all(self) -> list[Channel]:
        return list(self._channels.values())

    def create_driver(self, channel: Channel) -> Driver:
        factory = self._drivers.get(channel.driver)
        if factory is None:
            raise UnknownDriver(channel.driver)
        return factory()
