from __future__ import annotations
from typing import Any
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class ChannelSettings(BaseModel):
    driver: str = Field(description="Driver name, e.g. 'telegram'.")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Provider credentials.")

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SBOT_", env_file=".env", extra="ignore")

    # Core
    data_dir: str = Field(default="./data")
    sqlite_path: str = Field(default="./data/storybot.sqlite")
    story_dir: str = Field(default="./stories")
    context_store: str = Field(default="memory", description="memory|sqlite")

    # Network
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080)
    webhook_path: str = Field(default="/channels/{channel}/webhook")
    health_path: str = Field(default="/healthz")
    metrics_path: str = Field(default="/metrics")

    # Channels, keyed by channel name. JSON in env:
    # SBOT_CHANNELS='{"tg": {"driver": "telegram", "parameters": {"token": "..."}}}'
    channels: dict[str, ChannelSettings] = Field(default_factory=dict)

    # Logging
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True)

def load_settings() -> Settings:
    return Settings()
