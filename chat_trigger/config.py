"""Configuration management for the chat trigger monitor."""

import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class SelectorConfig(BaseModel):
    """CSS selectors used to read chat entries from the rendered page."""
    message: str = Field(default=".chat-message", description="Selector for one chat entry")
    username: str = Field(default=".chat-message-username", description="Username selector inside an entry")
    text: str = Field(default=".chat-message-text", description="Message text selector inside an entry")


class ChatTriggerConfig(BaseModel):
    """Main configuration for the chat trigger monitor."""

    # Server settings
    host: str = Field(default="0.0.0.0", description="Bind address for the control/listener server")
    port: int = Field(default=8080, description="Port for the control API and listener channel")
    log_level: str = Field(default="INFO", description="Logging level")

    # Polling settings
    poll_interval_seconds: float = Field(default=3.0, gt=0, description="Seconds between chat samples")
    seen_retain: int = Field(default=50, ge=0, description="Seen identities kept before each tick's additions")

    # Browser settings
    browser_headless: bool = Field(default=True, description="Run browser in headless mode")
    navigation_timeout_seconds: int = Field(default=60, description="Page navigation timeout in seconds")
    chromium_path: Optional[str] = Field(default=None, description="Explicit Chromium executable")
    browser_args: list[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
        ],
        description="Extra Chromium launch arguments",
    )
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)

    # Listener settings
    listener_queue_size: int = Field(default=100, ge=1, description="Pending events kept per listener")
    listener_send_timeout_seconds: float = Field(default=5.0, gt=0, description="Max seconds for one send")


def load_config(config_path: Optional[str] = None) -> ChatTriggerConfig:
    """Load configuration from file or environment variables."""
    if config_path is None:
        config_path = os.getenv("CHAT_TRIGGER_CONFIG", "config/chat_trigger.yaml")

    config_data = {}

    # Load from file if exists
    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}

    # Override with environment variables
    env_overrides = {
        "host": os.getenv("HOST"),
        "port": os.getenv("PORT"),
        "log_level": os.getenv("LOG_LEVEL"),
        "poll_interval_seconds": os.getenv("POLL_INTERVAL_SECONDS"),
        "browser_headless": os.getenv("BROWSER_HEADLESS"),
        "navigation_timeout_seconds": os.getenv("NAVIGATION_TIMEOUT_SECONDS"),
        "chromium_path": os.getenv("CHROMIUM_PATH"),
    }

    # Filter out None values and convert types
    for key, value in env_overrides.items():
        if value is not None:
            if key in ["port", "navigation_timeout_seconds"]:
                value = int(value)
            elif key in ["poll_interval_seconds"]:
                value = float(value)
            elif key in ["browser_headless"]:
                value = value.lower() in ("true", "1", "yes")
            config_data[key] = value

    return ChatTriggerConfig(**config_data)


def get_config() -> ChatTriggerConfig:
    """Get the process configuration."""
    return load_config()
