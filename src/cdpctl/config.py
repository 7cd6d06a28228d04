"""Configuration system for cdpctl.

Settings come from environment variables (optionally from a ``.env`` file).
``CONFIG`` re-reads the environment on every access so tests and long-lived
processes observe changes without reloading the module.
"""

import logging
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = logging.getLogger(__name__)


class EnvConfig(BaseSettings):
    """Environment variable configuration using pydantic-settings."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='allow'
    )

    # Logging
    CDPCTL_LOGGING_LEVEL: str = Field(default='info')
    CDP_LOGGING_LEVEL: str = Field(default='WARNING')

    # Session defaults
    CDPCTL_CONTROL_URL: str | None = Field(default=None)
    CDPCTL_SLOWMOTION: float = Field(default=0.0, ge=0)
    CDPCTL_TRACE: bool = Field(default=False)
    CDPCTL_CONNECT_TIMEOUT: float = Field(default=30.0, ge=0)


class Config:
    """Configuration class backed by the process environment.

    Re-reads environment variables on every access for flexibility.
    """

    _instance: 'Config | None' = None

    def __new__(cls) -> 'Config':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def LOGGING_LEVEL(self) -> str:
        return os.getenv('CDPCTL_LOGGING_LEVEL', 'info').lower()

    @property
    def CDP_LOGGING_LEVEL(self) -> str:
        return os.getenv('CDP_LOGGING_LEVEL', 'WARNING').upper()

    def load_config(self) -> dict[str, Any]:
        """Load session defaults, validated through EnvConfig.

        Raises:
            pydantic.ValidationError: If a session variable holds an invalid value.
        """
        env_config = EnvConfig()
        return {
            'control_url': env_config.CDPCTL_CONTROL_URL or None,
            'slowmotion': env_config.CDPCTL_SLOWMOTION,
            'trace': env_config.CDPCTL_TRACE,
            'connect_timeout': env_config.CDPCTL_CONNECT_TIMEOUT,
        }


# Create singleton instance
CONFIG = Config()
