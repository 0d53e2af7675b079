"""Settings resolution: environment over config file over defaults."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Literal

import tomlkit
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from linrelay.errors import ConfigurationError

CONFIG_PATH = Path.home() / ".config" / "linrelay" / "config.toml"
ENV_PREFIX = "LINRELAY_"


class RelaySettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "development"  # "development" | "production"
    log_level: str = "INFO"

    # Chat completion
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 500
    openai_follow_up_max_tokens: int = 300
    openai_timeout: float = 30.0
    router_profile: Literal["product_manager", "assistant"] = "product_manager"

    # Linear
    linear_api_key: SecretStr | None = None  # seeds the default credential
    linear_timeout: float = 30.0

    # Relay
    host: str = "0.0.0.0"
    port: int = 3001
    allowed_origins: list[str] = ["http://localhost:3000"]
    auth_token: SecretStr | None = None

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/linrelay/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _file_defaults(config: Mapping) -> dict:
    """Scalar keys of the config file that are not shadowed by an environment variable."""
    fields = RelaySettings.model_fields
    return {
        k: (v.unwrap() if hasattr(v, "unwrap") else v)
        for k, v in config.items()
        if k in fields and f"{ENV_PREFIX}{k.upper()}" not in os.environ
    }


def get_settings() -> RelaySettings:
    """Resolve and validate settings.

    Precedence (highest to lowest):
    1. LINRELAY_* environment variables
    2. keys in ~/.config/linrelay/config.toml
    3. .env in cwd
    4. field defaults
    """
    settings = RelaySettings(**_file_defaults(_load_toml()))

    if not settings.is_development and not settings.openai_api_key:
        raise ConfigurationError(
            f"Missing OpenAI credentials. Set {ENV_PREFIX}OPENAI_API_KEY or "
            f"openai_api_key in {CONFIG_PATH} (required when environment={settings.environment!r})"
        )

    return settings
