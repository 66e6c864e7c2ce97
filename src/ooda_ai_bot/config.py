"""Configuration management using Pydantic settings with optional file persistence."""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Paths ---

APP_NAME = "ooda-ai-bot"


def get_config_dir() -> Path:
    """Get the configuration directory (e.g. ~/.config/ooda-ai-bot)."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home() / ".config")).expanduser()
    else:
        base = Path("~/.config").expanduser()

    return base / APP_NAME


CONFIG_FILE = get_config_dir() / "config.json"


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load settings from the JSON config file if it exists."""
    path = path or CONFIG_FILE
    if not path.exists():
        return {}

    try:
        text = path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        data = json.loads(text)
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config_file(config_data: dict[str, Any], path: Path | None = None) -> Path:
    """Save settings to the JSON config file."""
    path = path or CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config_data, indent=2), encoding="utf-8")
    return path


class QueryConfig(BaseSettings):
    """Vectara query tuning. Immutable once built; ranges are not clamped."""

    model_config = SettingsConfigDict(env_prefix="VECTARA_", env_file=".env", extra="ignore", frozen=True)

    customer_id: str = Field(default="")
    api_key: Optional[SecretStr] = Field(default=None, description="Vectara API key, sent as x-api-key")
    corpus_key: str = Field(default="", description="Corpus to search")
    api_url: str = Field(default="https://api.vectara.io/v2/query")

    # Search settings
    search_depth: int = Field(default=100, description="Number of results to search through")
    max_results: int = Field(default=20, description="Number of results to use in generation")
    max_tokens: int = Field(default=300, description="Maximum tokens in generated response")
    max_response_chars: int = Field(default=4000, description="Maximum characters in response")

    # Generation settings
    temperature: float = Field(default=0.5)
    frequency_penalty: float = Field(default=0.3, description="Reduces repetition of similar phrases")
    presence_penalty: float = Field(default=0.3, description="Encourages covering new topics")
    response_language: str = Field(default="eng")
    generation_preset_name: str = Field(default="vectara-summary-ext-24-05-med-omni")

    # Reranking settings
    reranker_type: str = Field(default="mmr")
    relevance_threshold: float = Field(default=0.25, description="Minimum relevance score for results")
    diversity_bias: float = Field(default=0.2, description="Controls variety in search results (0.0-1.0)")

    timeout: float = Field(default=30.0, description="Seconds to wait for the Vectara API")

    def get_api_key(self) -> str:
        """Extract the API key value from SecretStr."""
        return self.api_key.get_secret_value() if self.api_key else ""


class SlackSettings(BaseSettings):
    """Slack app credentials."""

    model_config = SettingsConfigDict(env_prefix="SLACK_", env_file=".env", extra="ignore")

    bot_token: Optional[SecretStr] = Field(default=None, description="xoxb- bot token")
    app_token: Optional[SecretStr] = Field(default=None, description="xapp- token for Socket Mode")
    signing_secret: Optional[SecretStr] = Field(default=None)

    def missing(self) -> list[str]:
        """Names of the env vars needed for Socket Mode that are unset."""
        names = []
        if not self.bot_token:
            names.append("SLACK_BOT_TOKEN")
        if not self.app_token:
            names.append("SLACK_APP_TOKEN")
        return names


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="OODA_LOG_", env_file=".env", extra="ignore")

    level: str = Field(default="INFO")
    file: Optional[str] = Field(default=None, description="Also append JSON log lines to this file")


class AppSettings(BaseSettings):
    """Root application settings.

    Priority: Environment Variables > Config File > Defaults
    """

    model_config = SettingsConfigDict(env_prefix="OODA_", extra="ignore")

    vectara: QueryConfig = Field(default_factory=QueryConfig)
    slack: SlackSettings = Field(default_factory=SlackSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def save(self, path: Path | None = None) -> Path:
        """Save current configuration to file (excluding secrets)."""
        data = self.model_dump(mode="json", exclude_none=True)
        data.get("vectara", {}).pop("api_key", None)
        data.pop("slack", None)
        return save_config_file(data, path)


def _merge_env(section: type[BaseSettings], file_data: dict[str, Any]) -> BaseSettings:
    """Build a section from file values, letting environment variables win."""
    env_values = section().model_dump(exclude_unset=True)
    return section(**{**file_data, **env_values})


def load_settings(path: Path | None = None) -> AppSettings:
    """Load settings with file config as base, env vars overlay."""
    file_data = load_config_file(path)
    return AppSettings(
        vectara=_merge_env(QueryConfig, file_data.get("vectara") or {}),
        slack=_merge_env(SlackSettings, file_data.get("slack") or {}),
        logging=_merge_env(LoggingSettings, file_data.get("logging") or {}),
    )
