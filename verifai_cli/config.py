import logging
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LLM_MODEL = "claude-sonnet-4-5"
DEFAULT_SENTIMENT_MODEL = "cardiffnlp/twitter-roberta-base-sentiment-latest"
DEFAULT_STORE_PATH = Path.home() / ".verifai"

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_VIDEO_BYTES = 50 * 1024 * 1024
MAX_DOCUMENT_BYTES = 50 * 1024 * 1024


def _env(name: str, field: str):
    return Field(default="", validation_alias=AliasChoices(name, field))


class Settings(BaseSettings):
    """
    Read from VERIFAI_* environment variables (and a .env file). The
    third-party credentials keep their usual unprefixed names.
    """
    model_config = SettingsConfigDict(
        env_prefix="VERIFAI_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    anthropic_api_key: str = _env("ANTHROPIC_API_KEY", "anthropic_api_key")
    llm_model: str = DEFAULT_LLM_MODEL
    sentiment_model: str = DEFAULT_SENTIMENT_MODEL
    google_search_api_key: str = _env("GOOGLE_SEARCH_API_KEY", "google_search_api_key")
    google_search_engine_id: str = _env("GOOGLE_SEARCH_ENGINE_ID", "google_search_engine_id")
    store_path: Path = DEFAULT_STORE_PATH
    min_text_length: int = Field(default=50, ge=0)
    max_text_length: int = Field(default=50000, gt=0)
    llm_weight: float = Field(default=0.6, ge=0)
    heuristic_weight: float = Field(default=0.4, ge=0)
    search_timeout: float = Field(default=5.0, gt=0)
    log_level: str = "WARNING"

    @field_validator("store_path")
    @classmethod
    def _expand_store_path(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value) -> str:
        return str(value).upper()


def load_settings(env_file=".env") -> Settings:
    """Raises pydantic.ValidationError when a variable has the wrong type."""
    return Settings(_env_file=env_file)


def is_configured(value: str) -> bool:
    return bool(value) and value != "undefined"


def api_status(settings: Settings) -> dict:
    """Which backends have the credentials they need."""
    return {
        "llm": is_configured(settings.anthropic_api_key),
        "sentiment": bool(settings.sentiment_model),
        "search": is_configured(settings.google_search_api_key)
        and is_configured(settings.google_search_engine_id),
        "store": True,
    }


def setup_logging(level: str = "WARNING"):
    from rich.console import Console
    from rich.logging import RichHandler

    # stderr keeps --json output on stdout clean
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )
