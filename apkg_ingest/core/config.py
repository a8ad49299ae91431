"""
Application configuration.
Values come from environment variables (or .env); every field has a default.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class ImportConfig(BaseSettings):
    """Configuration of the .apkg import pipeline."""

    model_config = SettingsConfigDict(env_prefix="IMPORT_", env_file=".env", extra="ignore")

    # Label used when the package holds no deck besides "Default"
    placeholder_label: str = "Imported Deck"
    # Deck name that never wins the label selection
    default_deck_name: str = "Default"

    # Progress callback cadence (notes between two callbacks)
    progress_interval: int = 500
    tag_sample_size: int = 50

    # Preview mode limits
    preview_limit: int = 10
    preview_front_chars: int = 500
    preview_back_chars: int = 500
    preview_extra_chars: int = 300
    preview_tag_limit: int = 10

    # Upload boundary checks (enforced by the caller)
    max_upload_bytes: int = 100 * 1024 * 1024
    # Uncompressed size limit of the embedded database
    max_database_bytes: int = 1024 * 1024 * 1024
    allowed_extension: str = ".apkg"

    # Field name synonyms, checked in order against lower-cased model field names
    front_field_candidates: list[str] = ["text", "front", "question", "cloze"]
    back_field_candidates: list[str] = ["extra", "back", "answer", "extra / explanation"]
    extra_field_candidates: list[str] = [
        "lecture notes",
        "missed questions",
        "pathoma",
        "boards and beyond",
        "first aid",
    ]
    extra_divider: str = "\n\n---\n\n"


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")

    level: str = "INFO"
    # "console" for development, "json" for production
    format: str = "console"


class AppConfig(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(env_prefix="APP_", env_file=".env", extra="ignore")

    name: str = "apkg-ingest"
    debug: bool = False


class Settings:
    """Aggregates every configuration section."""

    def __init__(self) -> None:
        self.importer = ImportConfig()
        self.logging = LoggingConfig()
        self.app = AppConfig()


@lru_cache
def get_settings() -> Settings:
    """Return the settings singleton (cached)."""
    return Settings()
