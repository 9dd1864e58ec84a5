"""Audit configuration module."""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AUDIO_EXTENSIONS = ["wav", "mp3", "flac", "ogg", "oga", "opus", "m4a", "aac", "aif", "aiff"]


class Settings(BaseSettings):
    """Audit settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    root: Path = Field(default=Path("."), alias="XC_AUDIT_ROOT")
    sounds_dir: str = Field(default="sounds", alias="XC_AUDIT_SOUNDS_DIR")
    manifest_name: str = Field(default="index.json", alias="XC_AUDIT_MANIFEST")
    audio_extensions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_AUDIO_EXTENSIONS),
        alias="XC_AUDIT_AUDIO_EXTENSIONS",
    )
    required_fields: List[str] = Field(
        default_factory=lambda: ["lic", "rec"],
        alias="XC_AUDIT_REQUIRED_FIELDS",
    )

    logging_json: bool = Field(default=False, alias="LOGGING_JSON")
    log_level: str = Field(default="WARNING", alias="LOG_LEVEL")

    @property
    def sounds_path(self) -> Path:
        return self.root / self.sounds_dir

    @property
    def manifest_path(self) -> Path:
        return self.root / self.manifest_name

    def normalised_extensions(self) -> set[str]:
        return {ext.lower().lstrip(".") for ext in self.audio_extensions if ext.strip()}


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
