"""
Session configuration using pydantic-settings.

Environment variables (prefix: LANDLORD_), also read from ``.env``:
    LANDLORD_SAVES_DIR     - Directory of saved games (default: saves)
    LANDLORD_LANGUAGES_DIR - Directory of language files (default: bundled)
    LANDLORD_LANGUAGE      - Language name, e.g. English (default: English)
    LANDLORD_LOG_LEVEL     - Logging level (default: WARNING)
    LANDLORD_AUTOSAVE      - Save after every turn (default: true)
    LANDLORD_BOARD_FILE    - Board data file (default: bundled standard board)
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from landlord.messages import DEFAULT_LANGUAGE


class LandlordSettings(BaseSettings):
    """Where saves and languages live, and how the session behaves."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="LANDLORD_",
    )

    saves_dir: Path = Field(
        default=Path("saves"),
        description="Directory holding one JSON file per saved game.",
    )
    languages_dir: Optional[Path] = Field(
        default=None,
        description="Directory of <Language>.json files; the bundled languages when unset.",
    )
    language: str = Field(
        default=DEFAULT_LANGUAGE,
        min_length=1,
        description="Name of the language file to use.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Standard logging level name.",
    )
    autosave: bool = Field(
        default=True,
        description="Save the game after every completed turn.",
    )
    board_file: Optional[Path] = Field(
        default=None,
        description="Board and card data file; the bundled standard board when unset.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = str(value).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level


@lru_cache
def get_settings() -> LandlordSettings:
    """Return cached settings instance."""
    return LandlordSettings()
