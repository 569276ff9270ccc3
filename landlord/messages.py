"""
Localised message catalogues.

A language is a flat JSON object mapping message ids to text, stored as
``<languages_dir>/<Language>.json``. Texts may contain ``{named}``
placeholders filled in by the engine.
"""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Dict, List, Optional, Union

from landlord.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "English"


def default_languages_dir() -> Path:
    """Directory of the bundled languages."""
    return Path(str(resources.files("landlord") / "data" / "lang"))


def available_languages(languages_dir: Optional[Union[str, Path]] = None) -> List[str]:
    directory = Path(languages_dir) if languages_dir is not None else default_languages_dir()
    if not directory.is_dir():
        return []
    return sorted(path.stem for path in directory.glob("*.json"))


class MessageCatalog:
    """Messages of one language, looked up by id."""

    def __init__(self, language: str, texts: Dict[str, str]):
        self.language = language
        self.texts = texts

    @classmethod
    def load(cls, language: str = DEFAULT_LANGUAGE, languages_dir: Optional[Union[str, Path]] = None) -> "MessageCatalog":
        """
        Load a language file.

        Raises:
            ConfigurationError: the language does not exist or its file is malformed
        """
        directory = Path(languages_dir) if languages_dir is not None else default_languages_dir()
        path = directory / f"{language}.json"
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            available = ", ".join(available_languages(directory)) or "none"
            raise ConfigurationError(f"Unknown language {language!r} (available: {available})") from exc
        except OSError as exc:
            raise ConfigurationError(f"Cannot read language file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Language file {path} is not valid JSON: {exc}") from exc

        if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
            raise ConfigurationError(f"Language file {path} must map message ids to strings")

        logger.debug(f"Loaded {len(data)} messages for {language}")
        return cls(language, data)

    def lookup(self, message_id: str) -> str:
        text = self.texts.get(message_id)
        if text is None:
            logger.debug(f"Missing message {message_id!r} in {self.language}")
            return message_id
        return text

    def __contains__(self, message_id: str) -> bool:
        return message_id in self.texts
