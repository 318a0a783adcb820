"""Application configuration defaults and the settings file."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List

from docscreener.utils.text import parse_keywords

LOGGER = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_MAX_TOKENS = 200
DEFAULT_SYSTEM_PROMPT = (
    "You are a program director for an otolaryngology residency program. "
    "Your job is to read through information/applications and summarize the "
    "presence of a specific attribute in their application."
)


class ConfigError(ValueError):
    """Raised when the settings file cannot be understood."""


def default_settings_path() -> Path:
    """Settings live next to the user's documents."""
    return Path.home() / "Documents" / "DocScreener" / "settings.json"


@dataclass(slots=True)
class AppConfig:
    api_key: str = ""
    model_id: str = ""
    assistant_prompt: str = ""
    max_tokens: int = DEFAULT_MAX_TOKENS
    keywords: List[str] = field(default_factory=list)
    include_prompt_in_output: bool = True
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    api_base: str = DEFAULT_API_BASE
    timeout: float = 60.0

    def __post_init__(self) -> None:
        if isinstance(self.keywords, str):
            self.keywords = parse_keywords(self.keywords)
        if not isinstance(self.keywords, list) or not all(
            isinstance(keyword, str) for keyword in self.keywords
        ):
            raise ConfigError(f"keywords must be a string or a list of strings, got {self.keywords!r}")
        # bool is an int subclass
        if not isinstance(self.max_tokens, int) or isinstance(self.max_tokens, bool):
            raise ConfigError(f"max_tokens must be an integer, got {self.max_tokens!r}")
        if not isinstance(self.include_prompt_in_output, bool):
            raise ConfigError(
                f"include_prompt_in_output must be true or false, got {self.include_prompt_in_output!r}"
            )
        if self.max_tokens < 1:
            raise ConfigError(f"max_tokens must be positive, got {self.max_tokens}")

    @property
    def keyword_text(self) -> str:
        return ",".join(self.keywords)

    @classmethod
    def load(cls, path: Path | None = None) -> "AppConfig":
        """Read settings from JSON, falling back to defaults when absent."""
        path = Path(path) if path is not None else default_settings_path()
        if not path.exists():
            LOGGER.debug("No settings file at %s, using defaults", path)
            return cls()

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Unable to read settings {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"Settings file {path} must contain a JSON object")

        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {key: value for key, value in raw.items() if key in known}
        try:
            return cls(**values)
        except TypeError as exc:
            raise ConfigError(f"Invalid settings in {path}: {exc}") from exc

    def save(self, path: Path | None = None) -> Path:
        path = Path(path) if path is not None else default_settings_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")
        return path
