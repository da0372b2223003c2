"""Settings dataclass and JSON persistence with environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

__all__ = [
    "Settings",
    "SettingsStore",
    "redact_secret",
]

LOGGER = logging.getLogger(__name__)
_DEFAULT_SETTINGS_PATH = Path.home() / ".toolstream" / "settings.json"
_SETTINGS_VERSION = 1
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
# Never written to disk; supply through the environment or overrides.
_TRANSIENT_FIELDS = frozenset({"api_key"})


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUE_VALUES


# env var -> (field, parser); parsers raise ValueError on bad input.
_ENV_FIELDS: Mapping[str, tuple[str, Callable[[str], Any]]] = {
    "TOOLSTREAM_API_KEY": ("api_key", str),
    "TOOLSTREAM_BASE_URL": ("base_url", str),
    "TOOLSTREAM_MODEL": ("model", str),
    "TOOLSTREAM_ORGANIZATION": ("organization", str),
    "TOOLSTREAM_SYSTEM_PROMPT": ("system_prompt", str),
    "TOOLSTREAM_DEBUG_LOGGING": ("debug_logging", _parse_bool),
    "TOOLSTREAM_REQUEST_TIMEOUT": ("request_timeout", float),
    "TOOLSTREAM_TEMPERATURE": ("temperature", float),
    "TOOLSTREAM_MAX_TOOL_ITERATIONS": ("max_tool_iterations", int),
}


@dataclass(slots=True)
class Settings:
    """Runtime configuration for the backend client and the iteration engine."""

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    organization: str | None = None
    temperature: float | None = None
    request_timeout: float = 90.0
    max_retries: int = 3
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 6.0
    max_tool_iterations: int | None = None
    system_prompt: str | None = None
    default_headers: dict[str, str] = field(default_factory=dict)
    debug_logging: bool = False


def redact_secret(value: str | None, *, visible: int = 4) -> str:
    """Mask all but the first ``visible`` characters of a secret."""

    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}{'*' * (len(value) - visible)}"


class SettingsStore:
    """Persistence adapter for :class:`Settings`.

    Precedence, lowest first: defaults, the JSON file, explicit ``overrides``
    passed to :meth:`load`, then ``TOOLSTREAM_*`` environment variables.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        values = self._read_file()
        values.update(_known_fields(overrides or {}, allow_transient=True))
        values.update(self._read_environment())
        try:
            settings = Settings(**values)
        except TypeError as exc:
            LOGGER.warning("Ignoring invalid settings (%s); using defaults", exc)
            settings = Settings()
        settings = _sanitize(settings)
        LOGGER.debug(
            "Settings loaded from %s (model=%s, base_url=%s, api_key=%s)",
            self._path,
            settings.model,
            settings.base_url,
            redact_secret(settings.api_key) or "<unset>",
        )
        return settings

    def save(self, settings: Settings) -> Path:
        """Write settings atomically, without the API key."""

        data = {key: value for key, value in asdict(settings).items() if key not in _TRANSIENT_FIELDS}
        data["version"] = _SETTINGS_VERSION
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_suffix(".tmp")
        staging.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        staging.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_file(self) -> Dict[str, Any]:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain a JSON object", self._path)
            return {}
        return _known_fields(payload, allow_transient=False)

    @staticmethod
    def _read_environment() -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for env_name, (field_name, parse) in _ENV_FIELDS.items():
            raw = os.environ.get(env_name)
            if raw is None:
                continue
            try:
                values[field_name] = parse(raw)
            except ValueError:
                LOGGER.warning("Environment override %s=%r is not valid for %s", env_name, raw, field_name)
        return values


def _known_fields(values: Mapping[str, Any], *, allow_transient: bool) -> Dict[str, Any]:
    allowed = {item.name for item in fields(Settings)}
    if not allow_transient:
        allowed -= _TRANSIENT_FIELDS
    return {key: value for key, value in values.items() if key in allowed and value is not None}


def _sanitize(settings: Settings) -> Settings:
    cap = settings.max_tool_iterations
    if cap is not None and (not isinstance(cap, int) or isinstance(cap, bool) or cap < 1):
        LOGGER.warning("max_tool_iterations=%r is not a positive integer; treating it as unbounded", cap)
        settings = replace(settings, max_tool_iterations=None)
    return settings
