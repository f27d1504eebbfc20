"""Configuration loading and validation for the qualitative coding workbench."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class SettingsError(ValueError):
    """Raised when settings validation fails."""


def _require_mapping(data: Dict[str, Any], key: str, path: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        raise SettingsError(f"Missing required field: {path}.{key}")
    if not isinstance(value, dict):
        raise SettingsError(f"Expected mapping for field: {path}.{key}")
    return value


def _require_value(data: Dict[str, Any], key: str, path: str) -> Any:
    if key not in data or data.get(key) is None:
        raise SettingsError(f"Missing required field: {path}.{key}")
    return data[key]


def _require_str(data: Dict[str, Any], key: str, path: str) -> str:
    value = _require_value(data, key, path)
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"Expected non-empty string for field: {path}.{key}")
    return value


def _require_int(data: Dict[str, Any], key: str, path: str) -> int:
    value = _require_value(data, key, path)
    if not isinstance(value, int) or isinstance(value, bool):
        raise SettingsError(f"Expected integer for field: {path}.{key}")
    return value


def _require_number(data: Dict[str, Any], key: str, path: str) -> float:
    value = _require_value(data, key, path)
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise SettingsError(f"Expected number for field: {path}.{key}")
    return float(value)


def _require_bool(data: Dict[str, Any], key: str, path: str) -> bool:
    value = _require_value(data, key, path)
    if not isinstance(value, bool):
        raise SettingsError(f"Expected boolean for field: {path}.{key}")
    return value


def _require_list(data: Dict[str, Any], key: str, path: str) -> List[Any]:
    value = _require_value(data, key, path)
    if not isinstance(value, list):
        raise SettingsError(f"Expected list for field: {path}.{key}")
    return value


def _require_color(data: Dict[str, Any], key: str, path: str) -> str:
    value = _require_str(data, key, path)
    if not _HEX_COLOR.match(value):
        raise SettingsError(f"Expected hex color for field: {path}.{key}, got: {value!r}")
    return value


@dataclass(frozen=True)
class LLMSettings:
    provider: str
    model: str
    temperature: float
    max_tokens: int


@dataclass(frozen=True)
class AnnotationSettings:
    palette: List[str]
    placeholder_color: str
    context_chars: int


@dataclass(frozen=True)
class ObservabilitySettings:
    log_level: str
    structured_logging: bool


@dataclass(frozen=True)
class PersistenceSettings:
    snapshot_path: str


@dataclass(frozen=True)
class Settings:
    llm: LLMSettings
    annotation: AnnotationSettings
    observability: ObservabilitySettings
    persistence: Optional[PersistenceSettings] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        if not isinstance(data, dict):
            raise SettingsError("Settings root must be a mapping")

        llm = _require_mapping(data, "llm", "settings")
        annotation = _require_mapping(data, "annotation", "settings")
        observability = _require_mapping(data, "observability", "settings")

        palette = _require_list(annotation, "palette", "annotation")
        for index, color in enumerate(palette):
            if not isinstance(color, str) or not _HEX_COLOR.match(color):
                raise SettingsError(
                    f"Expected hex color for field: annotation.palette[{index}], got: {color!r}"
                )

        persistence_settings = None
        if "persistence" in data:
            persistence = _require_mapping(data, "persistence", "settings")
            persistence_settings = PersistenceSettings(
                snapshot_path=_require_str(persistence, "snapshot_path", "persistence"),
            )

        settings = cls(
            llm=LLMSettings(
                provider=_require_str(llm, "provider", "llm"),
                model=_require_str(llm, "model", "llm"),
                temperature=_require_number(llm, "temperature", "llm"),
                max_tokens=_require_int(llm, "max_tokens", "llm"),
            ),
            annotation=AnnotationSettings(
                palette=[str(color) for color in palette],
                placeholder_color=_require_color(annotation, "placeholder_color", "annotation"),
                context_chars=_require_int(annotation, "context_chars", "annotation"),
            ),
            observability=ObservabilitySettings(
                log_level=_require_str(observability, "log_level", "observability"),
                structured_logging=_require_bool(observability, "structured_logging", "observability"),
            ),
            persistence=persistence_settings,
        )

        return settings


def validate_settings(settings: Settings) -> None:
    """Validate settings and raise SettingsError if invalid."""

    if not settings.llm.provider:
        raise SettingsError("Missing required field: llm.provider")
    if not settings.annotation.palette:
        raise SettingsError("annotation.palette must contain at least one color")
    if settings.annotation.context_chars <= 0:
        raise SettingsError("annotation.context_chars must be a positive integer")
    if not settings.observability.log_level:
        raise SettingsError("Missing required field: observability.log_level")


def load_settings(path: str | Path) -> Settings:
    """Load settings from a YAML file and validate required fields."""

    settings_path = Path(path)
    if not settings_path.exists():
        raise SettingsError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)

    settings = Settings.from_dict(data or {})
    validate_settings(settings)
    return settings
