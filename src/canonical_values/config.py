"""
canonical-values runtime configuration.

Purpose
- Load the effective settings for codecs, value-object defaults and logging.

What should be included in this file
- Precedence logic: overrides > env (CANONICAL_VALUES_) > TOML file > defaults.
- TOML loading via ``tomllib``.
- Typed, frozen configuration objects with strict validation.
- A process-wide active configuration consulted by the registry and codecs.

Functional requirements
- Unknown sections/keys and wrongly typed values are rejected with a dotted path.

Non-functional requirements
- Loading is deterministic; no value is read from the environment implicitly
  once ``set_active_config`` has been called.
"""

from __future__ import annotations

import os
import threading
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Final, Literal, NoReturn

import structlog

DEFAULT_CONFIG_FILE: Final[str] = "canonical_values.toml"
ENV_PREFIX: Final[str] = "CANONICAL_VALUES_"
CONFIG_PATH_ENV: Final[str] = f"{ENV_PREFIX}CONFIG"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})
_LOG_LEVELS: Final[frozenset[str]] = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
)

_ValueType = Literal["str", "int", "bool", "optional_int"]

_LOGGER = structlog.get_logger(__name__)


class UnknownFieldPolicy(StrEnum):
    """What a struct does with input fields its schema does not declare."""

    KEEP = "keep"
    IGNORE = "ignore"
    ERROR = "error"


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or a value cannot be coerced."""


@dataclass(frozen=True, slots=True)
class CodecSettings:
    json_indent: int | None = None
    ensure_ascii: bool = False


@dataclass(frozen=True, slots=True)
class ValueObjectSettings:
    unknown_fields: UnknownFieldPolicy = UnknownFieldPolicy.KEEP
    normalize_field_names: bool = True


@dataclass(frozen=True, slots=True)
class LoggingSettings:
    level: str = "INFO"
    json_lines: bool = True


@dataclass(frozen=True, slots=True)
class CanonicalConfig:
    codecs: CodecSettings = field(default_factory=CodecSettings)
    valueobjects: ValueObjectSettings = field(default_factory=ValueObjectSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def to_dict(self) -> dict[str, dict[str, object]]:
        return {
            "codecs": {
                "json_indent": self.codecs.json_indent,
                "ensure_ascii": self.codecs.ensure_ascii,
            },
            "valueobjects": {
                "unknown_fields": str(self.valueobjects.unknown_fields),
                "normalize_field_names": self.valueobjects.normalize_field_names,
            },
            "logging": {
                "level": self.logging.level,
                "json_lines": self.logging.json_lines,
            },
        }


_SCHEMA: Final[dict[tuple[str, str], _ValueType]] = {
    ("codecs", "json_indent"): "optional_int",
    ("codecs", "ensure_ascii"): "bool",
    ("valueobjects", "unknown_fields"): "str",
    ("valueobjects", "normalize_field_names"): "bool",
    ("logging", "level"): "str",
    ("logging", "json_lines"): "bool",
}

_ACTIVE_LOCK = threading.Lock()
_ACTIVE_CONFIG: CanonicalConfig | None = None


def default_config() -> CanonicalConfig:
    return CanonicalConfig()


def load_config(
    config_path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> CanonicalConfig:
    """Load effective config with deterministic precedence: overrides > env > file > defaults.

    ``overrides`` uses dotted keys (``"codecs.json_indent"``). Without an
    explicit ``config_path`` the file named by ``CANONICAL_VALUES_CONFIG`` is
    used, falling back to ``canonical_values.toml`` in the working directory
    when it exists.
    """
    env_map = dict(os.environ if environ is None else environ)
    explicit_path = config_path is not None or CONFIG_PATH_ENV in env_map
    resolved_path = _resolve_config_path(config_path, env_map)

    merged: dict[str, dict[str, object]] = default_config().to_dict()
    _merge_file_payload(merged, _load_toml_file(resolved_path, required=explicit_path))
    _merge_env_overrides(merged, env_map)
    _merge_overrides(merged, dict(overrides or {}))

    config = _build_config(merged)
    _LOGGER.debug("config_loaded", path=str(resolved_path), **_flatten(config.to_dict()))
    return config


def get_active_config() -> CanonicalConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _ACTIVE_CONFIG
    with _ACTIVE_LOCK:
        if _ACTIVE_CONFIG is None:
            _ACTIVE_CONFIG = load_config()
        return _ACTIVE_CONFIG


def set_active_config(config: CanonicalConfig | None) -> None:
    """Install ``config`` process-wide; ``None`` reloads lazily on next access."""
    global _ACTIVE_CONFIG
    with _ACTIVE_LOCK:
        _ACTIVE_CONFIG = config


def _fail(path: str, message: str) -> NoReturn:
    raise ConfigLoadError(f"{path}: {message}")


def _resolve_config_path(config_path: str | Path | None, environ: Mapping[str, str]) -> Path:
    if config_path is not None:
        return Path(config_path).expanduser().resolve()
    from_env = environ.get(CONFIG_PATH_ENV)
    if from_env:
        return Path(from_env).expanduser().resolve()
    return (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    return parsed


def _merge_file_payload(target: dict[str, dict[str, object]], payload: Mapping[str, Any]) -> None:
    for section in sorted(payload):
        values = payload[section]
        if section not in target:
            _fail(section, "unknown config section")
        if not isinstance(values, Mapping):
            _fail(section, f"expected table, got {type(values).__name__}")
        for key in sorted(values):
            if (section, key) not in _SCHEMA:
                _fail(f"{section}.{key}", "unknown config key")
            target[section][key] = values[key]


def _merge_env_overrides(target: dict[str, dict[str, object]], environ: Mapping[str, str]) -> None:
    for (section, key), value_type in sorted(_SCHEMA.items()):
        env_name = _env_name_for_path((section, key))
        raw = environ.get(env_name)
        if raw is None:
            continue
        target[section][key] = _coerce_env(raw, value_type, env_name, (section, key))


def _merge_overrides(target: dict[str, dict[str, object]], overrides: Mapping[str, object]) -> None:
    for dotted in sorted(overrides):
        path = tuple(part for part in dotted.split(".") if part)
        if len(path) != 2 or path not in _SCHEMA:
            raise ConfigLoadError(f"invalid override key {dotted!r}")
        section, key = path
        target[section][key] = overrides[dotted]


def _coerce_env(
    raw: str,
    value_type: _ValueType,
    env_name: str,
    path: tuple[str, ...],
) -> object:
    value = raw.strip()
    if value_type == "str":
        return value
    if value_type in ("int", "optional_int"):
        if value_type == "optional_int" and value.lower() in ("", "none", "null"):
            return None
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigLoadError(f"{env_name} -> {'.'.join(path)} must be an integer") from exc

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ConfigLoadError(
        f"{env_name} -> {'.'.join(path)} must be a boolean (true/false/1/0/yes/no/on/off)"
    )


def _build_config(merged: Mapping[str, Mapping[str, object]]) -> CanonicalConfig:
    codecs = merged["codecs"]
    valueobjects = merged["valueobjects"]
    logging_section = merged["logging"]

    indent = codecs["json_indent"]
    if indent is not None and (isinstance(indent, bool) or not isinstance(indent, int)):
        _fail("codecs.json_indent", f"expected integer, got {type(indent).__name__}")
    if isinstance(indent, int) and indent < 0:
        _fail("codecs.json_indent", "must be >= 0")

    policy_raw = valueobjects["unknown_fields"]
    try:
        policy = UnknownFieldPolicy(policy_raw)
    except ValueError:
        allowed = ", ".join(member.value for member in UnknownFieldPolicy)
        _fail("valueobjects.unknown_fields", f"must be one of: {allowed}")

    level = logging_section["level"]
    if not isinstance(level, str) or level.strip().upper() not in _LOG_LEVELS:
        _fail("logging.level", f"must be one of: {', '.join(sorted(_LOG_LEVELS))}")

    return CanonicalConfig(
        codecs=CodecSettings(
            json_indent=indent,  # type: ignore[arg-type]
            ensure_ascii=_as_bool(codecs["ensure_ascii"], "codecs.ensure_ascii"),
        ),
        valueobjects=ValueObjectSettings(
            unknown_fields=policy,
            normalize_field_names=_as_bool(
                valueobjects["normalize_field_names"], "valueobjects.normalize_field_names"
            ),
        ),
        logging=LoggingSettings(
            level=level.strip().upper(),
            json_lines=_as_bool(logging_section["json_lines"], "logging.json_lines"),
        ),
    )


def _as_bool(value: object, path: str) -> bool:
    if not isinstance(value, bool):
        _fail(path, f"expected boolean, got {type(value).__name__}")
    return value


def _flatten(payload: Mapping[str, Mapping[str, object]]) -> dict[str, object]:
    return {
        f"{section}_{key}": value
        for section, values in payload.items()
        for key, value in values.items()
    }


def _env_name_for_path(path: tuple[str, ...]) -> str:
    return ENV_PREFIX + "_".join(part.upper() for part in path)


__all__ = [
    "CONFIG_PATH_ENV",
    "CanonicalConfig",
    "CodecSettings",
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "LoggingSettings",
    "UnknownFieldPolicy",
    "ValueObjectSettings",
    "default_config",
    "get_active_config",
    "load_config",
    "set_active_config",
]
