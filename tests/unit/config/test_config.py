"""
canonical-values: unit tests for config loading

File: tests/unit/config/test_config.py

Purpose
- Validate deterministic config loading from defaults, TOML, env overrides and
  explicit overrides.

What this test file should cover
- Precedence: overrides > env > file > defaults.
- Env var name mapping and type coercion.
- Rejection of unknown sections/keys and invalid values with dotted paths.
- The process-wide active configuration.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from canonical_values.config import (
    CONFIG_PATH_ENV,
    CanonicalConfig,
    CodecSettings,
    ConfigLoadError,
    UnknownFieldPolicy,
    default_config,
    get_active_config,
    load_config,
    set_active_config,
)


def _write_config(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_defaults_without_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    loaded = load_config(environ={})
    assert loaded == default_config()
    assert loaded.codecs.json_indent is None
    assert loaded.valueobjects.unknown_fields is UnknownFieldPolicy.KEEP
    assert loaded.logging.level == "INFO"


def test_precedence_default_file_env_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "canonical_values.toml"
    _write_config(
        config_path,
        """
[codecs]
json_indent = 2

[valueobjects]
unknown_fields = "ignore"
""".strip(),
    )
    env = {"CANONICAL_VALUES_CODECS_JSON_INDENT": "4"}

    file_loaded = load_config(config_path, environ={})
    env_loaded = load_config(config_path, environ=env)
    override_loaded = load_config(
        config_path,
        environ=env,
        overrides={"codecs.json_indent": 0},
    )

    assert file_loaded.codecs.json_indent == 2
    assert file_loaded.valueobjects.unknown_fields is UnknownFieldPolicy.IGNORE
    assert env_loaded.codecs.json_indent == 4
    assert override_loaded.codecs.json_indent == 0
    assert override_loaded.valueobjects.unknown_fields is UnknownFieldPolicy.IGNORE


def test_default_file_in_working_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_config(tmp_path / "canonical_values.toml", '[logging]\nlevel = "debug"\n')
    monkeypatch.chdir(tmp_path)
    assert load_config(environ={}).logging.level == "DEBUG"


def test_config_path_from_environment(tmp_path: Path) -> None:
    config_path = tmp_path / "custom.toml"
    _write_config(config_path, "[codecs]\nensure_ascii = true\n")
    loaded = load_config(environ={CONFIG_PATH_ENV: str(config_path)})
    assert loaded.codecs.ensure_ascii is True


@pytest.mark.parametrize(
    ("env", "check"),
    [
        ({"CANONICAL_VALUES_CODECS_JSON_INDENT": "none"}, lambda c: c.codecs.json_indent is None),
        ({"CANONICAL_VALUES_CODECS_ENSURE_ASCII": "yes"}, lambda c: c.codecs.ensure_ascii),
        ({"CANONICAL_VALUES_LOGGING_JSON_LINES": "off"}, lambda c: not c.logging.json_lines),
        (
            {"CANONICAL_VALUES_VALUEOBJECTS_NORMALIZE_FIELD_NAMES": "0"},
            lambda c: not c.valueobjects.normalize_field_names,
        ),
        (
            {"CANONICAL_VALUES_VALUEOBJECTS_UNKNOWN_FIELDS": "error"},
            lambda c: c.valueobjects.unknown_fields is UnknownFieldPolicy.ERROR,
        ),
    ],
)
def test_env_coercion(tmp_path: Path, env: dict[str, str], check: object) -> None:
    config_path = tmp_path / "empty.toml"
    _write_config(config_path, "")
    loaded = load_config(config_path, environ=env)
    assert check(loaded)  # type: ignore[operator]


@pytest.mark.parametrize(
    ("env", "message"),
    [
        ({"CANONICAL_VALUES_CODECS_JSON_INDENT": "two"}, "must be an integer"),
        ({"CANONICAL_VALUES_CODECS_ENSURE_ASCII": "maybe"}, "must be a boolean"),
        ({"CANONICAL_VALUES_CODECS_JSON_INDENT": "-1"}, "codecs.json_indent: must be >= 0"),
        ({"CANONICAL_VALUES_LOGGING_LEVEL": "chatty"}, "logging.level: must be one of"),
        (
            {"CANONICAL_VALUES_VALUEOBJECTS_UNKNOWN_FIELDS": "drop"},
            "valueobjects.unknown_fields: must be one of: keep, ignore, error",
        ),
    ],
)
def test_invalid_env_values(tmp_path: Path, env: dict[str, str], message: str) -> None:
    config_path = tmp_path / "empty.toml"
    _write_config(config_path, "")
    with pytest.raises(ConfigLoadError, match=message):
        load_config(config_path, environ=env)


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("[server]\nport = 1\n", "server: unknown config section"),
        ("[codecs]\nindent = 1\n", "codecs.indent: unknown config key"),
        ("codecs = 1\n", "codecs: expected table"),
        ('[codecs]\nensure_ascii = "yes"\n', "codecs.ensure_ascii: expected boolean"),
        ("[codecs]\njson_indent = true\n", "codecs.json_indent: expected integer"),
        ("[codecs\n", "invalid TOML"),
    ],
)
def test_invalid_files(tmp_path: Path, text: str, message: str) -> None:
    config_path = tmp_path / "bad.toml"
    _write_config(config_path, text)
    with pytest.raises(ConfigLoadError, match=message):
        load_config(config_path, environ={})


def test_missing_explicit_file_and_bad_override_keys(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_config(tmp_path / "absent.toml", environ={})
    config_path = tmp_path / "empty.toml"
    _write_config(config_path, "")
    with pytest.raises(ConfigLoadError, match="invalid override key"):
        load_config(config_path, environ={}, overrides={"codecs": 1})


def test_loading_is_deterministic(tmp_path: Path) -> None:
    config_path = tmp_path / "canonical_values.toml"
    _write_config(config_path, "[codecs]\njson_indent = 2\n")
    first = load_config(config_path, environ={})
    second = load_config(config_path, environ={})
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_active_config_round_trip() -> None:
    custom = CanonicalConfig(codecs=CodecSettings(json_indent=3))
    set_active_config(custom)
    assert get_active_config() is custom
