"""Format catalog loader: TOML file plus environment overrides."""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, cast

from accesslog_json.lib.compiler import compile_format
from accesslog_json.lib.template.builder import CompiledFormatter

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "accesslog-json.toml"
CONFIG_PATH_ENV = "ACCESSLOG_JSON_CONFIG"
STRINGIFY_ENV = "ACCESSLOG_JSON_STRINGIFY"

_OPTION_KEYS = frozenset({"stringify"})
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _empty_formats() -> Mapping[str, Any]:
    return cast("Mapping[str, Any]", {})


@dataclass(frozen=True, slots=True)
class AccessLogConfig:
    """Resolved format catalog and output options."""

    stringify: bool = True
    formats: Mapping[str, Any] = field(default_factory=_empty_formats)
    source: Path | None = None

    def format_names(self) -> tuple[str, ...]:
        return tuple(self.formats)

    def compile(self, name: str) -> CompiledFormatter:
        """Compile one named format with the configured output options."""

        if name not in self.formats:
            raise KeyError(f"Unknown format '{name}'.")
        return compile_format(self.formats[name], stringify=self.stringify)


def resolve_config_path(path: Path | None = None) -> Path:
    """Pick the catalog path: explicit argument, environment, then cwd."""

    if path is not None:
        return path.expanduser()
    from_env = os.getenv(CONFIG_PATH_ENV, "").strip()
    if from_env:
        return Path(from_env).expanduser()
    return Path.cwd() / CONFIG_FILENAME


def _coerce_stringify(*, raw_value: object, source: str) -> bool:
    if not isinstance(raw_value, bool):
        raise ValueError(
            f"Invalid value for '{source}': expected bool, got "
            f"{type(raw_value).__name__} ({raw_value!r})."
        )
    return raw_value


def _coerce_options(*, raw_value: object, source: str) -> bool | None:
    if not isinstance(raw_value, dict):
        raise ValueError(f"Invalid value for '{source}': expected table.")

    stringify: bool | None = None
    for key, value in cast("dict[str, object]", raw_value).items():
        if key not in _OPTION_KEYS:
            logger.warning("Ignoring unknown accesslog-json config key '%s.%s'.", source, key)
            continue
        stringify = _coerce_stringify(raw_value=value, source=f"{source}.{key}")
    return stringify


def _coerce_field(*, raw_value: object, source: str) -> object:
    if isinstance(raw_value, str):
        return raw_value
    if isinstance(raw_value, dict):
        return dict(cast("dict[str, object]", raw_value))
    raise ValueError(
        f"Invalid value for '{source}': expected string or table, got "
        f"{type(raw_value).__name__} ({raw_value!r})."
    )


def _coerce_format(*, raw_value: object, source: str) -> object:
    if isinstance(raw_value, str):
        if not raw_value.strip():
            raise ValueError(f"Invalid value for '{source}': expected non-empty template.")
        return raw_value
    if not isinstance(raw_value, dict):
        raise ValueError(
            f"Invalid value for '{source}': expected string or table, got "
            f"{type(raw_value).__name__} ({raw_value!r})."
        )
    return {
        key: _coerce_field(raw_value=value, source=f"{source}.{key}")
        for key, value in cast("dict[str, object]", raw_value).items()
    }


def _coerce_formats(*, raw_value: object, source: str) -> dict[str, object]:
    if not isinstance(raw_value, dict):
        raise ValueError(f"Invalid value for '{source}': expected table.")
    return {
        name: _coerce_format(raw_value=value, source=f"{source}.{name}")
        for name, value in cast("dict[str, object]", raw_value).items()
    }


def _apply_toml_payload(config: AccessLogConfig, payload: dict[str, object]) -> AccessLogConfig:
    for key, raw_value in payload.items():
        if key == "options":
            stringify = _coerce_options(raw_value=raw_value, source="options")
            if stringify is not None:
                config = replace(config, stringify=stringify)
            continue
        if key == "formats":
            config = replace(config, formats=_coerce_formats(raw_value=raw_value, source="formats"))
            continue
        logger.warning("Ignoring unknown accesslog-json config key '%s'.", key)
    return config


def _apply_env_overrides(config: AccessLogConfig) -> AccessLogConfig:
    raw_value = os.getenv(STRINGIFY_ENV)
    if raw_value is None:
        return config
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return replace(config, stringify=True)
    if normalized in _FALSE_VALUES:
        return replace(config, stringify=False)
    raise ValueError(
        f"Invalid environment override '{STRINGIFY_ENV}': expected bool, got {raw_value!r}."
    )


def load_config(path: Path | None = None) -> AccessLogConfig:
    """Load the format catalog; a missing file yields defaults."""

    config_path = resolve_config_path(path)
    config = AccessLogConfig()
    if config_path.is_file():
        with config_path.open("rb") as handle:
            payload = tomllib.load(handle)
        config = _apply_toml_payload(replace(config, source=config_path), payload)
    elif path is not None:
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return _apply_env_overrides(config)
