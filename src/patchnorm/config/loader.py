"""Load and merge configuration from .patchnorm.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from patchnorm.config.defaults import CONFIG_FILENAME
from patchnorm.config.schema import (
    OUTPUT_FORMATS,
    BackendConfig,
    LoggingConfig,
    OutputConfig,
    PatchnormConfig,
)
from patchnorm.log import LOG_LEVELS


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: PatchnormConfig) -> None:
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"Invalid output format: {cfg.output.format!r}")
    if not isinstance(cfg.backend.timeout, int) or cfg.backend.timeout <= 0:
        raise ConfigError(f"backend.timeout must be a positive integer, got {cfg.backend.timeout!r}")
    if str(cfg.logging.level).upper() not in LOG_LEVELS:
        raise ConfigError(f"Invalid log level: {cfg.logging.level!r}")
    cfg.logging.level = cfg.logging.level.upper()


def _merge_env_overrides(cfg: PatchnormConfig) -> None:
    """Apply PATCHNORM_* environment variable overrides."""
    if val := os.environ.get("PATCHNORM_TIMEOUT"):
        try:
            timeout = int(val)
        except ValueError:
            pass
        else:
            if timeout > 0:
                cfg.backend.timeout = timeout
    if val := os.environ.get("PATCHNORM_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("PATCHNORM_LOG_LEVEL"):
        if val.upper() in LOG_LEVELS:
            cfg.logging.level = val.upper()


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> PatchnormConfig:
    """Load, validate, and return a PatchnormConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = PatchnormConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = PatchnormConfig(
                version=str(raw.get("version", "1.0")),
                backend=_build_section(raw, BackendConfig, "backend"),
                output=_build_section(raw, OutputConfig, "output"),
                logging=_build_section(raw, LoggingConfig, "logging"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc
        _validate(cfg)

    _merge_env_overrides(cfg)
    return cfg
