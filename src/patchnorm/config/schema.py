"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

OutputFormat = Literal["terminal", "json", "yaml"]

OUTPUT_FORMATS = ("terminal", "json", "yaml")


@dataclass
class BackendConfig:
    timeout: int = 30  # seconds per git invocation
    detect_renames: bool = True


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_body: bool = False  # include hunk bodies in terminal output


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class PatchnormConfig:
    version: str = "1.0"
    backend: BackendConfig = field(default_factory=BackendConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
