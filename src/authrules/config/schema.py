"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

Decision = Literal["allow", "deny"]
OutputFormat = Literal["terminal", "json"]
LogLevel = Literal["debug", "info", "warning", "error"]

DECISIONS = ("allow", "deny")
OUTPUT_FORMATS = ("terminal", "json")
LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass
class PolicyConfig:
    default_decision: Decision = "deny"  # applied when every rule abstains
    rules_file: Optional[str] = "authrules.yaml"


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"


@dataclass
class LoggingConfig:
    level: LogLevel = "warning"


@dataclass
class AuthRulesConfig:
    version: str = "1.0"
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
