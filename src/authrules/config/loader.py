"""Load configuration from .authrules.toml and AUTHRULES_* env vars."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from authrules.config.schema import (
    DECISIONS,
    LOG_LEVELS,
    OUTPUT_FORMATS,
    AuthRulesConfig,
    LoggingConfig,
    OutputConfig,
    PolicyConfig,
)

CONFIG_FILENAME = ".authrules.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(base_dir: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = base_dir / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    import dataclasses

    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: AuthRulesConfig) -> None:
    if cfg.policy.default_decision not in DECISIONS:
        raise ConfigError(f"Invalid policy.default_decision: {cfg.policy.default_decision!r}")
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"Invalid output.format: {cfg.output.format!r}")
    if cfg.logging.level not in LOG_LEVELS:
        raise ConfigError(f"Invalid logging.level: {cfg.logging.level!r}")


def _merge_env_overrides(cfg: AuthRulesConfig) -> None:
    """Apply AUTHRULES_* environment variable overrides."""
    if val := os.environ.get("AUTHRULES_DEFAULT_DECISION"):
        if val.lower() in DECISIONS:
            cfg.policy.default_decision = val.lower()  # type: ignore[assignment]
    if val := os.environ.get("AUTHRULES_RULES_FILE"):
        cfg.policy.rules_file = val
    if val := os.environ.get("AUTHRULES_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("AUTHRULES_LOG_LEVEL"):
        if val.lower() in LOG_LEVELS:
            cfg.logging.level = val.lower()  # type: ignore[assignment]


def load_config(
    base_dir: Path,
    config_override: Optional[str] = None,
) -> AuthRulesConfig:
    """Load, validate, and return an AuthRulesConfig."""
    config_path = find_config_file(base_dir, config_override)

    if config_path is None:
        cfg = AuthRulesConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = AuthRulesConfig(
                version=str(raw.get("version", "1.0")),
                policy=_build_section(raw, PolicyConfig, "policy"),
                output=_build_section(raw, OutputConfig, "output"),
                logging=_build_section(raw, LoggingConfig, "logging"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc
        _validate(cfg)
        # rules_file is relative to the config file that names it
        if cfg.policy.rules_file and not Path(cfg.policy.rules_file).is_absolute():
            cfg.policy.rules_file = str(config_path.parent / cfg.policy.rules_file)

    _merge_env_overrides(cfg)
    return cfg


def resolve_rules_file(cfg: AuthRulesConfig, base_dir: Path) -> Optional[Path]:
    """Return the rules file path named by *cfg*, anchored at *base_dir*."""
    if not cfg.policy.rules_file:
        return None
    path = Path(cfg.policy.rules_file)
    return path if path.is_absolute() else base_dir / path
