"""Configuration loading, schema, and defaults."""

from authrules.config.loader import ConfigError, load_config, resolve_rules_file
from authrules.config.schema import AuthRulesConfig

__all__ = [
    "AuthRulesConfig",
    "ConfigError",
    "load_config",
    "resolve_rules_file",
]
