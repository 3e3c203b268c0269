"""Configuration loading and schema.

- YAML-first configuration under configs/*.yaml
- Strict ${ENV_VAR} expansion (missing/empty env vars are errors)
"""

from __future__ import annotations

from tabular_review.config.loader import load_config, resolve_profile_configs
from tabular_review.config.settings import AppSettings, LoggingSettings, StoreSettings, SwitcherSettings, parse_settings
from tabular_review.errors import ConfigError

__all__ = [
    "AppSettings",
    "ConfigError",
    "LoggingSettings",
    "StoreSettings",
    "SwitcherSettings",
    "load_config",
    "parse_settings",
    "resolve_profile_configs",
]
