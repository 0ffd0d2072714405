"""
Runtime Configuration Module

Provides configuration loading and management for merklekit.
"""

from .runtime import (
    BuildConfig,
    DigestConfig,
    RuntimeConfig,
    configure_logging,
    get_default_config,
    resolve_log_level,
    set_default_config,
)

__all__ = [
    "BuildConfig",
    "DigestConfig",
    "RuntimeConfig",
    "configure_logging",
    "get_default_config",
    "resolve_log_level",
    "set_default_config",
]
