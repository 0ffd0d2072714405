"""
Runtime Configuration

Central configuration for digest selection, tree construction and logging.
"""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from merklekit.schemas.errors import ConfigurationException

load_dotenv()


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _parse_bool(key: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationException(f"{key} must be a boolean, got {raw!r}", key=key)


def _parse_int(key: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise ConfigurationException(f"{key} must be an integer, got {raw!r}", key=key)
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationException(f"{key} must be an integer, got {raw!r}", key=key) from e


@dataclass
class DigestConfig:
    """Configuration for the digest primitive."""
    algorithm: str = "sha256"


@dataclass
class BuildConfig:
    """
    Configuration for tree construction.

    Parallel hashing only kicks in when enabled and the leaf count reaches
    parallel_threshold. It never changes the resulting digests.
    """
    parallel: bool = False
    parallel_threshold: int = 4096
    max_workers: Optional[int] = None
    chunk_size: int = 1024

    def __post_init__(self):
        if self.parallel_threshold < 0:
            raise ConfigurationException(
                f"parallel_threshold must be >= 0, got {self.parallel_threshold}",
                key="parallel_threshold",
            )
        if self.chunk_size < 1:
            raise ConfigurationException(
                f"chunk_size must be >= 1, got {self.chunk_size}",
                key="chunk_size",
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationException(
                f"max_workers must be >= 1, got {self.max_workers}",
                key="max_workers",
            )


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for merklekit.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    digest: DigestConfig = field(default_factory=DigestConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - MERKLEKIT_DIGEST_ALGORITHM: digest algorithm name (e.g. sha256)
        - MERKLEKIT_PARALLEL: enable parallel layer hashing (true/false)
        - MERKLEKIT_PARALLEL_THRESHOLD: minimum leaf count for parallel hashing
        - MERKLEKIT_MAX_WORKERS: thread pool size
        - MERKLEKIT_LOG_LEVEL: log level name
        """
        overrides: dict[str, Any] = {}

        if os.getenv("MERKLEKIT_DIGEST_ALGORITHM"):
            overrides.setdefault("digest", {})["algorithm"] = os.getenv(
                "MERKLEKIT_DIGEST_ALGORITHM"
            )

        if os.getenv("MERKLEKIT_PARALLEL"):
            overrides.setdefault("build", {})["parallel"] = _parse_bool(
                "MERKLEKIT_PARALLEL", os.getenv("MERKLEKIT_PARALLEL")
            )
        if os.getenv("MERKLEKIT_PARALLEL_THRESHOLD"):
            overrides.setdefault("build", {})["parallel_threshold"] = _parse_int(
                "MERKLEKIT_PARALLEL_THRESHOLD", os.getenv("MERKLEKIT_PARALLEL_THRESHOLD")
            )
        if os.getenv("MERKLEKIT_MAX_WORKERS"):
            overrides.setdefault("build", {})["max_workers"] = _parse_int(
                "MERKLEKIT_MAX_WORKERS", os.getenv("MERKLEKIT_MAX_WORKERS")
            )

        if os.getenv("MERKLEKIT_LOG_LEVEL"):
            overrides["log_level"] = os.getenv("MERKLEKIT_LOG_LEVEL")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationException(
                f"Config file must contain a mapping, got {type(data).__name__}"
            )
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        digest_data = data.get("digest") or {}
        build_data = dict(data.get("build") or {})

        if "parallel" in build_data:
            build_data["parallel"] = _parse_bool("build.parallel", build_data["parallel"])
        for key in ("parallel_threshold", "chunk_size"):
            if key in build_data:
                build_data[key] = _parse_int(f"build.{key}", build_data[key])
        if build_data.get("max_workers") is not None:
            build_data["max_workers"] = _parse_int("build.max_workers", build_data["max_workers"])

        try:
            digest = DigestConfig(**digest_data) if digest_data else DigestConfig()
            build = BuildConfig(**build_data) if build_data else BuildConfig()
        except TypeError as e:
            raise ConfigurationException(f"Unknown configuration key: {e}") from e

        return cls(
            digest=digest,
            build=build,
            log_level=str(data.get("log_level", "INFO")),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)

        if "digest" in overrides:
            for key, value in overrides["digest"].items():
                setattr(new_config.digest, key, value)

        if "build" in overrides:
            for key, value in overrides["build"].items():
                setattr(new_config.build, key, value)
            # Re-run validation on the mutated section
            new_config.build.__post_init__()

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "digest": {
                "algorithm": self.digest.algorithm,
            },
            "build": {
                "parallel": self.build.parallel,
                "parallel_threshold": self.build.parallel_threshold,
                "max_workers": self.build.max_workers,
                "chunk_size": self.build.chunk_size,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


def resolve_log_level(config: Optional[RuntimeConfig] = None) -> int:
    """Resolve log level from MERKLEKIT_LOG_LEVEL or config, defaulting to INFO."""
    raw = os.getenv("MERKLEKIT_LOG_LEVEL")
    if raw is None and config is not None:
        raw = config.log_level
    level = getattr(logging, (raw or "INFO").upper(), None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(config: Optional[RuntimeConfig] = None) -> int:
    """
    Configure root logging for applications embedding merklekit.

    The library itself never calls this; it only logs through module loggers.

    Returns:
        The resolved log level
    """
    level = resolve_log_level(config)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("merklekit").setLevel(level)
    return level


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set the default runtime configuration (None resets to env-derived defaults)."""
    global _default_config
    _default_config = config
