# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
RegGuard Configuration System

Centralized configuration management supporting:
- Environment variables (REGGUARD_*)
- Config files (~/.regguard/config.yaml, ./.regguard.yaml)
- Programmatic defaults
- Pydantic validation
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from regguard.core.exceptions import ConfigFileError, ConfigValidationError

logger = logging.getLogger("regguard.config")


# ============================================================================
# Configuration Models
# ============================================================================


class PathsConfig(BaseModel):
    """Path configuration"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    home: Path = Field(
        default_factory=lambda: Path.home() / ".regguard",
        description="RegGuard home directory",
    )
    log_dir: Path = Field(
        default_factory=lambda: Path.home() / ".regguard" / "logs",
        description="Log files directory",
    )

    @field_validator("*", mode="before")
    @classmethod
    def ensure_path(cls, v):
        """Convert strings to Path objects"""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class RuntimeConfig(BaseModel):
    """Reconciliation defaults"""

    backend: Literal["winreg", "memory"] = Field(
        default="winreg", description="Configuration store backend"
    )
    force_recreate: bool = Field(
        default=False, description="Delete values before writing them"
    )
    dry_run: bool = Field(
        default=False, description="Report changes without writing"
    )


class ObservabilityConfig(BaseModel):
    """Logging configuration"""

    log_level: str = Field(default="INFO", description="Logging level")
    file_logging: bool = Field(
        default=True, description="Write a rotating log file"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper


class RegGuardConfig(BaseModel):
    """Complete RegGuard configuration"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    paths: PathsConfig = Field(
        default_factory=PathsConfig, description="Path configuration"
    )
    runtime: RuntimeConfig = Field(
        default_factory=RuntimeConfig, description="Runtime configuration"
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )


# ============================================================================
# Configuration Loader
# ============================================================================


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class ConfigLoader:
    """Load configuration from multiple sources"""

    @staticmethod
    def load_from_env() -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config: Dict[str, Any] = {}

        # Paths
        home = os.getenv("REGGUARD_HOME")
        if home:
            config.setdefault("paths", {})["home"] = home

        log_dir = os.getenv("REGGUARD_LOG_DIR")
        if log_dir:
            config.setdefault("paths", {})["log_dir"] = log_dir

        # Runtime
        backend = os.getenv("REGGUARD_BACKEND")
        if backend:
            config.setdefault("runtime", {})["backend"] = backend.strip().lower()

        force = os.getenv("REGGUARD_FORCE_RECREATE")
        if force:
            config.setdefault("runtime", {})["force_recreate"] = _env_flag(force)

        dry_run = os.getenv("REGGUARD_DRY_RUN")
        if dry_run:
            config.setdefault("runtime", {})["dry_run"] = _env_flag(dry_run)

        # Observability
        log_level = os.getenv("REGGUARD_LOG_LEVEL")
        if log_level:
            config.setdefault("observability", {})["log_level"] = log_level

        no_file_logs = os.getenv("REGGUARD_NO_FILE_LOGS")
        if no_file_logs:
            config.setdefault("observability", {})["file_logging"] = not _env_flag(
                no_file_logs
            )

        return config

    @staticmethod
    def load_from_file(file_path: Path) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file"""
        if not file_path.exists():
            return {}

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigFileError(
                f"Failed to load config file {file_path}", path=str(file_path), cause=e
            ) from e

        if not isinstance(data, dict):
            raise ConfigFileError(
                f"Config file {file_path} must contain a mapping",
                path=str(file_path),
            )
        return data

    @staticmethod
    def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple configuration dictionaries"""
        result: Dict[str, Any] = {}
        for config in configs:
            for key, value in config.items():
                if (
                    key in result
                    and isinstance(result[key], dict)
                    and isinstance(value, dict)
                ):
                    result[key] = ConfigLoader.merge_configs(result[key], value)
                else:
                    result[key] = value
        return result


# ============================================================================
# Global Configuration Instance
# ============================================================================

_config: Optional[RegGuardConfig] = None


def get_config() -> RegGuardConfig:
    """
    Get global RegGuard configuration

    Configuration is loaded from (in order of precedence):
    1. Environment variables (REGGUARD_*)
    2. .regguard.yaml in current directory
    3. ~/.regguard/config.yaml
    4. Default values
    """
    global _config

    if _config is None:
        _config = load_config()

    return _config


def load_config(
    config_file: Optional[Path] = None, env_override: bool = True
) -> RegGuardConfig:
    """
    Load configuration from all sources

    Args:
        config_file: Optional specific config file to load
        env_override: Whether environment variables override file config

    Returns:
        RegGuardConfig instance

    Raises:
        ConfigFileError: A config file exists but cannot be parsed
        ConfigValidationError: The merged configuration is invalid
    """
    configs = []

    default_locations = [
        Path.home() / ".regguard" / "config.yaml",
        Path.cwd() / ".regguard.yaml",
    ]

    for location in default_locations:
        file_config = ConfigLoader.load_from_file(location)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {location}")

    if config_file:
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigFileError(
                f"Config file not found: {config_file}", path=str(config_file)
            )
        file_config = ConfigLoader.load_from_file(config_file)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_file}")

    if env_override:
        env_config = ConfigLoader.load_from_env()
        if env_config:
            configs.append(env_config)
            logger.debug("Loaded config from environment")

    merged = ConfigLoader.merge_configs(*configs) if configs else {}

    try:
        return RegGuardConfig(**merged)
    except ValidationError as e:
        raise ConfigValidationError(
            "Configuration validation failed",
            details={"errors": [err["msg"] for err in e.errors()]},
            cause=e,
        ) from e


def reload_config() -> RegGuardConfig:
    """Reload global configuration"""
    global _config
    _config = load_config()
    logger.info("Configuration reloaded")
    return _config
