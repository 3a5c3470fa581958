"""
Configuration management for the Movie API.

This module provides centralized configuration loading and validation using
Pydantic settings. Values are read from environment variables and from the
``.env`` / ``.env.<environment>`` files of the working directory.

The database section describes two connections: the master (writes) and the
slave (reads). Each can be given as a full SQLAlchemy URL or as individual
host/port/user/password/name parts from which a MySQL URL is built.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, List, Tuple
from urllib.parse import quote_plus

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


MYSQL_URL_FORMAT = "mysql+pymysql://{user}:{password}@{host}:{port}/{name}?charset=utf8mb4"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the ENVIRONMENT variable.

    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if not set.
    """
    env_value = os.environ.get("ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment, config_path: Optional[str] = None) -> Tuple[str, ...]:
    """
    Get the list of .env files to load for the given environment.

    Files are loaded in order, with later files overriding earlier ones.
    When ``config_path`` points at a directory the files are looked up there;
    when it points at a file, that file is loaded last.

    Args:
        environment: The target environment.
        config_path: Optional directory or file given on the command line.

    Returns:
        Tuple of .env file paths to load.
    """
    env_file_map = {
        Environment.DEVELOPMENT: ".env.development",
        Environment.STAGING: ".env.staging",
        Environment.PRODUCTION: ".env.production",
    }
    env_specific_file = env_file_map.get(environment, ".env.development")

    if config_path is None:
        return (".env", env_specific_file)

    path = Path(config_path)
    if path.is_dir():
        return (str(path / ".env"), str(path / env_specific_file))
    return (".env", env_specific_file, str(path))


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field has a development-friendly default so the service can start
    against a local MySQL instance without any configuration. Outside of
    development, ``validate_startup`` enforces the database credentials.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )

    # HTTP server
    app_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port the HTTP server listens on"
    )
    graceful_timeout: int = Field(
        default=30,
        ge=0,
        description="Seconds to wait for in-flight requests on shutdown"
    )

    # Master database (writes)
    database_master_url: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL for the master database; overrides the parts below"
    )
    database_master_host: str = Field(default="localhost")
    database_master_port: int = Field(default=3306, ge=1, le=65535)
    database_master_user: str = Field(default="root")
    database_master_password: str = Field(default="")
    database_master_name: str = Field(default="movies")

    # Slave database (reads)
    database_slave_url: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL for the slave database; overrides the parts below"
    )
    database_slave_host: str = Field(default="localhost")
    database_slave_port: int = Field(default=3306, ge=1, le=65535)
    database_slave_user: str = Field(default="root")
    database_slave_password: str = Field(default="")
    database_slave_name: str = Field(default="movies")

    database_pool_size: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Connection pool size for each database engine"
    )
    database_connect_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Connection attempts per database at startup"
    )

    # Health checks
    health_check_timeout: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Timeout in seconds for each dependency probe"
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    otel_endpoint: Optional[str] = Field(
        default=None,
        description="OpenTelemetry collector endpoint URL"
    )
    otel_service_name: str = Field(
        default="movie-api",
        description="Service name for OpenTelemetry traces"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    @field_validator("database_master_host", "database_slave_host", "database_master_name", "database_slave_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v.strip()

    @field_validator("database_master_url", "database_slave_url")
    @classmethod
    def validate_database_url(cls, v: Optional[str]) -> Optional[str]:
        """Reject URLs without a SQLAlchemy dialect scheme."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        if "://" not in v:
            raise ValueError("database URL must look like 'dialect+driver://...'")
        return v

    @property
    def master_database_url(self) -> str:
        """SQLAlchemy URL of the master (write) database."""
        if self.database_master_url:
            return self.database_master_url
        return MYSQL_URL_FORMAT.format(
            user=quote_plus(self.database_master_user),
            password=quote_plus(self.database_master_password),
            host=self.database_master_host,
            port=self.database_master_port,
            name=self.database_master_name,
        )

    @property
    def slave_database_url(self) -> str:
        """SQLAlchemy URL of the slave (read) database."""
        if self.database_slave_url:
            return self.database_slave_url
        return MYSQL_URL_FORMAT.format(
            user=quote_plus(self.database_slave_user),
            password=quote_plus(self.database_slave_password),
            host=self.database_slave_host,
            port=self.database_slave_port,
            name=self.database_slave_name,
        )


class ConfigurationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append("\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


def create_settings_for_environment(
    environment: Optional[Environment] = None,
    config_path: Optional[str] = None,
) -> Settings:
    """
    Factory function to create Settings for a specific environment.

    Args:
        environment: Optional environment override. If not provided, detected from
                    the ENVIRONMENT variable.
        config_path: Optional directory holding the .env files, or a single
                    env file to load on top of them.

    Returns:
        Settings: Validated settings for the specified environment.

    Raises:
        ConfigurationError: If settings are missing or invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = _get_env_files(environment, config_path)
    existing_env_files = [f for f in env_files if Path(f).exists()]

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(
                "Configuration path does not exist",
                invalid_fields={"config": str(config_path)}
            )
        if path.is_dir() and not existing_env_files:
            raise ConfigurationError(
                "No env files found in configuration directory",
                missing_fields=list(env_files)
            )

    try:
        class EnvironmentSettings(Settings):
            model_config = SettingsConfigDict(
                env_file=tuple(existing_env_files) or None,
                env_file_encoding="utf-8",
                case_sensitive=False,
                extra="ignore"
            )

        return EnvironmentSettings()
    except Exception as e:
        missing_fields = []
        invalid_fields = {}

        if hasattr(e, "errors"):
            for error in e.errors():
                field_name = ".".join(str(loc) for loc in error.get("loc", []))
                if error.get("type", "") == "missing":
                    missing_fields.append(field_name)
                else:
                    invalid_fields[field_name] = error.get("msg", str(error))

        raise ConfigurationError(
            f"Failed to load configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


_settings_cache: Optional[Settings] = None
_settings_config_path: Optional[str] = None


def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded once and cached for subsequent calls. A later call
    may omit ``config_path`` or repeat the one used for loading; any other
    path is rejected.

    Raises:
        ConfigurationError: If settings are missing or invalid, or
            ``config_path`` differs from the path the cache was loaded from.
    """
    global _settings_cache, _settings_config_path

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment(config_path=config_path)
        _settings_config_path = config_path
    elif config_path is not None and config_path != _settings_config_path:
        raise ConfigurationError(
            f"Settings were already loaded from {_settings_config_path or 'the environment'}",
            invalid_fields={"config": str(config_path)}
        )

    return _settings_cache


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() reloads."""
    global _settings_cache, _settings_config_path
    _settings_cache = None
    _settings_config_path = None


def validate_startup(settings: Optional[Settings] = None) -> None:
    """
    Validate settings at application startup, before accepting requests.

    Outside of development, both database connections must carry a password
    unless a full URL override was provided for them.

    Raises:
        ConfigurationError: If any setting is unacceptable for the environment.
    """
    settings = settings or get_settings()
    validation_errors = {}

    if settings.environment != Environment.DEVELOPMENT:
        if not settings.database_master_url and not settings.database_master_password:
            validation_errors["database_master_password"] = (
                f"A master database password is required in {settings.environment.value}"
            )
        if not settings.database_slave_url and not settings.database_slave_password:
            validation_errors["database_slave_password"] = (
                f"A slave database password is required in {settings.environment.value}"
            )

    if validation_errors:
        raise ConfigurationError(
            "Configuration validation failed during startup",
            invalid_fields=validation_errors
        )


def get_environment_info() -> dict:
    """
    Get information about the current environment configuration.

    Returns:
        dict: The detected environment and the env files checked/loaded.
    """
    environment = _detect_environment()
    env_files = _get_env_files(environment)

    return {
        "environment": environment.value,
        "env_files_checked": list(env_files),
        "env_files_loaded": [f for f in env_files if Path(f).exists()],
    }
