"""
Configuration management for LinkPage.

Settings come from dataclass defaults, an optional JSON config file and
LINKPAGE_* environment variables, in that order of precedence (lowest first).
"""

import json
import os
import secrets
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import sys

# Signing keys that show up in tutorials and sample .env files
WEAK_JWT_SECRETS = {
    "your-secret-key",
    "supersecret",
    "secret",
    "key",
    "password",
    "jwt-secret",
    "secret-key",
    "change-me",
    "default",
    "test",
    "development",
    "dev",
    "demo",
    "example",
}

REPOSITORY_BACKENDS = ("sqlalchemy", "memory")

MIN_JWT_SECRET_LENGTH = 32
MIN_JWT_SECRET_UNIQUE_CHARS = 8

MIN_TOKEN_EXPIRES_DAYS = 1
MAX_TOKEN_EXPIRES_DAYS = 7


def jwt_secret_problems(jwt_secret_key: str) -> List[str]:
    """Reasons a signing key is unsafe; empty when it is acceptable."""
    if not jwt_secret_key:
        return ["JWT secret key is empty"]

    problems = []
    if len(jwt_secret_key) < MIN_JWT_SECRET_LENGTH:
        problems.append(
            f"JWT secret key has {len(jwt_secret_key)} characters, "
            f"at least {MIN_JWT_SECRET_LENGTH} are required"
        )
    if jwt_secret_key.lower() in WEAK_JWT_SECRETS:
        problems.append("JWT secret key is a well-known default value")
    if len(set(jwt_secret_key)) < MIN_JWT_SECRET_UNIQUE_CHARS:
        problems.append(
            f"JWT secret key uses only {len(set(jwt_secret_key))} distinct characters"
        )
    return problems


def _validate_jwt_secret_key(jwt_secret_key: str) -> None:
    """Abort the process when the signing key is weak.

    Raises:
        SystemExit: If any check in :func:`jwt_secret_problems` fails
    """
    problems = jwt_secret_problems(jwt_secret_key)
    if problems:
        for problem in problems:
            logging.critical(problem)
        logging.critical("Set LINKPAGE_JWT_SECRET_KEY to a long random value")
        sys.exit(1)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def clamp_token_expires_days(days: int) -> int:
    """Keep the token lifetime inside the supported 1..7 day window."""
    return max(MIN_TOKEN_EXPIRES_DAYS, min(MAX_TOKEN_EXPIRES_DAYS, int(days)))


@dataclass
class DatabaseConfig:
    """Database configuration."""

    url: str = "sqlite:///linkpage.db"
    echo: bool = False
    log_queries: bool = False  # Enable query logging for performance analysis


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    auto_reload: bool = False
    workers: int = 1


@dataclass
class AppConfig:
    """Main application configuration."""

    app_name: str = "LinkPage"
    description: str = "Link-in-bio profiles with click analytics"

    # Storage backend: "sqlalchemy" (relational) or "memory"
    repository_backend: str = "sqlalchemy"

    # Security Configuration
    password_hash_iterations: int = 120_000  # PBKDF2 iterations
    jwt_secret_key: str = ""  # Must be set at runtime - no default for security
    jwt_algorithm: str = "HS256"
    token_expires_days: int = 7  # Clamped to 1..7

    # Analytics: month boundaries are computed in this timezone
    analytics_timezone: str = "UTC"

    # CORS
    enable_cors: bool = True
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://127.0.0.1:5173", "http://localhost:5173"]
    )

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"


@dataclass
class LinkPageConfig:
    """Complete configuration for LinkPage."""

    app: AppConfig
    server: ServerConfig
    database: DatabaseConfig

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkPageConfig":
        """Create from dictionary."""
        return cls(
            app=AppConfig(**data.get("app", {})),
            server=ServerConfig(**data.get("server", {})),
            database=DatabaseConfig(**data.get("database", {})),
        )


class ConfigManager:
    """Manages configuration loading, environment overrides and validation."""

    def __init__(self):
        self.config_file: Optional[Path] = None
        self.config: Optional[LinkPageConfig] = None

    def get_config_file_path(self) -> Optional[Path]:
        """Get the path of the JSON config file, if one is configured."""
        path = os.getenv("LINKPAGE_CONFIG_FILE")
        return Path(path) if path else None

    def _read_config_file(self) -> Dict[str, Any]:
        self.config_file = self.get_config_file_path()
        if self.config_file is None or not self.config_file.exists():
            return {}

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            logging.info(f"Loaded configuration from {self.config_file}")
            return data
        except (OSError, ValueError) as e:
            logging.warning(f"Failed to load config from {self.config_file}: {e}")
            return {}

    def _apply_environment(self, config: LinkPageConfig) -> None:
        """Apply LINKPAGE_* environment overrides in place."""
        db_url = os.getenv("LINKPAGE_DATABASE_URL") or os.getenv("DATABASE_URL")
        if db_url:
            config.database.url = db_url
        if os.getenv("LINKPAGE_LOG_QUERIES") is not None:
            config.database.log_queries = _env_flag("LINKPAGE_LOG_QUERIES")

        backend = os.getenv("LINKPAGE_REPOSITORY")
        if backend:
            config.app.repository_backend = backend.strip().lower()

        secret = os.getenv("LINKPAGE_JWT_SECRET_KEY")
        if secret:
            config.app.jwt_secret_key = secret
            logging.info(
                "Using JWT secret key from LINKPAGE_JWT_SECRET_KEY environment variable"
            )

        expires = os.getenv("LINKPAGE_TOKEN_EXPIRES_DAYS")
        if expires:
            config.app.token_expires_days = int(expires)

        iterations = os.getenv("LINKPAGE_PASSWORD_HASH_ITERATIONS")
        if iterations:
            config.app.password_hash_iterations = int(iterations)

        tz_name = os.getenv("LINKPAGE_ANALYTICS_TIMEZONE")
        if tz_name:
            config.app.analytics_timezone = tz_name

        if os.getenv("LINKPAGE_LOG_DIR"):
            config.app.log_dir = os.getenv("LINKPAGE_LOG_DIR")
        if os.getenv("LINKPAGE_LOG_TO_FILE") is not None:
            config.app.log_to_file = _env_flag("LINKPAGE_LOG_TO_FILE", True)

        if os.getenv("LINKPAGE_DEBUG") is not None:
            config.server.debug = _env_flag("LINKPAGE_DEBUG")
            if config.server.debug:
                config.app.log_level = "DEBUG"
        if os.getenv("LINKPAGE_HOST"):
            config.server.host = os.getenv("LINKPAGE_HOST")
        if os.getenv("LINKPAGE_PORT"):
            config.server.port = int(os.getenv("LINKPAGE_PORT"))

    def load_config(self) -> LinkPageConfig:
        """Load configuration once and cache it."""
        if self.config is not None:
            return self.config

        config = LinkPageConfig.from_dict(self._read_config_file())
        self._apply_environment(config)

        if config.app.repository_backend not in REPOSITORY_BACKENDS:
            logging.warning(
                f"Unknown repository backend '{config.app.repository_backend}', "
                f"falling back to 'sqlalchemy'"
            )
            config.app.repository_backend = "sqlalchemy"

        config.app.token_expires_days = clamp_token_expires_days(
            config.app.token_expires_days
        )

        try:
            ZoneInfo(config.app.analytics_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logging.warning(
                f"Unknown analytics timezone '{config.app.analytics_timezone}', "
                f"falling back to 'UTC'"
            )
            config.app.analytics_timezone = "UTC"

        if not config.app.jwt_secret_key:
            # Generate cryptographically secure 64-byte secret
            config.app.jwt_secret_key = secrets.token_urlsafe(64)
            logging.info("Generated new JWT secret key (not from environment)")

        self.config = config
        return self.config

    def reload_config(self) -> LinkPageConfig:
        """Drop the cached configuration and read it again."""
        self.config = None
        return self.load_config()

    def get_database_url(self) -> str:
        """Get the database URL."""
        return self.load_config().database.url

    def validate_security_config(self) -> None:
        """Validate security-critical configuration at startup.

        Raises:
            SystemExit: If critical security issues are found
        """
        config = self.load_config()
        _validate_jwt_secret_key(config.app.jwt_secret_key)
        logging.info("Security configuration validation passed")


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> LinkPageConfig:
    """Get the current configuration."""
    return config_manager.load_config()


def reload_config() -> LinkPageConfig:
    """Re-read configuration from file and environment."""
    return config_manager.reload_config()


def get_database_url() -> str:
    """Get the database URL."""
    return config_manager.get_database_url()


def validate_startup_security() -> None:
    """Validate security configuration at application startup.

    Raises:
        SystemExit: If critical security vulnerabilities are detected
    """
    config_manager.validate_security_config()
    logging.info("Startup security validation completed successfully")
