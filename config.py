"""
Tessera - Configuration

Centralized configuration management for Tessera services.
Uses environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from core.errors import ConfigError

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


SUPPORTED_CIPHERS = ("fernet", "aes-gcm")


@dataclass
class DatabaseConfig:
    """Database configuration."""
    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///:memory:"))
    table_prefix: str = field(default_factory=lambda: os.getenv("DATABASE_TABLE_PREFIX", ""))
    echo: bool = field(default_factory=lambda: os.getenv("DATABASE_ECHO", "false").lower() == "true")


@dataclass
class AuthConfig:
    """Authentication configuration."""
    bcrypt_rounds: int = field(default_factory=lambda: int(os.getenv("AUTH_BCRYPT_ROUNDS", "12")))
    users_table: str = field(default_factory=lambda: os.getenv("AUTH_USERS_TABLE", "#__users"))
    password_handler: str = field(default_factory=lambda: os.getenv("AUTH_PASSWORD_HANDLER", "bcrypt"))


@dataclass
class CryptConfig:
    """Encryption configuration."""
    cipher: str = field(default_factory=lambda: os.getenv("CRYPT_CIPHER", "fernet"))
    # Private key material as produced by `tessera crypt-keygen`
    key: str = field(default_factory=lambda: os.getenv("CRYPT_KEY", ""))


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    env: Environment = field(default_factory=lambda: Environment(os.getenv("ENVIRONMENT", "development")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    app_name: str = field(default_factory=lambda: os.getenv("APP_NAME", "Tessera"))

    # Sub-configurations
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    crypt: CryptConfig = field(default_factory=CryptConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.env == Environment.DEVELOPMENT

    def validate(self) -> "Config":
        """
        Check values that cannot be validated by their type alone.

        Raises:
            ConfigError: On the first invalid value
        """
        if not 4 <= self.auth.bcrypt_rounds <= 31:
            raise ConfigError(
                "bcrypt rounds must be between 4 and 31",
                config_key="AUTH_BCRYPT_ROUNDS",
                actual_value=self.auth.bcrypt_rounds,
            )
        if self.crypt.cipher not in SUPPORTED_CIPHERS:
            raise ConfigError(
                f"Unsupported cipher '{self.crypt.cipher}'",
                config_key="CRYPT_CIPHER",
                actual_value=self.crypt.cipher,
                suggestions=[f"Use one of: {', '.join(SUPPORTED_CIPHERS)}"],
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (excluding sensitive values)."""
        return {
            "env": self.env.value,
            "debug": self.debug,
            "app_name": self.app_name,
            "database": {
                "table_prefix": self.database.table_prefix,
                "echo": self.database.echo,
            },
            "auth": {
                "bcrypt_rounds": self.auth.bcrypt_rounds,
                "users_table": self.auth.users_table,
                "password_handler": self.auth.password_handler,
            },
            "crypt": {
                "cipher": self.crypt.cipher,
                "key_configured": bool(self.crypt.key),
            },
        }


# Singleton configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config
