"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class GoCashConfig(BaseSettings):
    """GoCash collections service configuration"""

    model_config = SettingsConfigDict(
        env_prefix="GOCASH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Snapshot storage
    storage_url: str = "sqlite:///gocash.db"  # or memory://
    seed_on_empty: bool = True  # Fill missing collections from the seed dataset

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # Security configuration
    auth_enabled: bool = True
    jwt_secret: str = "change-me-in-production-gocash-session-key"
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: int = 12
    default_password: str = "123456"  # Given to managed users created without one

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    # Business rules configuration
    currency: str = "COP"
    chart_window_days: int = 7

    # AI advisor configuration
    advisor_api_key: str = ""  # Empty = advisor answers with its fallback text
    advisor_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    advisor_model: str = "gemini-3-flash-preview"
    advisor_timeout: float = 10.0
    advisor_temperature: float = 0.7
    advisor_max_output_tokens: int = 500


# Global configuration instance
config = GoCashConfig()


def get_config() -> GoCashConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> GoCashConfig:
    """Reload configuration from environment"""
    global config
    config = GoCashConfig()
    return config
