"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class BankCoreConfig(BaseSettings):
    """Account core and service wrapper configuration"""

    service_name: str = "Concurrent Banking Service"

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # Lock acquisition; None waits until the lock is free
    lock_timeout_seconds: Optional[float] = None

    class Config:
        env_prefix = "BANK_CORE_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = BankCoreConfig()


def get_config() -> BankCoreConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BankCoreConfig:
    """Reload configuration from environment"""
    global config
    config = BankCoreConfig()
    return config
