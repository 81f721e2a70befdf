"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from datetime import date
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class RetailAccountingConfig(BaseSettings):
    """Retail accounting system configuration"""

    model_config = SettingsConfigDict(
        env_prefix="RETAIL_ACCOUNTING_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage configuration
    database_url: str = "sqlite:///retail_accounting.db"

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout

    # Book defaults for newly provisioned tenants
    default_currency: str = "YER"
    default_language: str = "ar"
    store_name: str = "Milano Store"

    # Opening-balance postings carry this date (they always sort first)
    opening_balance_date: date = date(2024, 1, 1)

    # Fail tenant provisioning when a well-known account code is missing
    strict_well_known: bool = True


# Global configuration instance
config = RetailAccountingConfig()


def get_config() -> RetailAccountingConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> RetailAccountingConfig:
    """Reload configuration from environment"""
    global config
    config = RetailAccountingConfig()
    return config
