"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings


class EngineConfig(BaseSettings):
    """Lending engine configuration"""

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8091

    # Money configuration
    default_currency: str = "USD"
    paid_tolerance: str = "0.01"  # Installment counts as paid within this amount

    # Rate model defaults
    default_compounding_frequency: str = "annually"

    # Payment allocation
    allocation_policy: str = "principal_only"  # principal_only or interest_first_waterfall
    reject_overpayment: bool = False

    # Delinquency
    late_penalty_grace_days: int = 0

    class Config:
        env_prefix = "LENDING_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = EngineConfig()


def get_config() -> EngineConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> EngineConfig:
    """Reload configuration from environment"""
    global config
    config = EngineConfig()
    return config
