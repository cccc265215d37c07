"""
Application configuration and environment variables.

This module unifies configuration using pydantic-settings.
Variables can come from:
1. .env file
2. System environment variables (have priority)
3. Default values

Naming convention:
- In Python code: snake_case (aws_region)
- In .env or ENV vars: UPPER_CASE (AWS_REGION)
- Pydantic automatically converts between both
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Unified application configuration.

    All variables can be defined in:
    - .env file: VARIABLE_NAME=value
    - Environment variables: export VARIABLE_NAME=value

    Example:
        # In .env or as environment variable:
        AWS_REGION=eu-west-1
        LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allows using uppercase or lowercase
        extra="ignore",  # Ignores extra variables in .env
    )

    # ============================================================================
    # LOGGING SETTINGS
    # ============================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | request_id={extra[request_id]} | {name}:{function}:{line} - {message}",  # noqa: E501
        description="Log format",
    )
    logger_enqueue: bool = Field(
        default=False, description="Enqueue logs using multiprocessing"
    )
    log_colorize: bool = Field(
        default=False,
        description="Colorize log output (disable for CloudWatch and other collectors)",
    )

    # ============================================================================
    # AWS SETTINGS
    # ============================================================================
    aws_region: str = Field(
        default="us-east-1",
        description=(
            "Default AWS region. Used for ACM listing and new imports, "
            "S3 bucket location lookups and SSM parameters"
        ),
    )
    aws_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Maximum attempts per AWS API call (botocore retry config)",
    )
    aws_retry_mode: Literal["legacy", "standard", "adaptive"] = Field(
        default="standard",
        description="botocore retry mode (legacy, standard, adaptive)",
    )


# ============================================================================
# SINGLETON PATTERN - Global settings instance
# ============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings (LRU cached).

    This function is cached, so the .env file is only read once.
    To refresh the configuration, clear the cache:
        get_settings.cache_clear()

    Usage:
        from certkeeper.config import get_settings
        settings = get_settings()
        print(settings.aws_region)

    Returns:
        Settings: Application configuration instance.
    """
    return Settings()


# Create global instance for use in non-request modules
settings = get_settings()
