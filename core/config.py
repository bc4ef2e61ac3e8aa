"""
Configuration Management Module

This module handles loading, validating, and providing access to application configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Validates all required settings
- Provides type-safe access to configuration values
- Converts comma-separated strings to lists (assets, CORS origins)

There is no module-level settings instance. Call load_settings() once at the
entry point (FastAPI lifespan, CLI script) and pass the result down.

Usage:
    from core.config import load_settings

    settings = load_settings()
    print(settings.delta_base_url)
    print(settings.assets_list)  # Returns a list of strings
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


PROD_BASE_URL = "https://api.india.delta.exchange"
TEST_BASE_URL = "https://cdn-ind.testnet.deltaex.org"


class Settings(BaseSettings):
    """
    Application Settings

    Values are automatically loaded from environment variables or .env file.

    Attributes:
        delta_base_url: Base URL for the Delta Exchange public REST API
        delta_testnet_url: Base URL for the Delta Exchange testnet
        default_assets: Underlying assets fetched when the caller names none
        page_size: Records requested per page on paginated endpoints
        request_timeout: Timeout for HTTP requests in seconds
        max_retries: Attempts per request on rate limits / connection errors
        retry_delay: Base delay for exponential backoff (seconds)
        export_dir: Directory the CSV exporter writes into
        app_host: Host address for FastAPI server
        app_port: Port number for FastAPI server
        environment: Current environment (development, production)
        debug: Enable debug mode
        log_level: Logging level name
        cors_origins: Comma-separated list of allowed CORS origins
    """

    # ============================================
    # Delta Exchange API Configuration
    # ============================================

    delta_base_url: str = Field(
        default=PROD_BASE_URL,
        description="Delta Exchange API base URL"
    )

    delta_testnet_url: str = Field(
        default=TEST_BASE_URL,
        description="Delta Exchange testnet API base URL"
    )

    # ============================================
    # Option Chain Configuration
    # ============================================

    default_assets: str = Field(
        default="BTC,ETH",
        description="Comma-separated list of underlying assets"
    )

    page_size: int = Field(
        default=1000,
        description="Page size used for cursor-paginated endpoints"
    )

    export_dir: str = Field(
        default="exports",
        description="Directory for exported CSV files"
    )

    # ============================================
    # Application Configuration
    # ============================================

    app_host: str = Field(
        default="0.0.0.0",
        description="FastAPI server host address"
    )

    app_port: int = Field(
        default=8000,
        description="FastAPI server port"
    )

    environment: str = Field(
        default="development",
        description="Application environment (development, production)"
    )

    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # ============================================
    # Rate Limiting & Performance
    # ============================================

    request_timeout: int = Field(
        default=30,
        description="HTTP request timeout in seconds"
    )

    max_retries: int = Field(
        default=3,
        description="Maximum attempts per request on 429 / connection errors"
    )

    retry_delay: float = Field(
        default=1.0,
        description="Base backoff delay between retries (seconds)"
    )

    # ============================================
    # CORS Configuration
    # ============================================

    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    # ============================================
    # Custom Properties
    # ============================================

    @property
    def assets_list(self) -> List[str]:
        """
        Convert comma-separated assets string to a list.

        Example:
            >>> settings.assets_list
            ['BTC', 'ETH']
        """
        return [a.strip().upper() for a in self.default_assets.split(",") if a.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert comma-separated CORS origins string to a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def get_delta_headers(self) -> dict:
        """
        Get HTTP headers for Delta Exchange API requests.

        Note:
            Only public market-data endpoints are used, so no credentials are sent.
        """
        return {
            "Accept": "application/json",
        }


def load_settings(**overrides) -> Settings:
    """
    Build a Settings instance from the environment.

    Args:
        **overrides: Explicit values that take precedence over the environment

    Example:
        >>> settings = load_settings(log_level="DEBUG")
    """
    return Settings(**overrides)


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(settings: Settings) -> None:
    """
    Validate critical configuration settings on application startup.

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    # logging.py imports this module, so import lazily
    from core.logging import logger

    if not settings.assets_list:
        raise ValueError("DEFAULT_ASSETS must contain at least one asset")

    if not settings.delta_base_url.startswith("http"):
        raise ValueError(f"Invalid DELTA_BASE_URL: '{settings.delta_base_url}'")

    if settings.page_size < 1:
        raise ValueError(f"Invalid PAGE_SIZE: {settings.page_size}. Must be positive")

    if not (1 <= settings.app_port <= 65535):
        raise ValueError(f"Invalid port number: {settings.app_port}. Must be between 1 and 65535")

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if settings.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{settings.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    logger.info("Configuration validated successfully")
    logger.info(f"Default assets: {', '.join(settings.assets_list)}")
    logger.info(f"Delta API: {settings.delta_base_url}")
    logger.info(f"Page size: {settings.page_size}")
    logger.info(f"Server: {settings.app_host}:{settings.app_port}")
    logger.info(f"Log level: {settings.log_level.upper()}")
