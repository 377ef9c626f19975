"""Configuration management utilities for the store backoffice.

Provides:
- A base Config class with a dict view for logging
- ClientConfig for the REST backend connection
- AppConfig for the web backoffice, loaded from environment variables

Every environment variable has a default, so the backoffice starts against a
backend on localhost without any configuration.
"""

import os as _os
from typing import Dict, Any

DEFAULT_API_URL = "http://localhost:9090/api"

# REST resource names, as they appear in backend URLs and cache keys.
PRODUCTS = "products"
ACCOUNTS = "accounts"
ORDERS = "orders"
CATEGORIES = "categories"
RESOURCES = (PRODUCTS, ACCOUNTS, ORDERS, CATEGORIES)


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        """Initialize configuration with default values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}


class ClientConfig(Config):
    """Connection settings for the REST backend.

    Environment variables:
        STORE_API_URL: Backend base URL (default: http://localhost:9090/api)
        STORE_API_TIMEOUT: Base request timeout in seconds (default: 30)
        STORE_API_MIN_TIMEOUT: Lower bound for adaptive timeouts (default: 5)
        STORE_API_MAX_TIMEOUT: Upper bound for adaptive timeouts (default: 60)
        STORE_API_RETRIES: Retries for idempotent reads (default: 0, none)
    """

    def __init__(self) -> None:
        super().__init__()
        self.api_url = _os.getenv("STORE_API_URL", DEFAULT_API_URL).rstrip("/")
        self.timeout = int(_os.getenv("STORE_API_TIMEOUT", "30"))
        self.min_timeout = int(_os.getenv("STORE_API_MIN_TIMEOUT", "5"))
        self.max_timeout = int(_os.getenv("STORE_API_MAX_TIMEOUT", "60"))
        self.max_retries = int(_os.getenv("STORE_API_RETRIES", "0"))

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return cls()


class AppConfig(ClientConfig):
    """Application-level configuration loaded from environment variables.

    Environment variables (in addition to ClientConfig's):
        APP_HOST: Backoffice bind address (default: 127.0.0.1)
        APP_PORT: Backoffice port (default: 8080)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_LOG_LEVEL: Root log level (default: INFO)
        CACHE_FETCH_TIMEOUT: Seconds a coalesced reader waits for the
            in-flight fetch of the same collection (default: 60)
    """

    def __init__(self) -> None:
        super().__init__()
        self.api_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.api_port = int(_os.getenv("APP_PORT", "8080"))
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        self.log_level = _os.getenv("APP_LOG_LEVEL", "INFO").upper()
        self.cache_fetch_timeout = float(_os.getenv("CACHE_FETCH_TIMEOUT", "60"))

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
