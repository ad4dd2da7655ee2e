"""
API configuration settings.
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Book Management API"
    api_version: str = "1.0.0"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Database Settings
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "book_management"
    books_collection: str = "books"
    counters_collection: str = "counters"

    # Security Settings
    jwt_secret_key: str = "dev-secret-key-change-in-production"
    jwt_issuer: str = "BookManagementAPI"
    jwt_audience: str = "BookManagementAPIUsers"
    jwt_algorithm: str = "HS256"
    jwt_expiry_minutes: int = 60

    # Route protection is opt-in; login never requires a token
    protect_book_routes: bool = False

    # CORS Settings
    cors_origins: list = ["*"]  # Configure appropriately for production
    cors_allow_credentials: bool = True
    cors_allow_methods: list = ["*"]
    cors_allow_headers: list = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }

    @field_validator('jwt_secret_key')
    @classmethod
    def validate_secret_key(cls, v):
        """Ensure a signing secret is configured."""
        if not v:
            raise ValueError('jwt_secret_key must not be empty')
        return v

    @field_validator('jwt_algorithm')
    @classmethod
    def validate_algorithm(cls, v):
        """Only symmetric HMAC-SHA256 signing is supported."""
        if v.upper() != "HS256":
            raise ValueError('jwt_algorithm must be HS256')
        return v.upper()

    @field_validator('jwt_expiry_minutes')
    @classmethod
    def validate_expiry(cls, v):
        """Ensure tokens live for at least a minute."""
        if v < 1:
            raise ValueError('jwt_expiry_minutes must be at least 1')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()


# Global config instance
config = APIConfig()
