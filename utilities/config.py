"""
Configuration management using environment variables.
Handles storage, catalog search, identity provider and logging settings.
"""

from typing import Optional
from pydantic import validator
from pydantic_settings import BaseSettings
from pathlib import Path


class LibraryConfig(BaseSettings):
    """
    Configuration class for the library backend.
    Uses pydantic BaseSettings for environment variable management.
    """

    # MongoDB Configuration
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "little_library"
    mongodb_collection: str = "books"

    # OpenLibrary Configuration
    open_library_base_url: str = "https://openlibrary.org"
    open_library_cover_base_url: str = "https://covers.openlibrary.org"
    search_default_limit: int = 10

    # Firebase Configuration
    firebase_project_id: Optional[str] = None
    firebase_credentials_path: Optional[str] = None
    firebase_credentials_json: Optional[str] = None

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    # Development/Testing
    debug: bool = False

    @validator('open_library_base_url', 'open_library_cover_base_url')
    def strip_trailing_slash(cls, v):
        """URLs are joined with a leading slash, so drop a trailing one."""
        return v.rstrip('/')

    @validator('search_default_limit')
    def validate_search_limit(cls, v):
        """Ensure the default search limit is reasonable."""
        if v < 1 or v > 100:
            raise ValueError('search_default_limit must be between 1 and 100')
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields from .env

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def has_firebase_credentials(self) -> bool:
        """Check whether explicit service-account credentials are configured."""
        return bool(self.firebase_credentials_path or self.firebase_credentials_json)

    def get_user_agent(self) -> str:
        """Get user agent string for outbound requests."""
        return "LittleLibrary/1.0 (Personal Book Library)"


# Global configuration instance
config = LibraryConfig()
