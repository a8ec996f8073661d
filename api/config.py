"""
HTTP server settings for the Little Library API.
Read from ``API_``-prefixed environment variables.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


class APIConfig(BaseSettings):
    """Server, CORS and access-log settings."""

    api_title: str = "Little Library API"
    api_version: str = "1.0.0"

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Comma-separated, e.g. API_CORS_ORIGINS=http://localhost:3000,https://shelf.example
    cors_origins: str = "*"
    cors_allow_credentials: bool = True
    cors_allow_methods: str = "GET,POST,PUT,DELETE,OPTIONS"
    cors_allow_headers: str = "Authorization,Content-Type"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        extra="ignore",
    )

    def get_cors_origins(self) -> List[str]:
        return _split(self.cors_origins)

    def get_cors_allow_methods(self) -> List[str]:
        return _split(self.cors_allow_methods)

    def get_cors_allow_headers(self) -> List[str]:
        return _split(self.cors_allow_headers)


config = APIConfig()
