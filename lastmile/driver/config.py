"""
Configuration for the driver-side sync core.

Read from LASTMILE_* environment variables or a .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class ClientSettings(BaseSettings):
    """Driver client settings."""

    # Base URL including the API version prefix
    api_base_url: str = "http://localhost:8000/v1"
    request_timeout: float = 30.0

    # JSON file backing queue, tracker and session; in-memory when unset
    storage_path: Optional[str] = None

    class Config:
        env_prefix = "LASTMILE_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


client_settings = ClientSettings()
