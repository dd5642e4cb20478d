# backend/pokebrowser/config.py

import os
from typing import Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
# Useful for local development
env_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env')
load_dotenv(dotenv_path=env_path)

class Settings(BaseSettings):
    """Application settings."""

    # PokeAPI base URL
    pokeapi_base_url: str = "https://pokeapi.co/api/v2"

    # HTTP client tuning
    request_timeout_seconds: float = 10.0
    connect_timeout_seconds: float = 5.0
    max_connections: int = 100
    max_keepalive_connections: int = 20

    # Redis configuration
    # Reads REDIS_URL from environment or .env file
    redis_url: str = "redis://localhost:6379/0"
    # Set CACHE_ENABLED=false to skip creating the pool entirely
    cache_enabled: bool = True
    # Default cache TTL (Time To Live) in seconds (1 hour)
    cache_ttl_seconds: int = 60 * 60

    # Catalog page size and detail moves per page
    page_size: int = 20
    moves_per_page: int = 8

    # Credentials accepted by the static authenticator.
    # Left unset, every login attempt is rejected.
    login_email: Optional[str] = None
    login_password: Optional[str] = None

    class Config:
        # Specifies the .env file encoding
        env_file_encoding = 'utf-8'


# Create a single instance of the settings to be imported in other modules
settings = Settings()
