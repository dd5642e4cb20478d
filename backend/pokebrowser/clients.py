# backend/pokebrowser/clients.py
import httpx
import logging
from typing import Optional

from .config import settings

logger = logging.getLogger(__name__)

# --- Shared Client Instance ---
# A single pooled client is shared by every PokeAPI call
_httpx_client: Optional[httpx.AsyncClient] = None

async def get_client() -> httpx.AsyncClient:
    """Gets or creates the shared httpx client for PokeAPI calls."""
    global _httpx_client
    if _httpx_client is None or _httpx_client.is_closed:
        logger.info("Creating/Recreating httpx client for PokeAPI.")
        _httpx_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.request_timeout_seconds, connect=settings.connect_timeout_seconds),
            follow_redirects=True,
            limits=httpx.Limits(
                max_connections=settings.max_connections,
                max_keepalive_connections=settings.max_keepalive_connections,
            ),
        )
    return _httpx_client

async def close_client():
    """Closes the shared httpx client."""
    global _httpx_client
    if _httpx_client and not _httpx_client.is_closed:
        await _httpx_client.aclose()
        _httpx_client = None
        logger.info("PokeAPI httpx client closed.")
    elif _httpx_client:
        _httpx_client = None
        logger.warning("PokeAPI httpx client was already closed.")
