# backend/pokebrowser/pokeapi_client.py

import httpx
import logging
from typing import Optional, Dict, Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .clients import get_client
from .config import settings
from .exceptions import NetworkError, DecodeError, NotFound
from .models import PokemonListResponse, RawPokemon, RawMove

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _resolve_url(endpoint: str) -> str:
    if endpoint.startswith("http"):
        return endpoint
    if not endpoint.startswith('/'):
        endpoint = '/' + endpoint
    return f"{settings.pokeapi_base_url.rstrip('/')}{endpoint}"


async def fetch_pokeapi(endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """
    Fetches JSON from a PokeAPI endpoint.

    Args:
        endpoint: A path relative to the configured base URL (e.g. "/pokemon/pikachu")
            or a full URL as found in PokeAPI `url` fields.
        params: Optional query parameters.

    Returns:
        The decoded JSON body.

    Raises:
        NotFound: The API answered 404.
        NetworkError: Timeout, transport failure or any other non-2xx status.
        DecodeError: The body is not valid JSON.
    """
    client = await get_client()
    url = _resolve_url(endpoint)

    logger.debug(f"Fetching data from PokeAPI: {url} params={params}")
    try:
        response = await client.get(url, params=params)
        response.raise_for_status()
    except httpx.TimeoutException as e:
        logger.error(f"Request timed out for PokeAPI endpoint: {url}")
        raise NetworkError(f"Request timed out: {url}", url=url) from e
    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        if status_code == 404:
            logger.warning(f"Resource not found at {url}")
            raise NotFound(f"Resource not found: {url}", url=url) from e
        logger.error(f"HTTP error occurred: {status_code} {e.response.reason_phrase} for url {url}")
        raise NetworkError(f"HTTP {status_code} for {url}", url=url, status_code=status_code) from e
    except httpx.RequestError as e:
        logger.error(f"An error occurred while requesting {url}: {e}")
        raise NetworkError(f"Request failed for {url}: {e}", url=url) from e

    try:
        return response.json()
    except ValueError as e:
        logger.error(f"Malformed JSON from {url}: {e}")
        raise DecodeError(f"Malformed JSON from {url}", url=url) from e


def _validate(model: Type[ModelT], payload: Any, url: str) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.error(f"Unexpected {model.__name__} payload from {url}: {e.error_count()} errors")
        raise DecodeError(f"Unexpected {model.__name__} payload from {url}", url=url) from e


async def list_pokemon(offset: int, limit: int) -> PokemonListResponse:
    """GET /pokemon?offset=&limit=: one page of `{name, url}` references."""
    payload = await fetch_pokeapi("/pokemon", params={"offset": offset, "limit": limit})
    return _validate(PokemonListResponse, payload, _resolve_url("/pokemon"))


async def get_pokemon(identifier: str) -> RawPokemon:
    """GET /pokemon/{name-or-id}."""
    endpoint = f"/pokemon/{identifier}"
    payload = await fetch_pokeapi(endpoint)
    return _validate(RawPokemon, payload, _resolve_url(endpoint))


async def get_move(url: str) -> RawMove:
    """GET an arbitrary move URL taken from a Pokémon's `moves[].move.url`."""
    payload = await fetch_pokeapi(url)
    return _validate(RawMove, payload, url)
