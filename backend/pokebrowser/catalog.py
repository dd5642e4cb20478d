# backend/pokebrowser/catalog.py

import asyncio
import logging
from typing import List, Optional, Sequence

from pydantic import ValidationError

from .cache import get_cache, set_cache, clear_cache
from .exceptions import NotFound, PokeBrowserError
from .models import (
    DetailRecord, ItemSummary, MoveSummary, NamedResource, PageResult, PokemonStat,
)
from .pokeapi_client import list_pokemon, get_pokemon, get_move

logger = logging.getLogger(__name__)

PAGE_CACHE_PREFIX = "pokemon_page_"
POKEMON_DETAIL_CACHE_PREFIX = "pokemon_detail_"


def page_cache_key(offset: int, limit: int) -> str:
    return f"{PAGE_CACHE_PREFIX}{offset}_{limit}"


async def _cached(key: str, model):
    cached = await get_cache(key)
    if not cached:
        return None
    try:
        return model.model_validate(cached)
    except ValidationError as e:
        logger.error(f"Invalid cache entry for {key}: {e}")
        await clear_cache(key)
        return None


# --- Catalog Fetcher ---

async def fetch_page(offset: int, limit: int, force_refresh: bool = False) -> PageResult:
    """
    Fetches one page of catalog entries.

    Args:
        offset: Index of the first entry, >= 0.
        limit: Maximum entries to return, > 0.
        force_refresh: Bypass the page cache.

    Returns:
        A PageResult holding at most `limit` items, none of them enriched yet.

    Raises:
        NetworkError, DecodeError: The list request failed. Never retried.
    """
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit <= 0:
        raise ValueError(f"limit must be > 0, got {limit}")

    cache_key = page_cache_key(offset, limit)
    if not force_refresh:
        page = await _cached(cache_key, PageResult)
        if page is not None:
            logger.info(f"Serving catalog page offset={offset} limit={limit} from cache.")
            return page

    logger.info(f"Fetching catalog page offset={offset} limit={limit}")
    response = await list_pokemon(offset, limit)
    page = PageResult(
        count=response.count,
        items=[ItemSummary(name=r.name, url=r.url) for r in response.results[:limit]],
    )
    await set_cache(cache_key, page.model_dump())
    return page


# --- Enrichment Fan-out ---

async def _with_image(item: ItemSummary) -> ItemSummary:
    try:
        pokemon = await get_pokemon(item.name)
        return item.model_validate({**item.model_dump(), "image": pokemon.sprites.front_default or ""})
    except (PokeBrowserError, ValidationError) as e:
        logger.warning(f"Image lookup failed for '{item.name}': {type(e).__name__}")
        return item


async def enrich(items: Sequence[ItemSummary]) -> List[ItemSummary]:
    """
    Looks up the sprite of every item concurrently.

    The result has the same length and order as `items`. An item whose
    lookup fails is returned unchanged.
    """
    if not items:
        return []
    results = await asyncio.gather(*(_with_image(item) for item in items))
    logger.info(f"Enriched {sum(1 for r in results if r.image is not None)}/{len(results)} catalog items with images.")
    return list(results)


# --- Detail Fetcher ---

async def fetch_detail(identifier: str, force_refresh: bool = False) -> DetailRecord:
    """
    Fetches the detail record of one Pokémon by name or National Dex id.

    Raises:
        NotFound: No Pokémon matches `identifier`.
        NetworkError, DecodeError: The request failed.
    """
    identifier = str(identifier).strip().lower()
    if not identifier:
        raise NotFound("Pokémon identifier is empty")
    cache_key = f"{POKEMON_DETAIL_CACHE_PREFIX}{identifier}"
    if not force_refresh:
        detail = await _cached(cache_key, DetailRecord)
        if detail is not None:
            logger.info(f"Serving Pokémon detail data for '{identifier}' from cache.")
            return detail

    logger.info(f"Fetching Pokémon detail data for '{identifier}'")
    pokemon = await get_pokemon(identifier)
    detail = DetailRecord(
        id=pokemon.id,
        name=pokemon.name,
        height=pokemon.height,
        weight=pokemon.weight,
        base_experience=pokemon.base_experience,
        sprite_url=pokemon.sprites.front_default or "",
        types=[t.type.name for t in pokemon.types],
        abilities=[a.ability.name for a in pokemon.abilities],
        stats=[PokemonStat(name=s.stat.name, base_stat=s.base_stat) for s in pokemon.stats],
        move_refs=[m.move for m in pokemon.moves],
    )
    await set_cache(cache_key, detail.model_dump())
    return detail


# --- Move Enrichment ---

async def _move_summary(ref: NamedResource) -> Optional[MoveSummary]:
    try:
        move = await get_move(ref.url)
        return MoveSummary(
            name=move.name,
            type=move.type.name if move.type else "unknown",
            power=move.power or 0,
            accuracy=move.accuracy or 0,
        )
    except (PokeBrowserError, ValidationError) as e:
        logger.warning(f"Move lookup failed for '{ref.name}': {type(e).__name__}")
        return None


async def enrich_moves(refs: Sequence[NamedResource]) -> List[MoveSummary]:
    """Looks up every move concurrently. Failed lookups are left out; the rest keep their order."""
    if not refs:
        return []
    results = await asyncio.gather(*(_move_summary(ref) for ref in refs))
    moves = [m for m in results if m is not None]
    if len(moves) < len(refs):
        logger.info(f"Loaded {len(moves)} of {len(refs)} moves; {len(refs) - len(moves)} lookups failed.")
    return moves
