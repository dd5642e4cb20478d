# backend/pokebrowser/main.py

from fastapi import Depends, FastAPI, HTTPException, Path, Query, status
from contextlib import asynccontextmanager
import logging
from typing import Optional

from . import cache
from .auth import Authenticator, get_authenticator
from .clients import get_client, close_client
from .config import settings
from .exceptions import PokeBrowserError, NotFound, DecodeError
from .models import CatalogPageResponse, DetailPageResponse, LoginRequest
from .pagination import parse_offset_param
from .views import DetailView, HomeView, InMemoryNavigator, HOME_PATH, OFFSET_PARAM

# Configure logging
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup phase
    logger.info("Application startup...")
    if settings.cache_enabled:
        try:
            cache.create_redis_pool()
        except Exception as e:
            logger.error(f"Redis unavailable, continuing without cache: {e}")
    else:
        logger.info("Cache disabled by configuration.")

    await get_client()
    logger.info("PokeAPI HTTPX client initialized.")

    yield # Application runs here

    # Shutdown phase
    logger.info("Application shutdown...")
    await cache.close_redis_pool()
    await close_client()
    logger.info("Resources cleaned up.")

app = FastAPI(
    title="Pokedex Browser API",
    description="Paginated Pokémon catalog with sprite and move enrichment from PokeAPI",
    version="1.0.0",
    lifespan=lifespan,
)

def _http_error(exc: PokeBrowserError) -> HTTPException:
    if isinstance(exc, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, DecodeError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="PokeAPI returned an unexpected payload.")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="PokeAPI could not be reached.")

# --- API Endpoints ---

@app.get("/")
async def read_root():
    """ Basic root endpoint to check if the API is running. """
    return {
        "message": "Welcome to the Pokedex Browser API!",
        "documentation": "/docs",
        "cache_status": "connected" if cache.is_cache_available() else "not connected",
    }

@app.post("/api/login", summary="Log In", tags=["Auth"])
async def login(
    credentials: LoginRequest,
    authenticator: Authenticator = Depends(get_authenticator),
):
    if not authenticator.authenticate(credentials.email, credentials.password):
        logger.info("Rejected login attempt.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return {"redirect": HOME_PATH}

@app.get(
    "/api/pokemon",
    response_model=CatalogPageResponse,
    summary="Get a Page of the Catalog",
    description="Returns one page of Pokémon with their sprite URLs. Entries whose sprite lookup failed have no image.",
    tags=["Pokedex"]
)
async def get_catalog_page(
    offset: Optional[int] = Query(None, ge=0, description="Index of the first Pokémon; snapped down to a page boundary.")
):
    params = {OFFSET_PARAM: str(offset)} if offset is not None else {}
    view = HomeView(InMemoryNavigator(HOME_PATH, params))
    view.enter()
    await view.settle()
    if view.page is None:
        raise _http_error(view.last_error)

    logger.info(f"Returning {len(view.items)} Pokémon at offset {view.offset}.")
    return CatalogPageResponse(
        count=view.total,
        offset=view.offset,
        page_size=view.page_size,
        last_page_offset=view.last_page_offset,
        has_next=view.pagination.has_next,
        has_prev=view.pagination.has_prev,
        items=view.items,
    )

@app.get(
    "/api/pokemon/{pokemon_id_or_name}",
    response_model=DetailPageResponse,
    summary="Get Detailed Data for a Specific Pokémon",
    description="Returns the detail record of one Pokémon and one page of its moves.",
    tags=["Pokemon"]
)
async def get_pokemon_details(
    pokemon_id_or_name: str = Path(..., description="National Pokédex ID or lowercase name", examples=["pikachu", "25"]),
    offset: Optional[int] = Query(None, ge=0, description="Catalog offset to return to."),
    page: int = Query(0, ge=0, description="Zero-based page of the moves list."),
):
    params = {OFFSET_PARAM: str(offset)} if offset is not None else {}
    view = DetailView(InMemoryNavigator(f"/pokemon/{pokemon_id_or_name}", params))
    view.enter(pokemon_id_or_name)
    await view.settle()
    if view.detail is None:
        raise _http_error(view.last_error)

    view.go_to_page(page)
    _, back_params = view.back_target()
    return DetailPageResponse(
        detail=view.detail,
        moves=view.visible_moves,
        move_count=len(view.moves),
        page=view.current_page,
        total_pages=view.total_pages,
        back_offset=parse_offset_param(back_params.get(OFFSET_PARAM)),
    )
