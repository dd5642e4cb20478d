# backend/pokebrowser/models.py

from pydantic import BaseModel, Field
from typing import List, Optional

# --- Wire models (shapes returned by PokeAPI) ---

class NamedResource(BaseModel):
    """A `{name, url}` reference as PokeAPI returns it."""
    name: str
    url: str

class PokemonListResponse(BaseModel):
    """Body of GET /pokemon?offset=&limit=."""
    count: int = Field(..., ge=0)
    results: List[NamedResource] = []

class SpriteData(BaseModel):
    front_default: Optional[str] = None

class PokemonTypeSlot(BaseModel):
    type: NamedResource

class PokemonAbilitySlot(BaseModel):
    ability: NamedResource
    is_hidden: bool = False

class PokemonStatData(BaseModel):
    stat: NamedResource
    base_stat: int

class PokemonMoveSlot(BaseModel):
    move: NamedResource

class RawPokemon(BaseModel):
    """Body of GET /pokemon/{id_or_name}. Only the fields we read are modelled."""
    id: Optional[int] = None
    name: str
    height: int = 0
    weight: int = 0
    base_experience: Optional[int] = None
    sprites: SpriteData = Field(default_factory=SpriteData)
    types: List[PokemonTypeSlot] = []
    abilities: List[PokemonAbilitySlot] = []
    stats: List[PokemonStatData] = []
    moves: List[PokemonMoveSlot] = []

class RawMove(BaseModel):
    """Body of GET /move/{id}. Power and accuracy are null for status moves."""
    name: str
    type: Optional[NamedResource] = None
    power: Optional[int] = None
    accuracy: Optional[int] = None

# --- Browser models ---

class ItemSummary(BaseModel):
    """One row of the catalog list."""
    name: str = Field(..., description="Pokémon name")
    url: str = Field(..., description="PokeAPI reference URL")
    image: Optional[str] = Field(None, description="Front sprite URL, set once enrichment succeeds")

class PageResult(BaseModel):
    """A page of the catalog as returned by the list endpoint."""
    count: int = Field(0, ge=0, description="Total number of Pokémon in the catalog")
    items: List[ItemSummary] = Field(default_factory=list)

class PokemonStat(BaseModel):
    name: str = Field(..., description="Name of the stat (e.g., 'hp', 'attack')")
    base_stat: int = Field(..., description="Base stat value")

class DetailRecord(BaseModel):
    id: Optional[int] = None
    name: str
    height: int
    weight: int
    base_experience: Optional[int] = None
    sprite_url: str = Field("", description="Front sprite URL, empty when PokeAPI has none")
    types: List[str] = []
    abilities: List[str] = []
    stats: List[PokemonStat] = []
    move_refs: List[NamedResource] = []

class MoveSummary(BaseModel):
    name: str
    type: str = "unknown"
    power: int = Field(0, ge=0, description="Base power, 0 when unknown")
    accuracy: int = Field(0, ge=0, le=100, description="Accuracy percentage, 0 when unknown")

# --- API response models ---

class LoginRequest(BaseModel):
    email: str
    password: str

class CatalogPageResponse(BaseModel):
    count: int
    offset: int
    page_size: int
    last_page_offset: int
    has_next: bool
    has_prev: bool
    items: List[ItemSummary]

class DetailPageResponse(BaseModel):
    detail: DetailRecord
    moves: List[MoveSummary]
    move_count: int
    page: int
    total_pages: int
    back_offset: Optional[int] = None
