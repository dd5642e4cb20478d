# backend/tests/conftest.py

import pytest

from pokebrowser import cache, clients

BASE_URL = "https://pokeapi.co/api/v2"


@pytest.fixture(autouse=True)
def isolated_resources(monkeypatch):
    """Each test gets a fresh httpx client and starts without a Redis pool."""
    monkeypatch.setattr(cache, "redis_pool", None)
    yield
    # The client belongs to the test's event loop; drop it so the next test builds its own
    clients._httpx_client = None


@pytest.fixture
def pokemon_payload():
    """Builds a PokeAPI /pokemon/{id} body trimmed to the fields we read."""
    def build(name, poke_id=1, sprite="default", moves=()):
        if sprite == "default":
            sprite = f"https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/{poke_id}.png"
        return {
            "id": poke_id,
            "name": name,
            "height": 4,
            "weight": 60,
            "base_experience": 112,
            "sprites": {"front_default": sprite},
            "types": [{"slot": 1, "type": {"name": "electric", "url": f"{BASE_URL}/type/13/"}}],
            "abilities": [
                {"slot": 1, "is_hidden": False, "ability": {"name": "static", "url": f"{BASE_URL}/ability/9/"}},
                {"slot": 3, "is_hidden": True, "ability": {"name": "lightning-rod", "url": f"{BASE_URL}/ability/31/"}},
            ],
            "stats": [{"stat": {"name": "hp", "url": f"{BASE_URL}/stat/1/"}, "base_stat": 35, "effort": 0}],
            "moves": [{"move": {"name": m, "url": f"{BASE_URL}/move/{i + 1}/"}} for i, m in enumerate(moves)],
        }
    return build


@pytest.fixture
def list_payload():
    """Builds a PokeAPI /pokemon?offset=&limit= body."""
    def build(names, count=None, start_id=1):
        return {
            "count": count if count is not None else len(names),
            "next": None,
            "previous": None,
            "results": [
                {"name": n, "url": f"{BASE_URL}/pokemon/{start_id + i}/"} for i, n in enumerate(names)
            ],
        }
    return build
