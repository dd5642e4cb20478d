# backend/tests/test_views.py

import asyncio

import pytest

from pokebrowser.exceptions import NetworkError, NotFound
from pokebrowser.models import DetailRecord, ItemSummary, MoveSummary, NamedResource, PageResult
from pokebrowser.views import DetailView, HomeView, InMemoryNavigator, extract_id_from_url

BASE_URL = "https://pokeapi.co/api/v2"


class FakeCatalog:
    """Stands in for catalog.fetch_page / catalog.enrich and records calls."""

    def __init__(self, total=120, fail_offsets=()):
        self.total = total
        self.fail_offsets = set(fail_offsets)
        self.page_calls = []
        self.enrich_calls = []
        self.gates = {}

    async def fetch_page(self, offset, limit):
        self.page_calls.append((offset, limit))
        if offset in self.gates:
            await self.gates[offset].wait()
        if offset in self.fail_offsets:
            raise NetworkError("boom")
        count = max(0, min(limit, self.total - offset))
        items = [ItemSummary(name=f"mon-{offset + i}", url=f"{BASE_URL}/pokemon/{offset + i + 1}/")
                 for i in range(count)]
        return PageResult(count=self.total, items=items)

    async def enrich(self, items):
        self.enrich_calls.append([i.name for i in items])
        return [i.model_copy(update={"image": f"{i.name}.png"}) for i in items]


def _home(catalog, params=None):
    navigator = InMemoryNavigator("/home", params)
    view = HomeView(navigator, fetch_page=catalog.fetch_page, enrich=catalog.enrich, page_size=20)
    return view, navigator


@pytest.mark.asyncio
async def test_enter_uses_offset_from_navigation():
    catalog = FakeCatalog()
    view, _ = _home(catalog, {"offset": "40"})

    view.enter()
    await view.settle()

    assert catalog.page_calls == [(40, 20)]
    assert view.offset == 40
    assert view.items[0].name == "mon-40"


@pytest.mark.asyncio
async def test_enter_without_param_starts_at_zero():
    catalog = FakeCatalog()
    view, navigator = _home(catalog)

    view.enter()
    await view.settle()

    assert catalog.page_calls == [(0, 20)]
    assert "offset" not in navigator.query_params()


@pytest.mark.asyncio
async def test_page_is_published_then_enriched():
    catalog = FakeCatalog()
    view, _ = _home(catalog)
    events = []
    view.subscribe(lambda event, v: events.append((event, [i.image for i in v.items][:1])))

    view.enter()
    await view.settle()

    assert [e for e, _ in events] == ["loading", "page_loaded", "images_loaded"]
    assert events[1][1] == [None]
    assert events[2][1] == ["mon-0.png"]
    assert view.is_loading is False


@pytest.mark.asyncio
async def test_next_is_noop_on_last_page():
    catalog = FakeCatalog(total=120)
    view, _ = _home(catalog, {"offset": "100"})
    view.enter()
    await view.settle()

    assert view.next() is None
    assert catalog.page_calls == [(100, 20)]


@pytest.mark.asyncio
async def test_offset_changes_are_written_to_navigation():
    catalog = FakeCatalog(total=120)
    view, navigator = _home(catalog)
    view.enter()
    await view.settle()

    view.next()
    await view.settle()
    view.jump_forward()
    await view.settle()

    assert navigator.query_params()["offset"] == "100"
    assert [c[0] for c in catalog.page_calls] == [0, 20, 100]

    view.jump(-5)
    await view.settle()
    assert view.offset == 0
    assert navigator.query_params()["offset"] == "0"


@pytest.mark.asyncio
async def test_query_change_restores_offset():
    """Coming back from a detail page with ?offset=60 reloads that page."""
    catalog = FakeCatalog(total=120)
    view, navigator = _home(catalog)
    view.enter()
    await view.settle()

    navigator.navigate("/home", {"offset": "60"})
    await view.settle()

    assert view.offset == 60
    assert catalog.page_calls[-1] == (60, 20)


@pytest.mark.asyncio
async def test_query_change_with_same_or_invalid_offset_is_ignored():
    catalog = FakeCatalog()
    view, _ = _home(catalog, {"offset": "20"})
    view.enter()
    await view.settle()

    assert view.on_query_change({"offset": "20"}) is None
    assert view.on_query_change({"offset": "abc"}) is None
    assert view.on_query_change({}) is None
    assert catalog.page_calls == [(20, 20)]


@pytest.mark.asyncio
async def test_unaligned_query_change_on_current_page_is_written_back():
    """?offset=45 while showing 40 keeps page 40 and rewrites the parameter."""
    catalog = FakeCatalog()
    view, navigator = _home(catalog, {"offset": "40"})
    view.enter()
    await view.settle()

    navigator.set_query_param("offset", "45")
    await view.settle()

    assert navigator.query_params()["offset"] == "40"
    assert catalog.page_calls == [(40, 20)]


@pytest.mark.asyncio
async def test_unaligned_query_change_moves_and_writes_back():
    catalog = FakeCatalog()
    view, navigator = _home(catalog)
    view.enter()
    await view.settle()

    navigator.set_query_param("offset", "65")
    await view.settle()

    assert view.offset == 60
    assert navigator.query_params()["offset"] == "60"
    assert catalog.page_calls == [(0, 20), (60, 20)]


@pytest.mark.asyncio
async def test_closed_view_ignores_navigation_and_drops_load_in_flight():
    catalog = FakeCatalog(total=120)
    catalog.gates[20] = asyncio.Event()
    view, navigator = _home(catalog)
    view.enter()
    await view.settle()
    pending = view.next()
    await asyncio.sleep(0)

    view.close()
    catalog.gates[20].set()
    navigator.navigate("/home", {"offset": "80"})
    await asyncio.wait({pending})

    assert pending.cancelled()
    assert view.is_loading is False
    assert view.items[0].name == "mon-0"
    assert [c[0] for c in catalog.page_calls] == [0, 20]


def test_navigator_listener_can_be_removed():
    navigator = InMemoryNavigator("/home")
    seen = []
    remove = navigator.listen(seen.append)

    navigator.set_query_param("offset", "20")
    remove()
    remove()
    navigator.set_query_param("offset", "40")

    assert seen == [{"offset": "20"}]


@pytest.mark.asyncio
async def test_unaligned_offset_is_snapped_and_written_back():
    catalog = FakeCatalog()
    view, navigator = _home(catalog, {"offset": "45"})

    view.enter()
    await view.settle()

    assert catalog.page_calls == [(40, 20)]
    assert navigator.query_params()["offset"] == "40"


@pytest.mark.asyncio
async def test_offset_past_the_end_is_clamped_to_last_page():
    catalog = FakeCatalog(total=120)
    view, navigator = _home(catalog, {"offset": "500"})

    view.enter()
    await view.settle()

    assert [c[0] for c in catalog.page_calls] == [500, 100]
    assert view.offset == 100
    assert navigator.query_params()["offset"] == "100"
    assert len(view.items) == 20


@pytest.mark.asyncio
async def test_failed_fetch_keeps_previous_page():
    catalog = FakeCatalog(total=120, fail_offsets={20})
    view, _ = _home(catalog)
    view.enter()
    await view.settle()
    shown = view.page

    view.next()
    await view.settle()

    assert view.page is shown
    assert view.is_loading is False
    assert isinstance(view.last_error, NetworkError)


@pytest.mark.asyncio
async def test_stale_page_is_dropped():
    """A slow page that completes after a newer request never reaches the view."""
    catalog = FakeCatalog(total=120)
    catalog.gates[20] = asyncio.Event()
    view, _ = _home(catalog)
    view.enter()
    await view.settle()

    slow = view.next()
    await asyncio.sleep(0)
    view.go_to_first()
    await view.settle()
    catalog.gates[20].set()
    await asyncio.sleep(0)

    assert slow.cancelled()
    assert view.offset == 0
    assert view.items[0].name == "mon-0"


@pytest.mark.asyncio
async def test_stale_enrichment_is_dropped():
    catalog = FakeCatalog(total=120)
    release = asyncio.Event()

    async def first_call_is_slow(items):
        if not catalog.enrich_calls:
            catalog.enrich_calls.append("slow")
            await release.wait()
            return [i.model_copy(update={"image": "stale.png"}) for i in items]
        return await catalog.enrich(items)

    view = HomeView(InMemoryNavigator("/home"), fetch_page=catalog.fetch_page, enrich=first_call_is_slow, page_size=20)
    first = view.enter()
    while not catalog.enrich_calls:
        await asyncio.sleep(0)

    view.next()
    release.set()
    await view.settle()

    assert first.cancelled()
    assert view.offset == 20
    assert [i.image for i in view.items] == [f"mon-{20 + i}.png" for i in range(20)]


@pytest.mark.asyncio
async def test_empty_page_skips_enrichment():
    catalog = FakeCatalog(total=0)
    view, _ = _home(catalog)
    events = []
    view.subscribe(lambda event, v: events.append(event))

    view.enter()
    await view.settle()

    assert catalog.enrich_calls == []
    assert "images_loaded" not in events
    assert view.total == 0


@pytest.mark.asyncio
async def test_detail_target_carries_offset():
    catalog = FakeCatalog()
    view, navigator = _home(catalog, {"offset": "40"})
    view.enter()
    await view.settle()

    view.go_to_detail(f"{BASE_URL}/pokemon/25/")

    assert navigator.path == "/pokemon/25"
    assert navigator.query_params() == {"offset": "40"}
    assert catalog.page_calls == [(40, 20)]


def test_extract_id_from_url():
    assert extract_id_from_url(f"{BASE_URL}/pokemon/25/") == "25"
    assert extract_id_from_url(f"{BASE_URL}/pokemon/25") == "25"


# --- Detail view ---

def _detail(name, move_count):
    return DetailRecord(
        id=25, name=name, height=4, weight=60, base_experience=112, sprite_url="",
        types=["electric"], abilities=["static"],
        move_refs=[NamedResource(name=f"move-{i}", url=f"{BASE_URL}/move/{i}/") for i in range(move_count)],
    )


class FakeDetails:
    def __init__(self, records):
        self.records = records
        self.move_calls = 0

    async def fetch_detail(self, identifier):
        if identifier not in self.records:
            raise NotFound(f"no {identifier}")
        return self.records[identifier]

    async def enrich_moves(self, refs):
        self.move_calls += 1
        # every fourth lookup fails
        return [MoveSummary(name=r.name, type="normal", power=40, accuracy=100)
                for i, r in enumerate(refs) if i % 4 != 3]


def _detail_view(details, params=None):
    navigator = InMemoryNavigator("/pokemon/25", params)
    view = DetailView(navigator, fetch_detail=details.fetch_detail,
                      enrich_moves=details.enrich_moves, moves_per_page=8)
    return view, navigator


@pytest.mark.asyncio
async def test_detail_view_loads_moves_and_paginates():
    details = FakeDetails({"25": _detail("pikachu", 24)})
    view, _ = _detail_view(details)

    view.enter("25")
    await view.settle()

    assert view.detail.name == "pikachu"
    assert len(view.moves) == 18
    assert view.total_pages == 3
    assert [m.name for m in view.visible_moves][:3] == ["move-0", "move-1", "move-2"]

    view.next_page()
    view.next_page()
    view.next_page()
    assert view.current_page == 2
    assert len(view.visible_moves) == 2

    view.prev_page()
    view.prev_page()
    view.prev_page()
    assert view.current_page == 0


@pytest.mark.asyncio
async def test_new_detail_resets_move_page():
    details = FakeDetails({"25": _detail("pikachu", 24), "26": _detail("raichu", 4)})
    view, _ = _detail_view(details)
    view.enter("25")
    await view.settle()
    view.next_page()

    view.load("26")
    assert view.current_page == 0
    await view.settle()

    assert view.detail.name == "raichu"
    assert [m.name for m in view.moves] == ["move-0", "move-1", "move-2"]


@pytest.mark.asyncio
async def test_detail_without_moves_skips_lookups():
    details = FakeDetails({"132": _detail("ditto", 0)})
    view, _ = _detail_view(details)

    view.enter("132")
    await view.settle()

    assert details.move_calls == 0
    assert view.moves == []
    assert view.total_pages == 0


@pytest.mark.asyncio
async def test_detail_not_found_is_reported():
    view, _ = _detail_view(FakeDetails({}))

    view.enter("notapokemon")
    await view.settle()

    assert view.detail is None
    assert view.is_loading is False
    assert isinstance(view.last_error, NotFound)


def test_detail_enter_without_identifier_does_nothing():
    view, _ = _detail_view(FakeDetails({}))
    assert view.enter("") is None


@pytest.mark.parametrize("params, expected", [
    ({"offset": "40"}, ("/home", {"offset": "40"})),
    ({"offset": "oops"}, ("/home", {})),
    (None, ("/home", {})),
])
def test_back_target(params, expected):
    view, _ = _detail_view(FakeDetails({}), params)
    assert view.back_target() == expected


def test_back_navigates_home():
    view, navigator = _detail_view(FakeDetails({}), {"offset": "40"})
    view.back()
    assert navigator.path == "/home"
    assert navigator.query_params() == {"offset": "40"}
