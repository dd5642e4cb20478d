# backend/pokebrowser/views.py
"""
State containers behind the catalog and detail screens.

Each view owns its state and changes it only from its own methods and
load tasks. Loads are tagged with a generation number: starting a new
load cancels the task in flight, and a completion whose generation is
no longer current is dropped without touching state. Subscribers get
`(event, view)` after every published change.

Offset <-> `offset` query parameter sync runs both ways: entering a view
or receiving a query change adopts a differing offset, and every offset
change made through the view is written back to the navigator.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from . import catalog
from .config import settings
from .exceptions import PokeBrowserError
from .models import DetailRecord, ItemSummary, MoveSummary, NamedResource, PageResult
from .pagination import MovePager, PaginationState, parse_offset_param

logger = logging.getLogger(__name__)

OFFSET_PARAM = "offset"
HOME_PATH = "/home"

NavigationTarget = Tuple[str, Dict[str, str]]


def extract_id_from_url(url: str) -> str:
    """'https://pokeapi.co/api/v2/pokemon/25/' -> '25'"""
    return url.rstrip("/").rsplit("/", 1)[-1]


# --- Navigation ---

class Navigator(Protocol):
    def query_params(self) -> Mapping[str, str]: ...

    def set_query_param(self, name: str, value: Optional[str]) -> None: ...

    def navigate(self, path: str, params: Optional[Mapping[str, str]] = None) -> None: ...

    def listen(self, callback: Callable[[Mapping[str, str]], None]) -> Callable[[], None]: ...


class InMemoryNavigator:
    """Navigator holding the current path and query in memory, with a history of visited locations."""

    def __init__(self, path: str = HOME_PATH, params: Optional[Mapping[str, str]] = None):
        self.path = path
        self._params: Dict[str, str] = dict(params or {})
        self.history: List[NavigationTarget] = [(self.path, dict(self._params))]
        self._listeners: List[Callable[[Mapping[str, str]], None]] = []

    def listen(self, callback: Callable[[Mapping[str, str]], None]) -> Callable[[], None]:
        """Registers `callback(params)`; returns a function that removes it."""
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback) if callback in self._listeners else None

    def query_params(self) -> Mapping[str, str]:
        return dict(self._params)

    def set_query_param(self, name: str, value: Optional[str]) -> None:
        if self._params.get(name) == value:
            return
        if value is None:
            self._params.pop(name, None)
        else:
            self._params[name] = value
        self._record()

    def navigate(self, path: str, params: Optional[Mapping[str, str]] = None) -> None:
        self.path = path
        self._params = dict(params or {})
        self._record()

    def _record(self) -> None:
        self.history.append((self.path, dict(self._params)))
        for callback in list(self._listeners):
            callback(self.query_params())


# --- Shared view plumbing ---

Listener = Callable[[str, "_View"], None]


class _View:
    def __init__(self, navigator: Navigator):
        self.navigator = navigator
        self.is_loading = False
        self.last_error: Optional[PokeBrowserError] = None
        self._listeners: List[Listener] = []
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Registers `callback(event, view)`; returns a function that removes it."""
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def _emit(self, event: str) -> None:
        for callback in list(self._listeners):
            callback(event, self)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _start_load(self, load: Callable[[int], Awaitable[None]]) -> asyncio.Task:
        self._generation += 1
        previous = self._task
        if previous is not None and not previous.done() and previous is not asyncio.current_task():
            previous.cancel()
        self.is_loading = True
        self._emit("loading")
        self._task = asyncio.create_task(load(self._generation))
        return self._task

    def _finish_primary(self, generation: int, error: Optional[PokeBrowserError]) -> None:
        if not self._is_current(generation):
            return
        self.is_loading = False
        self.last_error = error
        if error is not None:
            self._emit("load_failed")

    async def settle(self) -> None:
        """Waits until no load is in flight, following loads started meanwhile."""
        while self._task is not None:
            task = self._task
            await asyncio.wait({task})
            if task is not self._task:
                continue
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()
            return


# --- Catalog view ---

class HomeView(_View):
    def __init__(
        self,
        navigator: Navigator,
        fetch_page: Optional[Callable[[int, int], Awaitable[PageResult]]] = None,
        enrich: Optional[Callable[[Sequence[ItemSummary]], Awaitable[List[ItemSummary]]]] = None,
        page_size: Optional[int] = None,
    ):
        super().__init__(navigator)
        self._fetch_page = fetch_page or catalog.fetch_page
        self._enrich = enrich or catalog.enrich
        self.pagination = PaginationState(page_size=page_size or settings.page_size)
        self.page: Optional[PageResult] = None
        self._unlisten = navigator.listen(self.on_query_change)

    # Read-only projections
    @property
    def offset(self) -> int:
        return self.pagination.offset

    @property
    def page_size(self) -> int:
        return self.pagination.page_size

    @property
    def items(self) -> List[ItemSummary]:
        return list(self.page.items) if self.page else []

    @property
    def total(self) -> int:
        return self.page.count if self.page else 0

    @property
    def last_page_offset(self) -> int:
        return self.pagination.last_page_offset

    def enter(self) -> asyncio.Task:
        """Starts the first load, at the offset carried by the navigator when there is one."""
        requested = parse_offset_param(self.navigator.query_params().get(OFFSET_PARAM))
        if requested is not None:
            self.pagination = self.pagination.with_offset(requested)
            if self.offset != requested:
                self.navigator.set_query_param(OFFSET_PARAM, str(self.offset))
        return self._reload()

    def on_query_change(self, params: Mapping[str, str]) -> Optional[asyncio.Task]:
        requested = parse_offset_param(params.get(OFFSET_PARAM))
        if requested is None:
            return None
        task = self._set_offset(self.pagination.with_offset(requested))
        if self.offset != requested:
            self.navigator.set_query_param(OFFSET_PARAM, str(self.offset))
        return task

    def next(self) -> Optional[asyncio.Task]:
        return self._set_offset(self.pagination.next())

    def prev(self) -> Optional[asyncio.Task]:
        return self._set_offset(self.pagination.prev())

    def jump(self, pages: int) -> Optional[asyncio.Task]:
        return self._set_offset(self.pagination.jump(pages))

    def jump_forward(self) -> Optional[asyncio.Task]:
        return self.jump(5)

    def jump_backward(self) -> Optional[asyncio.Task]:
        return self.jump(-5)

    def go_to_first(self) -> Optional[asyncio.Task]:
        return self._set_offset(self.pagination.go_to_first())

    def close(self) -> None:
        """Stops following navigation and cancels any load in flight."""
        self._unlisten()
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.is_loading = False

    def detail_target(self, url: str) -> NavigationTarget:
        return f"/pokemon/{extract_id_from_url(url)}", {OFFSET_PARAM: str(self.offset)}

    def go_to_detail(self, url: str) -> None:
        self.navigator.navigate(*self.detail_target(url))

    def _set_offset(self, state: PaginationState) -> Optional[asyncio.Task]:
        if state.offset == self.offset:
            return None
        self.pagination = state
        self.navigator.set_query_param(OFFSET_PARAM, str(self.offset))
        self._emit("offset_changed")
        return self._reload()

    def _reload(self) -> asyncio.Task:
        return self._start_load(self._load)

    async def _load(self, generation: int) -> None:
        offset = self.offset
        try:
            page = await self._fetch_page(offset, self.page_size)
        except PokeBrowserError as e:
            logger.error(f"Catalog page offset={offset} failed: {e}")
            self._finish_primary(generation, e)
            return
        except BaseException:
            self._finish_primary(generation, None)
            raise
        if not self._is_current(generation):
            logger.debug(f"Dropping stale catalog page offset={offset}")
            return

        self.page = page
        self.pagination = self.pagination.with_total(page.count)
        self._finish_primary(generation, None)
        self._emit("page_loaded")

        if self.pagination.is_past_end:
            logger.info(f"Offset {offset} is past the last page, moving to {self.last_page_offset}")
            self._set_offset(self.pagination.clamp())
            return

        if not page.items:
            return
        enriched = await self._enrich(page.items)
        if not self._is_current(generation):
            logger.debug(f"Dropping stale images for offset={offset}")
            return
        self.page = page.model_copy(update={"items": enriched})
        self._emit("images_loaded")


# --- Detail view ---

class DetailView(_View):
    def __init__(
        self,
        navigator: Navigator,
        fetch_detail: Optional[Callable[[str], Awaitable[DetailRecord]]] = None,
        enrich_moves: Optional[Callable[[Sequence[NamedResource]], Awaitable[List[MoveSummary]]]] = None,
        moves_per_page: Optional[int] = None,
    ):
        super().__init__(navigator)
        self._fetch_detail = fetch_detail or catalog.fetch_detail
        self._enrich_moves = enrich_moves or catalog.enrich_moves
        self.identifier: Optional[str] = None
        self.detail: Optional[DetailRecord] = None
        self.moves: List[MoveSummary] = []
        self.pager = MovePager(per_page=moves_per_page or settings.moves_per_page)

    @property
    def current_page(self) -> int:
        return self.pager.current_page

    @property
    def total_pages(self) -> int:
        return self.pager.total_pages

    @property
    def visible_moves(self) -> List[MoveSummary]:
        return self.pager.visible(self.moves)

    def enter(self, identifier: str) -> Optional[asyncio.Task]:
        if not identifier:
            return None
        return self.load(identifier)

    def load(self, identifier: str) -> asyncio.Task:
        self.identifier = identifier
        self.pager = self.pager.reset()
        return self._start_load(self._load)

    def next_page(self) -> None:
        self._set_pager(self.pager.next_page())

    def prev_page(self) -> None:
        self._set_pager(self.pager.prev_page())

    def go_to_page(self, page: int) -> None:
        self._set_pager(self.pager.go_to(page))

    def back_target(self) -> NavigationTarget:
        offset = parse_offset_param(self.navigator.query_params().get(OFFSET_PARAM))
        if offset is None:
            return HOME_PATH, {}
        return HOME_PATH, {OFFSET_PARAM: str(offset)}

    def back(self) -> None:
        self.navigator.navigate(*self.back_target())

    def _set_pager(self, pager: MovePager) -> None:
        if pager == self.pager:
            return
        self.pager = pager
        self._emit("moves_page_changed")

    async def _load(self, generation: int) -> None:
        identifier = self.identifier
        try:
            detail = await self._fetch_detail(identifier)
        except PokeBrowserError as e:
            logger.error(f"Detail for '{identifier}' failed: {e}")
            self._finish_primary(generation, e)
            return
        except BaseException:
            self._finish_primary(generation, None)
            raise
        if not self._is_current(generation):
            logger.debug(f"Dropping stale detail for '{identifier}'")
            return

        self.detail = detail
        self.moves = []
        self.pager = self.pager.with_count(0).reset()
        self._finish_primary(generation, None)
        self._emit("detail_loaded")

        if not detail.move_refs:
            return
        moves = await self._enrich_moves(detail.move_refs)
        if not self._is_current(generation):
            logger.debug(f"Dropping stale moves for '{identifier}'")
            return
        self.moves = moves
        self.pager = self.pager.with_count(len(moves))
        self._emit("moves_loaded")
