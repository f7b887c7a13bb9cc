"""Debounced fetch controller for a remote list view.

The controller owns the ViewState and the DisplayState. View intents compute
the next ViewState from the latest one, arm (or re-arm) a debounce timer, and
the timer issues one sequence-tagged request. Only the response carrying the
latest tag may touch the DisplayState; older responses are dropped.

Everything runs on one asyncio event loop. The only await is the fetch itself.
"""

import asyncio
from dataclasses import replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Set, Tuple

from listview.config.loader import get_columns, normalize_config
from listview.controller.display import DisplayState, compute_page_count
from listview.query import transitions
from listview.query.encoder import encode_query
from listview.query.view_state import DEFAULT_COLUMNS, ColumnDef, Pagination, SortEntry, ViewState
from listview.retrieval.client import FetchResult, ListEndpointClient
from listview.retrieval.errors import FetchError
from listview.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.25

Fetcher = Callable[[Mapping[str, str]], Awaitable[FetchResult]]
Listener = Callable[["DebouncedFetchController"], None]


class Scheduler(Protocol):
    """Anything with asyncio's call_later signature (the running loop by default)."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Any:
        ...


class FetchPhase(str, Enum):
    IDLE = "IDLE"
    DEBOUNCING = "DEBOUNCING"
    FETCHING = "FETCHING"
    SETTLED = "SETTLED"


class DebouncedFetchController:
    """Owns list view state and issues at most one live request per settled input."""

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        initial_state: Optional[ViewState] = None,
        columns: Optional[Sequence[ColumnDef]] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        """
        Initialize controller.

        Args:
            fetcher: Async callable taking encoded query params and returning a FetchResult
            debounce_seconds: Quiet period required before a request is issued
            initial_state: ViewState at mount. Defaults to page 0, 10 rows, no search/filter/sort
            columns: Column definitions; sort toggles are limited to sortable columns
            scheduler: Timer source. Defaults to the running event loop
        """
        if debounce_seconds < 0:
            raise ValueError(f"debounce_seconds must be >= 0, got {debounce_seconds}")
        self._fetcher = fetcher
        self.debounce_seconds = debounce_seconds
        self._scheduler = scheduler
        self._columns: Tuple[ColumnDef, ...] = tuple(columns) if columns is not None else DEFAULT_COLUMNS
        self._view_state = initial_state or ViewState()
        self._display = DisplayState()
        self._timer: Optional[Any] = None
        self._request_seq = 0
        self._inflight: Set[asyncio.Task] = set()
        self._listeners: List[Listener] = []
        self._closed = False
        self._task_errors: List[BaseException] = []

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        *,
        client: Optional[ListEndpointClient] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> "DebouncedFetchController":
        """Build a controller (and its endpoint client unless given) from a config dict."""
        config = normalize_config(config)
        endpoint = config["endpoint"]
        view = config["view"]
        if client is None:
            client = ListEndpointClient(
                endpoint["url"],
                timeout_seconds=endpoint["timeout_seconds"],
                user_agent=endpoint["user_agent"],
            )
        return cls(
            client.fetch_page_async,
            debounce_seconds=view["debounce_ms"] / 1000.0,
            initial_state=ViewState(page_size=view["page_size"]),
            columns=get_columns(config),
            scheduler=scheduler,
        )

    # Read model

    @property
    def view_state(self) -> ViewState:
        return self._view_state

    @property
    def display(self) -> DisplayState:
        return self._display

    @property
    def columns(self) -> Tuple[ColumnDef, ...]:
        return self._columns

    @property
    def phase(self) -> FetchPhase:
        if self._timer is not None:
            return FetchPhase.DEBOUNCING
        if self._display.loading:
            return FetchPhase.FETCHING
        if self._display.last_settled_seq:
            return FetchPhase.SETTLED
        return FetchPhase.IDLE

    @property
    def current_page_count(self) -> Optional[int]:
        """Page count for the current page size, or None before the first successful fetch."""
        total_count = self._display.total_count
        if total_count is None:
            return None
        return compute_page_count(total_count, self._view_state.page_size)

    @property
    def rows(self) -> List[Dict[str, Any]]:
        return list(self._display.rows)

    @property
    def loading(self) -> bool:
        return self._display.loading

    @property
    def page_count(self) -> int:
        return self._display.page_count

    @property
    def error(self) -> Optional[str]:
        return self._display.error

    @property
    def search_text(self) -> str:
        return self._view_state.search_text

    @property
    def filter_text(self) -> str:
        return self._view_state.filter_text

    @property
    def pagination(self) -> Pagination:
        return self._view_state.pagination

    @property
    def sort_spec(self) -> Tuple[SortEntry, ...]:
        return self._view_state.sort_spec

    @property
    def closed(self) -> bool:
        return self._closed

    # Lifecycle

    def mount(self) -> None:
        """Start the first debounce cycle for the initial state."""
        if self._closed:
            raise RuntimeError("Cannot mount a controller after teardown")
        self.rearm_debounce()
        self._notify()

    def teardown(self) -> None:
        """Cancel the pending timer and ignore every response still in flight."""
        if self._closed:
            return
        self._cancel_timer()
        self._closed = True
        self._listeners.clear()
        logger.debug(f"Controller torn down with {len(self._inflight)} request(s) in flight")

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a change callback. Returns a function that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def wait_idle(self) -> None:
        """
        Wait until no fetch task is outstanding.

        Re-raises the first unexpected exception a fetch task ended with since
        the last call.
        """
        while self._inflight:
            await asyncio.wait(list(self._inflight))
        if self._task_errors:
            error = self._task_errors[0]
            self._task_errors.clear()
            raise error

    # Intents

    def on_search_change(self, text: str) -> None:
        self._apply(transitions.with_search_text(self._view_state, text))

    def on_filter_change(self, text: str) -> None:
        self._apply(transitions.with_filter_text(self._view_state, text))

    def on_page_change(self, page_index: int) -> None:
        self._apply(
            transitions.with_page_index(self._view_state, page_index, self.current_page_count)
        )

    def on_page_size_change(self, page_size: int) -> None:
        self._apply(transitions.with_page_size(self._view_state, page_size))

    def on_sort_toggle(self, column_id: str, multi: bool = False) -> None:
        column = next((c for c in self._columns if c.id == column_id), None)
        if column is None:
            logger.warning(f"Ignoring sort toggle for unknown column: {column_id}")
            return
        if not column.sortable:
            logger.warning(f"Ignoring sort toggle for non-sortable column: {column_id}")
            return
        next_spec = transitions.toggle_sort(self._view_state.sort_spec, column, multi=multi)
        self._apply(transitions.with_sort_spec(self._view_state, next_spec))

    def on_pagination_change(self, updater: transitions.Updater) -> None:
        """Table-library style callback: a Pagination (or dict) or a function of the previous one."""
        next_value = transitions.apply_updater(self._view_state.pagination, updater)
        if not isinstance(next_value, Pagination):
            next_value = Pagination.model_validate(next_value)
        self._apply(transitions.with_pagination(self._view_state, next_value))

    def on_sorting_change(self, updater: transitions.Updater) -> None:
        """Table-library style callback for the sort specification."""
        next_value = transitions.apply_updater(self._view_state.sort_spec, updater)
        next_spec = tuple(
            entry if isinstance(entry, SortEntry) else SortEntry.model_validate(entry)
            for entry in next_value
        )
        self._apply(transitions.with_sort_spec(self._view_state, next_spec))

    def refresh(self) -> None:
        """Fetch the current state again after the debounce interval."""
        if self._closed:
            logger.debug("Ignoring refresh after teardown")
            return
        self.rearm_debounce()
        self._notify()

    # Debounce / fetch machinery

    def rearm_debounce(self) -> None:
        """Cancel any pending timer and start the quiet period again."""
        self._cancel_timer()
        scheduler = self._scheduler or asyncio.get_running_loop()
        self._timer = scheduler.call_later(self.debounce_seconds, self._on_debounce_elapsed)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _apply(self, next_state: ViewState) -> None:
        if self._closed:
            logger.debug("Ignoring view change after teardown")
            return
        if next_state == self._view_state:
            return
        self._view_state = next_state
        self.rearm_debounce()
        self._notify()

    def _on_debounce_elapsed(self) -> None:
        self._timer = None
        if self._closed:
            return
        self._request_seq += 1
        seq = self._request_seq
        state = self._view_state
        params = encode_query(state)
        self._display = replace(self._display, loading=True, error=None, last_request_seq=seq)
        logger.info(f"Fetch #{seq}: page {state.page_index + 1}, size {state.page_size}")

        task = asyncio.get_running_loop().create_task(self._run_fetch(seq, state, params))
        self._inflight.add(task)
        task.add_done_callback(self._on_task_done)
        self._notify()

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Fetch task ended with unexpected error: {error!r}", exc_info=error)
            self._task_errors.append(error)

    def _is_current(self, seq: int) -> bool:
        return not self._closed and seq == self._request_seq

    async def _run_fetch(self, seq: int, state: ViewState, params: Dict[str, str]) -> None:
        try:
            result = await self._fetcher(params)
        except FetchError as e:
            if not self._is_current(seq):
                logger.debug(f"Discarding failure of superseded fetch #{seq}: {e}")
                return
            logger.error(f"Fetch #{seq} failed: {e}")
            self._display = replace(self._display, loading=False, error=str(e), last_settled_seq=seq)
            self._notify()
            return
        except BaseException:
            if self._is_current(seq):
                self._display = replace(self._display, loading=False, last_settled_seq=seq)
                self._notify()
            raise

        if not self._is_current(seq):
            logger.debug(f"Discarding response of superseded fetch #{seq} (latest #{self._request_seq})")
            return

        self._display = replace(
            self._display,
            rows=list(result.rows),
            total_count=result.total_count,
            page_count=compute_page_count(result.total_count, state.page_size),
            loading=False,
            error=None,
            last_settled_seq=seq,
        )
        logger.info(f"Fetch #{seq} settled: {len(result.rows)} rows, {result.total_count} total")
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
