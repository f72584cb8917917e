"""
Turns multi-page catalog listings into single, ordered collections.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from pydantic import BaseModel

from tfm_client.exceptions import FetchCancelledError, FetchSupersededError
from tfm_client.models.entries import ApiEnvelope

from .endpoints import RequestSpec

log = logging.getLogger(__name__)

PageFetcher = Callable[[RequestSpec, int], Awaitable[ApiEnvelope]]


@dataclass
class AggregationState:
    """Accumulation of one in-flight logical fetch."""

    key: str
    generation: int
    entries: list[BaseModel] = field(default_factory=list)
    last_page: int = 0
    total_pages: int = 1
    aborted: bool = False


class PaginationAggregator:
    """
    Drives page requests for logical fetches and keeps one accumulation per key.

    Every state carries a generation token. After each network await, the running
    fetch checks that the store still holds its own generation before mutating
    anything, so a response for a superseded or cancelled fetch is dropped.
    """

    def __init__(self, fetch_page: PageFetcher):
        """
        Args:
            fetch_page: Coroutine issuing one page request and returning the parsed,
                successful envelope. It raises a TfmClientError on failure.
        """
        self._fetch_page = fetch_page
        self._states: dict[str, AggregationState] = {}
        self._pending: set[asyncio.Task] = set()
        self._generations = itertools.count(1)

    def is_active(self, key: str) -> bool:
        """Returns True while a fetch for `key` is accumulating pages."""
        return key in self._states

    def state(self, key: str) -> AggregationState | None:
        return self._states.get(key)

    async def fetch_collection(
        self, key: str, spec: RequestSpec
    ) -> list[BaseModel]:
        """
        Fetches every page of `spec` and returns all items in arrival order.

        Starting a fetch for a key that is already accumulating discards the older
        accumulation; the older caller then receives FetchSupersededError.

        Raises:
            TfmClientError: On the first failing page. No partial result is returned.
        """
        previous = self._states.get(key)
        if previous is not None:
            log.debug(f"Restarting fetch for '{key}', discarding previous pages.")

        state = AggregationState(key=key, generation=next(self._generations))
        self._states[key] = state
        return await self._track(self._drive(state, spec), state)

    async def fetch_single(self, spec: RequestSpec) -> list[BaseModel]:
        """Issues one request without continuation and returns its items."""
        envelope = await self._track(self._fetch_page(spec, spec.first_page))
        return spec.parse_items(envelope)

    def cancel_all(self) -> None:
        """
        Aborts every pending request and forgets all accumulations. Callers awaiting
        an aborted fetch receive FetchCancelledError.
        """
        for state in self._states.values():
            state.aborted = True
        self._states.clear()
        for task in list(self._pending):
            if not task.done():
                task.cancel()
        self._pending.clear()

    async def _track(self, coro, state: AggregationState | None = None):
        """Runs `coro` as a cancellable task registered with this aggregator."""
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and (state is None or state.aborted):
                current = asyncio.current_task()
                if current is None or not current.cancelling():
                    raise FetchCancelledError("Request was cancelled.") from None
            raise

    async def _drive(self, state: AggregationState, spec: RequestSpec) -> list[BaseModel]:
        page = spec.first_page
        try:
            while True:
                log.debug(f"Requesting page {page} for '{state.key}'.")
                envelope = await self._fetch_page(spec, page)
                self._ensure_current(state)

                items = spec.parse_items(envelope)
                pagination = envelope.pagination
                state.entries.extend(items)
                state.last_page = pagination.page
                state.total_pages = pagination.total_pages
                log.debug(
                    f"Page {pagination.page} of {pagination.total_pages} for "
                    f"'{state.key}': {len(items)} items, hasNext={pagination.has_next}."
                )

                if not (spec.paginated and pagination.has_next):
                    break
                page = pagination.page + 1
        except BaseException:
            self._discard(state)
            raise

        self._discard(state)
        log.info(f"Loaded {len(state.entries)} items for '{state.key}'.")
        return state.entries

    def _ensure_current(self, state: AggregationState) -> None:
        if state.aborted:
            raise FetchCancelledError(f"Fetch for '{state.key}' was cancelled.")
        if self._states.get(state.key) is not state:
            log.warning(f"Dropping stale response for superseded fetch '{state.key}'.")
            raise FetchSupersededError(
                f"Fetch for '{state.key}' was replaced by a newer request."
            )

    def _discard(self, state: AggregationState) -> None:
        """Removes `state` from the store only if it is still the live generation."""
        current = self._states.get(state.key)
        if current is not None and current.generation == state.generation:
            del self._states[state.key]
