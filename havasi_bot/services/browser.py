"""Listing browser: paging, debounced search and filters as explicit events.

Each event triggers exactly one page fetch (a search keystroke only re-arms the
debounce timer). Requests carry a sequence number; a response that arrives
after a newer request was issued is dropped, so a slow old page can never
overwrite a newer one.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable
from urllib.parse import parse_qs, urlencode

import aiohttp

from havasi_bot.models import RealEstate, SortDirection, TransactionType
from .directory import RealEstateDirectory
from .errors import HavasiError, describe_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageChanged:
    page: int


@dataclass(frozen=True)
class SearchChanged:
    term: str


@dataclass(frozen=True)
class SearchDebounced:
    term: str


@dataclass(frozen=True)
class FilterChanged:
    transaction: TransactionType | None = None
    sort_direction: SortDirection | None = None


@dataclass(frozen=True)
class Reload:
    pass


BrowserEvent = PageChanged | SearchChanged | SearchDebounced | FilterChanged | Reload


@dataclass
class BrowserState:
    page: int = 1
    search: str = ""
    pending_search: str = ""
    transaction: TransactionType = TransactionType.SALE
    sort_direction: SortDirection = SortDirection.DESC
    items: list[RealEstate] = field(default_factory=list)
    has_more: bool = False
    loading: bool = False
    error: str | None = None


FetchPage = Callable[..., Awaitable[list[RealEstate]]]
UpdateCallback = Callable[[BrowserState], Awaitable[None]]


def paginate(current_page: int, has_more: bool) -> list[int | None]:
    """Page buttons around the current page; None stands for an ellipsis."""
    pages: list[int | None] = []
    if current_page > 3:
        pages += [1, None]
    pages += [p for p in (current_page - 2, current_page - 1) if p >= 1]
    pages.append(current_page)
    if has_more:
        pages.append(current_page + 1)
    return pages


class ListingBrowser:
    def __init__(
        self,
        fetch: FetchPage,
        directory: RealEstateDirectory | None = None,
        page_size: int = 10,
        debounce: float = 0.5,
        on_update: UpdateCallback | None = None,
    ):
        self._fetch = fetch
        self.directory = directory or RealEstateDirectory()
        self._page_size = page_size
        self._debounce = debounce
        self.on_update = on_update
        self.state = BrowserState()
        self.anchor_message_id: int | None = None
        self._seq = 0
        self._debounce_task: asyncio.Task | None = None

    @property
    def page_size(self) -> int:
        return self._page_size

    async def dispatch(self, event: BrowserEvent) -> BrowserState | None:
        """Apply an event. Returns the new state, or None if nothing was applied yet."""
        state = self.state

        if isinstance(event, PageChanged):
            if event.page < 1:
                return None
            state.page = event.page
        elif isinstance(event, SearchChanged):
            state.pending_search = event.term
            self._arm_debounce(event.term)
            return None
        elif isinstance(event, SearchDebounced):
            term = event.term.strip()
            if term != state.search:
                state.page = 1
            state.search = term
        elif isinstance(event, FilterChanged):
            if event.transaction is not None:
                state.transaction = TransactionType(event.transaction)
            if event.sort_direction is not None:
                state.sort_direction = SortDirection(event.sort_direction)
            state.page = 1
        elif not isinstance(event, Reload):
            raise TypeError(f"Unknown browser event: {event!r}")

        return await self._load()

    def _arm_debounce(self, term: str) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.create_task(self._fire_debounced(term))

    async def _fire_debounced(self, term: str) -> None:
        await asyncio.sleep(self._debounce)
        self._debounce_task = None
        try:
            await self.dispatch(SearchDebounced(term))
        except Exception:
            # nobody awaits this task
            logger.exception("Debounced search %r failed", term)

    async def _load(self) -> BrowserState | None:
        self._seq += 1
        seq = self._seq
        state = self.state
        state.loading = True
        state.error = None

        try:
            raw = await self._fetch(
                offset=(state.page - 1) * self._page_size,
                limit=self._page_size + 1,
                sort_direction=state.sort_direction,
                search=state.search or None,
                transaction=state.transaction.value,
            )
        except (HavasiError, aiohttp.ClientError, asyncio.TimeoutError) as exc:
            if seq != self._seq:
                return None
            logger.warning("Listings page %d failed: %s", state.page, exc)
            state.error = describe_error(exc)
            state.loading = False
            await self._publish()
            return state

        if seq != self._seq:
            logger.debug("Listings response %d superseded by %d, dropped", seq, self._seq)
            return None

        state.has_more = len(raw) > self._page_size
        state.items = list(raw[: self._page_size])
        state.loading = False
        self.directory.set_real_estates(state.items)
        await self._publish()
        return state

    async def _publish(self) -> None:
        if self.on_update is not None:
            await self.on_update(self.state)

    def query_string(self) -> str:
        params = {}
        if self.state.search:
            params["search"] = self.state.search
        params["transaction"] = self.state.transaction.value
        return urlencode(params)

    def restore(self, query: str) -> None:
        """Take search and transaction from a shared query string (no fetch)."""
        params = parse_qs(query)
        search = (params.get("search") or [""])[0].strip()
        if search:
            self.state.search = search
            self.state.pending_search = search
        transaction = (params.get("transaction") or [""])[0]
        if transaction in (TransactionType.SALE.value, TransactionType.RENT.value):
            self.state.transaction = TransactionType(transaction)

    def close(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None


class BrowserRegistry:
    """One browser per chat."""

    def __init__(self, fetch: FetchPage, page_size: int = 10, debounce: float = 0.5):
        self._fetch = fetch
        self._page_size = page_size
        self._debounce = debounce
        self._browsers: dict[int, ListingBrowser] = {}

    def get(self, chat_id: int) -> ListingBrowser | None:
        return self._browsers.get(chat_id)

    def open(self, chat_id: int, on_update: UpdateCallback | None = None) -> ListingBrowser:
        browser = self._browsers.get(chat_id)
        if browser is None:
            browser = ListingBrowser(
                self._fetch,
                page_size=self._page_size,
                debounce=self._debounce,
            )
            self._browsers[chat_id] = browser
        if on_update is not None:
            browser.on_update = on_update
        return browser

    def find_real_estate(self, chat_id: int, real_estate_id: str) -> RealEstate | None:
        browser = self._browsers.get(chat_id)
        if browser is None:
            return None
        return browser.directory.find_by_id(real_estate_id)

    def close_all(self) -> None:
        for browser in self._browsers.values():
            browser.close()
        self._browsers.clear()
