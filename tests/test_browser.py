"""Tests for the listing browser."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from havasi_bot.models import SortDirection, TransactionType
from havasi_bot.services.browser import (
    BrowserRegistry,
    FilterChanged,
    ListingBrowser,
    PageChanged,
    Reload,
    SearchChanged,
    SearchDebounced,
    paginate,
)
from havasi_bot.services.errors import ApiServerError
from conftest import make_estate


def estates(count: int, prefix: str = "re"):
    return [make_estate(f"{prefix}{i}") for i in range(count)]


@pytest.mark.parametrize(
    "current, has_more, expected",
    [
        (1, True, [1, 2]),
        (1, False, [1]),
        (2, True, [1, 2, 3]),
        (3, False, [1, 2, 3]),
        (4, True, [1, None, 2, 3, 4, 5]),
        (7, False, [1, None, 5, 6, 7]),
    ],
)
def test_paginate(current, has_more, expected):
    assert paginate(current, has_more) == expected


class TestListingBrowser:
    @pytest.mark.asyncio
    async def test_fetches_one_extra_to_detect_more(self):
        fetch = AsyncMock(return_value=estates(11))
        browser = ListingBrowser(fetch, page_size=10)

        state = await browser.dispatch(Reload())

        fetch.assert_awaited_once_with(
            offset=0, limit=11, sort_direction=SortDirection.DESC,
            search=None, transaction="SALE",
        )
        assert state.has_more is True
        assert len(state.items) == 10
        assert len(browser.directory) == 10
        assert state.loading is False

    @pytest.mark.asyncio
    async def test_last_page_has_no_more(self):
        fetch = AsyncMock(return_value=estates(10))
        browser = ListingBrowser(fetch, page_size=10)

        state = await browser.dispatch(PageChanged(3))

        assert fetch.await_args.kwargs["offset"] == 20
        assert state.page == 3
        assert state.has_more is False

    @pytest.mark.asyncio
    async def test_page_below_one_is_ignored(self):
        fetch = AsyncMock(return_value=[])
        browser = ListingBrowser(fetch)

        assert await browser.dispatch(PageChanged(0)) is None
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_filter_change_resets_page(self):
        fetch = AsyncMock(return_value=estates(3))
        browser = ListingBrowser(fetch)
        await browser.dispatch(PageChanged(4))

        state = await browser.dispatch(FilterChanged(transaction=TransactionType.RENT))

        assert state.page == 1
        assert fetch.await_args.kwargs["transaction"] == "RENT"
        assert fetch.await_args.kwargs["offset"] == 0

    @pytest.mark.asyncio
    async def test_new_search_term_resets_page(self):
        fetch = AsyncMock(return_value=estates(3))
        browser = ListingBrowser(fetch)
        await browser.dispatch(PageChanged(2))

        state = await browser.dispatch(SearchDebounced(" Praha "))

        assert state.page == 1
        assert state.search == "Praha"
        assert fetch.await_args.kwargs["search"] == "Praha"

    @pytest.mark.asyncio
    async def test_same_search_term_keeps_page(self):
        fetch = AsyncMock(return_value=estates(3))
        browser = ListingBrowser(fetch)
        await browser.dispatch(SearchDebounced("Brno"))
        await browser.dispatch(PageChanged(2))

        state = await browser.dispatch(SearchDebounced("Brno"))

        assert state.page == 2

    @pytest.mark.asyncio
    async def test_keystrokes_are_debounced_into_one_fetch(self):
        fetch = AsyncMock(return_value=estates(2))
        browser = ListingBrowser(fetch, debounce=0.02)

        for term in ("P", "Pr", "Pra", "Praha"):
            assert await browser.dispatch(SearchChanged(term)) is None
        assert browser.state.pending_search == "Praha"
        fetch.assert_not_awaited()

        await asyncio.sleep(0.1)

        fetch.assert_awaited_once()
        assert fetch.await_args.kwargs["search"] == "Praha"
        assert browser.state.search == "Praha"

    @pytest.mark.asyncio
    async def test_debounced_update_failure_is_logged(self, caplog):
        fetch = AsyncMock(return_value=estates(2))
        on_update = AsyncMock(side_effect=RuntimeError("chat gone"))
        browser = ListingBrowser(fetch, on_update=on_update, debounce=0.01)

        await browser.dispatch(SearchChanged("Brno"))
        task = browser._debounce_task
        await asyncio.wait_for(task, timeout=1)

        assert task.exception() is None
        assert "Debounced search 'Brno' failed" in caplog.text
        assert browser.state.search == "Brno"

    @pytest.mark.asyncio
    async def test_superseded_response_is_dropped(self):
        release_old = asyncio.Event()
        old_page = estates(2, prefix="old")
        new_page = estates(2, prefix="new")

        async def fetch(**kwargs):
            if kwargs["transaction"] == "SALE":
                await release_old.wait()
                return old_page
            return new_page

        updates = []

        async def on_update(state):
            updates.append([e.id for e in state.items])

        browser = ListingBrowser(fetch, on_update=on_update)

        old = asyncio.create_task(browser.dispatch(Reload()))
        await asyncio.sleep(0)
        await browser.dispatch(FilterChanged(transaction=TransactionType.RENT))
        release_old.set()

        assert await old is None
        assert [e.id for e in browser.state.items] == ["new0", "new1"]
        assert updates == [["new0", "new1"]]
        assert browser.directory.find_by_id("old0") is None

    @pytest.mark.asyncio
    async def test_fetch_error_is_kept_in_state(self):
        fetch = AsyncMock(side_effect=ApiServerError("Server Error (500): down", 500))
        on_update = AsyncMock()
        browser = ListingBrowser(fetch, on_update=on_update)

        state = await browser.dispatch(Reload())

        assert state.error == "Server Error (500): down"
        assert state.loading is False
        on_update.assert_awaited_once()

    def test_query_string_round_trip(self):
        browser = ListingBrowser(AsyncMock())
        browser.state.search = "Praha 2"
        browser.state.transaction = TransactionType.RENT

        query = browser.query_string()
        restored = ListingBrowser(AsyncMock())
        restored.restore(query)

        assert query == "search=Praha+2&transaction=RENT"
        assert restored.state.search == "Praha 2"
        assert restored.state.transaction == TransactionType.RENT

    def test_restore_ignores_unknown_transaction(self):
        browser = ListingBrowser(AsyncMock())

        browser.restore("transaction=LEASE")

        assert browser.state.transaction == TransactionType.SALE
        assert browser.state.search == ""


class TestBrowserRegistry:
    @pytest.mark.asyncio
    async def test_one_browser_per_chat(self):
        fetch = AsyncMock(return_value=estates(2))
        registry = BrowserRegistry(fetch, page_size=5)

        first = registry.open(100)
        assert registry.open(100) is first
        assert registry.open(200) is not first

        await first.dispatch(Reload())
        assert registry.find_real_estate(100, "re1").id == "re1"
        assert registry.find_real_estate(200, "re1") is None
        assert registry.find_real_estate(300, "re1") is None

    def test_close_all_forgets_browsers(self):
        registry = BrowserRegistry(AsyncMock())
        registry.open(1)

        registry.close_all()

        assert registry.get(1) is None
