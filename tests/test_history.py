"""Tests for sent notification history paging."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from havasi_bot.models import SentNotification
from havasi_bot.services.history import HistoryPage, SentHistory


def sent(n: int) -> list[SentNotification]:
    return [
        SentNotification.from_dict({
            "notificationId": f"n{i}",
            "userId": "u1",
            "type": "EMAIL",
            "realEstate": {"id": f"re{i}", "name": f"Byt {i}", "url": "https://x"},
        })
        for i in range(n)
    ]


@pytest.fixture
def api() -> MagicMock:
    client = MagicMock()
    client.fetch_sent_notifications = AsyncMock(return_value=sent(3))
    return client


@pytest.mark.asyncio
async def test_page_offset(api, users):
    await users.set_user_id("u1")
    history = SentHistory(api, users, page_size=20)

    page = await history.load(3)

    api.fetch_sent_notifications.assert_awaited_once_with("u1", 20, 40)
    assert page.page == 3
    assert len(page.items) == 3
    assert page.has_more is True
    assert page.has_previous is True


@pytest.mark.asyncio
async def test_empty_page_ends_paging(api, users):
    await users.set_user_id("u1")
    api.fetch_sent_notifications.return_value = []
    history = SentHistory(api, users)

    page = await history.load(2)

    assert page.has_more is False
    assert SentHistory.next_page(page) is None
    assert SentHistory.previous_page(page) == 1


@pytest.mark.asyncio
async def test_missing_user_id_gives_empty_page(api, users):
    history = SentHistory(api, users)

    page = await history.load(1)

    assert page.items == []
    assert page.has_more is False
    api.fetch_sent_notifications.assert_not_awaited()


def test_first_page_has_no_previous():
    page = HistoryPage(page=1, items=sent(1))

    assert SentHistory.previous_page(page) is None
    assert SentHistory.next_page(page) == 2
