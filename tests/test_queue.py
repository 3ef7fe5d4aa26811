"""Tests for the outgoing message queue."""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramForbiddenError, TelegramRetryAfter

from havasi_bot.services.geocoding import Marker
from havasi_bot.services.queue import SendQueue


@pytest.fixture
def bot() -> MagicMock:
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.send_venue = AsyncMock()
    return bot


@pytest.mark.asyncio
async def test_alerts_jump_the_queue(bot):
    queue = SendQueue(bot, rate_per_sec=1000)
    await queue.put_text(1, "first")
    await queue.put_text(1, "second")
    await queue.put_text(1, "session expired", alert=True)

    queue.start()
    await asyncio.wait_for(queue._queue.join(), timeout=1)
    await queue.stop()

    sent = [c.args[1] for c in bot.send_message.await_args_list]
    assert sent == ["session expired", "first", "second"]


@pytest.mark.asyncio
async def test_marker_becomes_venue(bot):
    queue = SendQueue(bot, rate_per_sec=1000)
    await queue.put_marker(5, Marker("re1", "Byt 2+kk", 50.1, 14.4, "Praha", exact=False))

    queue.start()
    await asyncio.wait_for(queue._queue.join(), timeout=1)
    await queue.stop()

    kwargs = bot.send_venue.await_args.kwargs
    assert bot.send_venue.await_args.args == (5,)
    assert kwargs["latitude"] == 50.1
    assert kwargs["title"] == "Byt 2+kk"
    assert kwargs["address"] == "Praha (approx.)"


@pytest.mark.asyncio
async def test_forbidden_chat_is_not_retried(bot):
    bot.send_message.side_effect = TelegramForbiddenError(method=MagicMock(), message="blocked")
    queue = SendQueue(bot)
    await queue.put_text(1, "hi")

    item = await queue._queue.get()
    assert await queue._send_with_retry(item) is False
    assert bot.send_message.await_count == 1


@pytest.mark.asyncio
async def test_retry_after_is_honoured(bot, monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr("havasi_bot.services.queue.asyncio.sleep", sleep)
    bot.send_message.side_effect = [
        TelegramRetryAfter(method=MagicMock(), message="slow down", retry_after=3),
        None,
    ]
    queue = SendQueue(bot)
    await queue.put_text(1, "hi")

    item = await queue._queue.get()
    assert await queue._send_with_retry(item) is True
    sleep.assert_awaited_once_with(3)
