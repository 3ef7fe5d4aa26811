"""Outgoing message queue with a rate limit; session alerts go first."""
import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any

from aiogram import Bot
from aiogram.exceptions import TelegramForbiddenError, TelegramRetryAfter, TelegramAPIError

from .geocoding import Marker, mapy_link

logger = logging.getLogger(__name__)

PRIORITY_ALERT = 0
PRIORITY_NORMAL = 1


@dataclass(order=True)
class QueueItem:
    priority: int
    seq: int
    chat_id: int = field(compare=False)
    kind: str = field(compare=False)
    payload: dict[str, Any] = field(compare=False, default_factory=dict)


class SendQueue:
    def __init__(self, bot: Bot, rate_per_sec: float = 1.0):
        self._bot = bot
        self._rate = rate_per_sec
        self._queue: asyncio.PriorityQueue = asyncio.PriorityQueue()
        self._counter = itertools.count()
        self._task: asyncio.Task | None = None
        self._retry_count = 3

    async def put_text(self, chat_id: int, text: str, alert: bool = False) -> None:
        await self._queue.put(
            QueueItem(
                priority=PRIORITY_ALERT if alert else PRIORITY_NORMAL,
                seq=next(self._counter),
                chat_id=chat_id,
                kind="text",
                payload={"text": text},
            )
        )

    async def put_marker(self, chat_id: int, marker: Marker) -> None:
        await self._queue.put(
            QueueItem(
                priority=PRIORITY_NORMAL,
                seq=next(self._counter),
                chat_id=chat_id,
                kind="venue",
                payload={"marker": marker},
            )
        )

    async def _deliver(self, item: QueueItem) -> None:
        if item.kind == "venue":
            marker: Marker = item.payload["marker"]
            suffix = "" if marker.exact else " (approx.)"
            await self._bot.send_venue(
                item.chat_id,
                latitude=marker.latitude,
                longitude=marker.longitude,
                title=marker.title[:64] or marker.real_estate_id,
                address=(marker.address or mapy_link(marker.latitude, marker.longitude)) + suffix,
            )
        else:
            await self._bot.send_message(item.chat_id, item.payload["text"])

    async def _send_with_retry(self, item: QueueItem) -> bool:
        for attempt in range(self._retry_count):
            try:
                await self._deliver(item)
                return True
            except TelegramForbiddenError as e:
                logger.warning("Send to %s refused: %s", item.chat_id, e)
                return False
            except TelegramRetryAfter as e:
                logger.warning("Send to %s throttled for %ss", item.chat_id, e.retry_after)
                await asyncio.sleep(e.retry_after)
            except TelegramAPIError as e:
                logger.warning("Send to %s attempt %d: %s", item.chat_id, attempt + 1, e)
                await asyncio.sleep(2 ** attempt)
        return False

    async def _worker(self) -> None:
        while True:
            item: QueueItem = await self._queue.get()
            try:
                await self._send_with_retry(item)
            finally:
                self._queue.task_done()
            await asyncio.sleep(1.0 / self._rate)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._worker())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
