"""Middleware that hands the startup services to every handler."""
from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from havasi_bot.container import Services


class ServicesMiddleware(BaseMiddleware):
    def __init__(self, services: Services):
        self.services = services

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        data.update(self.services.as_handler_data())
        return await handler(event, data)
