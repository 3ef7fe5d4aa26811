"""Showing errors to the user (the bot's toast)."""
import asyncio
import logging

import aiohttp
from aiogram import html
from aiogram.types import CallbackQuery, Message

from havasi_bot.services.errors import HavasiError, describe_error

logger = logging.getLogger(__name__)

# what a platform call can end with; anything else is a bug and propagates
HANDLED_ERRORS = (HavasiError, aiohttp.ClientError, asyncio.TimeoutError)


async def report_error(event: Message | CallbackQuery, exc: BaseException, context: str) -> str:
    message = describe_error(exc)
    logger.error("%s: %s", context, exc if str(exc) else exc.__class__.__name__)
    if isinstance(event, CallbackQuery):
        await event.answer(message[:200], show_alert=True)
    else:
        await event.answer(f"⚠️ {html.quote(message)}")
    return message
