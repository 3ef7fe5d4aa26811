"""Gate for updates: private bot, session restore, login required."""
from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message, TelegramObject

from havasi_bot.config import Config
from havasi_bot.services.session import AuthSessionManager
from havasi_bot.states import LoginStates

PUBLIC_COMMANDS = ("/start", "/help", "/login", "/estate")
PUBLIC_CALLBACKS = ("login:", "estate:")

PRIVATE_TEXT = "⛔ This bot is private."
LOADING_TEXT = "⏳ Loading session, try again in a moment."
LOGIN_TEXT = "🔒 Please /login first."


async def _reply(event: TelegramObject, text: str) -> None:
    if isinstance(event, Message):
        await event.answer(text)
    elif isinstance(event, CallbackQuery):
        await event.answer(text, show_alert=True)


async def _is_public(event: TelegramObject, data: dict[str, Any]) -> bool:
    if isinstance(event, Message):
        text = event.text or ""
        if text.startswith(PUBLIC_COMMANDS):
            return True
        state: FSMContext | None = data.get("state")
        if state is not None and await state.get_state() == LoginStates.waiting_token.state:
            return True
    elif isinstance(event, CallbackQuery):
        return (event.data or "").startswith(PUBLIC_CALLBACKS)
    return False


class AccessMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        config: Config | None = data.get("config")
        session: AuthSessionManager | None = data.get("session")
        user = getattr(event, "from_user", None)

        if config is not None and not config.is_allowed(user.id if user else None):
            await _reply(event, PRIVATE_TEXT)
            return None

        if session is None or await _is_public(event, data):
            return await handler(event, data)

        # unknown is not the same as logged out
        if session.is_initializing:
            await _reply(event, LOADING_TEXT)
            return None

        if not session.is_authenticated:
            await _reply(event, LOGIN_TEXT)
            return None

        return await handler(event, data)
