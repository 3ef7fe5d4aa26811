from aiogram import Router, html
from aiogram.filters import Command
from aiogram.types import Message

from havasi_bot.config import Config
from havasi_bot.filters import AdminFilter
from havasi_bot.services.profile import UserProfileStore
from havasi_bot.services.session import AuthSessionManager

router = Router()


@router.message(Command("admin"), AdminFilter())
async def admin_panel(
    message: Message,
    config: Config,
    session: AuthSessionManager,
    profile: UserProfileStore,
):
    user = profile.user
    lines = [
        html.bold("🛠 Admin"),
        f"Session: {session.state.value} (generation {session.generation})",
        f"User: {html.quote(user.username if user else '—')}",
        "",
        html.bold("Config"),
    ]
    lines += [
        f"{key}: {html.quote(str(value))}"
        for key, value in config.masked_summary().items()
    ]
    await message.answer("\n".join(lines))


@router.message(Command("admin"))
async def admin_denied(message: Message):
    await message.answer("❌ Access denied")
