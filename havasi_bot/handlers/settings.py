from aiogram import Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from havasi_bot.keyboards import settings_kb
from havasi_bot.keyboards.reply import SETTINGS
from havasi_bot.services.preferences import PreferenceService
from havasi_bot.services.profile import UserProfileStore
from havasi_bot.services.session import AuthSessionManager
from havasi_bot.views import profile_text
from .common import HANDLED_ERRORS, report_error

router = Router()


async def _render(callback: CallbackQuery, profile: UserProfileStore, theme: str) -> None:
    try:
        await callback.message.edit_text(
            profile_text(profile.user, theme),
            reply_markup=settings_kb(theme),
        )
    except TelegramBadRequest as exc:
        if "message is not modified" not in str(exc):
            raise


@router.message(Command("settings"))
@router.message(F.text == SETTINGS)
async def show_settings(
    message: Message,
    profile: UserProfileStore,
    preferences: PreferenceService,
):
    theme = preferences.get_theme()
    await message.answer(profile_text(profile.user, theme), reply_markup=settings_kb(theme))


@router.callback_query(F.data.startswith("settings:theme:"))
async def set_theme(
    callback: CallbackQuery,
    profile: UserProfileStore,
    preferences: PreferenceService,
):
    try:
        await preferences.set_theme(callback.data.split(":", 2)[2])
    except HANDLED_ERRORS as exc:
        await report_error(callback, exc, "Theme")
        return
    await callback.answer()
    await _render(callback, profile, preferences.get_theme())


@router.callback_query(F.data == "settings:refresh")
async def refresh_profile(
    callback: CallbackQuery,
    session: AuthSessionManager,
    profile: UserProfileStore,
    preferences: PreferenceService,
):
    try:
        await session.refresh_profile()
    except HANDLED_ERRORS as exc:
        await report_error(callback, exc, "Profile")
        return
    await callback.answer("Profile reloaded")
    await _render(callback, profile, preferences.get_theme())
