"""Start, help, login and logout."""
import logging
import secrets

from aiogram import Router, F, html
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.exceptions import TelegramAPIError
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from aiogram.utils.deep_linking import decode_payload

from havasi_bot.config import Config
from havasi_bot.keyboards import login_kb, main_kb, remove_kb
from havasi_bot.keyboards.reply import LOGOUT
from havasi_bot.services.browser import BrowserRegistry
from havasi_bot.services.session import AuthSessionManager, build_login_url
from havasi_bot.states import LoginStates
from .common import HANDLED_ERRORS, report_error
from .listings import open_browser

logger = logging.getLogger(__name__)
router = Router()

HELP_TEXT = (
    "🏠 Havasi Reality Platform\n\n"
    "/login — sign in with Google\n"
    "/listings — browse listings\n"
    "/notifications — manage notification rules\n"
    "/sent — notifications sent to you\n"
    "/settings — profile and theme\n"
    "/estate ID — open one listing (no login needed)\n"
    "/logout — sign out"
)


def _login_url(config: Config) -> str | None:
    if not config.GOOGLE_CLIENT_ID or not config.GOOGLE_REDIRECT_URI:
        return None
    return build_login_url(
        config.GOOGLE_CLIENT_ID,
        config.GOOGLE_REDIRECT_URI,
        state=secrets.token_urlsafe(16),
    )


async def _ask_login(message: Message, state: FSMContext, config: Config) -> None:
    await state.set_state(LoginStates.waiting_token)
    await message.answer(
        "🔑 Sign in with Google, then paste the access token here.",
        reply_markup=login_kb(_login_url(config)),
    )


@router.message(CommandStart(deep_link=True))
async def cmd_start_link(
    message: Message,
    command: CommandObject,
    state: FSMContext,
    session: AuthSessionManager,
    browsers: BrowserRegistry,
    config: Config,
):
    """Shared search link: /start <encoded query string>."""
    try:
        query = decode_payload(command.args)
    except ValueError:
        query = ""

    if session.is_initializing:
        await message.answer("⏳ Loading session, try again in a moment.")
        return
    if not session.is_authenticated:
        await _ask_login(message, state, config)
        return

    browser = browsers.open(message.chat.id)
    browser.restore(query)
    await open_browser(message, browser)


@router.message(CommandStart())
async def cmd_start(
    message: Message,
    state: FSMContext,
    session: AuthSessionManager,
    config: Config,
):
    if session.is_initializing:
        await message.answer("⏳ Loading session, try again in a moment.")
        return

    if not session.is_authenticated:
        await message.answer(HELP_TEXT, reply_markup=remove_kb())
        await _ask_login(message, state, config)
        return

    await message.answer("Choose an action:", reply_markup=main_kb())


@router.message(Command("help"))
async def cmd_help(message: Message):
    await message.answer(HELP_TEXT)


@router.message(Command("login"))
async def cmd_login(
    message: Message,
    command: CommandObject,
    state: FSMContext,
    session: AuthSessionManager,
    config: Config,
):
    if command.args:
        await _do_login(message, command.args, state, session)
        return
    await _ask_login(message, state, config)


@router.callback_query(F.data == "login:paste")
async def login_paste(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await state.set_state(LoginStates.waiting_token)
    await callback.message.answer("📋 Paste the access token:")


@router.message(LoginStates.waiting_token, F.text, ~F.text.startswith("/"))
async def login_token(
    message: Message,
    state: FSMContext,
    session: AuthSessionManager,
):
    await _do_login(message, message.text, state, session)


async def _do_login(
    message: Message,
    token: str,
    state: FSMContext,
    session: AuthSessionManager,
) -> None:
    # the token should not stay in the chat history
    try:
        await message.delete()
    except TelegramAPIError as exc:
        logger.debug("Could not delete token message: %s", exc)

    try:
        user = await session.login(token)
    except HANDLED_ERRORS as exc:
        await report_error(message, exc, "Login failed")
        return

    await state.clear()
    if user is None:
        return
    await message.answer(
        f"✅ Logged in as {html.bold(html.quote(user.username or user.email or user.id))}",
        reply_markup=main_kb(),
    )


@router.message(Command("logout"))
@router.message(F.text == LOGOUT)
async def cmd_logout(
    message: Message,
    state: FSMContext,
    session: AuthSessionManager,
    browsers: BrowserRegistry,
):
    await state.clear()
    await session.logout()
    browsers.close_all()
    await message.answer("👋 Logged out.", reply_markup=remove_kb())
