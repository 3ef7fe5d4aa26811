"""Listing browser, listing detail, provider comparison and map."""
import asyncio
import logging

from aiogram import Bot, Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from aiogram.utils.deep_linking import create_start_link

from havasi_bot.config import Config
from havasi_bot.keyboards import cancel_kb, estate_back_kb, estate_kb, listings_kb, main_kb
from havasi_bot.keyboards.reply import CANCEL, LISTINGS
from havasi_bot.models import RealEstate, SortDirection, TransactionType
from havasi_bot.services.api import ApiClient
from havasi_bot.services.browser import (
    BrowserRegistry,
    BrowserState,
    FilterChanged,
    ListingBrowser,
    PageChanged,
    Reload,
    SearchChanged,
    SearchDebounced,
)
from havasi_bot.services.geocoding import Geocoder, MarkerPlacer
from havasi_bot.services.queue import SendQueue
from havasi_bot.services.session import AuthSessionManager
from havasi_bot.states import SearchStates
from havasi_bot.views import estate_text, listing_page_text, price_history_text, providers_text
from .common import HANDLED_ERRORS, report_error

logger = logging.getLogger(__name__)
router = Router()

# background geocoding jobs, kept so they are not garbage collected
_map_jobs: set[asyncio.Task] = set()


async def _share_url(bot: Bot, browser: ListingBrowser) -> str | None:
    try:
        return await create_start_link(bot, browser.query_string(), encode=True)
    except ValueError:
        # payload over the 64 character limit
        return None


def bind_browser(browser: ListingBrowser, bot: Bot, chat_id: int) -> None:
    """Render every applied browser state into the chat's listing message."""

    async def on_update(state: BrowserState) -> None:
        text = listing_page_text(state)
        markup = listings_kb(state, await _share_url(bot, browser))
        if browser.anchor_message_id is None:
            sent = await bot.send_message(chat_id, text, reply_markup=markup)
            browser.anchor_message_id = sent.message_id
            return
        try:
            await bot.edit_message_text(
                text,
                chat_id=chat_id,
                message_id=browser.anchor_message_id,
                reply_markup=markup,
            )
        except TelegramBadRequest as exc:
            if "message is not modified" not in str(exc):
                logger.warning("Listing message update failed: %s", exc)
                sent = await bot.send_message(chat_id, text, reply_markup=markup)
                browser.anchor_message_id = sent.message_id

    browser.on_update = on_update


async def open_browser(message: Message, browser: ListingBrowser) -> None:
    bind_browser(browser, message.bot, message.chat.id)
    placeholder = await message.answer("⏳ Loading listings…")
    browser.anchor_message_id = placeholder.message_id
    await browser.dispatch(Reload())


@router.message(Command("listings"))
@router.message(F.text == LISTINGS)
async def show_listings(message: Message, browsers: BrowserRegistry):
    await open_browser(message, browsers.open(message.chat.id))


def _browser_for(callback: CallbackQuery, browsers: BrowserRegistry) -> ListingBrowser:
    browser = browsers.open(callback.message.chat.id)
    bind_browser(browser, callback.bot, callback.message.chat.id)
    browser.anchor_message_id = callback.message.message_id
    return browser


@router.callback_query(F.data == "ls:noop")
async def listings_noop(callback: CallbackQuery):
    await callback.answer()


@router.callback_query(F.data.startswith("ls:page:"))
async def listings_page(callback: CallbackQuery, browsers: BrowserRegistry):
    await callback.answer()
    page = int(callback.data.split(":")[2])
    await _browser_for(callback, browsers).dispatch(PageChanged(page))


@router.callback_query(F.data.startswith("ls:tx:"))
async def listings_transaction(callback: CallbackQuery, browsers: BrowserRegistry):
    await callback.answer()
    transaction = TransactionType(callback.data.split(":")[2])
    await _browser_for(callback, browsers).dispatch(FilterChanged(transaction=transaction))


@router.callback_query(F.data.startswith("ls:sort:"))
async def listings_sort(callback: CallbackQuery, browsers: BrowserRegistry):
    await callback.answer()
    direction = SortDirection(callback.data.split(":")[2])
    await _browser_for(callback, browsers).dispatch(FilterChanged(sort_direction=direction))


@router.callback_query(F.data == "ls:reload")
async def listings_reload(callback: CallbackQuery, browsers: BrowserRegistry):
    await callback.answer()
    await _browser_for(callback, browsers).dispatch(Reload())


@router.callback_query(F.data == "ls:clear")
async def listings_clear_search(callback: CallbackQuery, browsers: BrowserRegistry):
    await callback.answer()
    await _browser_for(callback, browsers).dispatch(SearchDebounced(""))


@router.callback_query(F.data == "ls:back")
async def listings_back(callback: CallbackQuery, browsers: BrowserRegistry):
    await callback.answer()
    browser = _browser_for(callback, browsers)
    if not browser.state.items and not browser.state.error:
        await browser.dispatch(Reload())
        return
    await browser.on_update(browser.state)


@router.callback_query(F.data == "ls:search")
async def listings_search(callback: CallbackQuery, state: FSMContext, browsers: BrowserRegistry):
    await callback.answer()
    _browser_for(callback, browsers)
    await state.set_state(SearchStates.typing)
    await callback.message.answer(
        "🔍 Type a search term. The list follows what you type.",
        reply_markup=cancel_kb(),
    )


@router.message(SearchStates.typing, F.text == CANCEL)
async def search_done(message: Message, state: FSMContext):
    await state.clear()
    await message.answer("Search closed.", reply_markup=main_kb())


@router.message(SearchStates.typing, F.text)
async def search_typed(message: Message, browsers: BrowserRegistry):
    browser = browsers.get(message.chat.id)
    if browser is None:
        browser = browsers.open(message.chat.id)
        await open_browser(message, browser)
    await browser.dispatch(SearchChanged(message.text))


async def _send_markers(
    chat_id: int,
    estates: list[RealEstate],
    geocoder: Geocoder,
    send_queue: SendQueue,
    config: Config,
) -> int:
    placer = MarkerPlacer(
        geocoder,
        batch_size=config.GEOCODE_BATCH_SIZE,
        batch_delay=config.GEOCODE_BATCH_DELAY,
    )
    markers = placer.place(estates)
    pending = len(placer.pending)
    for marker in markers:
        await send_queue.put_marker(chat_id, marker)

    if pending:

        async def on_marker(marker):
            await send_queue.put_marker(chat_id, marker)

        job = asyncio.create_task(placer.geocode_pending(on_marker))
        _map_jobs.add(job)
        job.add_done_callback(_map_jobs.discard)
    return len(markers) + pending


@router.callback_query(F.data == "ls:map")
async def listings_map(
    callback: CallbackQuery,
    browsers: BrowserRegistry,
    geocoder: Geocoder,
    send_queue: SendQueue,
    config: Config,
):
    browser = browsers.get(callback.message.chat.id)
    estates = list(browser.state.items) if browser else []
    if not estates:
        await callback.answer("No listings on this page.", show_alert=True)
        return
    await callback.answer("🗺 Sending map pins…")
    await _send_markers(callback.message.chat.id, estates, geocoder, send_queue, config)


async def _load_estate(
    chat_id: int,
    estate_id: str,
    browsers: BrowserRegistry,
    api: ApiClient,
) -> RealEstate:
    estate = browsers.find_real_estate(chat_id, estate_id)
    if estate is None:
        estate = await api.fetch_real_estate_by_id(estate_id)
    return estate


@router.message(Command("estate"))
async def cmd_estate(
    message: Message,
    command: CommandObject,
    api: ApiClient,
    browsers: BrowserRegistry,
    session: AuthSessionManager,
):
    """Public listing view, works without login."""
    estate_id = (command.args or "").strip()
    if not estate_id:
        await message.answer("Usage: /estate ID")
        return
    try:
        estate = await _load_estate(message.chat.id, estate_id, browsers, api)
    except HANDLED_ERRORS as exc:
        await report_error(message, exc, f"Listing {estate_id}")
        return
    await message.answer(
        estate_text(estate),
        reply_markup=estate_kb(estate, with_back=session.is_authenticated),
    )


@router.callback_query(F.data.startswith("estate:"))
async def estate_action(
    callback: CallbackQuery,
    api: ApiClient,
    browsers: BrowserRegistry,
    session: AuthSessionManager,
    geocoder: Geocoder,
    send_queue: SendQueue,
    config: Config,
):
    _, action, estate_id = callback.data.split(":", 2)
    chat_id = callback.message.chat.id
    try:
        estate = await _load_estate(chat_id, estate_id, browsers, api)
    except HANDLED_ERRORS as exc:
        await report_error(callback, exc, f"Listing {estate_id}")
        return

    if action == "map":
        count = await _send_markers(chat_id, [estate], geocoder, send_queue, config)
        await callback.answer("🗺 Sending map pin…" if count else "No address to show.")
        return

    await callback.answer()
    if action == "providers":
        text, markup = providers_text(estate), estate_back_kb(estate.id)
    elif action == "history":
        text, markup = price_history_text(estate), estate_back_kb(estate.id)
    else:
        text = estate_text(estate)
        markup = estate_kb(estate, with_back=session.is_authenticated)

    await callback.message.edit_text(
        text,
        reply_markup=markup,
        disable_web_page_preview=True,
    )
