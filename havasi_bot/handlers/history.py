from aiogram import Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from havasi_bot.keyboards import history_kb
from havasi_bot.keyboards.reply import SENT
from havasi_bot.services.history import SentHistory
from havasi_bot.views import history_text
from .common import HANDLED_ERRORS, report_error

router = Router()


@router.message(Command("sent"))
@router.message(F.text == SENT)
async def show_sent(message: Message, history: SentHistory):
    try:
        page = await history.load(1)
    except HANDLED_ERRORS as exc:
        await report_error(message, exc, "Sent notifications")
        return
    await message.answer(
        history_text(page),
        reply_markup=history_kb(page.page, page.has_previous, page.has_more),
        disable_web_page_preview=True,
    )


@router.callback_query(F.data == "sent:noop")
async def sent_noop(callback: CallbackQuery):
    await callback.answer()


@router.callback_query(F.data.regexp(r"^sent:\d+$"))
async def sent_page(callback: CallbackQuery, history: SentHistory):
    number = int(callback.data.split(":")[1])
    try:
        page = await history.load(number)
    except HANDLED_ERRORS as exc:
        await report_error(callback, exc, f"Sent notifications page {number}")
        return

    await callback.answer()
    try:
        await callback.message.edit_text(
            history_text(page),
            reply_markup=history_kb(page.page, page.has_previous, page.has_more),
            disable_web_page_preview=True,
        )
    except TelegramBadRequest as exc:
        if "message is not modified" not in str(exc):
            raise
