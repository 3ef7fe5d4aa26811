"""Notification rules: list, detail, enable/disable, delete and the add wizard."""
import logging

from aiogram import Router, F, html
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from havasi_bot.keyboards import (
    building_kb,
    cancel_kb,
    confirm_add_kb,
    confirm_delete_kb,
    kind_kb,
    main_kb,
    notification_kb,
    notifications_kb,
    skip_kb,
    transaction_kb,
)
from havasi_bot.keyboards.reply import CANCEL, NOTIFICATIONS
from havasi_bot.services.errors import RowBusyError, ValidationError
from havasi_bot.services.notifications import (
    NotificationManager,
    RowAction,
    build_command,
    build_filter,
    render_filter_range,
    split_range,
)
from havasi_bot.states import AddNotificationStates
from havasi_bot.views import rule_text, rules_text
from .common import HANDLED_ERRORS, report_error

logger = logging.getLogger(__name__)
router = Router()


async def _edit(callback: CallbackQuery, text: str, markup) -> None:
    try:
        await callback.message.edit_text(text, reply_markup=markup)
    except TelegramBadRequest as exc:
        if "message is not modified" not in str(exc):
            raise


# ---------- list and detail ----------

@router.message(Command("notifications"))
@router.message(F.text == NOTIFICATIONS)
async def show_notifications(message: Message, notifications: NotificationManager):
    try:
        rules = await notifications.refresh()
    except HANDLED_ERRORS as exc:
        await report_error(message, exc, "Notifications")
        return
    await message.answer(rules_text(rules), reply_markup=notifications_kb(rules))


@router.callback_query(F.data == "notif:list")
async def list_notifications(callback: CallbackQuery, notifications: NotificationManager):
    try:
        rules = await notifications.refresh()
    except HANDLED_ERRORS as exc:
        await report_error(callback, exc, "Notifications")
        return
    await callback.answer()
    await _edit(callback, rules_text(rules), notifications_kb(rules))


@router.callback_query(F.data.startswith("notif:view:"))
async def view_notification(callback: CallbackQuery, notifications: NotificationManager):
    notification_id = callback.data.split(":", 2)[2]
    rule = notifications.find(notification_id)
    if rule is None:
        await callback.answer("Notification not found.", show_alert=True)
        return
    await callback.answer()
    await _edit(
        callback,
        rule_text(rule),
        notification_kb(rule, notifications.action_for(notification_id)),
    )


@router.callback_query(F.data.startswith("notif:toggle:"))
async def toggle_notification(callback: CallbackQuery, notifications: NotificationManager):
    notification_id = callback.data.split(":", 2)[2]
    rule = notifications.find(notification_id)
    if rule is None:
        await callback.answer("Notification not found.", show_alert=True)
        return
    if notifications.action_for(notification_id) != RowAction.IDLE:
        await callback.answer("This notification is already being updated")
        return

    busy = RowAction.DISABLING if rule.enabled else RowAction.ENABLING
    await _edit(callback, rule_text(rule), notification_kb(rule, busy))
    try:
        await notifications.toggle(notification_id)
    except RowBusyError as exc:
        await callback.answer(exc.message)
        return
    except HANDLED_ERRORS as exc:
        await report_error(callback, exc, f"Toggle notification {notification_id}")
        await _edit(callback, rule_text(rule), notification_kb(rule, RowAction.IDLE))
        return

    rule = notifications.find(notification_id)
    if rule is None:
        rules = notifications.notifications
        await callback.answer()
        await _edit(callback, rules_text(rules), notifications_kb(rules))
        return
    await callback.answer("Enabled" if rule.enabled else "Disabled")
    await _edit(callback, rule_text(rule), notification_kb(rule, notifications.action_for(notification_id)))


@router.callback_query(F.data.startswith("notif:delete:"))
async def ask_delete_notification(callback: CallbackQuery, notifications: NotificationManager):
    notification_id = callback.data.split(":", 2)[2]
    rule = notifications.find(notification_id)
    if rule is None:
        await callback.answer("Notification not found.", show_alert=True)
        return
    await callback.answer()
    await _edit(
        callback,
        f"🗑 Delete {html.bold(html.quote(rule.name))}?",
        confirm_delete_kb(notification_id),
    )


@router.callback_query(F.data.startswith("notif:delete_yes:"))
async def delete_notification(callback: CallbackQuery, notifications: NotificationManager):
    notification_id = callback.data.split(":", 2)[2]
    try:
        rules = await notifications.delete(notification_id)
    except RowBusyError as exc:
        await callback.answer(exc.message)
        return
    except HANDLED_ERRORS as exc:
        await report_error(callback, exc, f"Delete notification {notification_id}")
        return
    await callback.answer("Deleted")
    await _edit(callback, rules_text(rules), notifications_kb(rules))


# ---------- add wizard ----------

@router.message(AddNotificationStates, F.text == CANCEL)
async def add_cancel_text(message: Message, state: FSMContext):
    await state.clear()
    await message.answer("Cancelled.", reply_markup=main_kb())


@router.callback_query(AddNotificationStates.confirm, F.data == "add:cancel")
async def add_cancel(callback: CallbackQuery, state: FSMContext):
    await state.clear()
    await callback.answer()
    await callback.message.edit_text("Cancelled.")
    await callback.message.answer("Choose an action:", reply_markup=main_kb())


@router.callback_query(F.data == "notif:add")
async def add_start(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await state.clear()
    await state.set_state(AddNotificationStates.name)
    await callback.message.answer("➕ New notification\n\nName:", reply_markup=cancel_kb())


@router.message(AddNotificationStates.name, F.text)
async def add_name(message: Message, state: FSMContext):
    name = message.text.strip()
    if not name:
        await message.answer("⚠️ Name is required")
        return
    await state.update_data(name=name)
    await state.set_state(AddNotificationStates.kind)
    await message.answer("Where should notifications go?", reply_markup=kind_kb())


@router.callback_query(AddNotificationStates.kind, F.data.startswith("add:kind:"))
async def add_kind(callback: CallbackQuery, state: FSMContext):
    kind = callback.data.split(":", 2)[2]
    await state.update_data(kind=kind)
    await callback.answer()
    if kind == "email":
        await state.set_state(AddNotificationStates.email)
        await callback.message.edit_text("📧 Email address:")
    elif kind == "api":
        await state.set_state(AddNotificationStates.url)
        await callback.message.edit_text("🌐 Webhook URL:")
    else:
        await state.set_state(AddNotificationStates.webhook_id)
        await callback.message.edit_text("💬 Discord webhook ID:")


async def _ask_building(message: Message, state: FSMContext) -> None:
    await state.set_state(AddNotificationStates.building_type)
    await message.answer("Building type:", reply_markup=building_kb())


@router.message(AddNotificationStates.email, F.text)
async def add_email(message: Message, state: FSMContext):
    await state.update_data(email=message.text.strip())
    await _ask_building(message, state)


@router.message(AddNotificationStates.url, F.text)
async def add_url(message: Message, state: FSMContext):
    await state.update_data(url=message.text.strip())
    await _ask_building(message, state)


@router.message(AddNotificationStates.webhook_id, F.text)
async def add_webhook_id(message: Message, state: FSMContext):
    await state.update_data(webhook_id=message.text.strip())
    await state.set_state(AddNotificationStates.discord_token)
    await message.answer("💬 Discord webhook token:")


@router.message(AddNotificationStates.discord_token, F.text)
async def add_discord_token(message: Message, state: FSMContext):
    await state.update_data(token=message.text.strip())
    await _ask_building(message, state)


@router.callback_query(AddNotificationStates.building_type, F.data.startswith("add:building:"))
async def add_building(callback: CallbackQuery, state: FSMContext):
    await state.update_data(building_type=callback.data.split(":", 2)[2])
    await state.set_state(AddNotificationStates.transaction_type)
    await callback.answer()
    await callback.message.edit_text("Transaction type:", reply_markup=transaction_kb())


@router.callback_query(AddNotificationStates.transaction_type, F.data.startswith("add:tx:"))
async def add_transaction(callback: CallbackQuery, state: FSMContext):
    await state.update_data(transaction_type=callback.data.split(":", 2)[2])
    await state.set_state(AddNotificationStates.size)
    await callback.answer()
    await callback.message.edit_text(
        "Size in m², as from-to (e.g. 50-80, 50- or -80):",
        reply_markup=skip_kb(),
    )


def _filter_from(data: dict):
    return build_filter(
        data["building_type"],
        data["transaction_type"],
        data.get("size_from"),
        data.get("size_to"),
        data.get("price_from"),
        data.get("price_to"),
        data.get("sub_types"),
    )


def _command_from(data: dict):
    return build_command(
        data.get("kind", ""),
        data.get("name", ""),
        _filter_from(data),
        email=data.get("email"),
        url=data.get("url"),
        webhook_id=data.get("webhook_id"),
        token=data.get("token"),
    )


def _check_filter(data: dict, **overrides) -> None:
    _filter_from({**data, **overrides})


async def _ask_price(message: Message, state: FSMContext) -> None:
    await state.set_state(AddNotificationStates.price)
    await message.answer(
        "Price, as from-to (e.g. 3000000-6000000):",
        reply_markup=skip_kb(),
    )


async def _ask_sub_types(message: Message, state: FSMContext) -> None:
    await state.set_state(AddNotificationStates.sub_types)
    await message.answer(
        "Sub types, comma separated (e.g. 2+kk, 3+1):",
        reply_markup=skip_kb(),
    )


@router.message(AddNotificationStates.size, F.text)
async def add_size(message: Message, state: FSMContext):
    size_from, size_to = split_range(message.text)
    try:
        _check_filter(await state.get_data(), size_from=size_from, size_to=size_to)
    except ValidationError as exc:
        await message.answer(f"⚠️ {html.quote(exc.message)}")
        return
    await state.update_data(size_from=size_from, size_to=size_to)
    await _ask_price(message, state)


@router.callback_query(AddNotificationStates.size, F.data == "add:skip")
async def skip_size(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await _ask_price(callback.message, state)


@router.message(AddNotificationStates.price, F.text)
async def add_price(message: Message, state: FSMContext):
    price_from, price_to = split_range(message.text)
    try:
        _check_filter(await state.get_data(), price_from=price_from, price_to=price_to)
    except ValidationError as exc:
        await message.answer(f"⚠️ {html.quote(exc.message)}")
        return
    await state.update_data(price_from=price_from, price_to=price_to)
    await _ask_sub_types(message, state)


@router.callback_query(AddNotificationStates.price, F.data == "add:skip")
async def skip_price(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await _ask_sub_types(callback.message, state)


async def _confirm(message: Message, state: FSMContext) -> None:
    try:
        command = _command_from(await state.get_data())
    except ValidationError as exc:
        await state.clear()
        await message.answer(f"⚠️ {html.quote(exc.message)}", reply_markup=main_kb())
        return

    f = command.filter
    lines = [
        html.bold("Add this notification?"),
        f"Name: {html.quote(command.name)}",
        f"Type: {command.type}",
        f"Building type: {f.building_type.value}",
        f"Transaction type: {f.transaction_type.value}",
        f"Size: {render_filter_range(f.size)} m²",
        f"Price: {render_filter_range(f.price)}",
    ]
    if f.sub_types:
        lines.append(f"Sub types: {html.quote(', '.join(f.sub_types))}")
    await state.set_state(AddNotificationStates.confirm)
    await message.answer("\n".join(lines), reply_markup=confirm_add_kb())


@router.message(AddNotificationStates.sub_types, F.text)
async def add_sub_types(message: Message, state: FSMContext):
    await state.update_data(sub_types=message.text)
    await _confirm(message, state)


@router.callback_query(AddNotificationStates.sub_types, F.data == "add:skip")
async def skip_sub_types(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await _confirm(callback.message, state)


@router.callback_query(AddNotificationStates.confirm, F.data == "add:confirm")
async def add_confirm(
    callback: CallbackQuery,
    state: FSMContext,
    notifications: NotificationManager,
):
    try:
        command = _command_from(await state.get_data())
        rules = await notifications.create(command)
    except HANDLED_ERRORS as exc:
        # the form stays so the user can retry
        await report_error(callback, exc, "Add notification")
        return

    await state.clear()
    await callback.answer("✅ Notification added")
    await callback.message.edit_text(rules_text(rules), reply_markup=notifications_kb(rules))
    await callback.message.answer("Choose an action:", reply_markup=main_kb())
