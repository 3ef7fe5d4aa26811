"""Inline keyboards."""
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from havasi_bot.models import (
    BuildingType,
    NotificationRule,
    RealEstate,
    SortDirection,
    TransactionType,
)
from havasi_bot.services.browser import BrowserState, paginate
from havasi_bot.services.notifications import RowAction
from havasi_bot.services.pricing import format_price, lowest_price


def login_kb(login_url: str | None) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    if login_url:
        builder.row(InlineKeyboardButton(text="🔑 Login with Google", url=login_url))
    builder.row(InlineKeyboardButton(text="📋 Paste access token", callback_data="login:paste"))
    return builder.as_markup()


def listings_kb(state: BrowserState, share_url: str | None = None) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()

    if state.error:
        builder.row(InlineKeyboardButton(text="🔄 Try again", callback_data="ls:reload"))

    for n, estate in enumerate(state.items, start=1):
        price = format_price(lowest_price(estate), estate.currency)
        builder.row(
            InlineKeyboardButton(
                text=f"{n}. {estate.name[:40]} · {price}",
                callback_data=f"estate:view:{estate.id}",
            )
        )

    pages = []
    for page in paginate(state.page, state.has_more):
        if page is None:
            pages.append(InlineKeyboardButton(text="…", callback_data="ls:noop"))
        elif page == state.page:
            pages.append(InlineKeyboardButton(text=f"· {page} ·", callback_data="ls:noop"))
        else:
            pages.append(InlineKeyboardButton(text=str(page), callback_data=f"ls:page:{page}"))
    builder.row(*pages)

    other_tx = (
        TransactionType.RENT if state.transaction == TransactionType.SALE else TransactionType.SALE
    )
    other_sort = SortDirection.ASC if state.sort_direction == SortDirection.DESC else SortDirection.DESC
    builder.row(
        InlineKeyboardButton(text=f"⇄ {other_tx.value}", callback_data=f"ls:tx:{other_tx.value}"),
        InlineKeyboardButton(
            text="⬆ Oldest first" if other_sort == SortDirection.ASC else "⬇ Newest first",
            callback_data=f"ls:sort:{other_sort.value}",
        ),
    )
    builder.row(
        InlineKeyboardButton(text="🔍 Search", callback_data="ls:search"),
        InlineKeyboardButton(text="🗺 Map", callback_data="ls:map"),
    )
    if state.search:
        builder.row(InlineKeyboardButton(text="✖ Clear search", callback_data="ls:clear"))
    if share_url:
        builder.row(InlineKeyboardButton(text="🔗 Share this search", url=share_url))
    return builder.as_markup()


def estate_kb(estate: RealEstate, with_back: bool = True) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    if estate.url:
        builder.row(InlineKeyboardButton(text="🔗 Open listing", url=estate.url))
    if estate.duplicates:
        builder.row(
            InlineKeyboardButton(
                text=f"🏷 All providers ({len(estate.duplicates) + 1})",
                callback_data=f"estate:providers:{estate.id}",
            ),
            InlineKeyboardButton(
                text="📈 Price history",
                callback_data=f"estate:history:{estate.id}",
            ),
        )
    builder.row(InlineKeyboardButton(text="🗺 Map", callback_data=f"estate:map:{estate.id}"))
    if with_back:
        builder.row(InlineKeyboardButton(text="◀️ Back to listings", callback_data="ls:back"))
    return builder.as_markup()


def estate_back_kb(estate_id: str) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="◀️ Back", callback_data=f"estate:view:{estate_id}"))
    return builder.as_markup()


def notifications_kb(rules: list[NotificationRule]) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for rule in rules:
        mark = "✅" if rule.enabled else "⏸"
        builder.row(
            InlineKeyboardButton(
                text=f"{mark} {rule.name[:40]} · {rule.type.value}",
                callback_data=f"notif:view:{rule.id}",
            )
        )
    builder.row(
        InlineKeyboardButton(text="➕ Add notification", callback_data="notif:add"),
        InlineKeyboardButton(text="🔄 Refresh", callback_data="notif:list"),
    )
    return builder.as_markup()


def notification_kb(rule: NotificationRule, action: RowAction) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    if action in (RowAction.ENABLING, RowAction.DISABLING):
        toggle_text = "⏳ Updating…"
    elif rule.enabled:
        toggle_text = "⏸ Disable"
    else:
        toggle_text = "▶ Enable"
    delete_text = "⏳ Deleting…" if action == RowAction.DELETING else "🗑 Delete"
    builder.row(
        InlineKeyboardButton(text=toggle_text, callback_data=f"notif:toggle:{rule.id}"),
        InlineKeyboardButton(text=delete_text, callback_data=f"notif:delete:{rule.id}"),
    )
    builder.row(InlineKeyboardButton(text="◀️ Back", callback_data="notif:list"))
    return builder.as_markup()


def confirm_delete_kb(notification_id: str) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="✅ Yes, delete", callback_data=f"notif:delete_yes:{notification_id}"),
        InlineKeyboardButton(text="❌ No", callback_data=f"notif:view:{notification_id}"),
    )
    return builder.as_markup()


def kind_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="📧 Email", callback_data="add:kind:email"),
        InlineKeyboardButton(text="🌐 Webhook", callback_data="add:kind:api"),
        InlineKeyboardButton(text="💬 Discord", callback_data="add:kind:discord"),
    )
    return builder.as_markup()


def building_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for building in BuildingType:
        builder.add(
            InlineKeyboardButton(text=building.value, callback_data=f"add:building:{building.value}")
        )
    builder.adjust(2)
    return builder.as_markup()


def transaction_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        *(
            InlineKeyboardButton(text=tx.value, callback_data=f"add:tx:{tx.value}")
            for tx in TransactionType
        )
    )
    return builder.as_markup()


def skip_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="⏭ Any", callback_data="add:skip"))
    return builder.as_markup()


def confirm_add_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="✅ Add notification", callback_data="add:confirm"),
        InlineKeyboardButton(text="✖ Cancel", callback_data="add:cancel"),
    )
    return builder.as_markup()


def history_kb(page: int, has_previous: bool, has_more: bool) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    buttons = []
    if has_previous:
        buttons.append(InlineKeyboardButton(text="◀️ Previous", callback_data=f"sent:{page - 1}"))
    buttons.append(InlineKeyboardButton(text=f"Page {page}", callback_data="sent:noop"))
    if has_more:
        buttons.append(InlineKeyboardButton(text="Next ▶️", callback_data=f"sent:{page + 1}"))
    builder.row(*buttons)
    return builder.as_markup()


def settings_kb(theme: str) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(
            text=("● " if theme == "light" else "") + "☀️ Light",
            callback_data="settings:theme:light",
        ),
        InlineKeyboardButton(
            text=("● " if theme == "dark" else "") + "🌙 Dark",
            callback_data="settings:theme:dark",
        ),
    )
    builder.row(InlineKeyboardButton(text="🔄 Reload profile", callback_data="settings:refresh"))
    return builder.as_markup()
