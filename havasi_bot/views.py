"""Message texts (HTML parse mode)."""
from datetime import datetime

from aiogram import html

from havasi_bot.models import NotificationRule, RealEstate, SentNotification, User
from havasi_bot.services.browser import BrowserState
from havasi_bot.services.history import HistoryPage
from havasi_bot.services.notifications import render_filter_range, type_specific_info
from havasi_bot.services.pricing import (
    address_string,
    format_price,
    lower_price_providers,
    lowest_price,
    price_history,
    provider_offers,
    savings_percent,
)


def _date(value: str | None, with_time: bool = False) -> str:
    if not value:
        return "—"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%d.%m.%Y %H:%M" if with_time else "%d.%m.%Y")


def listing_page_text(state: BrowserState) -> str:
    lines = [html.bold(f"🏠 Listings · {state.transaction.value} · page {state.page}")]
    if state.search:
        lines.append(f"🔍 {html.quote(state.search)}")
    if state.loading:
        lines.append("⏳ Loading…")
    if state.error:
        lines.append(f"⚠️ {html.quote(state.error)}")
    elif not state.items and not state.loading:
        lines.append("No listings found.")
    for n, estate in enumerate(state.items, start=1):
        price = format_price(lowest_price(estate), estate.currency)
        size = f" · {estate.size_in_m2:g} m²" if estate.size_in_m2 else ""
        city = estate.locality.city if estate.locality else None
        where = f" · {html.quote(city)}" if city else ""
        lines.append(f"{n}. {html.quote(estate.name)}{size}{where} · {price}")
    return "\n".join(lines)


def estate_text(estate: RealEstate) -> str:
    lines = [html.bold(html.quote(estate.name))]
    address = address_string(estate.locality)
    if address:
        lines.append(f"📍 {html.quote(address)}")

    lowest = lowest_price(estate)
    if lowest < estate.price:
        lines.append(
            f"💰 {html.strikethrough(format_price(estate.price, estate.currency))} "
            f"{html.bold(format_price(lowest, estate.currency))} "
            f"(save {savings_percent(estate)}%)"
        )
    else:
        lines.append(f"💰 {html.bold(format_price(estate.price, estate.currency))}")
    if estate.price_per_m2:
        lines.append(f"   {format_price(estate.price_per_m2, estate.currency)} per m²")

    cheaper = lower_price_providers(estate)
    if cheaper:
        lines.append(f"🏷 Cheaper at: {html.quote(', '.join(cheaper))}")

    details = [
        ("Category", estate.main_category),
        ("Subcategory", estate.sub_category),
        ("Size", f"{estate.size_in_m2:g} m²" if estate.size_in_m2 else None),
        ("Transaction", estate.transaction_type),
        ("Provider", estate.provider),
    ]
    lines.append("")
    lines += [f"{label}: {html.quote(str(value))}" for label, value in details if value]

    if estate.description:
        description = estate.description.strip()
        if len(description) > 600:
            description = description[:600] + "…"
        lines += ["", html.quote(description)]
    return "\n".join(lines)


def providers_text(estate: RealEstate) -> str:
    lines = [html.bold(f"🏷 All providers ({len(estate.duplicates) + 1})")]
    for offer in provider_offers(estate):
        mark = " (original)" if offer.is_original else ""
        per_m2 = (
            f" · {format_price(offer.price_per_m2, estate.currency)}/m²"
            if offer.price_per_m2
            else ""
        )
        lines.append(
            f"• {html.link(html.quote(offer.provider or '—'), offer.url)}{mark}: "
            f"{format_price(offer.price, estate.currency)}{per_m2}"
        )
    return "\n".join(lines)


def price_history_text(estate: RealEstate) -> str:
    offers = price_history(estate)
    if not offers:
        return "No price history available for this property."
    lines = [html.bold("📈 Price history")]
    for offer in offers:
        diff = f" ({offer.diff_percent:+.1f}%)" if offer.diff_percent else ""
        lines.append(
            f"• {html.quote(offer.provider or '—')}: "
            f"{format_price(offer.price, estate.currency)}{diff}"
        )
    return "\n".join(lines)


def rules_text(rules: list[NotificationRule]) -> str:
    if not rules:
        return "🔔 You don't have any notifications set up yet."
    return html.bold(f"🔔 My notifications ({len(rules)})")


def rule_text(rule: NotificationRule) -> str:
    f = rule.filter
    lines = [
        html.bold(html.quote(rule.name)),
        f"Status: {'Enabled' if rule.enabled else 'Disabled'}",
        f"Type: {rule.type.value}",
    ]
    info = type_specific_info(rule)
    if info:
        lines.append(html.quote(info))
    lines += [
        "",
        html.bold("Filter"),
        f"Building type: {f.building_type.value}",
        f"Transaction type: {f.transaction_type.value}",
        f"Size: {render_filter_range(f.size)} m²",
        f"Price: {render_filter_range(f.price)}",
    ]
    if f.sub_types:
        lines.append(f"Sub types: {html.quote(', '.join(f.sub_types))}")
    lines += [
        "",
        f"Created: {_date(rule.created_at)}",
        f"Updated: {_date(rule.updated_at)}",
    ]
    return "\n".join(lines)


def sent_item_text(item: SentNotification) -> str:
    estate = item.real_estate
    parts = [html.link(html.quote(estate.name or estate.id), estate.url) if estate.url else html.quote(estate.name)]
    if estate.price is not None:
        parts.append(format_price(estate.price))
    if estate.city:
        parts.append(html.quote(estate.city))
    if estate.provider:
        parts.append(html.quote(estate.provider))
    return f"• {' · '.join(parts)}\n  {item.type} · {_date(item.sent_at, with_time=True)}"


def history_text(page: HistoryPage) -> str:
    header = html.bold(f"📨 Sent notifications · page {page.page}")
    if not page.items:
        return f"{header}\nNo notifications found."
    return "\n".join([header, *(sent_item_text(i) for i in page.items)])


def profile_text(user: User | None, theme: str) -> str:
    lines = [html.bold("⚙ User settings")]
    if user is None:
        lines.append("Loading user data…")
    else:
        lines += [
            f"Name: {html.quote(user.username)}",
            f"Email: {html.quote(user.email or '—')}",
            f"Joined: {_date(user.created_at, with_time=True)}",
            f"Roles: {html.quote(', '.join(user.roles) or '—')}",
        ]
    lines.append(f"Theme: {theme}")
    return "\n".join(lines)
