"""Cross-provider price comparison of one listing."""
from dataclasses import dataclass

from havasi_bot.models import Locality, RealEstate


@dataclass
class ProviderOffer:
    provider: str
    price: float
    price_per_m2: float | None
    url: str
    is_original: bool = False
    diff_percent: float = 0.0


def lowest_price(estate: RealEstate) -> float:
    return min([estate.price, *(d.price for d in estate.duplicates)])


def lower_price_providers(estate: RealEstate) -> list[str]:
    return [d.provider for d in estate.duplicates if d.price < estate.price]


def savings_percent(estate: RealEstate) -> int:
    lowest = lowest_price(estate)
    if not estate.price or lowest >= estate.price:
        return 0
    return round((1 - lowest / estate.price) * 100)


def _offers(estate: RealEstate) -> list[ProviderOffer]:
    offers = [
        ProviderOffer(
            provider=estate.provider,
            price=estate.price,
            price_per_m2=estate.price_per_m2,
            url=estate.url,
            is_original=True,
        )
    ]
    offers.extend(
        ProviderOffer(
            provider=d.provider,
            price=d.price,
            price_per_m2=d.price_per_m2,
            url=d.url,
        )
        for d in estate.duplicates
    )
    return offers


def provider_offers(estate: RealEstate) -> list[ProviderOffer]:
    """All providers, cheapest first."""
    return sorted(_offers(estate), key=lambda o: o.price)


def price_history(estate: RealEstate) -> list[ProviderOffer]:
    """All providers, most expensive first, with the difference to the top price."""
    if not estate.duplicates:
        return []
    offers = sorted(_offers(estate), key=lambda o: o.price, reverse=True)
    highest = offers[0].price
    for offer in offers:
        offer.diff_percent = ((offer.price - highest) / highest) * 100 if highest else 0.0
    return offers


def address_string(locality: Locality | None) -> str:
    if locality is None:
        return ""
    parts = [
        p
        for p in (locality.street, locality.street_number, locality.district, locality.city)
        if p
    ]
    return ", ".join(parts)


def format_price(amount: float | None, currency: str = "CZK") -> str:
    if amount is None:
        return "—"
    return f"{round(amount):,}".replace(",", " ") + f" {currency}"
