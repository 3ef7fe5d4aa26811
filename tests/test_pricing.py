"""Tests for cross-provider price comparison."""
import pytest

from havasi_bot.models import Locality
from havasi_bot.services.pricing import (
    address_string,
    format_price,
    lower_price_providers,
    lowest_price,
    price_history,
    provider_offers,
    savings_percent,
)
from conftest import make_estate


@pytest.fixture
def estate():
    return make_estate(
        price=5_000_000,
        provider="sreality",
        duplicates=[
            {"url": "https://bezrealitky.example/1", "price": 4_500_000, "provider": "bezrealitky"},
            {"url": "https://idnes.example/1", "price": 5_200_000, "provider": "idnes"},
        ],
    )


def test_lowest_price_includes_duplicates(estate):
    assert lowest_price(estate) == 4_500_000
    assert lower_price_providers(estate) == ["bezrealitky"]
    assert savings_percent(estate) == 10


def test_no_duplicates_means_no_savings():
    estate = make_estate(price=3_000_000)

    assert lowest_price(estate) == 3_000_000
    assert lower_price_providers(estate) == []
    assert savings_percent(estate) == 0
    assert price_history(estate) == []


def test_provider_offers_cheapest_first(estate):
    offers = provider_offers(estate)

    assert [o.provider for o in offers] == ["bezrealitky", "sreality", "idnes"]
    assert [o.is_original for o in offers] == [False, True, False]


def test_price_history_relative_to_highest(estate):
    offers = price_history(estate)

    assert [o.provider for o in offers] == ["idnes", "sreality", "bezrealitky"]
    assert offers[0].diff_percent == 0
    assert offers[1].diff_percent == pytest.approx(-3.846, abs=0.001)
    assert offers[2].diff_percent == pytest.approx(-13.462, abs=0.001)


def test_address_string_skips_missing_parts():
    assert address_string(Locality(city="Brno", street="Údolní")) == "Údolní, Brno"
    assert address_string(None) == ""


def test_format_price():
    assert format_price(4_500_000) == "4 500 000 CZK"
    assert format_price(999.6, "EUR") == "1 000 EUR"
    assert format_price(None) == "—"
