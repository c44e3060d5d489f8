from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from costwatch.domain.cost_data_point import Location
from costwatch.scraping.parsing.text import first_value, parse_location, parse_price, select_value


@pytest.mark.parametrize(
    "text, expected",
    [
        ("AED 85,000", 85_000.0),
        ("85000 Dhs", 85_000.0),
        ("AED 7,500 /month", 7_500.0),
        ("120,000 AED/year", 120_000.0),
        ("12.50 aed", 12.5),
    ],
)
def test_parse_price(text: str, expected: float) -> None:
    assert parse_price(text) == expected


@pytest.mark.parametrize("text", [None, "", "Price on request", "AED 0"])
def test_parse_price_rejects_missing_or_zero(text: str | None) -> None:
    assert parse_price(text) is None


def test_parse_location_area_and_emirate() -> None:
    assert parse_location("Dubai Marina, Dubai", default_emirate="Dubai") == Location(
        emirate="Dubai", city="Dubai", area="Dubai Marina"
    )
    assert parse_location("Al Nahda - Sharjah", default_emirate="Dubai") == Location(
        emirate="Sharjah", city="Sharjah", area="Al Nahda"
    )


def test_parse_location_falls_back_to_source_defaults() -> None:
    assert parse_location("", default_emirate="Dubai", default_city="Dubai") == Location(
        emirate="Dubai", city="Dubai"
    )
    assert parse_location("JVC", default_emirate="Dubai") == Location(
        emirate="Dubai", city="Dubai", area="JVC"
    )


def test_select_value_reads_text_and_attributes() -> None:
    soup = BeautifulSoup(
        '<div class="card"><a href="/x" title="  Studio  ">Go</a><h3>Title</h3></div>',
        "html.parser",
    )
    card = soup.select_one("div.card")

    assert select_value(card, "a@href") == "/x"
    assert select_value(card, "a@title") == "Studio"
    assert select_value(card, "h3") == "Title"
    assert select_value(card, "@class") == "card"
    assert select_value(card, "span") == ""
    assert first_value(card, ("h2", "a@title")) == "Studio"
