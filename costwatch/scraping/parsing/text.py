"""
Text helpers for turning listing fragments into typed values.
"""

from __future__ import annotations

import re

from bs4 import Tag

from costwatch.domain.cost_data_point import Location

_NUMBER_REGEX = re.compile(r"\d[\d,]*(?:\.\d+)?")
_PRICE_NOISE = (
    "/yearly",
    "/monthly",
    "/year",
    "/month",
    "per year",
    "per month",
    "dirhams",
    "aed",
    "dhs",
)
EMIRATES = {
    "dubai": "Dubai",
    "abu dhabi": "Abu Dhabi",
    "sharjah": "Sharjah",
    "ajman": "Ajman",
    "ras al khaimah": "Ras Al Khaimah",
    "rak": "Ras Al Khaimah",
    "fujairah": "Fujairah",
    "umm al quwain": "Umm Al Quwain",
    "uaq": "Umm Al Quwain",
}


def clean_text(value: str | None) -> str:
    if not value:
        return ""
    return re.sub(r"\s+", " ", value).strip()


def parse_price(text: str | None) -> float | None:
    """
    Parse prices such as "AED 85,000", "85000 Dhs" or "7,500 /month".

    Returns None when no positive amount is present.
    """

    cleaned = clean_text(text).lower()
    if not cleaned:
        return None
    for noise in _PRICE_NOISE:
        cleaned = cleaned.replace(noise, " ")

    match = _NUMBER_REGEX.search(cleaned)
    if match is None:
        return None
    try:
        amount = float(match.group(0).replace(",", ""))
    except ValueError:
        return None
    return amount if amount > 0 else None


def canonical_emirate(value: str | None) -> str | None:
    return EMIRATES.get(clean_text(value).lower())


def parse_location(text: str | None, *, default_emirate: str, default_city: str | None = None) -> Location:
    """
    Parse "Area, City" style strings ("Dubai Marina, Dubai",
    "Al Nahda - Sharjah"), falling back to the source's emirate.
    """

    cleaned = clean_text(text)
    fallback_city = default_city or default_emirate
    if not cleaned:
        return Location(emirate=default_emirate, city=fallback_city)

    parts = [cleaned]
    for separator in (",", " - ", "|"):
        if separator in cleaned:
            parts = [part.strip() for part in cleaned.split(separator) if part.strip()]
            break

    if len(parts) >= 2:
        area, place = parts[0], parts[-1]
        emirate = canonical_emirate(place)
        if emirate is not None:
            return Location(emirate=emirate, city=emirate, area=area)
        return Location(emirate=default_emirate, city=place, area=area)

    emirate = canonical_emirate(parts[0])
    if emirate is not None:
        return Location(emirate=emirate, city=emirate)
    return Location(emirate=default_emirate, city=fallback_city, area=parts[0])


def select_value(node: Tag, selector: str) -> str:
    """
    Return the cleaned text of the first match for `selector` inside `node`.

    `css@attr` reads the attribute instead; a bare `@attr` reads it from
    `node` itself.
    """

    css, _, attribute = selector.partition("@")
    css = css.strip()
    attribute = attribute.strip()

    target = node.select_one(css) if css else node
    if target is None:
        return ""
    if attribute:
        value = target.get(attribute)
        if isinstance(value, list):
            value = " ".join(value)
        return clean_text(value)
    return clean_text(target.get_text(" ", strip=True))


def first_value(node: Tag, selectors: tuple[str, ...]) -> str:
    for selector in selectors:
        value = select_value(node, selector)
        if value:
            return value
    return ""
