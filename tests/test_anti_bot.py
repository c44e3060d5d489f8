from __future__ import annotations

import pytest

from costwatch.scraping.anti_bot import AntiBotDetector


@pytest.fixture()
def detector() -> AntiBotDetector:
    return AntiBotDetector()


@pytest.mark.parametrize(
    "text, marker",
    [
        ("Attention Required! | Cloudflare", "cloudflare"),
        ("Request unsuccessful. Incapsula incident ID: 123", "incapsula"),
        ("ACCESS DENIED", "access denied"),
        ("Please solve the CAPTCHA below", "captcha"),
        ("We detected unusual   traffic from your network", "unusual traffic"),
    ],
)
def test_detects_challenge_pages(detector: AntiBotDetector, text: str, marker: str) -> None:
    assert detector.is_blocked(text) is True
    assert detector.block_reason(text) is not None
    assert marker in detector.markers


def test_regular_listing_text_is_not_blocked(detector: AntiBotDetector) -> None:
    text = "Marina Heights 1BR AED 85,000 /year Dubai Marina, Dubai"
    assert detector.is_blocked(text) is False
    assert detector.block_reason("") is None


def test_custom_markers_replace_defaults() -> None:
    detector = AntiBotDetector(markers=["Bot Check", " "])
    assert detector.markers == ("bot check",)
    assert detector.block_reason("Failed bot check") == "bot check"
    assert detector.is_blocked("cloudflare") is False


@pytest.mark.parametrize("status, blocked", [(403, True), (429, True), (200, False), (500, False)])
def test_blocking_status_codes(status: int, blocked: bool) -> None:
    assert AntiBotDetector.is_blocking_status(status) is blocked
