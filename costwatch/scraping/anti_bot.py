"""
Detection of bot-challenge and block pages served with a normal status.
"""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_BLOCK_MARKERS: tuple[str, ...] = (
    "incapsula",
    "cloudflare",
    "akamai",
    "access denied",
    "captcha",
    "suspicious activity",
    "unusual traffic",
    "verify you are a human",
    "request unsuccessful",
    "ray id",
)

BLOCKING_STATUS_CODES = frozenset({403, 429})


class AntiBotDetector:
    """
    Case-insensitive marker match over page text.
    """

    def __init__(self, markers: Iterable[str] | None = None) -> None:
        source = DEFAULT_BLOCK_MARKERS if markers is None else markers
        self._markers = tuple(marker.strip().lower() for marker in source if marker.strip())

    @property
    def markers(self) -> tuple[str, ...]:
        return self._markers

    def block_reason(self, page_text: str) -> str | None:
        if not page_text:
            return None
        haystack = " ".join(page_text.lower().split())
        for marker in self._markers:
            if marker in haystack:
                return marker
        return None

    def is_blocked(self, page_text: str) -> bool:
        return self.block_reason(page_text) is not None

    @staticmethod
    def is_blocking_status(status_code: int) -> bool:
        return status_code in BLOCKING_STATUS_CODES
