"""
HTTP session and header helpers tuned for scraping workloads.
"""

from __future__ import annotations

import random

import requests
from requests.adapters import HTTPAdapter

from costwatch.scraping.config.models import ScraperConfig

BROWSER_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Upgrade-Insecure-Requests": "1",
    "DNT": "1",
}


def build_session(config: ScraperConfig) -> requests.Session:
    """
    Return the injected session, or a pooled session honoring the proxy.

    requests.Session keeps cookies across the retries of one source.
    """

    if config.session is not None:
        return config.session

    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=16, pool_maxsize=16)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    if config.proxy_url:
        session.proxies.update({"http": config.proxy_url, "https": config.proxy_url})
    return session


def request_headers(config: ScraperConfig, rng: random.Random | None = None) -> dict[str, str]:
    """
    Browser-like headers with a (possibly rotated) user agent and the
    source's extra headers layered on top.
    """

    headers = {"User-Agent": config.effective_user_agent(rng), **BROWSER_HEADERS}
    for key, value in config.extra_headers.items():
        if key.strip():
            headers[key] = value
    return headers
