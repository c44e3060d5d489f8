"""
Environment + JSON config loader for scraping sources.
"""

from __future__ import annotations

import json
from dataclasses import replace
from functools import lru_cache
from pathlib import Path
from urllib.parse import urljoin

from costwatch.db.config import (
    env_bool,
    env_float,
    env_int,
    env_optional_str,
    env_str,
    load_env_files,
    project_root,
)
from costwatch.scraping.config.models import (
    DEFAULT_USER_AGENT,
    FallbackDefinition,
    FieldSelectors,
    ScraperConfig,
    ScrapingSettings,
    SourceDefinition,
    StrategyDefinition,
)


def _resolve_config_path(raw_path: str) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (project_root() / candidate).resolve()


@lru_cache(maxsize=1)
def get_scraping_settings() -> ScrapingSettings:
    """
    Return cached scraping settings from environment variables.
    """

    load_env_files()
    sources_path = env_str("COSTWATCH_SOURCES_PATH", "costwatch/scraping/config/sources.json")
    return ScrapingSettings(
        sources_path=str(_resolve_config_path(sources_path)),
        default_user_agent=env_str("COSTWATCH_USER_AGENT", DEFAULT_USER_AGENT),
        default_rate_limit=max(0.01, env_float("COSTWATCH_RATE_LIMIT", 1.0)),
        timeout_seconds=max(1.0, env_float("COSTWATCH_TIMEOUT_SECONDS", 30.0)),
        max_retries=max(1, env_int("COSTWATCH_MAX_RETRIES", 3)),
        retry_base_delay_seconds=max(0.0, env_float("COSTWATCH_RETRY_BASE_DELAY_SECONDS", 1.5)),
        min_delay_seconds=max(0.0, env_float("COSTWATCH_MIN_DELAY_SECONDS", 0.0)),
        max_delay_seconds=max(0.0, env_float("COSTWATCH_MAX_DELAY_SECONDS", 0.0)),
        proxy_url=env_optional_str("COSTWATCH_PROXY_URL"),
        enable_validation=env_bool("COSTWATCH_ENABLE_VALIDATION", True),
        validate_before_save=env_bool("COSTWATCH_VALIDATE_BEFORE_SAVE", True),
        min_quality_score=min(1.0, max(0.0, env_float("COSTWATCH_MIN_QUALITY_SCORE", 0.7))),
        fail_on_validation=env_bool("COSTWATCH_FAIL_ON_VALIDATION", False),
    )


def load_source_definitions(
    *,
    config_path: str,
    defaults: ScraperConfig | None = None,
) -> list[SourceDefinition]:
    """
    Load source definitions from a JSON file.

    Entries without a name, url or category are skipped. Per-source request
    settings override `defaults`.
    """

    path = _resolve_config_path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Source config file not found: {path}")

    raw_data = json.loads(path.read_text(encoding="utf-8"))
    sources = raw_data.get("sources", [])
    if not isinstance(sources, list):
        raise ValueError("Invalid source config: 'sources' must be a list.")

    base_config = defaults or ScraperConfig()
    parsed: list[SourceDefinition] = []
    for entry in sources:
        if not isinstance(entry, dict):
            continue

        name = _optional_str(entry.get("name"))
        raw_url = _optional_str(entry.get("url"))
        category = _optional_str(entry.get("category"))
        if not name or not raw_url or not category:
            continue

        base_url = _optional_str(entry.get("base_url"))
        parsed.append(
            SourceDefinition(
                name=name,
                url=_absolute_url(base_url=base_url, raw_url=raw_url),
                category=category,
                scraper_type=_scraper_type(entry.get("scraper_type")),
                sub_category=_optional_str(entry.get("sub_category")),
                unit=_optional_str(entry.get("unit")) or "AED",
                emirate=_optional_str(entry.get("emirate")) or "Dubai",
                city=_optional_str(entry.get("city")),
                tags=_str_tuple(entry.get("tags")),
                strategies=_parse_strategies(entry.get("strategies")),
                fallback=_parse_fallback(entry.get("fallback")),
                confidence=_optional_float(entry.get("confidence")) or 0.75,
                fallback_confidence=_optional_float(entry.get("fallback_confidence")) or 0.5,
                max_items=max(1, int(_optional_float(entry.get("max_items")) or 50)),
                enabled=_optional_bool(entry.get("enabled"), True),
                config=_merge_config(base_config, entry, base_url=base_url),
            )
        )

    return parsed


def _merge_config(base: ScraperConfig, entry: dict, *, base_url: str | None) -> ScraperConfig:
    overrides: dict[str, object] = {}
    for key in (
        "rate_limit",
        "timeout_seconds",
        "retry_base_delay_seconds",
        "min_delay_seconds",
        "max_delay_seconds",
    ):
        value = _optional_float(entry.get(key))
        if value is not None:
            overrides[key] = value

    max_retries = _optional_float(entry.get("max_retries"))
    if max_retries is not None:
        overrides["max_retries"] = int(max_retries)

    user_agent = _optional_str(entry.get("user_agent"))
    if user_agent:
        overrides["user_agent"] = user_agent
    user_agents = _str_tuple(entry.get("user_agents"))
    if user_agents:
        overrides["user_agents"] = user_agents

    headers = _normalize_headers(entry.get("headers", {}))
    if headers:
        overrides["extra_headers"] = {**base.extra_headers, **headers}

    proxy_url = _optional_str(entry.get("proxy_url"))
    if proxy_url:
        overrides["proxy_url"] = proxy_url
    if base_url:
        overrides["base_url"] = base_url.rstrip("/")

    return replace(base, **overrides)


def _parse_strategies(value: object) -> tuple[StrategyDefinition, ...]:
    if not isinstance(value, list):
        return ()

    strategies: list[StrategyDefinition] = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            continue
        container = _optional_str(item.get("container"))
        if not container:
            continue
        attributes = item.get("attributes", {})
        strategies.append(
            StrategyDefinition(
                name=_optional_str(item.get("name")) or f"strategy_{index}",
                container=container,
                fields=FieldSelectors(
                    price=_str_tuple(item.get("price")),
                    title=_str_tuple(item.get("title")),
                    location=_str_tuple(item.get("location")),
                    link=_str_tuple(item.get("link")) or ("a@href",),
                    attributes={
                        key.strip(): _str_tuple(selectors)
                        for key, selectors in (attributes.items() if isinstance(attributes, dict) else ())
                        if isinstance(key, str) and key.strip() and _str_tuple(selectors)
                    },
                ),
            )
        )
    return tuple(strategies)


def _parse_fallback(value: object) -> FallbackDefinition | None:
    if not isinstance(value, dict):
        return None
    link_pattern = _optional_str(value.get("link_pattern"))
    if not link_pattern:
        return None

    keywords = _str_tuple(value.get("currency_keywords"))
    depth = _optional_float(value.get("ancestor_depth"))
    fallback = FallbackDefinition(link_pattern=link_pattern)
    if keywords:
        fallback = replace(fallback, currency_keywords=keywords)
    if depth is not None:
        fallback = replace(fallback, ancestor_depth=max(1, int(depth)))
    return fallback


def _scraper_type(value: object) -> str:
    raw = _optional_str(value) or "listing"
    # Dynamic "module.path:ClassName" types keep their case.
    return raw if ":" in raw else raw.lower()


def _absolute_url(*, base_url: str | None, raw_url: str) -> str:
    if raw_url.startswith(("http://", "https://")) or not base_url:
        return raw_url
    return urljoin(f"{base_url.rstrip('/')}/", raw_url.lstrip("/"))


def _str_tuple(value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value.strip(),) if value.strip() else ()
    if isinstance(value, list):
        return tuple(item.strip() for item in value if isinstance(item, str) and item.strip())
    return ()


def _normalize_headers(headers: object) -> dict[str, str]:
    if not isinstance(headers, dict):
        return {}
    return {
        key.strip(): value.strip()
        for key, value in headers.items()
        if isinstance(key, str) and isinstance(value, str) and key.strip() and value.strip()
    }


def _optional_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _optional_float(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
