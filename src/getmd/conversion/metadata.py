"""Document metadata scraped from meta tags, structured data and markup."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional
from urllib.parse import urljoin

import extruct
from bs4 import BeautifulSoup

from ..models.result import ContentMetadata
from . import dom

logger = logging.getLogger(__name__)

BYLINE_SELECTOR = ".author, .byline, .author-name"

Lookup = Callable[[BeautifulSoup], Optional[str]]


def _meta(attr: str, value: str) -> Lookup:
    """Lookup for the content of <meta {attr}="{value}">."""

    def lookup(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.find("meta", attrs={attr: value})
        return tag.get("content") if tag is not None else None

    return lookup


def _text(selector: str) -> Lookup:
    """Lookup for the text of the first element matching selector."""

    def lookup(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one(selector)
        return tag.get_text() if tag is not None else None

    return lookup


def _attribute(selector: str, attr: str) -> Lookup:
    def lookup(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one(selector)
        return tag.get(attr) if tag is not None else None

    return lookup


# Sources per field, highest priority first
FIELD_SOURCES: dict[str, list[Lookup]] = {
    "title": [
        _meta("property", "og:title"),
        _meta("name", "twitter:title"),
        _text("title"),
        _text("h1"),
    ],
    "author": [
        _meta("name", "author"),
        _meta("property", "article:author"),
        _text('[rel="author"]'),
        _text(BYLINE_SELECTOR),
    ],
    "excerpt": [
        _meta("property", "og:description"),
        _meta("name", "description"),
        _meta("name", "twitter:description"),
    ],
    "site_name": [
        _meta("property", "og:site_name"),
        _meta("name", "application-name"),
    ],
    "published_time": [
        _meta("property", "article:published_time"),
        _attribute("time[datetime]", "datetime"),
        _attribute('[itemprop="datePublished"]', "content"),
    ],
    "language": [
        _attribute("html", "lang"),
        _meta("http-equiv", "content-language"),
    ],
}


def _first_value(soup: BeautifulSoup, lookups: list[Lookup]) -> Optional[str]:
    for lookup in lookups:
        value = lookup(soup)
        if value and value.strip():
            return value.strip()
    return None


def _canonical_url(soup: BeautifulSoup, base_url: Optional[str]) -> Optional[str]:
    canonical = _attribute('link[rel="canonical"]', "href")(soup)
    if canonical and canonical.strip():
        canonical = canonical.strip()
        if canonical.startswith("http") or not base_url:
            return canonical
        try:
            return urljoin(base_url, canonical)
        except ValueError:
            return canonical

    return _first_value(soup, [_meta("property", "og:url")])


def _safe_string(value: Any) -> Optional[str]:
    """Flatten a structured-data value to a string."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("name") or value.get("@value") or value.get("url")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _structured_items(html: str, base_url: Optional[str]) -> list[dict[str, Any]]:
    try:
        data = extruct.extract(
            html,
            base_url=base_url,
            syntaxes=["json-ld", "microdata"],
            errors="ignore",
            uniform=True,
        )
    except Exception as e:
        logger.debug(f"Could not extract structured data: {e}")
        return []

    items: list[dict[str, Any]] = []
    for item in data.get("json-ld", []) + data.get("microdata", []):
        if not isinstance(item, dict):
            continue
        items.append(item)
        # JSON-LD documents often wrap their entities in @graph
        items.extend(entry for entry in item.get("@graph", []) if isinstance(entry, dict))
    return items


def extract_structured_metadata(html: str, base_url: Optional[str] = None) -> ContentMetadata:
    """
    Metadata from JSON-LD and microdata (schema.org Article and friends).

    The first item providing a field wins.
    """
    fields: dict[str, Optional[str]] = {}

    for item in _structured_items(html, base_url):
        publisher = item.get("publisher")
        candidates = {
            "title": item.get("headline") or item.get("name"),
            "author": item.get("author"),
            "excerpt": item.get("description"),
            "site_name": publisher if isinstance(publisher, (dict, list)) else None,
            "published_time": item.get("datePublished"),
            "language": item.get("inLanguage"),
        }
        for key, value in candidates.items():
            if not fields.get(key):
                fields[key] = _safe_string(value)

    return ContentMetadata(**fields)


def extract_metadata(html: str, base_url: Optional[str] = None) -> ContentMetadata:
    """
    Scrape document metadata.

    Meta tags and markup come first, schema.org structured data fills
    the gaps, and the canonical URL falls back to base_url.

    Args:
        html: Full HTML document
        base_url: Base URL for resolving a relative canonical link

    Returns:
        ContentMetadata with word_count and reading_time unset
    """
    soup = dom.load(html)

    fields = {key: _first_value(soup, lookups) for key, lookups in FIELD_SOURCES.items()}
    fields["canonical_url"] = _canonical_url(soup, base_url)

    metadata = ContentMetadata(**fields).merge(extract_structured_metadata(html, base_url))
    if not metadata.canonical_url and base_url:
        metadata = metadata.merge(ContentMetadata(canonical_url=base_url))
    return metadata
