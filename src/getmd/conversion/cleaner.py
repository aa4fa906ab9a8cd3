"""HTML noise removal ahead of markdown conversion."""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from . import dom
from .code_blocks import CODE_LANGUAGE_PATTERN, apply_clipboard_sources
from .enhancer import PSEUDO_HEADING_HINT, REDUNDANT_WRAPPERS, is_styled_as_heading

logger = logging.getLogger(__name__)

# Always removed, regardless of aggressiveness
ALWAYS_REMOVE_SELECTORS = ["script", "style", "noscript"]

# Landmark roles that never carry article content
NOISE_ROLE_SELECTORS = [
    '[role="navigation"]',
    '[role="banner"]',
    '[role="complementary"]',
    '[role="contentinfo"]',
    '[role="search"]',
]

# Elements to remove in aggressive mode (navigation, chrome, ads, etc.)
NOISE_SELECTORS = [
    # Navigation
    'nav[role="navigation"]',
    "nav.navbar",
    "nav.nav-menu",
    "div.navbar",
    'div[role="navigation"]',
    "#navigation",
    "#nav",
    "#menu",
    # Page chrome
    'header[role="banner"]',
    'footer[role="contentinfo"]',
    "#header",
    "#footer",
    "div.site-header",
    "div.site-footer",
    "div.page-header",
    "div.page-footer",
    # Sidebars
    "aside",
    "div.sidebar",
    'div[role="complementary"]',
    "#sidebar",
    # Ads
    ".ad",
    ".ads",
    ".advertisement",
    ".advert",
    '[id*="ad-"]',
    '[class*="advertisement"]',
    '[class*="-ad-"]',
    '[class*="google-ad"]',
    # Social widgets
    ".social",
    ".social-share",
    ".share-buttons",
    ".social-media",
    # Comment sections
    ".comments",
    "#comments",
    ".comment-section",
    # Related content
    ".related",
    ".recommendations",
    ".suggested",
    # Modals
    ".modal",
    ".popup",
    ".overlay",
    '[role="dialog"]',
    # Cookie banners
    ".cookie-notice",
    ".cookie-banner",
    "#cookie-consent",
    # Newsletter signups
    ".newsletter",
    ".subscribe",
    ".signup-form",
]

# Short elements containing any of these are boilerplate
BOILERPLATE_PHRASES = (
    "cookie policy",
    "accept cookies",
    "sign up for",
    "newsletter",
    "follow us",
)
BOILERPLATE_MAX_TEXT = 200

# Never removed by the boilerplate-phrase check
DOCUMENT_ROOT_TAGS = frozenset({"html", "head", "body"})

KEEP_ATTRIBUTES = frozenset({"href", "src", "alt", "title", "colspan", "rowspan", "align"})

# Exempt from empty-element pruning; empty cells keep table columns aligned
VOID_CONTENT_TAGS = frozenset({"img", "br", "hr", "input", "iframe", "td", "th"})

CONTENT_TAGS = frozenset(
    {"p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li", "table", "blockquote", "pre", "code"}
)

MEDIA_SELECTOR = "img, iframe"
CONTENT_SELECTOR = "p, h1, h2, h3, h4, h5, h6, ul, ol, table, blockquote, pre"

JUNK_TEXT = re.compile(r"[\s|\-_.,:;]+")

# Values resolve_relative_urls leaves alone
UNRESOLVABLE_PREFIXES = ("#", "data:", "mailto:")


def clean_html(html: str, aggressive: bool = True, base_url: Optional[str] = None) -> str:
    """
    Strip noise from HTML for LLM consumption.

    Order matters: selector-based removal runs while class/role attributes
    still exist, URLs are resolved while src/href are present, attributes
    are pruned after that, and empty elements go last so containers emptied
    by earlier steps are caught too.

    Args:
        html: HTML string
        aggressive: Remove navigation, ads, social widgets and other noise
        base_url: Base URL for resolving relative src/href values

    Returns:
        Cleaned HTML string
    """
    soup = dom.load(html)

    for element in soup.select(", ".join(ALWAYS_REMOVE_SELECTORS)):
        element.decompose()

    if aggressive:
        remove_noise_elements(soup)

    for comment in dom.iter_comments(soup):
        comment.extract()

    preserve_code_hints(soup)
    mark_pseudo_headings(soup)
    promote_lazy_images(soup)

    if base_url:
        resolve_relative_urls(soup, base_url)

    strip_attributes(soup)
    remove_empty_elements(soup)

    return dom.serialize(soup)


def remove_noise_elements(soup: BeautifulSoup) -> None:
    """Remove navigation, chrome, ads, widgets, modals and banners."""
    for selector_group in (NOISE_ROLE_SELECTORS, NOISE_SELECTORS):
        for element in soup.select(", ".join(selector_group)):
            if not element.decomposed:
                element.decompose()

    removed = 0
    for element in dom.iter_elements(soup):
        if element.name in DOCUMENT_ROOT_TAGS:
            continue
        if _is_boilerplate(element):
            element.decompose()
            removed += 1

    if removed:
        logger.debug(f"Removed {removed} boilerplate elements")


def _is_boilerplate(element: Tag) -> bool:
    text = element.get_text().lower()
    # Long blocks that merely mention a phrase are real content
    if len(text.strip()) >= BOILERPLATE_MAX_TEXT:
        return False
    return any(phrase in text for phrase in BOILERPLATE_PHRASES)


def preserve_code_hints(soup: BeautifulSoup) -> None:
    """
    Carry code information through attribute stripping.

    Clean-code data attributes are applied to their <pre> now, and a
    language-xxx / lang-xxx class on a code block is kept in its title.
    """
    apply_clipboard_sources(soup)

    for code in soup.select("pre code"):
        if code.get("title"):
            continue
        pre = code.find_parent("pre")
        classes = " ".join(code.get("class", []) + (pre.get("class", []) if pre else []))
        match = CODE_LANGUAGE_PATTERN.search(classes)
        if match:
            code["title"] = f"language-{match.group(1) or match.group(2)}"


def mark_pseudo_headings(soup: BeautifulSoup) -> None:
    """
    Tag div/span elements styled as headings before class and style go.

    The enhancer promotes marked elements and removes the mark from the rest.
    """
    for element in soup.find_all(REDUNDANT_WRAPPERS):
        if is_styled_as_heading(element):
            element["title"] = PSEUDO_HEADING_HINT


def promote_lazy_images(soup: BeautifulSoup) -> None:
    """Lazy-loaded images keep their real source in data-src."""
    for img in soup.find_all("img"):
        if not img.get("src") and img.get("data-src"):
            img["src"] = img["data-src"]


def resolve_relative_urls(soup: BeautifulSoup, base_url: str) -> None:
    """Make img[src] and a[href] absolute; malformed values are left as-is."""
    for tag_name, attr in (("img", "src"), ("a", "href")):
        for element in soup.find_all(tag_name):
            value = element.get(attr)
            if not value:
                continue
            resolved = _resolve_url(value.strip(), base_url)
            if resolved is not None:
                element[attr] = resolved


def _resolve_url(value: str, base_url: str) -> Optional[str]:
    if value.startswith(UNRESOLVABLE_PREFIXES):
        return None
    try:
        if urlparse(value).scheme:
            return None
        return urljoin(base_url, value)
    except ValueError as e:
        logger.debug(f"Could not resolve URL {value!r} against {base_url!r}: {e}")
        return None


def strip_attributes(soup: BeautifulSoup) -> None:
    """Drop every attribute outside KEEP_ATTRIBUTES."""
    for element in soup.find_all(True):
        for attr in [name for name in element.attrs if name not in KEEP_ATTRIBUTES]:
            del element[attr]


def remove_empty_elements(soup: BeautifulSoup) -> None:
    """Remove elements with no text and nothing worth keeping inside."""
    for element in dom.iter_elements(soup):
        if element.name in VOID_CONTENT_TAGS:
            continue

        text = element.get_text().strip()
        has_media = element.select_one(MEDIA_SELECTOR) is not None

        if element.name in CONTENT_TAGS and not has_media:
            # Also catches separators such as "|" or "---"
            if not JUNK_TEXT.sub("", text):
                element.decompose()
                continue

        if not text and not has_media and element.select_one(CONTENT_SELECTOR) is None:
            element.decompose()
