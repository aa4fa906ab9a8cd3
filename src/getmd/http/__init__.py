"""HTTP fetching for getmd."""

from .client import HtmlFetcher, fetch_url, is_valid_url

__all__ = [
    "HtmlFetcher",
    "fetch_url",
    "is_valid_url",
]
