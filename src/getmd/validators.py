"""Quick checks on HTML input."""

from .conversion import dom

MIN_CONTENT_CHARS = 100
NOISE_SELECTOR = "script, style, nav, header, footer"


def has_content(html: str) -> bool:
    """
    Check whether HTML carries enough text to be worth converting.

    Scripts, styles, navigation, headers and footers do not count.
    """
    if not html or not isinstance(html, str):
        return False

    soup = dom.load(html)
    for element in soup.select(NOISE_SELECTOR):
        if not element.decomposed:
            element.decompose()

    root = soup.body or soup
    return len(root.get_text().strip()) >= MIN_CONTENT_CHARS
