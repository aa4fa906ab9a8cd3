"""Rewrite non-standard code markup into <pre><code> blocks."""

import re

from bs4 import BeautifulSoup

from . import dom

# Data attributes holding the un-highlighted source of a code sample
CLIPBOARD_ATTRIBUTES = (
    "data-snippet-clipboard-copy-content",  # GitHub
    "data-code-content",  # documentation generators
    "data-clipboard-text",  # clipboard.js
    "data-source",  # CMS platforms
)

CODE_LANGUAGE_PATTERN = re.compile(r"language-([\w+#-]+)|lang-([\w+#-]+)")


def normalize_code_blocks(html: str) -> str:
    """
    Give every code sample the canonical <pre><code> shape.

    Running it again on its own output changes nothing.
    """
    soup = dom.load(html)
    apply_clipboard_sources(soup)
    wrap_bare_pre(soup)
    return dom.serialize(soup)


def apply_clipboard_sources(soup: BeautifulSoup) -> None:
    """
    Replace highlighted <pre> markup with the clean source from a data attribute.

    Syntax highlighters escape and split the code into spans; the copy
    button's attribute keeps the original text, so use that instead.
    """
    for attr in CLIPBOARD_ATTRIBUTES:
        for container in soup.select(f"div[{attr}], figure[{attr}]"):
            pre = container.find("pre")
            source = container.get(attr)
            if pre is None or not source:
                continue
            code = soup.new_tag("code")
            code.string = source
            pre.clear()
            pre.append(code)


def wrap_bare_pre(soup: BeautifulSoup) -> None:
    """Wrap the text of a <pre> without any <code> in one."""
    for pre in soup.find_all("pre"):
        if pre.find("code") is not None:
            continue
        text = pre.get_text()
        if not text.strip():
            continue
        code = soup.new_tag("code")
        code.string = text
        pre.clear()
        pre.append(code)
