"""Option-driven removal of images, links and tables."""

from . import dom

IMAGE_SELECTOR = "img, picture, figure"


def filter_content(
    html: str,
    include_images: bool = True,
    include_links: bool = True,
    include_tables: bool = True,
) -> str:
    """
    Drop content the caller opted out of.

    Links are replaced by their text rather than removed, so the prose
    around them stays readable.
    """
    if include_images and include_links and include_tables:
        return html

    soup = dom.load(html)

    if not include_images:
        for element in soup.select(IMAGE_SELECTOR):
            if not element.decomposed:
                element.decompose()

    if not include_links:
        for link in soup.find_all("a"):
            link.replace_with(link.get_text())

    if not include_tables:
        for table in soup.find_all("table"):
            if not table.decomposed:
                table.decompose()

    return dom.serialize(soup)
