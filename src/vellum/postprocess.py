"""Post-processing of rendered HTML.

Runs on the HTML tree after markdown rendering:
- Adds lazy-loading, async decoding and alt defaults to images
- Decodes percent-encoded hrefs and marks wikilink anchors
- Labels heading permalinks for screen readers
"""

from urllib.parse import unquote

from bs4 import BeautifulSoup

from .obsidian import WIKILINK_MARKER

HEADING_ANCHOR_CLASS = "header-anchor"
HEADING_ANCHOR_LABEL = "Link to this section"


def _add_class(tag, name: str) -> None:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    if name not in classes:
        tag["class"] = [*classes, name]


def add_image_attributes(soup: BeautifulSoup) -> int:
    """Fill in ``loading``, ``decoding`` and ``alt`` on every image.

    Values that are already present are kept. Returns the number of images
    seen.
    """
    images = soup.find_all("img")
    for img in images:
        if not img.get("loading"):
            img["loading"] = "lazy"
        if not img.get("decoding"):
            img["decoding"] = "async"
        if img.get("alt") is None:
            img["alt"] = ""
    return len(images)


def normalize_anchors(soup: BeautifulSoup) -> None:
    """Decode percent-encoded hrefs and tag wikilink anchors.

    Safe to run more than once: decoded hrefs stay decoded and the
    ``wikilink`` class is added only once.
    """
    for anchor in soup.find_all("a"):
        href = anchor.get("href")
        if href and "%" in href:
            anchor["href"] = unquote(href)
        if anchor.has_attr(WIKILINK_MARKER):
            _add_class(anchor, "wikilink")
            del anchor[WIKILINK_MARKER]


def label_heading_anchors(soup: BeautifulSoup) -> None:
    """Give heading permalinks a class and an accessible name."""
    for anchor in soup.find_all("a", class_=HEADING_ANCHOR_CLASS):
        _add_class(anchor, "anchor-link")
        if not anchor.get("aria-label"):
            anchor["aria-label"] = HEADING_ANCHOR_LABEL


def finalize_html(html_content: str) -> str:
    """Run the HTML passes in order and return the serialised result.

    Anchor normalisation runs again at the end so no earlier pass can leave
    an encoded href or a stray wikilink marker behind.
    """
    from .logging import debug

    soup = BeautifulSoup(html_content, "html.parser")
    image_count = add_image_attributes(soup)
    normalize_anchors(soup)
    label_heading_anchors(soup)
    normalize_anchors(soup)

    if image_count:
        debug(f"    Finalized {image_count} images")

    return str(soup)
