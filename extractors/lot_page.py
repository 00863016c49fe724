"""
Field extraction for lot detail pages.

Each field is read with an ordered list of strategies; the first one
returning a non-empty value wins. Strategies are plain callables taking
the parsed page, so every fallback step can be tested on its own.
"""

import re
from typing import Callable, Optional, Sequence

from bs4 import BeautifulSoup

from extractors.links import resolve_url
from lot_models import LotRecord

Strategy = Callable[[BeautifulSoup], Optional[str]]

TITLE_PLACEHOLDER = "no title"
MIN_PARAGRAPH_LENGTH = 60

TITLE_SELECTORS = ("h1", "h2", ".product-title", ".lot-title", ".page-title")
DESCRIPTION_SELECTORS = (
    ".product.attribute.description",
    ".lot-description",
    ".product-description",
    ".description",
    "#description",
)
IMAGE_SELECTORS = (
    "img.product-image-photo",
    ".gallery img",
    "figure img",
    "img[src*='/media/']",
)


def first_match(strategies: Sequence[Strategy], soup: BeautifulSoup,
                default: str = "") -> str:
    """Run strategies in order and return the first non-empty result."""
    for strategy in strategies:
        value = strategy(soup)
        if value:
            return value
    return default


def selector_text(css: str) -> Strategy:
    """First element matching `css` with non-empty trimmed text."""
    def strategy(soup: BeautifulSoup) -> Optional[str]:
        for el in soup.select(css):
            text = el.get_text(" ", strip=True)
            if text:
                return text
        return None
    return strategy


def document_title(soup: BeautifulSoup) -> Optional[str]:
    if soup.title is None:
        return None
    return soup.title.get_text(strip=True) or None


def long_paragraph(min_length: int = MIN_PARAGRAPH_LENGTH) -> Strategy:
    """First <p> whose trimmed text is longer than `min_length` characters."""
    def strategy(soup: BeautifulSoup) -> Optional[str]:
        for p in soup.find_all('p'):
            text = p.get_text(" ", strip=True)
            if len(text) > min_length:
                return text
        return None
    return strategy


def image_source(css: str, page_url: str) -> Strategy:
    """First element matching `css` with a src, resolved to an absolute URL."""
    def strategy(soup: BeautifulSoup) -> Optional[str]:
        for img in soup.select(css):
            src = img.get('src')
            if isinstance(src, str) and src.strip():
                return resolve_url(page_url, src.strip())
        return None
    return strategy


def title_strategies() -> list:
    return [selector_text(css) for css in TITLE_SELECTORS] + [document_title]


def description_strategies() -> list:
    return [selector_text(css) for css in DESCRIPTION_SELECTORS] + [long_paragraph()]


def image_strategies(page_url: str) -> list:
    return [image_source(css, page_url) for css in IMAGE_SELECTORS]


def matches_keywords(pattern: re.Pattern, title: str, description: str) -> bool:
    return bool(pattern.search(f"{title}\n{description}"))


def parse_lot_detail(html: str, lot_url: str, pattern: re.Pattern) -> LotRecord:
    """
    Extract a LotRecord from a lot detail page.

    Args:
        html: Rendered HTML of the lot page
        lot_url: URL of the lot page (record identity, base for images)
        pattern: Keyword regular expression deciding the keep flag

    Returns:
        LotRecord (always built, whatever the keep flag)
    """
    soup = BeautifulSoup(html, 'lxml')

    title = first_match(title_strategies(), soup)
    description = first_match(description_strategies(), soup)
    image = first_match(image_strategies(lot_url), soup)

    return LotRecord(
        url=lot_url,
        title=title or TITLE_PLACEHOLDER,
        description=description,
        image=image,
        keep=matches_keywords(pattern, title, description),
    )
