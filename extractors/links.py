"""
Pure link classification functions for the auction site.

These functions are unit-testable and don't perform I/O.
They resolve hrefs, tell sale links from lot links and find the
"next page" link of a listing page.
"""

import re
from enum import Enum
from typing import Callable, Collection, Iterator, List, Optional, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

# "/vente" followed by "/", "s/", "s?", "?", "#" or end of string
SALE_RE = re.compile(r'/vente(/|s/|s\?|[?#]|$)', re.IGNORECASE)
# Plural "/ventes" used as the listing root; a textual prefix of SALE_RE
SALE_INDEX_RE = re.compile(r'/ventes(/|$|\?)', re.IGNORECASE)
LOT_RE = re.compile(r'/lot(/|s/|[?#]|$)|/detail/lot', re.IGNORECASE)
PAGE_PARAM_RE = re.compile(r'[?&](page|p)=\d+', re.IGNORECASE)
PAGE_PATH_RE = re.compile(r'/page/\d+', re.IGNORECASE)

NEXT_TEXT_RE = re.compile(r'\b(suivante?|next)\b', re.IGNORECASE)

# Next-link tiers, tried in order
NEXT_REL_CSS = "a[rel~='next']"
NEXT_CLASS_CSS = (
    "a.next, li.pagination-next a, li.next a, "
    "a[aria-label*='Suivant' i], a[aria-label*='Next' i]"
)

_SKIP_PREFIXES = ('javascript:', 'mailto:', 'tel:')


class LinkCategory(str, Enum):
    SALE = 'sale'
    LOT = 'lot'
    PAGINATION_NEXT = 'pagination-next'
    IRRELEVANT = 'irrelevant'


def resolve_url(referrer: str, href: str) -> str:
    """
    Resolve an href against the page it was found on.

    Args:
        referrer: URL of the page containing the link
        href: The href attribute (may be relative or absolute)

    Returns:
        Absolute URL, or the raw href when it cannot be parsed
    """
    try:
        return urljoin(referrer, href)
    except ValueError:
        return href


def canonicalize(url: str) -> str:
    """
    Remove the fragment from a URL. The query string is kept: two URLs
    differing by query are distinct pages.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url.split('#', 1)[0]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ''))


def is_sale_index(url: str) -> bool:
    """True for the plural sale listing root (e.g. /ventes, /ventes?page=2)."""
    return bool(SALE_INDEX_RE.search(url))


def is_sale_link(url: str) -> bool:
    """True for a single sale page, never for the sale listing itself."""
    return bool(SALE_RE.search(url)) and not is_sale_index(url)


def is_lot_link(url: str) -> bool:
    return bool(LOT_RE.search(url))


def is_page_url(url: str) -> bool:
    """True when the URL looks like a numbered listing page."""
    return bool(PAGE_PARAM_RE.search(url) or PAGE_PATH_RE.search(url))


def is_next_anchor(anchor: Tag) -> bool:
    """
    True when an anchor is marked as the "next page" link by its rel,
    class, aria-label or visible text.
    """
    if 'next' in _class_list(anchor, 'rel') or 'next' in _class_list(anchor, 'class'):
        return True
    parent = anchor.parent
    if parent is not None and parent.name == 'li':
        if {'next', 'pagination-next'} & set(_class_list(parent, 'class')):
            return True
    if NEXT_TEXT_RE.search(anchor.get('aria-label') or ''):
        return True
    return bool(NEXT_TEXT_RE.search(anchor.get_text(" ", strip=True)))


def _class_list(tag: Tag, attr: str) -> List[str]:
    value = tag.get(attr) or []
    if isinstance(value, str):
        value = value.split()
    return [v.lower() for v in value]


def classify(candidate_url: str, referrer_url: str,
             anchor: Optional[Tag] = None) -> LinkCategory:
    """
    Classify a discovered link.

    Args:
        candidate_url: The href as found (relative or absolute)
        referrer_url: URL of the page the link was found on
        anchor: Optional <a> tag, used to recognise a "next page" marker

    Returns:
        LinkCategory of the resolved URL
    """
    url = canonicalize(resolve_url(referrer_url, candidate_url))

    if is_lot_link(url):
        return LinkCategory.LOT
    if is_sale_link(url):
        return LinkCategory.SALE
    if anchor is not None and is_next_anchor(anchor):
        return LinkCategory.PAGINATION_NEXT
    if is_page_url(url):
        return LinkCategory.PAGINATION_NEXT
    return LinkCategory.IRRELEVANT


def _usable_href(anchor: Tag) -> Optional[str]:
    href = anchor.get('href')
    if not isinstance(href, str):
        return None
    href = href.strip()
    if not href or href.startswith('#') or href.lower().startswith(_SKIP_PREFIXES):
        return None
    return href


def iter_anchor_urls(html: str, page_url: str) -> Iterator[Tuple[Tag, str]]:
    """Yield (anchor, canonical absolute URL) for every usable <a href>."""
    soup = BeautifulSoup(html, 'lxml')
    for anchor in soup.find_all('a', href=True):
        href = _usable_href(anchor)
        if href is None:
            continue
        yield anchor, canonicalize(resolve_url(page_url, href))


def _collect(html: str, page_url: str, predicate: Callable[[str], bool]) -> List[str]:
    links = []
    seen = set()
    for _, url in iter_anchor_urls(html, page_url):
        if url in seen:
            continue
        if predicate(url):
            seen.add(url)
            links.append(url)
    return links


def extract_sale_links(html: str, page_url: str) -> List[str]:
    """
    Extract unique sale page links from a listing page.

    Returns:
        Canonical absolute URLs in document order
    """
    return _collect(html, page_url, is_sale_link)


def extract_lot_links(html: str, page_url: str) -> List[str]:
    """
    Extract unique lot page links from a sale page.

    Returns:
        Canonical absolute URLs in document order
    """
    return _collect(html, page_url, is_lot_link)


def find_next_page(html: str, page_url: str,
                   exclude: Collection[str] = ()) -> Optional[str]:
    """
    Find the single "next page" link of a listing page.

    Explicit markers are tried in order: rel="next", then a next CSS class
    or aria-label, then the anchor text. When no anchor carries a marker,
    the first link that looks like a numbered page is used, skipping the
    current page and any URL in `exclude`.

    Args:
        html: HTML content
        page_url: URL of the page (for resolving relative links)
        exclude: Already visited URLs, ignored by the numbered-page guess

    Returns:
        Absolute URL or None
    """
    soup = BeautifulSoup(html, 'lxml')

    tiers = (
        soup.select(NEXT_REL_CSS),
        soup.select(NEXT_CLASS_CSS),
        [a for a in soup.find_all('a') if NEXT_TEXT_RE.search(a.get_text(" ", strip=True))],
    )
    for anchors in tiers:
        for anchor in anchors:
            href = _usable_href(anchor)
            if href is not None:
                return canonicalize(resolve_url(page_url, href))

    current = canonicalize(page_url)
    for anchor in soup.find_all('a', href=True):
        href = _usable_href(anchor)
        if href is None:
            continue
        url = canonicalize(resolve_url(page_url, href))
        if url == current or url in exclude:
            continue
        if is_page_url(url):
            return url

    return None
