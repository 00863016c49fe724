"""
Extractors for the auction crawl.

This package contains pure, unit-testable functions that classify
links and extract lot records from HTML.
"""

from .links import (
    LinkCategory,
    canonicalize,
    classify,
    extract_lot_links,
    extract_sale_links,
    find_next_page,
    resolve_url
)
from .lot_page import parse_lot_detail

__all__ = [
    'LinkCategory',
    'canonicalize',
    'classify',
    'extract_lot_links',
    'extract_sale_links',
    'find_next_page',
    'parse_lot_detail',
    'resolve_url'
]
