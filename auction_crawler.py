"""
Auction Crawler - listing pages -> sale pages -> lot pages.

This module implements the three crawl stages:
1. Follow the paginated sale listing and collect sale links
2. Open every sale page and collect lot links
3. Open every lot page, extract a LotRecord and apply the keyword filter

Everything runs sequentially: one fetch at a time, each followed by the
rate limiter pause.
"""

import logging
from typing import Iterable, List, Optional, Set

from extractors.links import (
    canonicalize,
    extract_lot_links,
    extract_sale_links,
    find_next_page,
)
from extractors.lot_page import parse_lot_detail
from lot_models import LotRecord, RunResult
from page_fetcher import FetchError, PageFetcher
from rate_limiter import RateLimiter
from run_config import RunConfig

logger = logging.getLogger(__name__)


class AuctionCrawler:
    """
    Crawl one auction site and extract lot records.

    Each URL is fetched at most once per run. In strict mode the first
    FetchError aborts the run; otherwise the failing URL is logged and
    skipped.
    """

    def __init__(self, config: RunConfig, fetcher: PageFetcher,
                 rate_limiter: Optional[RateLimiter] = None):
        """
        Initialize the crawler.

        Args:
            config: Run configuration
            fetcher: Page fetcher (browser, HTTP or a test double)
            rate_limiter: Pause after each fetch (default: config.delay_ms)
        """
        self.config = config
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter or RateLimiter(config.delay_seconds)

        # Statistics
        self.stats = {
            'listing_pages_visited': 0,
            'sale_pages_visited': 0,
            'lot_pages_visited': 0,
            'sales_discovered': 0,
            'lots_discovered': 0,
            'lots_kept': 0,
            'fetch_errors': 0,
        }

    def _fetch(self, url: str) -> Optional[str]:
        """
        Fetch a page through the rate limiter.

        Returns:
            HTML content, or None if the fetch failed (lenient mode)

        Raises:
            FetchError: If the fetch failed and strict mode is on
        """
        self.rate_limiter.wait()
        try:
            return self.fetcher.fetch(url)
        except FetchError as e:
            self.stats['fetch_errors'] += 1
            if self.config.strict:
                logger.error(f"  Failed to fetch page, aborting run: {e}")
                raise
            logger.error(f"  Failed to fetch page, skipping: {e}")
            return None
        finally:
            self.rate_limiter.done()

    @staticmethod
    def _add_new(urls: Iterable[str], seen: Set[str], ordered: List[str]) -> int:
        """Add unseen URLs to a discovered-link set. Returns how many were new."""
        added = 0
        for url in urls:
            if url in seen:
                continue
            seen.add(url)
            ordered.append(url)
            added += 1
        return added

    def traverse_listing(self, start_url: Optional[str] = None) -> List[str]:
        """
        Walk the paginated sale listing and collect sale links.

        Stops when there is no next page, when a next link points to an
        already visited page, or after config.max_pages fetches.

        Args:
            start_url: First listing page (default: config.listing_url)

        Returns:
            Unique sale URLs in discovery order
        """
        url = canonicalize(start_url or self.config.listing_url)
        visited: Set[str] = set()
        sale_seen: Set[str] = set()
        sale_urls: List[str] = []
        pages = 0

        logger.info(f"Walking sale listing from {url}")

        while url:
            if url in visited:
                logger.info(f"Listing page already visited, stopping: {url}")
                break
            if pages >= self.config.max_pages:
                logger.info(f"Reached max_pages limit: {self.config.max_pages}")
                break

            visited.add(url)
            pages += 1
            self.stats['listing_pages_visited'] += 1
            logger.info(f"[Listing {pages}] {url}")

            html = self._fetch(url)
            if html is None:
                break

            new_sales = self._add_new(extract_sale_links(html, url), sale_seen, sale_urls)
            logger.info(f"  Added {new_sales} new sales")

            url = find_next_page(html, url, exclude=visited)
            if url is None:
                logger.info("  No next page")

        self.stats['sales_discovered'] = len(sale_urls)
        logger.info(f"Listing done: {pages} pages, {len(sale_urls)} sales")
        return sale_urls

    def expand_sales(self, sale_urls: Iterable[str]) -> List[str]:
        """
        Open every sale page and collect lot links.

        Only the first page of a sale is scanned.

        Returns:
            Unique lot URLs in discovery order
        """
        lot_seen: Set[str] = set()
        lot_urls: List[str] = []

        for sale_url in sale_urls:
            logger.info(f"Processing sale: {sale_url}")
            self.stats['sale_pages_visited'] += 1

            html = self._fetch(sale_url)
            if html is None:
                continue

            links = extract_lot_links(html, sale_url)
            new_lots = self._add_new(links, lot_seen, lot_urls)
            logger.info(f"  Found {len(links)} lot links, {new_lots} new")

        self.stats['lots_discovered'] = len(lot_urls)
        return lot_urls

    def extract_lots(self, lot_urls: Iterable[str]) -> List[LotRecord]:
        """
        Open every lot page and extract its record.

        Returns:
            One LotRecord per successfully fetched lot, in extraction order
        """
        records: List[LotRecord] = []
        pattern = self.config.keyword_pattern

        for lot_url in lot_urls:
            logger.debug(f"Processing lot: {lot_url}")
            self.stats['lot_pages_visited'] += 1

            html = self._fetch(lot_url)
            if html is None:
                continue

            record = parse_lot_detail(html, lot_url, pattern)
            records.append(record)
            if record.keep:
                self.stats['lots_kept'] += 1
                logger.info(f"  Kept: {record.title} ({lot_url})")

        return records

    def run(self) -> RunResult:
        """Run the three stages and return everything that was found."""
        logger.info("Starting auction crawl")
        logger.info(f"Base: {self.config.base}")
        logger.info(f"Keywords: {self.config.keywords}")
        logger.info(f"Delay: {self.config.delay_ms} ms, max listing pages: {self.config.max_pages}")
        if self.config.strict:
            logger.info("STRICT MODE - the first failed fetch aborts the run")

        sale_urls = self.traverse_listing()
        lot_urls = self.expand_sales(sale_urls)
        records = self.extract_lots(lot_urls)

        # Print summary
        logger.info("=" * 60)
        logger.info("Auction crawl complete!")
        logger.info(f"Listing pages visited: {self.stats['listing_pages_visited']}")
        logger.info(f"Sales discovered: {self.stats['sales_discovered']}")
        logger.info(f"Lots discovered: {self.stats['lots_discovered']}")
        logger.info(f"Lots kept: {self.stats['lots_kept']}")
        if self.stats['fetch_errors']:
            logger.warning(f"Fetch errors: {self.stats['fetch_errors']}")
        logger.info("=" * 60)

        return RunResult(
            sale_urls=sale_urls,
            lot_urls=lot_urls,
            records=records,
            stats=dict(self.stats),
        )
