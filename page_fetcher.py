"""
Page fetchers.

A fetcher turns a URL into rendered HTML. BrowserFetcher drives a
Playwright Chromium page (JavaScript and lazy-loaded content included);
HttpFetcher uses curl_cffi with browser impersonation for static pages.
Both raise FetchError on failure so an empty page is never mistaken for
an error.
"""

import logging
import random
from typing import Optional, Protocol

from curl_cffi import requests
from curl_cffi.requests import exceptions as requests_exceptions
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from run_config import RunConfig

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    '--disable-blink-features=AutomationControlled',
    '--disable-dev-shm-usage',
    '--no-sandbox',
    '--disable-setuid-sandbox',
]

ANTI_DETECT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
"""

USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

SCROLL_SCRIPT = "() => window.scrollTo(0, document.body ? document.body.scrollHeight : 0)"


class FetchError(Exception):
    """A page could not be fetched (network error, timeout or HTTP error)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class PageFetcher(Protocol):
    """Anything that can turn a URL into HTML."""

    def fetch(self, url: str) -> str:
        ...

    def close(self) -> None:
        ...


class BrowserFetcher:
    """
    Fetch pages with a single headless Chromium page.

    For every URL: wait for the DOM to be parsed, scroll to the bottom to
    trigger lazy loading, let the page settle, then capture the markup.
    """

    def __init__(self, headless: bool = True, timeout_ms: int = 60000,
                 settle_ms: int = 500, timezone_id: str = 'Europe/Paris',
                 locale: str = 'fr-FR'):
        self.headless = headless
        self.timeout_ms = timeout_ms
        self.settle_ms = settle_ms
        self.timezone_id = timezone_id
        self.locale = locale

        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @classmethod
    def from_config(cls, config: RunConfig) -> 'BrowserFetcher':
        return cls(
            headless=config.headless,
            timeout_ms=config.fetch_timeout_ms,
            settle_ms=config.settle_ms,
            timezone_id=config.timezone,
        )

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def start(self) -> None:
        """Launch the browser and open the page reused for every fetch."""
        if self._page is not None:
            return

        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(
                headless=self.headless, args=BROWSER_ARGS
            )
        except PlaywrightError as e:
            self._playwright.stop()
            self._playwright = None
            if "executable doesn't exist" in str(e).lower():
                logger.error("Playwright browsers not installed!")
                logger.error("Please run: playwright install chromium")
            raise

        self._context = self._browser.new_context(
            viewport={
                'width': 1920 + random.randint(-100, 100),
                'height': 1080 + random.randint(-100, 100),
            },
            user_agent=USER_AGENT,
            locale=self.locale,
            timezone_id=self.timezone_id,
        )
        self._page = self._context.new_page()
        self._page.add_init_script(ANTI_DETECT_SCRIPT)

        mode = "headless" if self.headless else "visible"
        logger.info(f"Playwright browser initialized ({mode} mode)")

    def fetch(self, url: str) -> str:
        """
        Load a URL and return the rendered HTML.

        Raises:
            FetchError: On timeout, navigation error or HTTP status >= 400
        """
        if self._page is None:
            self.start()

        try:
            response = self._page.goto(url, wait_until='domcontentloaded',
                                       timeout=self.timeout_ms)
            if response is not None and response.status >= 400:
                raise FetchError(url, f"HTTP {response.status}")
            self._page.evaluate(SCROLL_SCRIPT)
            if self.settle_ms:
                self._page.wait_for_timeout(self.settle_ms)
            return self._page.content()
        except PlaywrightTimeoutError as e:
            raise FetchError(url, f"timeout after {self.timeout_ms} ms") from e
        except PlaywrightError as e:
            raise FetchError(url, str(e).splitlines()[0] if str(e) else "browser error") from e

    def close(self) -> None:
        """Clean up Playwright browser resources."""
        if self._context:
            try:
                self._context.close()
            except PlaywrightError as e:
                logger.warning(f"Error closing context: {e}")
            self._context = None
            self._page = None

        if self._browser:
            try:
                self._browser.close()
                logger.info("Browser closed")
            except PlaywrightError as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        if self._playwright:
            self._playwright.stop()
            self._playwright = None


class HttpFetcher:
    """
    Fetch raw HTML over HTTP with curl_cffi Chrome impersonation.

    No JavaScript is executed, so pages that build their content client
    side come back incomplete; use BrowserFetcher for those.
    """

    def __init__(self, timeout_ms: int = 60000, impersonate: str = "chrome120",
                 session: Optional[requests.Session] = None):
        self.timeout = timeout_ms / 1000.0
        self.impersonate = impersonate
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: RunConfig) -> 'HttpFetcher':
        return cls(timeout_ms=config.fetch_timeout_ms)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def fetch(self, url: str) -> str:
        """
        GET a URL and return its body as text.

        Raises:
            FetchError: On network error, timeout or HTTP status >= 400
        """
        try:
            response = self.session.get(url, impersonate=self.impersonate,
                                        timeout=self.timeout)
        except requests_exceptions.Timeout as e:
            raise FetchError(url, f"timeout after {self.timeout:g} s") from e
        except requests_exceptions.RequestException as e:
            raise FetchError(url, str(e)) from e

        if response.status_code >= 400:
            raise FetchError(url, f"HTTP {response.status_code}")
        return response.text

    def close(self) -> None:
        self.session.close()


def create_fetcher(config: RunConfig):
    """Build the fetcher selected by the config."""
    if config.fetcher == 'http':
        return HttpFetcher.from_config(config)
    return BrowserFetcher.from_config(config)
