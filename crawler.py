"""
Auction lot watcher

Crawls the sale listing of an auction site, follows every sale to its
lots, keeps the lots matching a keyword pattern and writes them to a
static HTML page with a countdown to the next run.
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from auction_crawler import AuctionCrawler
from lot_models import RunResult
from page_fetcher import FetchError, PageFetcher, create_fetcher
from report import next_run_at, render_report, write_records_jsonl, write_report
from run_config import FETCHER_CHOICES, RunConfig, load_run_config, validate_run_config

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def run(config: RunConfig, fetcher: Optional[PageFetcher] = None,
        now: Optional[datetime] = None) -> RunResult:
    """
    Crawl, filter and write the report for one run.

    The report is only written once every stage has finished.

    Args:
        config: Run configuration
        fetcher: Page fetcher (default: built from config, closed afterwards)
        now: Current time, used for the next run countdown

    Returns:
        RunResult of the crawl
    """
    if fetcher is None:
        with create_fetcher(config) as own_fetcher:
            result = AuctionCrawler(config, own_fetcher).run()
    else:
        result = AuctionCrawler(config, fetcher).run()

    now = now or datetime.now(config.tzinfo)
    kept = result.kept
    html = render_report(kept, next_run_at(now, config.tzinfo, config.run_hour), config, now=now)
    output = write_report(html, config.output_path)
    logger.info(f"Report saved to: {output}")

    if config.records_jsonl:
        jsonl = write_records_jsonl(kept, config.records_jsonl)
        logger.info(f"Records saved to: {jsonl}")

    return result


def build_config(args: argparse.Namespace) -> RunConfig:
    """Defaults < config file < environment < command line."""
    config = load_run_config(args.config)

    headless = None
    if args.headless:
        headless = True
    elif args.visible:
        headless = False

    return config.with_overrides(
        base=args.base,
        keywords=args.keywords,
        delay_ms=args.delay_ms,
        max_pages=args.max_pages,
        output_path=args.output,
        records_jsonl=args.records_jsonl,
        fetcher=args.fetcher,
        headless=headless,
        strict=True if args.strict else None,
    )


def _dump_html(config: RunConfig, url: str) -> None:
    """Dump the rendered HTML of a URL to debug_dump.html."""
    logger.info(f"Dumping HTML for: {url}")

    with create_fetcher(config) as fetcher:
        html = fetcher.fetch(url)

    output_file = Path("debug_dump.html")
    output_file.write_text(html, encoding='utf-8')
    logger.info(f"HTML saved to: {output_file}")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Auction lot watcher: crawl sales, keep matching lots, write an HTML report',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python crawler.py
  python crawler.py --keywords '\\b(montre|pendule)\\b' --max-pages 20
  python crawler.py --config watch.yaml --strict
  python crawler.py --fetcher http --delay-ms 1500

  # Debug tools
  python crawler.py --check-config
  python crawler.py --dump-html https://encheres-domaine.gouv.fr/ventes
        """
    )

    parser.add_argument('--config', help='YAML config file')
    parser.add_argument('--base', help='Origin of the auction site')
    parser.add_argument('--keywords', help='Keyword regular expression (case-insensitive)')
    parser.add_argument('--delay-ms', type=int, help='Delay between requests in milliseconds')
    parser.add_argument('--max-pages', type=int, help='Maximum listing pages to follow')
    parser.add_argument('--output', help='Report output path')
    parser.add_argument('--records-jsonl', help='Also write kept lots as JSON Lines')
    parser.add_argument('--fetcher', choices=FETCHER_CHOICES, help='Page fetcher')

    # Browser options
    parser.add_argument('--headless', action='store_true', help='Run browser in headless mode')
    parser.add_argument('--visible', action='store_true', help='Run browser in visible mode')

    parser.add_argument('--strict', action='store_true',
                        help='Abort the run on the first failed fetch')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    # Debug options
    parser.add_argument('--check-config', action='store_true',
                        help='Print the resolved config and warnings, then exit')
    parser.add_argument('--dump-html', metavar='URL',
                        help='Dump rendered HTML for a URL and exit')
    return parser


def main(argv=None):
    """Main entry point with argument parsing."""
    args = create_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT
    )

    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    warnings = validate_run_config(config)
    for warning in warnings:
        logger.warning(f"Config: {warning}")

    if args.check_config:
        print(json.dumps(config.to_dict(), indent=2, ensure_ascii=False))
        return

    if args.dump_html:
        _dump_html(config, args.dump_html)
        return

    try:
        result = run(config)
    except FetchError as e:
        logger.error(f"Run aborted, no report written: {e}")
        sys.exit(1)

    print(f"OK - {len(result.kept)} lots exportés dans {config.output_path}")


if __name__ == "__main__":
    main()
