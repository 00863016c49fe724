"""
Unit tests for link classification.

Tests the pure link functions without requiring network access.
"""

import unittest
from pathlib import Path

from bs4 import BeautifulSoup

from extractors.links import (
    LinkCategory,
    canonicalize,
    classify,
    extract_lot_links,
    extract_sale_links,
    find_next_page,
    is_sale_index,
    is_sale_link,
    resolve_url
)

LISTING_URL = "https://encheres.test/ventes"


def anchor(html):
    return BeautifulSoup(html, 'lxml').a


class TestResolveUrl(unittest.TestCase):
    """Test href resolution."""

    def test_relative_url(self):
        """Relative hrefs should be resolved against the referrer."""
        result = resolve_url("https://encheres.test/vente/12", "../lot/5")
        self.assertEqual(result, "https://encheres.test/lot/5")

    def test_absolute_url(self):
        """Absolute hrefs should be returned as-is."""
        result = resolve_url(LISTING_URL, "https://other.test/vente/1")
        self.assertEqual(result, "https://other.test/vente/1")

    def test_unparseable_href(self):
        """An href that cannot be parsed is returned raw, never raised."""
        result = resolve_url(LISTING_URL, "http://[broken/vente/1")
        self.assertEqual(result, "http://[broken/vente/1")


class TestCanonicalize(unittest.TestCase):
    """Test URL canonicalization."""

    def test_remove_fragment(self):
        """Fragments should be removed."""
        result = canonicalize("https://encheres.test/vente/12#lots")
        self.assertEqual(result, "https://encheres.test/vente/12")

    def test_keep_query(self):
        """The query string is part of the identity."""
        self.assertNotEqual(
            canonicalize("https://encheres.test/vente?id=1"),
            canonicalize("https://encheres.test/vente?id=2")
        )


class TestClassify(unittest.TestCase):
    """Test per-link classification."""

    def test_sale_links(self):
        for href in ("/vente/12", "/vente/12-montres/", "/vente?id=3", "/vente", "/vente#top"):
            with self.subTest(href=href):
                self.assertIs(classify(href, LISTING_URL), LinkCategory.SALE)

    def test_sale_index_is_not_a_sale(self):
        """The plural listing root shares the sale prefix but is excluded."""
        for href in ("/ventes", "/ventes/", "/ventes/archives"):
            with self.subTest(href=href):
                self.assertIs(classify(href, LISTING_URL), LinkCategory.IRRELEVANT)

    def test_lot_links(self):
        for href in ("/lot/5", "/lots/5", "/lot?id=5", "/catalogue/detail/lot-5"):
            with self.subTest(href=href):
                self.assertIs(classify(href, LISTING_URL), LinkCategory.LOT)

    def test_pagination_links(self):
        self.assertIs(classify("/ventes?page=2", LISTING_URL), LinkCategory.PAGINATION_NEXT)
        self.assertIs(classify("/ventes/page/3", LISTING_URL), LinkCategory.PAGINATION_NEXT)

    def test_next_marker_on_anchor(self):
        """An anchor marked as next is pagination even without a page number."""
        a = anchor('<a href="/ventes/suite">Suivant</a>')
        self.assertIs(classify(a['href'], LISTING_URL, a), LinkCategory.PAGINATION_NEXT)

    def test_partial_next_word_is_not_a_marker(self):
        a = anchor('<a href="/ventes/suite">Lots suivants</a>')
        self.assertIs(classify(a['href'], LISTING_URL, a), LinkCategory.IRRELEVANT)

    def test_irrelevant_links(self):
        for href in ("/", "/contact", "https://other.test/aide"):
            with self.subTest(href=href):
                self.assertIs(classify(href, LISTING_URL), LinkCategory.IRRELEVANT)

    def test_sale_never_matches_index(self):
        """No URL classified as a sale may also match the index pattern."""
        hrefs = [
            "/vente/1", "/ventes", "/ventes/", "/ventes?page=2", "/vente?x=1",
            "/ventes/2", "/vente", "/ventes/page/4", "/VENTE/5", "/Ventes?p=1",
        ]
        for href in hrefs:
            url = resolve_url(LISTING_URL, href)
            if classify(href, LISTING_URL) is LinkCategory.SALE:
                self.assertFalse(is_sale_index(url), url)
                self.assertTrue(is_sale_link(url), url)


class TestExtractLinks(unittest.TestCase):
    """Test sale and lot link extraction."""

    def setUp(self):
        """Load sample HTML fixture."""
        fixture_path = Path(__file__).parent / "fixtures" / "listing_page.html"
        with open(fixture_path, 'r', encoding='utf-8') as f:
            self.html = f.read()

    def test_extract_sale_links(self):
        """Should extract unique sale links in document order."""
        links = extract_sale_links(self.html, LISTING_URL)

        self.assertEqual(links, [
            "https://encheres.test/vente/1201-bijoux-et-montres",
            "https://encheres.test/vente/1202-vehicules",
            "https://encheres.test/vente?id=1203",
        ])

    def test_extract_lot_links(self):
        links = extract_lot_links(self.html, LISTING_URL)
        self.assertEqual(links, ["https://encheres.test/lot/99"])

    def test_lot_nested_under_sale_path(self):
        """A lot URL below a sale path is a lot for the sale page scan."""
        html = '<a href="/vente/3/lot/7">Lot 7</a>'
        sale_url = "https://encheres.test/vente/3"

        self.assertEqual(extract_lot_links(html, sale_url), ["https://encheres.test/vente/3/lot/7"])
        self.assertIs(classify("/vente/3/lot/7", sale_url), LinkCategory.LOT)

    def test_duplicate_links(self):
        html = """
        <a href="/lot/1">A</a>
        <a href="/lot/1#photos">A again</a>
        <a href="/lot/1?tab=2">A, other tab</a>
        """
        links = extract_lot_links(html, "https://encheres.test/vente/1")
        self.assertEqual(links, [
            "https://encheres.test/lot/1",
            "https://encheres.test/lot/1?tab=2",
        ])


class TestFindNextPage(unittest.TestCase):
    """Test next page detection."""

    def test_rel_next_preferred(self):
        """rel=next wins over a .next class appearing earlier in the page."""
        fixture_path = Path(__file__).parent / "fixtures" / "listing_page.html"
        html = fixture_path.read_text(encoding='utf-8')

        result = find_next_page(html, LISTING_URL)

        self.assertEqual(result, "https://encheres.test/ventes?page=2")

    def test_class_and_aria(self):
        html = '<a href="/ventes?page=9">9</a><a aria-label="Page suivante" href="/ventes/suite">›</a>'
        self.assertEqual(find_next_page(html, LISTING_URL), "https://encheres.test/ventes/suite")

        html = '<ul><li class="pagination-next"><a href="/ventes/b">›</a></li></ul>'
        self.assertEqual(find_next_page(html, LISTING_URL), "https://encheres.test/ventes/b")

    def test_text_match(self):
        html = '<a href="/ventes?page=1">1</a> <a href="/ventes/deux">Suivant »</a>'
        self.assertEqual(find_next_page(html, LISTING_URL), "https://encheres.test/ventes/deux")

    def test_text_match_is_whole_word(self):
        """Words merely containing a next term do not hijack pagination."""
        html = """
        <a href="/ventes/lots-suivants">Lots suivants</a>
        <a href="/marques/nextel">Nextel</a>
        <a href="/ventes?page=2">2</a>
        """
        self.assertEqual(find_next_page(html, LISTING_URL), "https://encheres.test/ventes?page=2")

        html = '<a href="/ventes/p2">Page suivante</a> <a href="/ventes/p3">Next</a>'
        self.assertEqual(find_next_page(html, LISTING_URL), "https://encheres.test/ventes/p2")

    def test_marker_without_href_falls_through(self):
        html = '<a rel="next">›</a><a class="next" href="/ventes/c">›</a>'
        self.assertEqual(find_next_page(html, LISTING_URL), "https://encheres.test/ventes/c")

    def test_numbered_page_fallback(self):
        """Without markers, the first numbered page other than the current one is used."""
        html = """
        <a href="/ventes?page=1">1</a>
        <a href="/ventes?page=2">2</a>
        <a href="/ventes?page=3">3</a>
        """
        page1 = "https://encheres.test/ventes?page=1"

        self.assertEqual(find_next_page(html, page1), "https://encheres.test/ventes?page=2")
        self.assertEqual(
            find_next_page(html, page1, exclude={"https://encheres.test/ventes?page=2"}),
            "https://encheres.test/ventes?page=3"
        )

    def test_page_path_fallback(self):
        html = '<a href="/ventes/page/2">2</a>'
        self.assertEqual(find_next_page(html, LISTING_URL), "https://encheres.test/ventes/page/2")

    def test_no_next_page(self):
        """Should return None when nothing looks like a next page."""
        html = '<a href="/vente/1">Vente</a><a href="/contact">Contact</a>'
        self.assertIsNone(find_next_page(html, LISTING_URL))


if __name__ == '__main__':
    unittest.main()
