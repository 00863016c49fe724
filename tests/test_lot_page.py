"""
Unit tests for lot page extraction.
"""

import re
import unittest
from pathlib import Path

from bs4 import BeautifulSoup

from extractors.lot_page import (
    TITLE_PLACEHOLDER,
    first_match,
    long_paragraph,
    matches_keywords,
    parse_lot_detail
)
from run_config import RunConfig

LOT_URL = "https://encheres.test/lot/42"
PATTERN = RunConfig().keyword_pattern


class TestParseLotDetail(unittest.TestCase):
    """Test full record extraction."""

    def setUp(self):
        """Load sample HTML fixture."""
        fixture_path = Path(__file__).parent / "fixtures" / "lot_page.html"
        with open(fixture_path, 'r', encoding='utf-8') as f:
            self.html = f.read()

    def test_fixture_record(self):
        record = parse_lot_detail(self.html, LOT_URL, PATTERN)

        self.assertEqual(record.url, LOT_URL)
        self.assertEqual(record.title, "Montre Cartier Tank en or jaune")
        self.assertTrue(record.description.startswith("Montre bracelet de dame"))
        self.assertEqual(record.image, "https://encheres.test/media/catalog/lot42-1.jpg")
        self.assertTrue(record.keep)

    def test_record_is_frozen(self):
        record = parse_lot_detail(self.html, LOT_URL, PATTERN)
        with self.assertRaises(Exception):
            record.title = "changed"

    def test_title_class_when_headings_empty(self):
        html = '<h1>  </h1><div class="lot-title">Pendule en bronze</div>'
        record = parse_lot_detail(html, LOT_URL, PATTERN)
        self.assertEqual(record.title, "Pendule en bronze")

    def test_title_falls_back_to_document_title(self):
        html = "<html><head><title> Lot 12 - Tableau </title></head><body><h1></h1></body></html>"
        record = parse_lot_detail(html, LOT_URL, PATTERN)
        self.assertEqual(record.title, "Lot 12 - Tableau")

    def test_title_placeholder(self):
        record = parse_lot_detail("<html><body><p>court</p></body></html>", LOT_URL, PATTERN)

        self.assertEqual(record.title, TITLE_PLACEHOLDER)
        self.assertEqual(record.description, "")
        self.assertEqual(record.image, "")
        self.assertFalse(record.keep)

    def test_description_selector_order(self):
        html = """
        <div class="description">Générique</div>
        <div class="lot-description">Spécifique</div>
        """
        record = parse_lot_detail(html, LOT_URL, PATTERN)
        self.assertEqual(record.description, "Spécifique")

    def test_description_long_paragraph(self):
        """Without a description block, the first paragraph over 60 chars is used."""
        short = "Dix chars."
        long = "x" * 80
        html = f"<h1>Lot</h1><p>{short}</p><p>{'y' * 60}</p><p>{long}</p>"

        record = parse_lot_detail(html, LOT_URL, PATTERN)

        self.assertEqual(len(short), 10)
        self.assertEqual(record.description, long)

    def test_image_resolution(self):
        html = '<figure><img src="../media/photo.jpg"></figure>'
        record = parse_lot_detail(html, "https://encheres.test/vente/3/lot/7", PATTERN)
        self.assertEqual(record.image, "https://encheres.test/vente/3/media/photo.jpg")

    def test_image_selector_order(self):
        html = """
        <figure><img src="/figure.jpg"></figure>
        <img class="product-image-photo" src="/main.jpg">
        """
        record = parse_lot_detail(html, LOT_URL, PATTERN)
        self.assertEqual(record.image, "https://encheres.test/main.jpg")


class TestKeywordFilter(unittest.TestCase):
    """Test the keep flag."""

    def test_title_match(self):
        record = parse_lot_detail("<h1>Montre Cartier</h1>", LOT_URL, PATTERN)
        self.assertEqual(record.description, "")
        self.assertTrue(record.keep)

    def test_no_match(self):
        html = "<h1>Tableau</h1><div class='description'>peinture à l'huile</div>"
        record = parse_lot_detail(html, LOT_URL, PATTERN)
        self.assertFalse(record.keep)

    def test_case_insensitive(self):
        self.assertTrue(matches_keywords(PATTERN, "Lot", "HORLOGERIE ancienne"))

    def test_word_boundary(self):
        self.assertFalse(matches_keywords(PATTERN, "Comment démontrer", ""))

    def test_custom_pattern(self):
        pattern = RunConfig(keywords=r"\bpendule\b").keyword_pattern
        self.assertTrue(matches_keywords(pattern, "Pendule Empire", ""))
        self.assertFalse(matches_keywords(pattern, "Montre", ""))


class TestStrategies(unittest.TestCase):
    """Test the ordered strategy helpers on their own."""

    def test_first_match_order(self):
        soup = BeautifulSoup("<p>x</p>", 'lxml')
        calls = []

        def empty(s):
            calls.append('empty')
            return ""

        def found(s):
            calls.append('found')
            return "value"

        def never(s):
            calls.append('never')
            return "other"

        self.assertEqual(first_match([empty, found, never], soup), "value")
        self.assertEqual(calls, ['empty', 'found'])

    def test_first_match_default(self):
        soup = BeautifulSoup("<p>x</p>", 'lxml')
        self.assertEqual(first_match([lambda s: None], soup, default="d"), "d")

    def test_long_paragraph_threshold(self):
        soup = BeautifulSoup(f"<p>{'a' * 60}</p>", 'lxml')
        self.assertIsNone(long_paragraph()(soup))
        self.assertEqual(long_paragraph(59)(soup), 'a' * 60)


if __name__ == '__main__':
    unittest.main()
