from __future__ import annotations

from notary_quote.classifier import MIN_TEXT_THRESHOLD, classify_page


class TestClassifyPage:
    def test_default_threshold_is_50(self):
        assert MIN_TEXT_THRESHOLD == 50

    def test_exact_threshold_routes_native(self):
        assert classify_page("a" * 50, 50) == "native"

    def test_one_below_threshold_routes_optical(self):
        assert classify_page("a" * 49, 50) == "optical"

    def test_long_text_routes_native(self):
        text = "x" * 80
        assert classify_page(text, 50) == "native"

    def test_short_text_padded_with_spaces_routes_optical(self):
        """Only 10 real characters, padded out with whitespace."""
        text = "   " + "y" * 10 + " " * 70 + "\n\n"
        assert classify_page(text, 50) == "optical"

    def test_whitespace_only_always_optical(self):
        assert classify_page(" \t\n" * 40, 1) == "optical"
        assert classify_page("\u00a0\u2003\u3000" * 30) == "optical"

    def test_empty_and_none(self):
        assert classify_page("", 50) == "optical"
        assert classify_page(None, 50) == "optical"

    def test_inner_whitespace_counts_toward_length(self):
        text = "a " * 25  # stripped length 49
        assert classify_page(text, 50) == "optical"
        assert classify_page(text + "b", 50) == "native"
