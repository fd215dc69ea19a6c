from __future__ import annotations

import logging

from notary_quote.config import PricingPolicy
from notary_quote.pricing import count_page, price_document, summarize
from notary_quote.types import DocumentResult, Page, PageBreakdown


def _page(n: int, text: str, route: str = "native", doc: str = "doc-1") -> Page:
    return Page(document_id=doc, page_number=n, text=text, route=route)


def _result(total_price: int, pages: int = 1, chars: int = 0, name: str = "a.pdf") -> DocumentResult:
    breakdown = tuple(PageBreakdown(page_number=i + 1, character_count=0, price=0) for i in range(pages))
    return DocumentResult(
        file_id=name, file_name=name, pages=breakdown, total_characters=chars, total_price=total_price
    )


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENT PRICING
# ═══════════════════════════════════════════════════════════════════════════════

class TestCountPage:
    def test_returns_new_record(self, policy):
        page = _page(1, "a b c")
        counted = count_page(page, policy)
        assert counted.character_count == 3
        assert page.character_count is None

    def test_include_whitespace_policy(self):
        policy = PricingPolicy(price_per_character=1, min_order_price=0, counting_mode="include-whitespace")
        assert count_page(_page(1, "a b c"), policy).character_count == 5


class TestPriceDocument:
    def test_page_price_is_count_times_rate(self, policy):
        result = price_document("f1", "cert.pdf", [_page(1, "x" * 120)], policy)
        assert result.pages[0].character_count == 120
        assert result.pages[0].price == 60000

    def test_two_pages_sum(self, policy):
        pages = [_page(1, "x" * 120), _page(2, "y" * 120)]
        result = price_document("f1", "cert.pdf", pages, policy)
        assert result.total_price == 120000
        assert result.total_characters == 240
        assert result.page_count == 2

    def test_totals_are_exact_sums(self):
        policy = PricingPolicy(price_per_character=7, min_order_price=0)
        pages = [_page(i + 1, "z" * (i * 13 + 1)) for i in range(9)]
        result = price_document("f", "n", pages, policy)
        assert result.total_price == sum(p.price for p in result.pages)
        assert result.total_characters == sum(p.character_count for p in result.pages)
        for p in result.pages:
            assert p.price == p.character_count * 7

    def test_empty_document(self, policy):
        result = price_document("f", "empty.pdf", [], policy)
        assert result.pages == ()
        assert result.total_price == 0
        assert result.total_characters == 0

    def test_preserves_input_order(self, policy):
        pages = [_page(3, "ccc"), _page(1, "a"), _page(2, "bb")]
        result = price_document("f", "n", pages, policy)
        assert [p.page_number for p in result.pages] == [3, 1, 2]

    def test_duplicate_page_numbers_are_each_priced(self, policy, caplog):
        pages = [_page(1, "aaaa"), _page(1, "bb")]
        with caplog.at_level(logging.WARNING, logger="notary_quote.pricing"):
            result = price_document("f", "dup.pdf", pages, policy)
        assert result.total_characters == 6
        assert result.total_price == 6 * 500
        assert "duplicate page numbers" in caplog.text

    def test_carries_route_and_confidence(self, policy):
        page = Page(document_id="d", page_number=1, text="ocr text", route="optical", confidence=0.82)
        bd = price_document("f", "n", [page], policy).pages[0]
        assert bd.route == "optical"
        assert bd.confidence == 0.82

    def test_zero_rate(self):
        policy = PricingPolicy(price_per_character=0, min_order_price=0)
        result = price_document("f", "n", [_page(1, "abc")], policy)
        assert result.total_characters == 3
        assert result.total_price == 0

    def test_deterministic(self, policy):
        pages = [_page(1, "one two"), _page(2, "three")]
        assert price_document("f", "n", pages, policy) == price_document("f", "n", pages, policy)


# ═══════════════════════════════════════════════════════════════════════════════
# BATCH SUMMARY
# ═══════════════════════════════════════════════════════════════════════════════

class TestSummarize:
    def test_floor_applied_below_minimum(self, policy):
        summary = summarize([_result(120000)], policy)
        assert summary.subtotal == 120000
        assert summary.final_price == 300000
        assert summary.floor_applied is True
        assert summary.minimum_order_price == 300000

    def test_floor_not_applied_above_minimum(self, policy):
        summary = summarize([_result(200000), _result(150000, name="b.pdf")], policy)
        assert summary.subtotal == 350000
        assert summary.final_price == 350000
        assert summary.floor_applied is False

    def test_equal_to_minimum_is_not_applied(self, policy):
        summary = summarize([_result(300000)], policy)
        assert summary.final_price == 300000
        assert summary.floor_applied is False

    def test_counts(self, policy):
        results = [_result(1000, pages=2, chars=2), _result(500, pages=3, chars=1, name="b.pdf")]
        summary = summarize(results, policy)
        assert summary.document_count == 2
        assert summary.total_pages == 5
        assert summary.total_characters == 3

    def test_empty_results(self, policy):
        summary = summarize([], policy)
        assert summary.document_count == 0
        assert summary.total_pages == 0
        assert summary.total_characters == 0
        assert summary.subtotal == 0
        assert summary.final_price == 300000

    def test_zero_minimum(self):
        policy = PricingPolicy(price_per_character=500, min_order_price=0)
        summary = summarize([], policy)
        assert summary.final_price == 0
        assert summary.floor_applied is False

    def test_idempotent(self, policy):
        results = [_result(120000), _result(5000, name="b.pdf")]
        assert summarize(results, policy) == summarize(results, policy)
