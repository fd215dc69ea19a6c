"""Per-document and per-batch pricing.

All amounts are integers in the currency's minor unit, so every total is
an exact sum and no rounding happens anywhere.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from typing import Iterable, Sequence

from .config import PricingPolicy
from .counter import count_characters
from .types import BatchSummary, DocumentResult, Page, PageBreakdown

logger = logging.getLogger(__name__)


def count_page(page: Page, policy: PricingPolicy) -> Page:
    return replace(page, character_count=count_characters(page.text, policy.counting_mode))


def price_document(
    file_id: str,
    file_name: str,
    pages: Iterable[Page],
    policy: PricingPolicy,
) -> DocumentResult:
    """Price each page (count x rate) and total them in input order.

    Duplicate page numbers are priced independently, not merged.
    """
    breakdown: list[PageBreakdown] = []
    for page in pages:
        counted = count_page(page, policy)
        chars = int(counted.character_count or 0)
        breakdown.append(
            PageBreakdown(
                page_number=counted.page_number,
                character_count=chars,
                price=chars * policy.price_per_character,
                route=counted.route,
                confidence=counted.confidence,
            )
        )

    dupes = sorted(n for n, c in Counter(p.page_number for p in breakdown).items() if c > 1)
    if dupes:
        logger.warning("Document %s has duplicate page numbers %s; each is priced", file_name, dupes)

    return DocumentResult(
        file_id=file_id,
        file_name=file_name,
        pages=tuple(breakdown),
        total_characters=sum(p.character_count for p in breakdown),
        total_price=sum(p.price for p in breakdown),
    )


def summarize(results: Sequence[DocumentResult], policy: PricingPolicy) -> BatchSummary:
    subtotal = sum(r.total_price for r in results)
    return BatchSummary(
        document_count=len(results),
        total_pages=sum(r.page_count for r in results),
        total_characters=sum(r.total_characters for r in results),
        subtotal=subtotal,
        final_price=max(subtotal, policy.min_order_price),
        floor_applied=subtotal < policy.min_order_price,
        minimum_order_price=policy.min_order_price,
    )
