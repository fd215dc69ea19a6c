"""Plain-text quote and JSON report for a batch."""
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Sequence

from .config import DisplaySettings
from .types import BatchSummary, DocumentResult, FileFailure, ProgressEvent
from .utils import utc_now_iso

# Thousands separator by language subtag.
_GROUP_SEPARATORS: dict[str, str] = {
    "ru": "\u00a0",
    "uk": "\u00a0",
    "be": "\u00a0",
    "kk": "\u00a0",
    "fr": "\u00a0",
    "cs": "\u00a0",
    "sk": "\u00a0",
    "fi": "\u00a0",
    "sv": "\u00a0",
    "nb": "\u00a0",
    "de": ".",
    "es": ".",
    "it": ".",
    "nl": ".",
    "pt": ".",
    "tr": ".",
    "da": ".",
    "id": ".",
    "vi": ".",
}

_STAGE_LABELS: dict[str, str] = {
    "acquiring": "Loading file",
    "extracting-text": "Extracting text",
    "optical-recognizing": "Recognizing (OCR)",
    "pricing": "Calculating price",
    "done": "Done",
    "failed": "Failed",
}

_RULE = "─" * 40


def group_separator(locale: str) -> str:
    lang = (locale or "").replace("_", "-").split("-")[0].lower()
    return _GROUP_SEPARATORS.get(lang, ",")


def format_number(n: int, locale: str) -> str:
    sign = "-" if n < 0 else ""
    digits = str(abs(int(n)))
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return sign + group_separator(locale).join(groups)


def format_price(amount: int, ui: DisplaySettings) -> str:
    return f"{format_number(amount, ui.locale)}{ui.currency}"


def render_progress(event: ProgressEvent) -> str:
    label = _STAGE_LABELS.get(event.stage, event.stage)
    line = f"[{event.file_name}] {label}"
    if event.stage == "failed":
        return f"{line}: {event.error}"
    if event.total_pages > 0 and event.stage in ("extracting-text", "optical-recognizing"):
        line += f" - page {event.current_page} of {event.total_pages}"
    if event.stage == "optical-recognizing":
        line += f" ({event.ocr_progress:.0f}%)"
    return line


def render_summary_text(
    results: Sequence[DocumentResult],
    summary: BatchSummary,
    ui: DisplaySettings,
    *,
    show_pages: bool = False,
) -> str:
    lines: list[str] = ["Notarized translation quote", _RULE, ""]

    for r in results:
        lines.append(r.file_name)
        lines.append(f"   Pages: {r.page_count}")
        lines.append(f"   Characters: {format_number(r.total_characters, ui.locale)}")
        lines.append(f"   Price: {format_price(r.total_price, ui)}")
        if show_pages:
            for p in r.pages:
                marker = " (OCR)" if p.route == "optical" else ""
                lines.append(
                    f"      Page {p.page_number}{marker}: "
                    f"{format_number(p.character_count, ui.locale)} chars, {format_price(p.price, ui)}"
                )
        lines.append("")

    lines.append(_RULE)
    lines.append(f"Documents: {summary.document_count}")
    lines.append(f"Pages: {summary.total_pages}")
    lines.append(f"Characters: {format_number(summary.total_characters, ui.locale)}")
    lines.append("")

    if summary.floor_applied:
        lines.append(f"By characters: {format_price(summary.subtotal, ui)}")
        lines.append(f"Minimum order: {format_price(summary.minimum_order_price, ui)}")

    lines.append(f"TOTAL: {format_price(summary.final_price, ui)}")
    return "\n".join(lines)


def build_report(
    results: Sequence[DocumentResult],
    summary: BatchSummary,
    failures: Sequence[FileFailure] = (),
) -> dict[str, Any]:
    return {
        "created_at": utc_now_iso(),
        "documents": [
            {
                "file_id": r.file_id,
                "file_name": r.file_name,
                "page_count": r.page_count,
                "total_characters": r.total_characters,
                "total_price": r.total_price,
                "pages": [asdict(p) for p in r.pages],
            }
            for r in results
        ],
        "summary": asdict(summary),
        "failures": [asdict(f) for f in failures],
    }
