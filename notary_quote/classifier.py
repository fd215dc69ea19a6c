"""Page classifier: decide how a page's billable text is obtained.

  native   -> the page's own text layer is long enough to bill from
  optical  -> too little native text; the page must go through OCR

The threshold applies to the stripped text, so whitespace-only pages
always go to OCR.
"""
from __future__ import annotations

from .types import Route

MIN_TEXT_THRESHOLD = 50


def classify_page(native_text: str | None, min_text_threshold: int = MIN_TEXT_THRESHOLD) -> Route:
    if len((native_text or "").strip()) >= min_text_threshold:
        return "native"
    return "optical"
