"""Notarized-translation quote engine.

Turns uploaded PDFs and images into a billable character count per page
and a batch price:
- native text layer where the page has one, OCR otherwise
- per-character rate with a configurable whitespace policy
- minimum-order floor with explicit attribution

Rendering and file pickers live outside this package.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
