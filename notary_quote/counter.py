from __future__ import annotations

import re

from .types import COUNTING_MODES, CountingMode

_WHITESPACE = re.compile(r"\s+")


def count_characters(text: str | None, mode: CountingMode = "exclude-whitespace") -> int:
    """Billable characters in text.

    exclude-whitespace drops every Unicode whitespace character before
    counting; include-whitespace counts code points as-is.
    """
    if mode not in COUNTING_MODES:
        raise ValueError(f"mode must be one of {sorted(COUNTING_MODES)!r}; got {mode!r}")
    if not text:
        return 0
    if mode == "include-whitespace":
        return len(text)
    return len(_WHITESPACE.sub("", text))
