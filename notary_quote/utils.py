from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def new_file_id() -> str:
    return uuid.uuid4().hex


def write_json(path: str | Path, data: Any) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def same_languages(a: list[str] | tuple[str, ...], b: list[str] | tuple[str, ...]) -> bool:
    """Order-sensitive comparison; engines load language models in order."""
    return len(a) == len(b) and all(x == y for x, y in zip(a, b))
