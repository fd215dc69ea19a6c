from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

Route = Literal["native", "optical"]
CountingMode = Literal["exclude-whitespace", "include-whitespace"]
FileKind = Literal["pdf", "image"]
Stage = Literal["acquiring", "extracting-text", "optical-recognizing", "pricing", "done", "failed"]

ROUTES: frozenset[str] = frozenset({"native", "optical"})
COUNTING_MODES: frozenset[str] = frozenset({"exclude-whitespace", "include-whitespace"})


@dataclass(frozen=True)
class SourceFile:
    file_id: str
    path: Path
    name: str
    size: int
    kind: FileKind
    mime_type: str | None = None

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


@dataclass(frozen=True)
class Page:
    document_id: str
    page_number: int  # 1-based
    text: str
    route: Route
    character_count: int | None = None  # set once counted
    confidence: float | None = None  # optical pages only


@dataclass(frozen=True)
class PageBreakdown:
    page_number: int
    character_count: int
    price: int
    route: Route = "native"
    confidence: float | None = None


@dataclass(frozen=True)
class DocumentResult:
    file_id: str
    file_name: str
    pages: tuple[PageBreakdown, ...]
    total_characters: int
    total_price: int

    @property
    def page_count(self) -> int:
        return len(self.pages)


@dataclass(frozen=True)
class BatchSummary:
    document_count: int
    total_pages: int
    total_characters: int
    subtotal: int
    final_price: int
    floor_applied: bool
    minimum_order_price: int


@dataclass(frozen=True)
class FileFailure:
    file_name: str
    stage: str
    message: str


@dataclass(frozen=True)
class ProgressEvent:
    file_id: str
    file_name: str
    stage: Stage
    current_page: int = 0
    total_pages: int = 0
    ocr_progress: float = 0.0
    result: DocumentResult | None = None
    error: str | None = None
