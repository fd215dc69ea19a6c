"""Native text layer + rasterizer for uploaded files.

PDF pages are read with PyMuPDF. A page is only rendered to an image when
its native text is below the threshold. Image uploads become a single
page that always needs OCR.
"""
from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

import fitz  # PyMuPDF
from PIL import Image

from .classifier import MIN_TEXT_THRESHOLD, classify_page
from .errors import ExtractionError
from .types import Route


@dataclass(frozen=True)
class ExtractedPage:
    page_number: int  # 1-based
    native_text: str
    route: Route
    image: Image.Image | None = None  # only for optical pages


class PdfDocument:
    """An open PDF. Use as a context manager so the handle is closed."""

    def __init__(self, doc, *, name: str, min_text_threshold: int, zoom: float) -> None:
        self._doc = doc
        self.name = name
        self.min_text_threshold = min_text_threshold
        self.zoom = zoom

    @property
    def page_count(self) -> int:
        return int(self._doc.page_count)

    def extract_page(self, page_number: int) -> ExtractedPage:
        try:
            page = self._doc.load_page(page_number - 1)
            text = page.get_text("text") or ""
            route = classify_page(text, self.min_text_threshold)
            image = None
            if route == "optical":
                pix = page.get_pixmap(matrix=fitz.Matrix(self.zoom, self.zoom), alpha=False)
                image = Image.open(BytesIO(pix.tobytes("png"))).convert("RGB")
        except Exception as e:
            raise ExtractionError(f"page {page_number} is unreadable: {e}", file_name=self.name) from e
        return ExtractedPage(page_number=page_number, native_text=text, route=route, image=image)

    def close(self) -> None:
        self._doc.close()

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass(frozen=True)
class PageProvider:
    min_text_threshold: int = MIN_TEXT_THRESHOLD
    zoom: float = 2.0

    def open_pdf(self, data: bytes, *, name: str = "document.pdf") -> PdfDocument:
        if not data:
            raise ExtractionError("empty file", file_name=name)
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise ExtractionError(f"not a readable PDF: {e}", file_name=name) from e
        if doc.needs_pass:
            doc.close()
            raise ExtractionError("PDF is password protected", file_name=name)
        return PdfDocument(doc, name=name, min_text_threshold=self.min_text_threshold, zoom=self.zoom)

    def load_image(self, data: bytes, *, name: str = "image") -> ExtractedPage:
        try:
            img = Image.open(BytesIO(data))
            img.load()
            img = img.convert("RGB")
        except Exception as e:
            raise ExtractionError(f"not a readable image: {e}", file_name=name) from e
        return ExtractedPage(page_number=1, native_text="", route="optical", image=img)
