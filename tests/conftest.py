from __future__ import annotations

import threading
from pathlib import Path

import fitz  # PyMuPDF
import pytest
from PIL import Image

from notary_quote.config import AppConfig, PricingPolicy
from notary_quote.ocr import OCREngine

NATIVE_TEXT = (
    "This certificate confirms the marriage registration\n"
    "of the persons named below, issued by the civil office."
)


class FakeBackend:
    def __init__(self, languages: tuple[str, ...], lines, progress_steps, fail: bool) -> None:
        self.languages = languages
        self.lines = list(lines)
        self.progress_steps = list(progress_steps)
        self.fail = fail
        self.calls = 0
        self.closed = False

    def read(self, image, progress):
        self.calls += 1
        for step in self.progress_steps:
            progress(step)
        if self.fail:
            raise RuntimeError("engine crashed")
        return list(self.lines)

    def close(self) -> None:
        self.closed = True


class BlockingBackend:
    """Backend whose read() holds its worker thread until proceed is set."""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.proceed = threading.Event()
        self.events: list[str] = []

    def read(self, image, progress):
        self.started.set()
        progress(10.0)
        self.proceed.wait(timeout=5)
        self.events.append("read-finished")
        return [("Late line", 0.5)]

    def close(self) -> None:
        self.events.append("closed")


class FakeBackendFactory:
    """Stands in for EasyOCR; records every backend it builds."""

    def __init__(self, lines=(("Scanned line one", 0.9), ("Scanned line two", 0.7)), progress_steps=(25.0, 50.0, 75.0), fail=False):
        self.lines = lines
        self.progress_steps = progress_steps
        self.fail = fail
        self.created: list[FakeBackend] = []

    def __call__(self, languages: tuple[str, ...]) -> FakeBackend:
        backend = FakeBackend(languages, self.lines, self.progress_steps, self.fail)
        self.created.append(backend)
        return backend


def make_pdf(path: Path, pages: list[str]) -> Path:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    doc.save(str(path))
    doc.close()
    return path


def make_image(path: Path, size: tuple[int, int] = (200, 120)) -> Path:
    Image.new("RGB", size, color=(255, 255, 255)).save(path)
    return path


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def policy() -> PricingPolicy:
    return PricingPolicy(price_per_character=500, min_order_price=300000)


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def fake_factory() -> FakeBackendFactory:
    return FakeBackendFactory()


@pytest.fixture
def fake_engine(fake_factory: FakeBackendFactory) -> OCREngine:
    return OCREngine(backend_factory=fake_factory)
