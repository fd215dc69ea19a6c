from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol

import cv2
import numpy as np
from PIL import Image, ImageEnhance

from .errors import RecognitionError
from .utils import clamp, same_languages

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    confidence: float  # mean line confidence, 0.0 - 1.0


class RecognitionBackend(Protocol):
    def read(self, image: Image.Image, progress: ProgressCallback) -> list[tuple[str, float]]: ...

    def close(self) -> None: ...


class EasyOCRBackend:
    def __init__(self, languages: tuple[str, ...], *, gpu: bool = False) -> None:
        import easyocr

        self._reader: Any | None = easyocr.Reader(list(languages), gpu=gpu)

    def read(self, image: Image.Image, progress: ProgressCallback) -> list[tuple[str, float]]:
        if self._reader is None:
            raise RuntimeError("reader is closed")
        results = self._reader.readtext(np.array(image))
        return [(str(text), float(confidence)) for (_bbox, text, confidence) in results]

    def close(self) -> None:
        self._reader = None


class PaddleOCRBackend:
    def __init__(self, languages: tuple[str, ...], *, gpu: bool = False) -> None:
        from paddleocr import PaddleOCR

        # PaddleOCR 2.x API. One recognition model is loaded; the first language wins.
        self._ocr: Any | None = PaddleOCR(use_angle_cls=True, lang=languages[0], use_gpu=gpu, show_log=False)

    def read(self, image: Image.Image, progress: ProgressCallback) -> list[tuple[str, float]]:
        if self._ocr is None:
            raise RuntimeError("reader is closed")
        arr = np.array(image)
        try:
            result = self._ocr.ocr(arr, cls=True)
        except TypeError:
            result = self._ocr.ocr(arr)
        lines: list[tuple[str, float]] = []
        for page in result or []:
            for _poly, (text, score) in page or []:
                lines.append((str(text), float(score)))
        return lines

    def close(self) -> None:
        self._ocr = None


def default_backend_factory(engine: str, *, gpu: bool = False) -> Callable[[tuple[str, ...]], RecognitionBackend]:
    def factory(languages: tuple[str, ...]) -> RecognitionBackend:
        if engine == "easyocr":
            return EasyOCRBackend(languages, gpu=gpu)
        if engine == "paddleocr":
            return PaddleOCRBackend(languages, gpu=gpu)
        raise ValueError(f"Unknown OCR engine: {engine}")

    return factory


def preprocess_image(image: Image.Image) -> Image.Image:
    """Binarize, denoise, sharpen and boost contrast for low-quality scans."""
    gray = cv2.cvtColor(np.array(image.convert("RGB")), cv2.COLOR_RGB2GRAY)
    binary = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 11, 2)
    denoised = cv2.fastNlMeansDenoising(binary, None, 10, 7, 21)
    kernel = np.array([[-1, -1, -1], [-1, 9, -1], [-1, -1, -1]])
    sharpened = cv2.filter2D(denoised, -1, kernel)
    processed = ImageEnhance.Contrast(Image.fromarray(sharpened)).enhance(1.5)
    return processed.convert("RGB")


class OCREngine:
    """Owns the single recognition backend for a session.

    The backend is expensive to build (model weights per language set), so
    it is created once by acquire() and reused for every page until the
    language set changes or release() is called.

    Not thread-safe: callers await one recognize() at a time. A backend
    call cannot be interrupted once it runs in its worker thread; if the
    awaiting caller is cancelled, release() waits for that call to finish
    before closing the backend.
    """

    def __init__(
        self,
        engine: str = "easyocr",
        *,
        gpu: bool = False,
        preprocess: bool = False,
        backend_factory: Callable[[tuple[str, ...]], RecognitionBackend] | None = None,
    ) -> None:
        self.engine = engine
        self.preprocess = preprocess
        self._factory = backend_factory or default_backend_factory(engine, gpu=gpu)
        self._backend: RecognitionBackend | None = None
        self._languages: tuple[str, ...] = ()
        self._inflight: asyncio.Future[list[tuple[str, float]]] | None = None

    @property
    def languages(self) -> tuple[str, ...]:
        return self._languages

    @property
    def is_acquired(self) -> bool:
        return self._backend is not None

    async def acquire(self, languages: list[str] | tuple[str, ...]) -> None:
        langs = tuple(languages)
        if not langs:
            raise RecognitionError("at least one OCR language is required")
        if self._backend is not None and same_languages(self._languages, langs):
            return
        await self.release()
        logger.info("Loading %s backend for languages %s", self.engine, "+".join(langs))
        try:
            self._backend = await asyncio.to_thread(self._factory, langs)
        except Exception as e:
            raise RecognitionError(f"failed to initialize {self.engine}: {e}") from e
        self._languages = langs

    async def recognize(self, image: Image.Image, on_progress: ProgressCallback | None = None) -> RecognitionResult:
        backend = self._backend
        if backend is None:
            raise RecognitionError("OCR engine is not acquired")

        loop = asyncio.get_running_loop()

        def report(value: float) -> None:
            if on_progress is not None:
                on_progress(clamp(float(value), 0.0, 100.0))

        def report_threadsafe(value: float) -> None:
            loop.call_soon_threadsafe(report, value)

        def run() -> list[tuple[str, float]]:
            img = preprocess_image(image) if self.preprocess else image
            return backend.read(img, report_threadsafe)

        report(0.0)
        call = asyncio.ensure_future(asyncio.to_thread(run))
        self._inflight = call
        try:
            lines = await asyncio.shield(call)
        except Exception as e:
            raise RecognitionError(f"{self.engine} failed: {e}") from e
        finally:
            if call.done() and self._inflight is call:
                self._inflight = None
        report(100.0)

        kept = [(t, c) for t, c in lines if t.strip()]
        text = "\n".join(t for t, _ in kept)
        confidence = sum(c for _, c in kept) / len(kept) if kept else 0.0
        return RecognitionResult(text=text, confidence=float(round(confidence, 4)))

    async def release(self) -> None:
        if self._inflight is not None:
            call, self._inflight = self._inflight, None
            logger.info("Waiting for in-flight %s call before release", self.engine)
            await asyncio.gather(call, return_exceptions=True)
        if self._backend is None:
            return
        logger.info("Releasing %s backend", self.engine)
        backend, self._backend = self._backend, None
        self._languages = ()
        backend.close()

    async def __aenter__(self) -> "OCREngine":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()
