"""Document-to-price orchestration.

One document at a time:

    acquiring -> extracting-text -> [optical-recognizing] -> pricing -> done

A document that fails at any stage is dropped (stage "failed") and the
batch moves on. Progress is exposed as an async stream of ProgressEvent;
the pipeline never waits on whoever renders it.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import replace
from typing import AsyncIterator, Callable, Iterable

from PIL import Image

from .config import AppConfig
from .errors import AcquisitionError, QuoteError
from .ocr import OCREngine, RecognitionResult
from .page_provider import ExtractedPage, PageProvider
from .pricing import price_document, summarize
from .types import BatchSummary, DocumentResult, FileFailure, Page, ProgressEvent, SourceFile, Stage

logger = logging.getLogger(__name__)


class QuotePipeline:
    def __init__(
        self,
        config: AppConfig,
        *,
        engine: OCREngine | None = None,
        provider: PageProvider | None = None,
    ) -> None:
        self.config = config
        self.engine = engine or OCREngine(
            config.ocr.engine,
            gpu=config.ocr.gpu,
            preprocess=config.ocr.preprocess,
        )
        self.provider = provider or PageProvider(
            min_text_threshold=config.extraction.min_text_threshold,
            zoom=config.extraction.render_zoom,
        )
        self.results: list[DocumentResult] = []
        self.failures: list[FileFailure] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_batch(self, files: Iterable[SourceFile]) -> AsyncIterator[ProgressEvent]:
        """Process files strictly in order, yielding progress for each.

        Abandoning the stream before it ends releases the OCR engine.
        """
        finished = False
        try:
            for source in files:
                async with aclosing(self.process_document(source)) as events:
                    async for event in events:
                        yield event
            finished = True
        finally:
            if not finished:
                await self.close()

    async def run_batch(
        self,
        files: Iterable[SourceFile],
        on_event: Callable[[ProgressEvent], None] | None = None,
    ) -> list[DocumentResult]:
        """Drain process_batch; return only the documents priced by this call."""
        priced: list[DocumentResult] = []
        async for event in self.process_batch(files):
            if on_event is not None:
                on_event(event)
            if event.result is not None:
                priced.append(event.result)
        return priced

    def summary(self) -> BatchSummary:
        return summarize(self.results, self.config.pricing)

    def reset(self) -> None:
        self.results.clear()
        self.failures.clear()

    async def close(self) -> None:
        await self.engine.release()

    async def __aenter__(self) -> "QuotePipeline":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Per-document state machine
    # ------------------------------------------------------------------

    async def process_document(self, source: SourceFile) -> AsyncIterator[ProgressEvent]:
        def event(stage: Stage, current: int = 0, total: int = 0, ocr: float = 0.0, **extra) -> ProgressEvent:
            return ProgressEvent(
                file_id=source.file_id,
                file_name=source.name,
                stage=stage,
                current_page=current,
                total_pages=total,
                ocr_progress=ocr,
                **extra,
            )

        logger.info("Processing %s (%s, %d bytes)", source.name, source.kind, source.size)
        stage: Stage = "acquiring"
        try:
            yield event("acquiring")
            try:
                data = await asyncio.to_thread(source.read_bytes)
            except OSError as e:
                raise AcquisitionError(f"cannot read file: {e}", file_name=source.name) from e

            stage = "extracting-text"
            extracted: list[ExtractedPage] = []
            if source.kind == "image":
                extracted.append(await asyncio.to_thread(self.provider.load_image, data, name=source.name))
                yield event("extracting-text", 1, 1)
            else:
                doc = await asyncio.to_thread(self.provider.open_pdf, data, name=source.name)
                with doc:
                    total = doc.page_count
                    yield event("extracting-text", 0, total)
                    for page_number in range(1, total + 1):
                        extracted.append(await asyncio.to_thread(doc.extract_page, page_number))
                        yield event("extracting-text", page_number, total)
            total = len(extracted)

            pages = [
                Page(
                    document_id=source.file_id,
                    page_number=ep.page_number,
                    text=ep.native_text if ep.route == "native" else "",
                    route=ep.route,
                )
                for ep in extracted
            ]

            optical = [(i, ep) for i, ep in enumerate(extracted) if ep.route == "optical"]
            if optical:
                stage = "optical-recognizing"
                await self.engine.acquire(self.config.ocr.languages)
                for i, ep in optical:
                    yield event("optical-recognizing", ep.page_number, total, 0.0)
                    holder: list[RecognitionResult] = []
                    async with aclosing(self._recognize(ep.image, holder)) as progress:
                        async for value in progress:
                            yield event("optical-recognizing", ep.page_number, total, value)
                    recognized = holder[0]
                    pages[i] = replace(pages[i], text=recognized.text, confidence=recognized.confidence)

            stage = "pricing"
            yield event("pricing", total, total, 100.0 if optical else 0.0)
            result = price_document(source.file_id, source.name, pages, self.config.pricing)
        except QuoteError as e:
            self._fail(source, e.stage, e.message)
            logger.error("Dropped %s at %s: %s", source.name, e.stage, e.message)
            yield event("failed", error=str(e))
            return
        except Exception as e:
            self._fail(source, stage, str(e))
            logger.exception("Dropped %s at %s", source.name, stage)
            yield event("failed", error=f"{source.name}: {e}")
            return

        self.results.append(result)
        logger.info(
            "Priced %s: %d pages, %d characters, %d",
            source.name,
            result.page_count,
            result.total_characters,
            result.total_price,
        )
        yield event("done", total, total, 100.0 if optical else 0.0, result=result)

    async def _recognize(self, image: Image.Image | None, holder: list[RecognitionResult]) -> AsyncIterator[float]:
        """Run one OCR call, yielding its progress as it arrives.

        The result is appended to holder once the call finishes; backend
        errors propagate after the progress stream ends.
        """
        if image is None:
            raise QuoteError("optical page has no image")

        queue: asyncio.Queue[float | None] = asyncio.Queue()

        async def run() -> RecognitionResult:
            try:
                return await self.engine.recognize(image, on_progress=queue.put_nowait)
            finally:
                queue.put_nowait(None)

        task = asyncio.create_task(run())
        try:
            last = 0.0
            while True:
                value = await queue.get()
                if value is None:
                    break
                if value > last:
                    last = value
                    yield value
            holder.append(await task)
        finally:
            if not task.done():
                task.cancel()

    def _fail(self, source: SourceFile, stage: str, message: str) -> None:
        self.failures.append(FileFailure(file_name=source.name, stage=stage, message=message))
