"""Pipeline orchestrator: prepare, submit in order, merge."""

import asyncio
import logging
from typing import List, Optional

from ocr_studio import budget
from ocr_studio.budget import Budget, image_within_budget, pdf_within_budget
from ocr_studio.errors import OcrStudioError, UnsupportedInputError
from ocr_studio.image_compressor import compress_image
from ocr_studio.models.callbacks import PipelineCallbacks
from ocr_studio.models.pipeline_models import PipelineOutcome, PipelineResult, RunState
from ocr_studio.models.source_file import SourceFile
from ocr_studio.pdf_splitter import load_pdf, split_pages
from ocr_studio.submitter import OcrBoundary

DEFAULT_CHUNK_PAUSE_SECONDS = 0.25

log = logging.getLogger(__name__)


class OcrPipeline:
    """Runs one file through compression or splitting, OCR and merge.

    Submissions are strictly sequential with a fixed pause between chunks.
    ``run`` never raises for pipeline failures: they end in a FAILED outcome.
    """

    def __init__(
        self,
        boundary: OcrBoundary,
        callbacks: Optional[PipelineCallbacks] = None,
        chunk_pause: float = DEFAULT_CHUNK_PAUSE_SECONDS,
        image_max_bytes: int = budget.MAX_IMAGE_BYTES,
        pdf_max_bytes: int = budget.MAX_PDF_BYTES,
        pdf_max_pages: int = budget.MAX_PDF_PAGES,
        chunk_target_bytes: int = budget.CHUNK_TARGET_BYTES,
        max_pages_per_chunk: int = budget.MAX_PAGES_PER_CHUNK,
    ) -> None:
        self.boundary = boundary
        self.callbacks = callbacks or PipelineCallbacks()
        self.chunk_pause = chunk_pause
        self.image_budget = Budget(max_bytes=image_max_bytes, max_units=1)
        self.pdf_budget = Budget(max_bytes=pdf_max_bytes, max_units=pdf_max_pages)
        self.chunk_budget = Budget(
            max_bytes=chunk_target_bytes, max_units=max_pages_per_chunk
        )
        self.state = RunState.IDLE
        self.total_pages: Optional[int] = None

    def _set_state(self, state: RunState, message: str) -> None:
        self.state = state
        log.debug(f"{state.value}: {message}")
        self.callbacks.on_status(state, message)

    async def _prepare(self, source: SourceFile) -> List[SourceFile]:
        """Return the ordered files to submit for ``source``."""
        if source.is_image:
            if image_within_budget(source.size, self.image_budget):
                return [source]
            self._set_state(
                RunState.COMPRESSING_IMAGE,
                f"Compressing image ({budget.format_size(source.size)})...",
            )
            result = await asyncio.to_thread(
                compress_image, source, self.image_budget.max_bytes
            )
            return [result.file]

        if source.is_pdf:
            self._set_state(RunState.PREPARING, "Reading PDF...")
            reader = await asyncio.to_thread(load_pdf, source)
            total_pages = len(reader.pages)
            self.total_pages = total_pages
            if pdf_within_budget(source.size, total_pages, self.pdf_budget):
                return [source]

            self._set_state(
                RunState.SPLITTING_PDF,
                f"Splitting PDF ({total_pages} pages, "
                f"{budget.format_size(source.size)})...",
            )
            split = await asyncio.to_thread(
                split_pages,
                source,
                reader,
                self.chunk_budget,
                self.pdf_budget.max_bytes,
            )
            self._set_state(
                RunState.SPLITTING_PDF,
                f"Split {split.total_pages} pages into {len(split.chunks)} chunks",
            )
            return [chunk.file for chunk in split.chunks]

        raise UnsupportedInputError(
            f"Unsupported file type {source.media_type!r} for {source.name}. "
            f"Please choose a PNG, JPG, WEBP or PDF file."
        )

    async def _submit_all(self, files: List[SourceFile], result: PipelineResult) -> None:
        total = len(files)
        if total == 1:
            self._set_state(RunState.SUBMITTING, "Extracting text...")
            response = await self.boundary.submit(files[0], label="OCR processing")
            result.add(response.text)
            self.callbacks.on_chunk_complete(1, 1)
            return

        for index, file in enumerate(files, start=1):
            if index > 1:
                await asyncio.sleep(self.chunk_pause)
            self._set_state(
                RunState.SUBMITTING_CHUNKS, f"Processing chunk {index} of {total}..."
            )
            label = f"Chunk {index} of {total}"
            try:
                response = await self.boundary.submit(file, label=label)
            except OcrStudioError as e:
                if e.message.startswith(label):
                    raise
                raise OcrStudioError(f"{label} failed: {e.message}", e.status_code) from e
            result.add(response.text)
            self.callbacks.on_chunk_complete(index, total)

    async def run(self, source: SourceFile) -> PipelineOutcome:
        """Process ``source`` end to end and report the outcome."""
        result = PipelineResult()
        self.total_pages = None
        chunk_count = 0
        try:
            self._set_state(RunState.PREPARING, "Preparing file...")
            files = await self._prepare(source)
            chunk_count = len(files)

            await self._submit_all(files, result)

            self._set_state(RunState.MERGING, "Merging results...")
            text = result.merge()
        except OcrStudioError as e:
            return self._fail(e.message, result, chunk_count)
        except Exception as e:
            log.exception(f"Unexpected failure processing {source.name}")
            return self._fail(f"Processing failed: {e}", result, chunk_count)

        outcome = PipelineOutcome(
            state=RunState.DONE,
            text=text,
            fragments=list(result.fragments),
            chunk_count=chunk_count,
            total_pages=self.total_pages,
        )
        self._set_state(RunState.DONE, "Done")
        log.info(
            f"Finished {source.name}: {chunk_count} request(s), {len(text)} chars"
        )
        self.callbacks.on_complete(outcome)
        return outcome

    def _fail(
        self, message: str, result: PipelineResult, chunk_count: int
    ) -> PipelineOutcome:
        self._set_state(RunState.FAILED, message)
        log.error(message)
        self.callbacks.on_error(message)
        return PipelineOutcome(
            state=RunState.FAILED,
            error=message,
            fragments=list(result.fragments),
            chunk_count=chunk_count,
            total_pages=self.total_pages,
        )
