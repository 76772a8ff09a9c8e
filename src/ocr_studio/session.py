"""Active-run state for one user session."""

import logging
from pathlib import Path
from typing import Callable, Optional

from ocr_studio.budget import exceeds_acceptance_ceiling, format_size
from ocr_studio.config import Config
from ocr_studio.errors import FileTooLargeError, OcrStudioError, UnsupportedInputError
from ocr_studio.models.callbacks import PipelineCallbacks
from ocr_studio.models.pipeline_models import PipelineOutcome, RunState
from ocr_studio.models.source_file import SourceFile
from ocr_studio.pipeline import OcrPipeline
from ocr_studio.submitter import OcrBoundary

config = Config()
log = logging.getLogger(__name__)


class OcrSession:
    """Owns the current file, status, text and error.

    Each run is tagged with a generation id. Selecting or clearing a file bumps
    the generation, so a run still in flight for an older file finishes
    unobserved: its status updates and result are dropped.
    """

    def __init__(
        self,
        boundary: OcrBoundary,
        on_change: Optional[Callable[["OcrSession"], None]] = None,
        max_accepted_bytes: Optional[int] = None,
        **pipeline_options,
    ) -> None:
        self.boundary = boundary
        self.on_change = on_change
        self.max_accepted_bytes = max_accepted_bytes or config.MAX_ACCEPTED_BYTES
        pipeline_options.setdefault("chunk_pause", config.CHUNK_PAUSE_SECONDS)
        self.pipeline_options = pipeline_options

        self.generation = 0
        self.current_file: Optional[SourceFile] = None
        self.state = RunState.IDLE
        self.status: str = ""
        self.text: str = ""
        self.error: Optional[str] = None
        self.fragments: list = []

    @property
    def is_processing(self) -> bool:
        return self.state not in (RunState.IDLE, RunState.DONE, RunState.FAILED)

    def _notify(self) -> None:
        if self.on_change:
            self.on_change(self)

    def _reset(self) -> None:
        self.generation += 1
        self.state = RunState.IDLE
        self.status = ""
        self.text = ""
        self.error = None
        self.fragments = []

    def _check_size(self, name: str, size: int) -> None:
        if exceeds_acceptance_ceiling(size, self.max_accepted_bytes):
            raise FileTooLargeError(
                f"{name} is {format_size(size)}. "
                f"Maximum accepted size is {format_size(self.max_accepted_bytes)}."
            )

    def select_file(self, file: SourceFile) -> bool:
        """Make ``file`` the active input. Returns False if it was rejected."""
        self._reset()
        try:
            self._check_size(file.name, file.size)
        except FileTooLargeError as e:
            return self._reject(e)
        self.current_file = file
        log.info(f"Selected {file!r} (generation {self.generation})")
        self._notify()
        return True

    def select_path(self, path: Path) -> bool:
        """Like select_file, but checks the size before reading the file."""
        path = Path(path)
        self._reset()
        try:
            self._check_size(path.name, path.stat().st_size)
            file = SourceFile.from_path(path)
        except FileTooLargeError as e:
            return self._reject(e)
        except OSError as e:
            return self._reject(
                UnsupportedInputError(f"Could not read {path.name}: {e.strerror or e}")
            )
        return self.select_file(file)

    def _reject(self, error: OcrStudioError) -> bool:
        log.warning(error.message)
        self.current_file = None
        self.error = error.message
        self._notify()
        return False

    def clear(self) -> None:
        self._reset()
        self.current_file = None
        self._notify()

    def _on_status(self, generation: int, state: RunState, message: str) -> None:
        if generation != self.generation:
            return
        self.state = state
        self.status = message
        self._notify()

    async def process(self) -> Optional[PipelineOutcome]:
        """Run the pipeline for the current file.

        Returns the outcome, or None when no file is selected or the run was
        superseded before it finished.
        """
        if self.current_file is None:
            self.error = "Please select a file first"
            self._notify()
            return None

        generation = self.generation
        file = self.current_file
        self.text = ""
        self.error = None
        self.fragments = []

        pipeline = OcrPipeline(
            self.boundary,
            callbacks=PipelineCallbacks(
                on_status=lambda state, message: self._on_status(
                    generation, state, message
                )
            ),
            **self.pipeline_options,
        )
        outcome = await pipeline.run(file)

        if generation != self.generation:
            log.info(
                f"Discarding result for {file.name}: generation {generation} "
                f"superseded by {self.generation}"
            )
            return None

        self.state = outcome.state
        self.status = ""
        self.fragments = outcome.fragments
        if outcome.succeeded:
            self.text = outcome.text or ""
        else:
            self.error = outcome.error
        self._notify()
        return outcome

    def output_filename(self) -> str:
        stem = self.current_file.stem if self.current_file else config.DEFAULT_OUTPUT_STEM
        return f"{stem}{config.OUTPUT_SUFFIX}"

    def export_markdown(
        self,
        output_dir: Path,
        text: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> Path:
        """Write the (possibly edited) text to ``<stem>.md`` in ``output_dir``."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / (filename or self.output_filename())
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(self.text if text is None else text)
        log.info(f"Saved output to {output_path}")
        return output_path
