"""Run state and result models for the OCR pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

FRAGMENT_SEPARATOR = "\n\n"


class RunState(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    COMPRESSING_IMAGE = "compressing_image"
    SPLITTING_PDF = "splitting_pdf"
    SUBMITTING = "submitting"
    SUBMITTING_CHUNKS = "submitting_chunks"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Text fragments in submission order, one per submitted unit."""

    fragments: List[str] = field(default_factory=list)

    def add(self, text: str) -> None:
        self.fragments.append(text)

    def merge(self) -> str:
        """Join non-empty fragments with a blank line between them."""
        parts = [fragment.strip() for fragment in self.fragments]
        return FRAGMENT_SEPARATOR.join(part for part in parts if part)


@dataclass
class PipelineOutcome:
    """Final report of one pipeline run."""

    state: RunState
    text: Optional[str] = None
    error: Optional[str] = None
    fragments: List[str] = field(default_factory=list)
    chunk_count: int = 0
    total_pages: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.DONE
