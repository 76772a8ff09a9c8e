"""Callback definitions for pipeline progress reporting."""

from dataclasses import dataclass
from typing import Callable

from .pipeline_models import PipelineOutcome, RunState


def _ignore(*args) -> None:
    pass


@dataclass
class PipelineCallbacks:
    """Callbacks the pipeline calls to report progress"""

    on_status: Callable[[RunState, str], None] = _ignore
    on_chunk_complete: Callable[[int, int], None] = _ignore
    on_error: Callable[[str], None] = _ignore
    on_complete: Callable[[PipelineOutcome], None] = _ignore
