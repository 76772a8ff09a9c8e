"""Data models for split and compressed submission units."""

from dataclasses import dataclass
from typing import List, Optional

from .source_file import SourceFile


@dataclass(frozen=True)
class Chunk:
    """A contiguous page range of a PDF, ready for submission.

    ``index`` is 1-based; pages cover ``[start_page, end_page)``.
    """

    index: int
    start_page: int
    end_page: int
    file: SourceFile

    @property
    def page_count(self) -> int:
        return self.end_page - self.start_page

    @property
    def size(self) -> int:
        return self.file.size


@dataclass(frozen=True)
class SplitResult:
    """Ordered chunks covering every page of a PDF exactly once."""

    chunks: List[Chunk]
    total_pages: int
    was_split: bool


@dataclass(frozen=True)
class CompressionResult:
    """Output of the image compressor and the combination that produced it."""

    file: SourceFile
    was_compressed: bool
    scale: Optional[float] = None
    quality: Optional[float] = None
