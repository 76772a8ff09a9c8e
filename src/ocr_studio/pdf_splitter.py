from io import BytesIO
import logging
from typing import List

from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError

from ocr_studio.budget import (
    CHUNK_BUDGET,
    CHUNK_TARGET_BYTES,
    MAX_PAGES_PER_CHUNK,
    MAX_PDF_BYTES,
    MAX_PDF_PAGES,
    Budget,
    chunk_within_budget,
    format_size,
    pdf_within_budget,
)
from ocr_studio.errors import PdfDecodeError, UnsplittablePageError
from ocr_studio.models.chunk_models import Chunk, SplitResult
from ocr_studio.models.source_file import PDF_MEDIA_TYPE, SourceFile

CHUNK_NAME_PATTERN = "{stem}.part-{index}.pdf"

log = logging.getLogger(__name__)


def load_pdf(source: SourceFile) -> PdfReader:
    """Parse the document once and check it has pages."""
    try:
        reader = PdfReader(BytesIO(source.data))
        if reader.is_encrypted:
            raise PdfDecodeError(f"PDF {source.name} is encrypted")
        total_pages = len(reader.pages)
    except (PdfReadError, OSError, ValueError, KeyError) as e:
        raise PdfDecodeError(f"Failed to read PDF {source.name}: {e}") from e

    if total_pages == 0:
        raise PdfDecodeError(f"PDF {source.name} contains no pages")
    return reader


def serialize_pages(reader: PdfReader, start: int, end: int) -> bytes:
    """Copy pages ``[start, end)`` into a fresh document and serialize it."""
    writer = PdfWriter()
    for page_num in range(start, end):
        writer.add_page(reader.pages[page_num])

    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def single_chunk(source: SourceFile, total_pages: int) -> SplitResult:
    """Wrap an already-fitting document as its one and only chunk."""
    return SplitResult(
        chunks=[Chunk(index=1, start_page=0, end_page=total_pages, file=source)],
        total_pages=total_pages,
        was_split=False,
    )


def split_pages(
    source: SourceFile,
    reader: PdfReader,
    chunk_budget: Budget = CHUNK_BUDGET,
    hard_max_bytes: int = MAX_PDF_BYTES,
) -> SplitResult:
    """Partition an already loaded document into ordered page-range chunks.

    Chunks start at ``chunk_budget.max_units`` pages and shrink one page at a
    time until they fit ``chunk_budget``. A lone page over ``hard_max_bytes``
    cannot be split further and fails the whole operation.
    """
    total_pages = len(reader.pages)
    log.info(
        f"Splitting {source.name} ({format_size(source.size)}, {total_pages} pages)"
    )
    chunks: List[Chunk] = []
    cursor = 0
    part = 1
    while cursor < total_pages:
        end = min(cursor + chunk_budget.max_units, total_pages)
        data = serialize_pages(reader, cursor, end)

        while (
            not chunk_within_budget(len(data), end - cursor, chunk_budget)
            and end - cursor > 1
        ):
            end -= 1
            data = serialize_pages(reader, cursor, end)

        if len(data) > hard_max_bytes:
            raise UnsplittablePageError(
                f"Page {cursor + 1} of {source.name} is {format_size(len(data))} on its "
                f"own, above the {format_size(hard_max_bytes)} limit. Please reduce "
                f"that page manually and try again.",
                page_number=cursor + 1,
            )

        name = CHUNK_NAME_PATTERN.format(stem=source.stem, index=part)
        chunks.append(
            Chunk(
                index=part,
                start_page=cursor,
                end_page=end,
                file=SourceFile(data=data, media_type=PDF_MEDIA_TYPE, name=name),
            )
        )
        log.debug(f"Chunk {part}: pages {cursor + 1}-{end}, {format_size(len(data))}")
        cursor = end
        part += 1

    log.info(f"Split {source.name} into {len(chunks)} chunks")
    return SplitResult(chunks=chunks, total_pages=total_pages, was_split=True)


def split_pdf(
    source: SourceFile,
    target_bytes: int = CHUNK_TARGET_BYTES,
    max_pages_per_chunk: int = MAX_PAGES_PER_CHUNK,
    hard_max_bytes: int = MAX_PDF_BYTES,
    max_pages: int = MAX_PDF_PAGES,
) -> SplitResult:
    """Partition ``source`` into ordered chunks that each fit the OCR limits.

    A PDF already within ``hard_max_bytes`` and ``max_pages`` is returned as a
    single chunk holding the original bytes; anything else goes through
    ``split_pages``.
    """
    reader = load_pdf(source)
    total_pages = len(reader.pages)

    if pdf_within_budget(source.size, total_pages, Budget(hard_max_bytes, max_pages)):
        log.debug(f"{source.name} fits as-is ({total_pages} pages)")
        return single_chunk(source, total_pages)

    return split_pages(
        source,
        reader,
        Budget(max_bytes=target_bytes, max_units=max_pages_per_chunk),
        hard_max_bytes,
    )
