"""Remote OCR limits and the local margins kept below them."""

from dataclasses import dataclass

MIB = 1024 * 1024

# Hard limits enforced by the OCR boundary
MAX_IMAGE_BYTES = 10 * MIB
MAX_PDF_BYTES = 50 * MIB
MAX_PDF_PAGES = 100

# Chunk targets stay under the hard limit to leave room for re-serialization
CHUNK_TARGET_BYTES = 45 * MIB
MAX_PAGES_PER_CHUNK = 40

# Files above this are rejected before any processing
MAX_ACCEPTED_BYTES = 200 * MIB


@dataclass(frozen=True)
class Budget:
    """A byte ceiling plus a unit-of-work ceiling (pages for PDFs)."""

    max_bytes: int
    max_units: int


IMAGE_BUDGET = Budget(max_bytes=MAX_IMAGE_BYTES, max_units=1)
PDF_BUDGET = Budget(max_bytes=MAX_PDF_BYTES, max_units=MAX_PDF_PAGES)
CHUNK_BUDGET = Budget(max_bytes=CHUNK_TARGET_BYTES, max_units=MAX_PAGES_PER_CHUNK)


def image_within_budget(size: int, budget: Budget = IMAGE_BUDGET) -> bool:
    return size <= budget.max_bytes


def pdf_within_budget(size: int, pages: int, budget: Budget = PDF_BUDGET) -> bool:
    return size <= budget.max_bytes and pages <= budget.max_units


def chunk_within_budget(size: int, pages: int, budget: Budget = CHUNK_BUDGET) -> bool:
    """A chunk fits when it is under the byte target and the page cap."""
    return size <= budget.max_bytes and pages <= budget.max_units


def exceeds_acceptance_ceiling(size: int, ceiling: int = MAX_ACCEPTED_BYTES) -> bool:
    return size > ceiling


def format_size(size: int) -> str:
    """Format a byte count for user-facing messages."""
    if size >= MIB:
        return f"{size / MIB:.1f} MB"
    return f"{size / 1024:.1f} KB"
