"""Exception hierarchy for OCR Studio.

Every failure a pipeline run can hit is an ``OcrStudioError``. Components
raise them; the orchestrator catches them and turns them into a single
user-visible message.
"""

from typing import Optional


class OcrStudioError(Exception):
    """Base exception for all OCR Studio errors.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status from the OCR boundary, when one is known
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class UnsupportedInputError(OcrStudioError):
    """Media type is neither an image nor a PDF."""


class FileTooLargeError(OcrStudioError):
    """File exceeds the local acceptance ceiling."""


class ImageDecodeError(OcrStudioError):
    """Raster decode or encode failed."""


class CompressionExhaustedError(OcrStudioError):
    """No scale/quality combination brought the image under budget."""


class PdfDecodeError(OcrStudioError):
    """PDF could not be parsed or has no pages."""


class UnsplittablePageError(OcrStudioError):
    """A single page exceeds the hard PDF byte limit on its own."""

    def __init__(self, message: str, page_number: int):
        super().__init__(message)
        self.page_number = page_number


class BoundaryError(OcrStudioError):
    """The OCR boundary returned a failure or an unusable response."""


class OcrConfigError(OcrStudioError):
    """Required OCR configuration is missing."""
