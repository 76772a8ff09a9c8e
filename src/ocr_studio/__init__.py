"""OCR Studio: turn oversized images and PDFs into OCR-sized requests."""

__version__ = "0.1.0"
