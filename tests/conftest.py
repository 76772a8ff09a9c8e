"""Shared fixtures: in-memory PDFs, images and a scripted OCR boundary."""

from io import BytesIO
from typing import Callable, Dict, List, Optional

import pytest
from PIL import Image
from PyPDF2 import PdfWriter

from ocr_studio.errors import BoundaryError
from ocr_studio.models.api_schemas import OcrResult
from ocr_studio.models.source_file import SourceFile


def make_pdf(pages: int, name: str = "doc.pdf") -> SourceFile:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    buffer = BytesIO()
    writer.write(buffer)
    return SourceFile(data=buffer.getvalue(), media_type="application/pdf", name=name)


def gradient_image(width: int = 128, height: int = 96, mode: str = "RGB") -> Image.Image:
    img = Image.new(mode, (width, height))
    for x in range(width):
        for y in range(height):
            value = (x * 2 + y) % 256
            img.putpixel((x, y), (value, 255 - value, value // 2) + ((255,) if mode == "RGBA" else ()))
    return img


def make_image(
    name: str = "photo.png",
    fmt: str = "PNG",
    media_type: str = "image/png",
    mode: str = "RGB",
    **save_options,
) -> SourceFile:
    buffer = BytesIO()
    gradient_image(mode=mode).save(buffer, format=fmt, **save_options)
    return SourceFile(data=buffer.getvalue(), media_type=media_type, name=name)


class ScriptedBoundary:
    """Records submissions and answers from a script of texts or errors."""

    def __init__(
        self,
        texts: Optional[List[str]] = None,
        failures: Optional[Dict[int, Exception]] = None,
        before_reply: Optional[Callable] = None,
    ):
        self.texts = texts or []
        self.failures = failures or {}
        self.before_reply = before_reply
        self.calls: List[SourceFile] = []
        self.labels: List[str] = []

    async def submit(self, file: SourceFile, label: str = "OCR request") -> OcrResult:
        self.calls.append(file)
        self.labels.append(label)
        call_number = len(self.calls)
        if self.before_reply:
            await self.before_reply(call_number)
        if call_number in self.failures:
            raise self.failures[call_number]
        text = self.texts[call_number - 1] if call_number <= len(self.texts) else ""
        return OcrResult(text=text)


@pytest.fixture
def boundary_factory():
    return ScriptedBoundary


@pytest.fixture
def server_error():
    return BoundaryError("Internal server error (HTTP 500)", status_code=500)
