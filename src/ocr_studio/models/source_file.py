"""Immutable input file model."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

PDF_MEDIA_TYPE = "application/pdf"
GENERIC_MEDIA_TYPE = "application/octet-stream"

EXTENSION_MEDIA_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "pdf": PDF_MEDIA_TYPE,
}
IMAGE_MEDIA_TYPES = frozenset({"image/png", "image/jpeg", "image/webp"})


def guess_media_type(name: str) -> str:
    """Infer a media type from a file name, preferring the accepted types."""
    ext = Path(name).suffix.lower().lstrip(".")
    if ext in EXTENSION_MEDIA_TYPES:
        return EXTENSION_MEDIA_TYPES[ext]
    guessed, _ = mimetypes.guess_type(name)
    return guessed or GENERIC_MEDIA_TYPE


@dataclass(frozen=True)
class SourceFile:
    """A byte blob with its media type and display name. Never mutated."""

    data: bytes
    media_type: str
    name: str

    @classmethod
    def from_bytes(
        cls, data: bytes, name: str, media_type: Optional[str] = None
    ) -> "SourceFile":
        """Build a SourceFile, inferring the media type when it is missing."""
        if not media_type or media_type == GENERIC_MEDIA_TYPE:
            media_type = guess_media_type(name)
        return cls(data=data, media_type=media_type, name=name)

    @classmethod
    def from_path(cls, path: Path) -> "SourceFile":
        path = Path(path)
        return cls.from_bytes(path.read_bytes(), path.name)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def stem(self) -> str:
        """Display name without its final extension."""
        return Path(self.name).stem or self.name

    @property
    def is_image(self) -> bool:
        return self.media_type in IMAGE_MEDIA_TYPES

    @property
    def is_pdf(self) -> bool:
        return self.media_type == PDF_MEDIA_TYPE

    def __repr__(self) -> str:
        return f"SourceFile(name={self.name!r}, media_type={self.media_type!r}, size={self.size})"
