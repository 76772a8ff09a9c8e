from io import BytesIO
import logging
from typing import Sequence, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from ocr_studio.budget import MAX_IMAGE_BYTES, Budget, format_size, image_within_budget
from ocr_studio.errors import CompressionExhaustedError, ImageDecodeError
from ocr_studio.models.chunk_models import CompressionResult
from ocr_studio.models.source_file import SourceFile

SCALE_STEPS = (1.0, 0.9, 0.8, 0.7, 0.6)
QUALITY_STEPS = (0.9, 0.8, 0.7, 0.6, 0.5)
JPEG_MEDIA_TYPE = "image/jpeg"
PREVIEW_SIZE = (280, 280)

log = logging.getLogger(__name__)


def decode_image(source: SourceFile) -> Image.Image:
    """Decode once, apply EXIF orientation, flatten to RGB for JPEG output."""
    try:
        with Image.open(BytesIO(source.data)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            if img.mode != "RGB":
                img = img.convert("RGB")
            return img
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Failed to decode image {source.name}: {e}") from e


def preview_image(source: SourceFile, max_size: Tuple[int, int] = PREVIEW_SIZE) -> Image.Image:
    """Decode ``source`` and shrink it in place to fit ``max_size`` for display."""
    img = decode_image(source)
    img.thumbnail(max_size, Image.Resampling.LANCZOS)
    return img


def scaled_size(width: int, height: int, scale: float) -> tuple:
    return max(1, round(width * scale)), max(1, round(height * scale))


def encode_jpeg(img: Image.Image, scale: float, quality: float) -> bytes:
    """Render at ``scale`` of the original resolution and encode as JPEG."""
    if scale != 1.0:
        img = img.resize(scaled_size(img.width, img.height, scale), Image.Resampling.LANCZOS)

    buffer = BytesIO()
    img.save(buffer, format="JPEG", quality=int(round(quality * 100)), optimize=True)
    return buffer.getvalue()


def compress_image(
    source: SourceFile,
    max_bytes: int = MAX_IMAGE_BYTES,
    scales: Sequence[float] = SCALE_STEPS,
    qualities: Sequence[float] = QUALITY_STEPS,
) -> CompressionResult:
    """Return the highest-fidelity JPEG re-encoding of ``source`` that fits ``max_bytes``.

    Scale is the outer loop and quality the inner one, so a larger resolution
    at lower quality wins over a smaller resolution at higher quality. Images
    already within budget come back untouched.
    """
    budget = Budget(max_bytes=max_bytes, max_units=1)
    if image_within_budget(source.size, budget):
        return CompressionResult(file=source, was_compressed=False)

    img = decode_image(source)
    log.info(
        f"Compressing {source.name} ({format_size(source.size)}, {img.width}x{img.height}) "
        f"to fit {format_size(max_bytes)}"
    )

    for scale in scales:
        for quality in qualities:
            try:
                data = encode_jpeg(img, scale, quality)
            except (OSError, ValueError) as e:
                raise ImageDecodeError(f"Failed to encode image {source.name}: {e}") from e
            if not data:
                raise ImageDecodeError(f"Encoding {source.name} produced no output")

            log.debug(f"scale={scale} quality={quality}: {format_size(len(data))}")
            if image_within_budget(len(data), budget):
                compressed = SourceFile(
                    data=data, media_type=JPEG_MEDIA_TYPE, name=f"{source.stem}.jpg"
                )
                log.info(
                    f"Compressed {source.name} to {format_size(len(data))} "
                    f"at scale {scale}, quality {quality}"
                )
                return CompressionResult(
                    file=compressed, was_compressed=True, scale=scale, quality=quality
                )

    raise CompressionExhaustedError(
        f"Image {source.name} is still larger than {format_size(max_bytes)} after "
        f"compression. Please resize it manually and try again."
    )
