# services/storage_ui/app/processing.py
import io
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from core.config import settings, logger as core_logger
from core.models import SelectedFile
from core.utils import replace_extension

logger = core_logger.getChild("StorageUI").getChild("Processing")

# Formats that are re-encoded; anything else is uploaded as-is
REENCODED_FORMATS = {"JPEG", "WEBP", "PNG"}
JPEG_SAFE_MODES = {"RGB", "L", "CMYK"}


class CompressionError(Exception):
    """The image could not be decoded or re-encoded."""


def _pillow_quality(quality: float) -> int:
    return max(1, min(100, round(quality * 100)))


def _flatten_for_jpeg(img: Image.Image) -> Image.Image:
    """JPEG has no alpha channel: transparent areas are filled with white."""
    if img.mode in JPEG_SAFE_MODES:
        return img
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return img.convert("RGB")


def _encode(img: Image.Image, fmt: str, quality: int) -> bytes:
    buffer = io.BytesIO()
    if fmt == "JPEG":
        _flatten_for_jpeg(img).save(buffer, format="JPEG", quality=quality, optimize=True)
    elif fmt == "WEBP":
        img.save(buffer, format="WEBP", quality=quality)
    else:
        img.save(buffer, format=fmt, optimize=True)
    return buffer.getvalue()


def _reencode(img: Image.Image, fmt: str, quality: int, convert_size: int) -> Tuple[bytes, str]:
    """Returns the encoded bytes and the format they ended up in."""
    data = _encode(img, fmt, quality)
    if fmt == "PNG" and len(data) > convert_size:
        logger.debug(f"PNG output is {len(data)} bytes (> {convert_size}); converting to JPEG.")
        return _encode(img, "JPEG", quality), "JPEG"
    return data, fmt


def compress_image(
    selected: SelectedFile,
    quality: Optional[float] = None,
    convert_size: Optional[int] = None,
) -> SelectedFile:
    """
    Lossy re-encode of an image before upload.

    JPEG and WebP keep their format at the given quality factor (0-1]; PNG is
    optimised losslessly and converted to JPEG when it stays above
    ``convert_size`` bytes. If the result is not smaller than the input and the
    format did not change, the original file is returned untouched.
    """
    if not selected.is_image:
        raise ValueError(f"'{selected.filename}' is not an image ({selected.content_type})")
    quality = settings.IMAGE_COMPRESSION_QUALITY if quality is None else quality
    convert_size = settings.IMAGE_CONVERT_SIZE if convert_size is None else convert_size

    try:
        with Image.open(io.BytesIO(selected.data)) as img:
            source_format = img.format
            if source_format not in REENCODED_FORMATS:
                logger.info(f"Leaving '{selected.filename}' uncompressed (format {source_format}).")
                return selected
            img = ImageOps.exif_transpose(img)
            data, output_format = _reencode(img, source_format, _pillow_quality(quality), convert_size)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.error(f"Compression failed for '{selected.filename}': {e}")
        raise CompressionError(str(e)) from e

    if output_format != source_format:
        compressed = SelectedFile(
            filename=replace_extension(selected.filename, ".jpg"),
            content_type="image/jpeg",
            data=data,
        )
    elif len(data) >= selected.size:
        logger.info(f"Re-encoding '{selected.filename}' did not reduce its size; keeping the original.")
        return selected
    else:
        compressed = selected.model_copy(update={"data": data})

    logger.info(f"Compressed '{selected.filename}' from {selected.size} to {compressed.size} bytes.")
    return compressed
