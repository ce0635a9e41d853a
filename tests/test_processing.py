import io

import pytest
from PIL import Image

from core.models import SelectedFile
from services.storage_ui.app.processing import CompressionError, compress_image
from fakes import make_image, make_jpeg


def test_large_jpeg_shrinks_and_keeps_identity(jpeg_file):
    compressed = compress_image(jpeg_file, quality=0.6)

    assert compressed.size < jpeg_file.size
    assert compressed.filename == "jane doe.jpg"
    assert compressed.content_type == "image/jpeg"
    with Image.open(io.BytesIO(compressed.data)) as img:
        assert img.format == "JPEG"
        assert img.size == (800, 800)

def test_jpeg_not_made_larger():
    small = SelectedFile(filename="tiny.jpg", content_type="image/jpeg", data=make_jpeg(size=(200, 200), quality=10))
    assert compress_image(small, quality=0.9) is small

def test_webp_stays_webp():
    original = SelectedFile(filename="pic.webp", content_type="image/webp", data=make_image("WEBP", size=(300, 300), quality=100))
    compressed = compress_image(original, quality=0.5)
    with Image.open(io.BytesIO(compressed.data)) as img:
        assert img.format == "WEBP"
    assert compressed.size <= original.size

def test_oversized_png_is_converted_to_jpeg():
    data = make_image("PNG", size=(300, 300), mode="RGBA")
    original = SelectedFile(filename="my photo.png", content_type="image/png", data=data)

    compressed = compress_image(original, quality=0.6, convert_size=1_000)

    assert compressed.filename == "my photo.jpg"
    assert compressed.content_type == "image/jpeg"
    with Image.open(io.BytesIO(compressed.data)) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"

def test_small_png_keeps_format():
    original = SelectedFile(filename="icon.png", content_type="image/png", data=make_image("PNG", size=(32, 32)))
    compressed = compress_image(original, convert_size=10_000_000)
    assert compressed.content_type == "image/png"
    assert compressed.filename == "icon.png"

def test_unsupported_image_format_is_returned_unchanged():
    gif = SelectedFile(filename="anim.gif", content_type="image/gif", data=make_image("GIF"))
    assert compress_image(gif) is gif

def test_exif_orientation_is_applied():
    img = Image.effect_noise((400, 200), 80).convert("RGB")
    exif = Image.Exif()
    exif[0x0112] = 6 # rotate 90 degrees on display
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=100, exif=exif)
    original = SelectedFile(filename="rotated.jpg", content_type="image/jpeg", data=buffer.getvalue())

    compressed = compress_image(original, quality=0.6)

    with Image.open(io.BytesIO(compressed.data)) as out:
        assert out.size == (200, 400)

def test_undecodable_image_raises_compression_error():
    broken = SelectedFile(filename="broken.jpg", content_type="image/jpeg", data=b"not really a jpeg")
    with pytest.raises(CompressionError):
        compress_image(broken)

def test_non_image_is_rejected(text_file):
    with pytest.raises(ValueError):
        compress_image(text_file)
