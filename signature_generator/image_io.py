"""
Qt-free image I/O utilities.

Decodes photos from files or raw bytes (including PSD), applies EXIF
orientation so the natural dimensions match what the user sees, encodes
rasters as PNG data URLs, and writes PNG files to unique paths.  Every
decoding failure surfaces as ``InvalidImageError`` before a crop session
is created.
"""

import base64
import binascii
import io
import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError
from psd_tools import PSDImage

from signature_generator.config import IMAGE_EXTENSIONS, PNG_COMPRESS_LEVEL
from signature_generator.errors import InvalidImageError
from signature_generator.models import is_valid_dimension

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = "data:image/png;base64,"
_PSD_SIGNATURE = b"8BPS"


def is_supported_image(path: Path) -> bool:
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def _finish(img: Image.Image, origin: str) -> Image.Image:
    """Apply EXIF orientation, force a full decode and validate the size."""
    img = ImageOps.exif_transpose(img)
    img.load()
    if not (is_valid_dimension(img.width) and is_valid_dimension(img.height)):
        raise InvalidImageError(f"{origin} has invalid dimensions {img.width}×{img.height}")
    return img


def load_image_bytes(data: bytes) -> Image.Image:
    """Decode raw image bytes into a fully loaded Pillow image."""
    if not data:
        raise InvalidImageError("No image data")
    try:
        if data[:4] == _PSD_SIGNATURE:
            img = PSDImage.open(io.BytesIO(data)).composite()
        else:
            img = Image.open(io.BytesIO(data))
        return _finish(img, "Image data")
    except InvalidImageError:
        raise
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as exc:
        raise InvalidImageError(f"Not a readable image: {exc}") from exc


def open_image(path: Path) -> Image.Image:
    """Open an image file, using psd-tools for PSD and Pillow for the rest."""
    path = Path(path)
    if not is_supported_image(path):
        raise InvalidImageError(f"Unsupported image type: {path.suffix or path.name}")
    try:
        if path.suffix.lower() == ".psd":
            img = PSDImage.open(str(path)).composite()
        else:
            img = Image.open(path)
        return _finish(img, path.name)
    except InvalidImageError:
        raise
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as exc:
        raise InvalidImageError(f"Could not read {path.name}: {exc}") from exc


def to_png_bytes(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, "PNG", compress_level=PNG_COMPRESS_LEVEL)
    return buf.getvalue()


def to_data_url(image: Image.Image) -> str:
    """Encode an image as a ``data:image/png;base64,...`` URL."""
    return _DATA_URL_PREFIX + base64.b64encode(to_png_bytes(image)).decode("ascii")


def from_data_url(url: str) -> Image.Image:
    """Decode a PNG/JPEG data URL back into an image."""
    if not url.startswith("data:image/") or ";base64," not in url:
        raise InvalidImageError("Not a base64 image data URL")
    try:
        payload = base64.b64decode(url.split(",", 1)[1], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageError(f"Malformed data URL: {exc}") from exc
    return load_image_bytes(payload)


def file_to_data_url(path: Path) -> str:
    """Re-encode an image file as a PNG data URL (award badges, logos)."""
    return to_data_url(open_image(path))


def save_png(image: Image.Image, out_path: Path) -> Path:
    """Save as PNG at a unique path and return the path written."""
    out_path = unique_path(Path(out_path).with_suffix(".png"))
    out_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(out_path), "PNG", compress_level=PNG_COMPRESS_LEVEL)
    logger.info("Saved %s×%s PNG to %s", image.width, image.height, out_path)
    return out_path


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
