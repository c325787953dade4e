import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from .outcomes import InvalidImageError

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = re.compile(r'^\s*data:[^,]*?;base64,', re.IGNORECASE)

MAX_SIDE = 640
JPEG_QUALITY = 80


@dataclass(frozen=True)
class NormalizedImage:
    """A decoded, bounded JPEG ready to be sent to every classifier."""

    width: int
    height: int
    jpeg_bytes: bytes

    @property
    def base64(self) -> str:
        return base64.b64encode(self.jpeg_bytes).decode('utf-8')

    @property
    def data_uri(self) -> str:
        return f"data:image/jpeg;base64,{self.base64}"

    def as_upload(self, filename: str = 'image.jpg'):
        """Tuple accepted by httpx `files=` and the OpenAI upload API."""
        return (filename, self.jpeg_bytes, 'image/jpeg')


def strip_data_uri(payload: str) -> str:
    return DATA_URI_PREFIX.sub('', payload, count=1).strip()


def decode_image_payload(payload: str) -> bytes:
    if not payload or not payload.strip():
        raise InvalidImageError("Image data is required")

    data = strip_data_uri(payload)
    # Tolerate whitespace/newlines and missing padding from clients
    data = re.sub(r'\s+', '', data)
    data += '=' * (-len(data) % 4)
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Image data is not valid base64: {e}") from e

    if not raw:
        raise InvalidImageError("Image data is empty")
    return raw


def normalize_image(payload: str, max_side: int = MAX_SIDE, quality: int = JPEG_QUALITY) -> NormalizedImage:
    """
    Decode a base64 / data-URI image, bound it to `max_side` pixels on its
    longest side (aspect kept, never upscaled) and re-encode as JPEG.

    Raises InvalidImageError when the payload is empty or not an image.
    """
    raw = decode_image_payload(payload)

    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
        image = ImageOps.exif_transpose(image)
        if image.mode != 'RGB':
            image = image.convert('RGB')
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise InvalidImageError(f"Could not decode image: {e}") from e

    original_size = image.size
    image.thumbnail((max_side, max_side), Image.LANCZOS)

    buffer = io.BytesIO()
    image.save(buffer, format='JPEG', quality=quality)
    jpeg_bytes = buffer.getvalue()

    logger.info(
        f"Normalized image {original_size[0]}x{original_size[1]} -> "
        f"{image.width}x{image.height} ({len(jpeg_bytes)} bytes)"
    )
    return NormalizedImage(width=image.width, height=image.height, jpeg_bytes=jpeg_bytes)
