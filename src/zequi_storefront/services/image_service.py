"""Image ingestion for admin uploads.

Uploaded photos are stored inline in their documents, so they have to be
small. The image is decoded once and re-encoded as JPEG along a fixed ladder
of (max width, quality) pairs until the data URL fits under the threshold.
When no attempt fits, the last (smallest) one is returned anyway.
"""

import base64
import logging
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from zequi_storefront.observability import traced
from zequi_storefront.observability.metrics import record_image_compression
from zequi_storefront.services.errors import ImageProcessingError

logger = logging.getLogger(__name__)

MAX_ENCODED_LENGTH = 400_000

COMPRESSION_LADDER: tuple[tuple[int, float], ...] = (
    (500, 0.60),
    (400, 0.50),
    (300, 0.40),
    (250, 0.35),
    (200, 0.30),
    (150, 0.25),
    (120, 0.20),
    (100, 0.15),
)

JPEG_DATA_URL_PREFIX = "data:image/jpeg;base64,"


@dataclass
class CompressedImage:
    """Result of compressing an upload.

    Attributes:
        data_url: Inline ``data:image/jpeg;base64,...`` string
        width: Encoded width in pixels
        height: Encoded height in pixels
        quality: JPEG quality used (0-1)
        attempts: Number of ladder steps tried
        within_limit: Whether the result fits under the threshold
    """

    data_url: str
    width: int
    height: int
    quality: float
    attempts: int
    within_limit: bool

    @property
    def size_kb(self) -> int:
        """Encoded length in KB, rounded."""
        return round(len(self.data_url) / 1024)


def decode_image(data: bytes) -> Image.Image:
    """Decode uploaded bytes into an RGB bitmap.

    Transparent areas are flattened onto white since JPEG has no alpha.

    Raises:
        ImageProcessingError: If the bytes are not a readable image
    """
    if not data:
        raise ImageProcessingError("Empty file")

    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"Unreadable image: {e}") from e

    image = ImageOps.exif_transpose(image)

    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA") if "A" in image.getbands() else image.convert("RGB")
    if image.mode == "RGBA":
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[-1])
        image = background

    return image


def encode_jpeg(image: Image.Image, max_width: int, quality: float) -> tuple[str, int, int]:
    """Scale ``image`` down to ``max_width`` (never up) and encode it.

    Returns:
        tuple: (data URL, width, height)
    """
    scale = min(1.0, max_width / image.width)
    size = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
    resized = image if size == image.size else image.resize(size, Image.Resampling.LANCZOS)

    buffer = BytesIO()
    resized.save(buffer, format="JPEG", quality=max(1, round(quality * 100)), optimize=True)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"{JPEG_DATA_URL_PREFIX}{encoded}", size[0], size[1]


class ImageService:
    """Compresses uploaded photos and logos to inline data URLs."""

    def __init__(
        self,
        max_encoded_length: int = MAX_ENCODED_LENGTH,
        ladder: tuple[tuple[int, float], ...] = COMPRESSION_LADDER,
    ) -> None:
        """Initialize the ImageService.

        Args:
            max_encoded_length: Data URL length a result should not exceed
            ladder: (max width, quality) attempts, largest first
        """
        if not ladder:
            raise ValueError("Compression ladder must have at least one step")
        self.max_encoded_length = max_encoded_length
        self.ladder = ladder

    @traced("images.compress")
    def compress_image(self, data: bytes) -> CompressedImage:
        """Compress an uploaded image.

        Args:
            data: Raw file bytes

        Returns:
            CompressedImage: First attempt under the threshold, or the last attempt

        Raises:
            ImageProcessingError: If the file cannot be decoded
        """
        image = decode_image(data)

        result = self._attempt(image, 1, *self.ladder[0])
        for attempt, (max_width, quality) in enumerate(self.ladder[1:], start=2):
            if result.within_limit:
                break
            result = self._attempt(image, attempt, max_width, quality)

        if not result.within_limit:
            logger.warning(
                f"Image still {result.size_kb}KB after {result.attempts} attempts, keeping smallest"
            )
        else:
            logger.info(f"Image compressed to {result.size_kb}KB in {result.attempts} attempts")

        record_image_compression(result.attempts, result.within_limit)
        return result

    def _attempt(
        self, image: Image.Image, attempt: int, max_width: int, quality: float
    ) -> CompressedImage:
        data_url, width, height = encode_jpeg(image, max_width, quality)
        return CompressedImage(
            data_url=data_url,
            width=width,
            height=height,
            quality=quality,
            attempts=attempt,
            within_limit=len(data_url) <= self.max_encoded_length,
        )
