# botanai/services/normalizer.py
import base64
import logging
import math
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from botanai.models.plant_analysis import ImageBudget, NormalizedImage

logger = logging.getLogger(__name__)

JPEG_MEDIA_TYPE = "image/jpeg"
DEFAULT_BUDGET = ImageBudget()


class ImageDecodeError(ValueError):
    """Raised when an upload cannot be decoded as an image."""


def estimate_encoded_bytes(b64_payload: str) -> int:
    """Estimate the decoded byte size of a base64 payload.

    Exact when the payload carries no padding, a slight overestimate otherwise.
    """
    return math.ceil(len(b64_payload) * 3 / 4)


def fit_dimensions(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """Scale (width, height) so the longer side is at most max_dimension.

    Aspect ratio is preserved up to rounding; images are never upscaled.
    """
    longer = max(width, height)
    if longer <= max_dimension:
        return width, height
    scale = max_dimension / longer
    return max(1, round(width * scale)), max(1, round(height * scale))


def decode_image(data: bytes) -> Image.Image:
    """Decode raw upload bytes into an RGB raster with EXIF orientation applied."""
    if not data:
        raise ImageDecodeError("Image data is empty.")
    try:
        image = Image.open(BytesIO(data))
        image.load()
        image = ImageOps.exif_transpose(image)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e

    if image.mode != "RGB":
        image = image.convert("RGB")
    return image


def _encode_jpeg(image: Image.Image, quality: int) -> str:
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def normalize_image(data: bytes, budget: Optional[ImageBudget] = None) -> NormalizedImage:
    """
    Re-encode an uploaded image as a JPEG data URL that fits the upload budget.

    The image is encoded once at the base quality. If that result is over the
    byte budget, or the image is larger than the maximum dimension, it is
    resized from the decoded original and encoded a second time at the reduced
    quality. There is no further search: the budget is best effort.

    Args:
        data: Raw bytes of the uploaded file.
        budget: Size and dimension limits, defaults to 2 MiB / 1600 px.

    Returns:
        The normalized image.

    Raises:
        ImageDecodeError: If the bytes are not a readable image.
    """
    budget = budget or DEFAULT_BUDGET
    image = decode_image(data)
    width, height = image.size

    payload = _encode_jpeg(image, budget.base_quality)
    estimated = estimate_encoded_bytes(payload)
    passes = 1

    too_large = estimated > budget.max_bytes
    too_wide = width > budget.max_dimension or height > budget.max_dimension
    if too_large or too_wide:
        new_size = fit_dimensions(width, height, budget.max_dimension)
        logger.info(
            f"Re-encoding image {width}x{height} (~{estimated} bytes) as "
            f"{new_size[0]}x{new_size[1]} at quality {budget.reduced_quality}")
        resized = image.resize(new_size, Image.Resampling.LANCZOS) if new_size != image.size else image
        payload = _encode_jpeg(resized, budget.reduced_quality)
        estimated = estimate_encoded_bytes(payload)
        width, height = new_size
        passes = 2

        if estimated > budget.max_bytes:
            logger.warning(f"Normalized image still exceeds budget: ~{estimated} > {budget.max_bytes} bytes")

    return NormalizedImage(
        data_url=f"data:{JPEG_MEDIA_TYPE};base64,{payload}",
        media_type=JPEG_MEDIA_TYPE,
        width=width,
        height=height,
        estimated_bytes=estimated,
        passes=passes,
    )
