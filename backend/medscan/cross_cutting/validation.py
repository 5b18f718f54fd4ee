"""
Input Validation

Validation utilities for images and names submitted to the pipeline.
"""

from typing import Optional, List, Sequence, Tuple
from io import BytesIO
import binascii
import re

from PIL import Image as PILImage, UnidentifiedImageError

from ..domain.value_objects.image_data import ImageData
from ..domain.exceptions import InvalidImageError, InvalidInputError


# Supported image formats
SUPPORTED_FORMATS = {"jpeg", "jpg", "png", "bmp", "webp", "gif"}

# Maximum image dimensions
MAX_IMAGE_DIMENSION = 8192

# Maximum file size (10 MB)
MAX_FILE_SIZE = 10 * 1024 * 1024

# Multi-image submissions (front, back, side)
MAX_IMAGES = 3

MAX_NAME_LENGTH = 200

MIN_SEARCH_LENGTH = 2

# Product (labeler-product) or package (labeler-product-package) code
NDC_PATTERN = re.compile(r"^\d{4,5}-\d{3,4}(-\d{1,2})?$")


def validate_image(image: ImageData) -> Tuple[bool, Optional[str]]:
    """
    Validate image data.

    Args:
        image: ImageData to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        image_bytes = image.bytes
    except (ValueError, binascii.Error) as e:
        return False, f"Failed to read image: {e}"

    if not image_bytes:
        return False, "Image is empty"

    if len(image_bytes) > MAX_FILE_SIZE:
        return False, f"Image size exceeds maximum ({MAX_FILE_SIZE / 1024 / 1024:.1f} MB)"

    try:
        pil_image = PILImage.open(BytesIO(image_bytes))
        pil_image.verify()

        # Reopen because verify() can only be called once
        pil_image = PILImage.open(BytesIO(image_bytes))
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        return False, f"Invalid image data: {e}"

    width, height = pil_image.size
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        return False, f"Image dimensions exceed maximum ({MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION})"

    img_format = pil_image.format.lower() if pil_image.format else "unknown"
    if img_format not in SUPPORTED_FORMATS:
        return False, f"Unsupported image format: {img_format}"

    return True, None


def validate_image_set(
    images: Sequence[ImageData],
    max_images: int = MAX_IMAGES
) -> Tuple[bool, Optional[str]]:
    """
    Validate a one-to-three image submission.

    Args:
        images: Submitted images
        max_images: Largest accepted image count

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not images:
        return False, "At least one image is required"

    if len(images) > max_images:
        return False, f"At most {max_images} images can be analyzed together"

    for index, image in enumerate(images, start=1):
        is_valid, error = validate_image(image)
        if not is_valid:
            return False, f"Image {index}: {error}"

    return True, None


def validate_verified_name(name: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate a user-confirmed medicine name.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if name is None or not name.strip():
        return False, "Verified medicine name is required"

    if len(name.strip()) > MAX_NAME_LENGTH:
        return False, f"Verified medicine name too long (maximum {MAX_NAME_LENGTH} characters)"

    return True, None


def validate_search_name(name: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate a free-text medicine name for the name search."""
    if name is None or len(name.strip()) < MIN_SEARCH_LENGTH:
        return False, f"Medicine name must have at least {MIN_SEARCH_LENGTH} characters"

    if len(name.strip()) > MAX_NAME_LENGTH:
        return False, f"Medicine name too long (maximum {MAX_NAME_LENGTH} characters)"

    return True, None


def validate_ndc(ndc: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate a National Drug Code such as 0573-0164 or 0573-0164-40."""
    if not ndc or not NDC_PATTERN.match(ndc.strip()):
        return False, "NDC must look like XXXXX-XXXX or XXXXX-XXXX-XX"

    return True, None


def decode_images(payloads: Sequence[str]) -> List[ImageData]:
    """
    Decode base64 strings or data URLs into validated images.

    Args:
        payloads: Encoded images as received from the caller

    Returns:
        List of ImageData

    Raises:
        InvalidInputError: If the count is out of range
        InvalidImageError: If any image cannot be decoded
    """
    if not payloads:
        raise InvalidInputError("images", "at least one image is required")

    images = []
    for index, payload in enumerate(payloads, start=1):
        if not isinstance(payload, str) or not payload.strip():
            raise InvalidImageError(f"Image {index} is empty")
        images.append(ImageData.from_base64(payload, source=f"upload-{index}"))

    is_valid, error = validate_image_set(images)
    if not is_valid:
        if len(images) > MAX_IMAGES:
            raise InvalidInputError("images", error)
        raise InvalidImageError(error)

    return images
