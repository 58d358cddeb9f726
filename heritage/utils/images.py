"""Validation of uploaded image files."""
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from heritage.errors import ValidationError
from heritage.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp', '.bmp', '.tif', '.tiff'}
ALLOWED_IMAGE_FORMATS = {'JPEG', 'PNG', 'GIF', 'WEBP', 'BMP', 'TIFF'}

_FORMAT_EXTENSIONS = {
    'JPEG': 'jpg',
    'PNG': 'png',
    'GIF': 'gif',
    'WEBP': 'webp',
    'BMP': 'bmp',
    'TIFF': 'tiff',
}


def validate_image_bytes(data: bytes, filename: str, max_bytes: int) -> str:
    """
    Check an uploaded file is a readable image of an allowed format.

    Args:
        data: Raw file content
        filename: Client-supplied file name (extension checked)
        max_bytes: Size limit

    Returns:
        str: Extension to store the object under, derived from the decoded format

    Raises:
        ValidationError: If the file is empty, too large or not an allowed image
    """
    if not data:
        raise ValidationError("Uploaded file is empty")

    if len(data) > max_bytes:
        raise ValidationError(
            f"Image exceeds maximum size of {max_bytes // (1024 * 1024)} MB"
        )

    suffix = Path(filename or "").suffix.lower()
    if suffix not in ALLOWED_IMAGE_EXTENSIONS:
        logger.warning("Invalid image extension", filename=filename, ext=suffix)
        raise ValidationError(f"Unsupported file type: {suffix or 'none'}")

    try:
        with Image.open(BytesIO(data)) as image:
            image_format = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning("Invalid image content", filename=filename, error=str(e))
        raise ValidationError("File is not a valid image") from e

    if image_format not in ALLOWED_IMAGE_FORMATS:
        logger.warning("Invalid image format", filename=filename, format=image_format)
        raise ValidationError(f"Unsupported image format: {image_format}")

    return _FORMAT_EXTENSIONS[image_format]
