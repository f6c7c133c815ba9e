"""
Image decoding collaborator.

Decodes raw bytes or files into RGB arrays with OpenCV.
"""

import logging
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np

from ..core.errors import ValidationError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".bmp")


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode an encoded image.

    Args:
        data: Raw PNG/JPEG/WebP/BMP bytes

    Returns:
        RGB image as numpy array (H, W, 3)

    Raises:
        ValidationError: If the bytes are not a decodable image
    """
    nparr = np.frombuffer(data, np.uint8)
    img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if img is None:
        raise ValidationError("Could not decode image data")
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def load_image(path: Union[str, Path]) -> np.ndarray:
    """Read and decode an image file into an RGB array."""
    path = Path(path)
    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise ValidationError(
            f"Please use an image file ({', '.join(SUPPORTED_EXTENSIONS)}), got {path.name}"
        )
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ValidationError(f"Could not read {path}: {e}") from e
    image = decode_image(data)
    logger.debug("Decoded %s: %s", path, image.shape)
    return image


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """(width, height) of an image array."""
    height, width = image.shape[:2]
    return width, height


def resize_for_display(image: np.ndarray, display_size: Tuple[int, int]) -> np.ndarray:
    if image_size(image) == tuple(display_size):
        return image
    return cv2.resize(image, tuple(display_size), interpolation=cv2.INTER_AREA)
