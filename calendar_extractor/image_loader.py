"""
Image Loader — Reads a calendar photo from disk and converts it between the
OpenCV frame format used for OCR and the RGBA buffer used for detection.
"""

import logging
import os
import cv2
import numpy as np
from PIL import Image as PILImage, ImageOps, UnidentifiedImageError
from .models import PixelBuffer

logger = logging.getLogger(__name__)


def load_image(path: str) -> np.ndarray:
    """
    Load an image file as a BGR numpy array.

    Phone photos carry their rotation in EXIF, so the orientation tag is
    applied before the pixels are handed on.

    Raises:
        FileNotFoundError: If the file does not exist or is not an image.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Image file not found: {path}")
    try:
        with PILImage.open(path) as img:
            img = ImageOps.exif_transpose(img)
            rgb = np.array(img.convert("RGB"))
    except UnidentifiedImageError as e:
        raise FileNotFoundError(f"Cannot read image file: {path}") from e

    logger.info(f"Image: {path}")
    logger.info(f"  Size: {rgb.shape[1]}x{rgb.shape[0]}")
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)


def to_pixel_buffer(frame: np.ndarray) -> PixelBuffer:
    """Convert a BGR, BGRA or grayscale frame into a flat RGBA buffer."""
    if frame.ndim == 2:
        rgba = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
    elif frame.shape[2] == 4:
        rgba = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
    else:
        rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
    h, w = rgba.shape[:2]
    return PixelBuffer(width=w, height=h, data=rgba.reshape(-1))
