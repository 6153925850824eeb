"""
Page image preparation for OCR.

Nothing here resizes or crops, so OCR coordinates stay in the pixel
space of the rendered page.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convert image to grayscale if it's color.

    Args:
        image: Input image (BGR, BGRA or grayscale)

    Returns:
        Grayscale image
    """
    import cv2

    if len(image.shape) == 2:
        return image
    elif len(image.shape) == 3:
        if image.shape[2] == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        elif image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        elif image.shape[2] == 1:
            return image.squeeze()

    raise ValueError(f"Unexpected image shape: {image.shape}")


def pil_to_bgr(pil_image) -> np.ndarray:
    """Convert a PIL image to an OpenCV-style BGR array."""
    img_array = np.array(pil_image.convert("RGB"))
    return img_array[:, :, ::-1].copy()


def prepare_for_ocr(image: np.ndarray, median_kernel: int = 3) -> np.ndarray:
    """
    Grayscale and lightly denoise a page before recognition.

    A median blur removes salt-and-pepper scan noise without moving
    glyph edges enough to shift word boxes.
    """
    import cv2

    gray = to_grayscale(image)
    if median_kernel > 1:
        gray = cv2.medianBlur(gray, median_kernel)
    logger.debug(f"Prepared page for OCR: {gray.shape}")
    return gray
