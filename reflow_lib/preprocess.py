"""
reflow_lib/preprocess.py: Bitmap clean-up applied to rendered pages before OCR.

grayscale -> contrast stretch around the mean -> Otsu binarization.
"""
import base64
import logging

import cv2
import numpy as np

log_ocr = logging.getLogger("reflow.ocr")

CONTRAST_FACTOR = 1.5
DATA_URI_PREFIX = "data:image/png;base64,"


def to_grayscale(bitmap: np.ndarray) -> np.ndarray:
    """Converts an RGB, RGBA or already gray bitmap to 8-bit gray."""
    if bitmap.ndim == 2:
        return bitmap.astype(np.uint8)
    channels = bitmap.shape[2]
    if channels == 4:
        return cv2.cvtColor(bitmap, cv2.COLOR_RGBA2GRAY)
    if channels == 3:
        return cv2.cvtColor(bitmap, cv2.COLOR_RGB2GRAY)
    if channels == 1:
        return bitmap[:, :, 0].astype(np.uint8)
    raise ValueError(f"Unsupported bitmap with {channels} channels.")


def enhance_contrast(gray: np.ndarray, factor: float = CONTRAST_FACTOR) -> np.ndarray:
    """Stretches intensities away from the image mean by `factor`."""
    mean = float(gray.mean()) if gray.size else 0.0
    stretched = (gray.astype(np.float32) - mean) * factor + mean
    return np.clip(stretched, 0, 255).astype(np.uint8)


def binarize(gray: np.ndarray) -> np.ndarray:
    """Otsu threshold: pixels above the threshold become white, the rest black."""
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    return binary


def preprocess_image(bitmap: np.ndarray) -> np.ndarray:
    """Full OCR preparation of one rendered page. Pure; the input is not modified."""
    gray = to_grayscale(bitmap)
    binary = binarize(enhance_contrast(gray))
    log_ocr.debug("Preprocessed %dx%d bitmap for OCR.", binary.shape[1], binary.shape[0])
    return binary


def to_data_uri(image: np.ndarray) -> str:
    """Encodes a bitmap as a PNG data URI."""
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("Could not encode image as PNG.")
    return DATA_URI_PREFIX + base64.b64encode(buffer.tobytes()).decode("ascii")


def from_data_uri(data_uri: str) -> np.ndarray:
    """Decodes a PNG/JPEG data URI (or bare base64 payload) into a bitmap."""
    payload = data_uri.split(",", 1)[1] if data_uri.startswith("data:") else data_uri
    raw = np.frombuffer(base64.b64decode(payload), dtype=np.uint8)
    image = cv2.imdecode(raw, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ValueError("Data URI does not contain a decodable image.")
    return image
