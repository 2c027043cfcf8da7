import math
from typing import Optional

import cv2
import numpy as np

_ENCODE_EXTENSIONS = {
    'jpg': '.jpg',
    'jpeg': '.jpg',
    'png': '.png',
    'webp': '.webp',
}

MEDIA_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'webp': 'image/webp',
}

def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (206.5 -> 207)."""
    return int(math.floor(value + 0.5))

def decode_image(data: bytes) -> Optional[np.ndarray]:
    """Decode image bytes keeping any alpha channel; None if undecodable."""
    if not data:
        return None
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    if image is None:
        return None
    if image.dtype == np.uint16:
        image = (image / 257).astype(np.uint8)
    return image

def to_bgra(image: np.ndarray) -> np.ndarray:
    """Return a 4-channel copy of ``image``, opaque where it had no alpha."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    if image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    return image.copy()

def encode_image(image: np.ndarray, extension: str, jpeg_quality: int = 92) -> Optional[bytes]:
    """Encode ``image`` for ``extension``; None if OpenCV refuses it."""
    suffix = _ENCODE_EXTENSIONS.get(extension.lower())
    if suffix is None:
        return None
    
    params = []
    if suffix == '.jpg':
        params = [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality]
    elif suffix == '.png':
        params = [cv2.IMWRITE_PNG_COMPRESSION, 3]
    
    ok, encoded = cv2.imencode(suffix, image, params)
    if not ok:
        return None
    return encoded.tobytes()

def media_type_for(extension: str) -> str:
    return MEDIA_TYPES.get(extension.lower(), 'application/octet-stream')
