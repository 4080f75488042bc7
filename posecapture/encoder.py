"""
JPEG encoding of captured frames.

Frames reach the engine in mirrored (selfie preview) orientation. By default
the encoder flips them back before encoding, so stored images show the face
as the camera saw it.
"""

from typing import Any, Dict, Optional

import cv2
import numpy as np

from posecapture.errors import CaptureFailure
from posecapture.interfaces import ImageEncoder


class JpegEncoder(ImageEncoder):
    """Encodes BGR frames to JPEG bytes with OpenCV."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Args:
            config: `capture` configuration section containing (all optional):
                - jpeg_quality: JPEG quality 0-100 (default 80)
                - unmirror: Flip frames horizontally before encoding (default True)
        """
        config = config or {}
        self.quality = int(config.get("jpeg_quality", 80))
        self.unmirror = config.get("unmirror", True)

        if not 0 <= self.quality <= 100:
            raise ValueError(f"jpeg_quality must be between 0 and 100, got {self.quality}")

    def encode(self, frame: Any) -> bytes:
        """
        Encode a BGR frame.

        Raises:
            CaptureFailure: If the frame is empty or OpenCV cannot encode it.
        """
        if not isinstance(frame, np.ndarray) or frame.size == 0:
            raise CaptureFailure("Cannot encode an empty frame")

        if self.unmirror:
            frame = cv2.flip(frame, 1)

        ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self.quality])
        if not ok:
            raise CaptureFailure("JPEG encoding failed")

        return buffer.tobytes()


def decode_image(image_data: bytes) -> np.ndarray:
    """Decode image bytes back into a BGR array (for previews)."""
    array = np.frombuffer(image_data, dtype=np.uint8)
    image = cv2.imdecode(array, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError("Could not decode image data")
    return image
