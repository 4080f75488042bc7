"""
MediaPipe Landmark Detector

This module implements the LandmarkDetector interface with the MediaPipe Face
Landmarker (Tasks API). It returns 478 landmarks per face in pixel coordinates,
which the direction classifier reads through the MEDIAPIPE_478 layout.

The landmarker is configured to report up to `max_faces` faces (at least 2),
so the frame loop can tell "one face" apart from "several faces".

Note: MediaPipe 0.10.x uses the new Tasks API (mp.tasks.vision.FaceLandmarker)
instead of the legacy Solutions API (mp.solutions.face_mesh).

Usage:
    from posecapture.mediapipe_detector import MediaPipeLandmarkDetector

    detector = MediaPipeLandmarkDetector(config)
    faces = await detector.detect(frame)
"""

import asyncio
import logging
import urllib.request
from typing import Any, Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

# MediaPipe Tasks API imports
import mediapipe as mp
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision

from posecapture.interfaces import LandmarkDetector
from posecapture.types import LandmarkFrame

logger = logging.getLogger(__name__)

# URL for the face landmarker model
MODEL_URL = "https://storage.googleapis.com/mediapipe-models/face_landmarker/face_landmarker/float16/1/face_landmarker.task"
MODEL_FILENAME = "face_landmarker.task"


def get_model_path() -> str:
    """
    Get the path to the MediaPipe face landmarker model file.
    Downloads the model if it doesn't exist locally.

    Returns:
        Path to the model file.
    """
    from posecapture.config import get_project_root

    model_dir = get_project_root() / "storage" / "models"
    model_dir.mkdir(parents=True, exist_ok=True)

    model_path = model_dir / MODEL_FILENAME

    if not model_path.exists():
        logger.info(f"Downloading MediaPipe face landmarker model from {MODEL_URL}")
        urllib.request.urlretrieve(MODEL_URL, str(model_path))
        logger.info(f"Saved model to {model_path}")

    return str(model_path)


def landmarks_to_frame(face_landmarks, width: int, height: int) -> LandmarkFrame:
    """
    Convert one face's normalized MediaPipe landmarks to a LandmarkFrame.

    Args:
        face_landmarks: List of MediaPipe NormalizedLandmark objects.
        width: Image width in pixels.
        height: Image height in pixels.
    """
    points = np.zeros((len(face_landmarks), 2), dtype=np.float32)
    for i, landmark in enumerate(face_landmarks):
        points[i] = [landmark.x * width, landmark.y * height]

    return LandmarkFrame(
        points=points,
        score=_estimate_score(points, width, height),
        bbox=_calculate_bbox(points, width, height),
    )


def _calculate_bbox(points: np.ndarray, width: int, height: int) -> Tuple[int, int, int, int]:
    """Bounding box of all landmarks, clamped to the image."""
    x1 = max(0, int(np.min(points[:, 0])))
    y1 = max(0, int(np.min(points[:, 1])))
    x2 = min(width, int(np.max(points[:, 0])))
    y2 = min(height, int(np.max(points[:, 1])))
    return (x1, y1, x2, y2)


def _estimate_score(points: np.ndarray, width: int, height: int) -> float:
    """
    Rough confidence from landmark placement.

    The Face Landmarker does not expose a per-face score, so faces that are
    cut off by the frame edge or very small get a lower one.
    """
    margin = 5
    in_bounds = (
        np.all(points[:, 0] >= margin)
        and np.all(points[:, 0] <= width - margin)
        and np.all(points[:, 1] >= margin)
        and np.all(points[:, 1] <= height - margin)
    )

    face_w = np.max(points[:, 0]) - np.min(points[:, 0])
    face_h = np.max(points[:, 1]) - np.min(points[:, 1])
    size_ratio = (face_w * face_h) / float(width * height)

    score = 0.95 if in_bounds else 0.7
    if size_ratio < 0.01:
        score *= 0.5
    elif size_ratio < 0.05:
        score *= 0.8

    return float(min(1.0, max(0.0, score)))


class MediaPipeLandmarkDetector(LandmarkDetector):
    """
    LandmarkDetector backed by the MediaPipe Face Landmarker.

    Inference is blocking, so detect() runs it in a worker thread.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, model_path: Optional[str] = None):
        """
        Args:
            config: `detection` configuration section containing (all optional):
                - min_detection_confidence: Minimum face detection confidence (0-1)
                - min_presence_confidence: Minimum face presence confidence (0-1)
                - max_faces: Faces to report per frame (at least 2)
            model_path: Path to face_landmarker.task. Downloaded if omitted.
        """
        config = config or {}
        min_detection_conf = config.get("min_detection_confidence", 0.5)
        min_presence_conf = config.get("min_presence_confidence", 0.5)
        self.max_faces = max(2, int(config.get("max_faces", 2)))

        base_options = mp_tasks.BaseOptions(model_asset_path=model_path or get_model_path())
        options = vision.FaceLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.IMAGE,
            num_faces=self.max_faces,
            min_face_detection_confidence=min_detection_conf,
            min_face_presence_confidence=min_presence_conf,
            output_face_blendshapes=False,
            output_facial_transformation_matrixes=False,
        )
        self.landmarker = vision.FaceLandmarker.create_from_options(options)
        logger.info(f"MediaPipe Face Landmarker ready (num_faces={self.max_faces})")

    def detect_sync(self, frame: np.ndarray) -> List[LandmarkFrame]:
        """
        Detect faces in a BGR frame.

        Returns:
            One LandmarkFrame per face (empty if none).
        """
        h, w = frame.shape[:2]

        # MediaPipe expects RGB, OpenCV delivers BGR
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)

        results = self.landmarker.detect(mp_image)
        if not results.face_landmarks:
            return []

        return [landmarks_to_frame(face, w, h) for face in results.face_landmarks]

    async def detect(self, frame: Any) -> Sequence[LandmarkFrame]:
        return await asyncio.to_thread(self.detect_sync, frame)

    def close(self):
        """Clean up MediaPipe resources."""
        if hasattr(self, "landmarker"):
            self.landmarker.close()
