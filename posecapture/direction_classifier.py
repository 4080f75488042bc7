"""
Direction Classification Module

This module classifies head orientation (front, right, left) from 2D facial
landmarks. It does not estimate angles; instead it measures how far the nose
and mouth sit from the midpoint between the eyes, and how foreshortened one
eye is compared to the other.

All offsets are divided by the distance between the outer eye corners, so the
result does not depend on how close the user sits to the camera.

Usage:
    from posecapture.direction_classifier import DirectionClassifier

    classifier = DirectionClassifier(config)
    result = classifier.classify(landmark_frame)
    if result is not None:
        print(result.pose, result.confidence)
"""

import logging
import math
from typing import Any, Dict, Optional, Tuple

import numpy as np

from posecapture.landmarks import LandmarkLayout, get_layout
from posecapture.types import ClassificationResult, LandmarkFrame, PoseLabel, PoseMetrics

logger = logging.getLogger(__name__)


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


class DirectionClassifier:
    """
    Classifies head orientation from a single LandmarkFrame.

    Decision order (first match wins):
        1. |combined offset| > strong threshold -> profile, by offset sign
        2. eye ratio outside [low, high] -> profile, by ratio direction
        3. |combined offset| > mild threshold, corroborated by a moderately
           skewed eye ratio or an elevated face skew -> profile, by offset sign
        4. otherwise -> front

    A positive offset (or eye ratio above 1) means the nose moved toward the
    image's right side. With mirrored (selfie view) input that is the user's
    right; set mirrored=False for raw camera frames.
    """

    STRONG_THRESHOLD = 0.15
    MILD_THRESHOLD = 0.08
    EYE_RATIO_LOW = 0.7
    EYE_RATIO_HIGH = 1.4

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the DirectionClassifier.

        Args:
            config: Configuration dictionary containing (all optional):
                - layout: Landmark layout name ("ibug_68" or "mediapipe_478")
                - strong_threshold: Offset that alone decides a profile pose
                - mild_threshold: Offset that needs a second cue
                - eye_ratio_low / eye_ratio_high: Extreme eye ratio bounds
                - eye_ratio_mild_low / eye_ratio_mild_high: Corroborating bounds
                - face_skew_threshold: Corroborating face skew
                - min_eye_distance: Below this (pixels) the frame is degenerate
                - mirrored: True if landmarks come from a mirrored view
        """
        config = config or {}

        layout = config.get("layout", "mediapipe_478")
        self.layout: LandmarkLayout = layout if isinstance(layout, LandmarkLayout) else get_layout(layout)

        self.strong_threshold = config.get("strong_threshold", self.STRONG_THRESHOLD)
        self.mild_threshold = config.get("mild_threshold", self.MILD_THRESHOLD)
        self.eye_ratio_low = config.get("eye_ratio_low", self.EYE_RATIO_LOW)
        self.eye_ratio_high = config.get("eye_ratio_high", self.EYE_RATIO_HIGH)
        self.eye_ratio_mild_low = config.get("eye_ratio_mild_low", 0.87)
        self.eye_ratio_mild_high = config.get("eye_ratio_mild_high", 1.15)
        self.face_skew_threshold = config.get("face_skew_threshold", 0.25)
        self.min_eye_distance = config.get("min_eye_distance", 1e-6)
        self.mirrored = config.get("mirrored", True)

        if not 0 < self.mild_threshold < self.strong_threshold:
            raise ValueError(
                f"Expected 0 < mild_threshold < strong_threshold, got "
                f"{self.mild_threshold} and {self.strong_threshold}"
            )
        if not 0 < self.eye_ratio_low < 1.0 < self.eye_ratio_high:
            raise ValueError(
                f"Expected 0 < eye_ratio_low < 1 < eye_ratio_high, got "
                f"{self.eye_ratio_low} and {self.eye_ratio_high}"
            )

    def compute_metrics(self, frame: LandmarkFrame) -> Optional[PoseMetrics]:
        """
        Measure the pose metrics of a LandmarkFrame.

        Returns:
            PoseMetrics, or None if the geometry is degenerate (too few
            landmarks, non-finite coordinates, or near-zero eye distance).
        """
        points = np.asarray(frame.points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] < 2 or points.shape[0] <= self.layout.max_index:
            logger.debug(f"Landmark array shape {points.shape} does not fit layout {self.layout.name}")
            return None

        xs = points[:, 0]
        lay = self.layout

        right_outer = xs[lay.right_eye_outer]
        left_outer = xs[lay.left_eye_outer]
        nose_tip = xs[lay.nose_tip]
        chin = xs[lay.chin]
        mouth_center = (xs[lay.mouth_right] + xs[lay.mouth_left]) / 2.0

        used = [right_outer, left_outer, nose_tip, chin, mouth_center,
                xs[lay.right_eye_inner], xs[lay.left_eye_inner]]
        if not all(math.isfinite(v) for v in used):
            return None

        eye_distance = abs(left_outer - right_outer)
        right_eye_width = abs(xs[lay.right_eye_inner] - right_outer)
        left_eye_width = abs(left_outer - xs[lay.left_eye_inner])

        if min(eye_distance, right_eye_width, left_eye_width) < self.min_eye_distance:
            return None

        face_center_x = (right_outer + left_outer) / 2.0

        nose_offset = (nose_tip - face_center_x) / eye_distance
        mouth_offset = (mouth_center - face_center_x) / eye_distance
        eye_ratio = right_eye_width / left_eye_width
        face_skew = (abs(nose_tip - face_center_x) + abs(chin - face_center_x)) / eye_distance

        return PoseMetrics(
            nose_offset=float(nose_offset),
            mouth_offset=float(mouth_offset),
            eye_ratio=float(eye_ratio),
            face_skew=float(face_skew),
            combined_offset=float((nose_offset + mouth_offset) / 2.0),
        )

    def classify(self, frame: LandmarkFrame) -> Optional[ClassificationResult]:
        """
        Classify the head orientation of a LandmarkFrame.

        Args:
            frame: Landmarks of a single face.

        Returns:
            ClassificationResult, or None when no usable classification
            can be made (degenerate geometry).
        """
        metrics = self.compute_metrics(frame)
        if metrics is None:
            return None

        pose, confidence = self._decide(metrics)
        return ClassificationResult(pose=pose, confidence=_clamp01(confidence), metrics=metrics)

    def _decide(self, m: PoseMetrics) -> Tuple[PoseLabel, float]:
        combined = m.combined_offset
        ratio = m.eye_ratio

        # Strong offset is conclusive on its own
        if abs(combined) > self.strong_threshold:
            return self._side(combined > 0), 0.5 * abs(combined) / self.strong_threshold

        # Extreme eye foreshortening is conclusive on its own
        if ratio > self.eye_ratio_high:
            return self._side(True), 0.5 * ratio / self.eye_ratio_high
        if ratio < self.eye_ratio_low:
            return self._side(False), 0.5 * self.eye_ratio_low / ratio

        # Mild offset needs a second cue pointing the same way
        if abs(combined) > self.mild_threshold:
            toward_image_right = combined > 0
            if toward_image_right:
                ratio_agrees = ratio > self.eye_ratio_mild_high
            else:
                ratio_agrees = ratio < self.eye_ratio_mild_low
            if ratio_agrees or m.face_skew > self.face_skew_threshold:
                return self._side(toward_image_right), 0.5 * abs(combined) / self.mild_threshold

        return PoseLabel.FRONT, 1.0 - abs(combined) / self.mild_threshold

    def _side(self, toward_image_right: bool) -> PoseLabel:
        """Map an image-space direction to the user's side."""
        if toward_image_right == self.mirrored:
            return PoseLabel.RIGHT
        return PoseLabel.LEFT
