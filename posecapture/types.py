"""
Shared data types for the pose capture engine.

Everything that flows between the classifier, the stability tracker, the
capture sequencer and the frame loop is defined here, so the modules can
depend on these types without depending on each other.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np


class PoseLabel(str, Enum):
    """Discrete head orientation emitted by the direction classifier."""

    FRONT = "front"
    RIGHT = "right"
    LEFT = "left"


class CaptureStep(str, Enum):
    """Current state of the capture sequencer."""

    CENTER = "center"
    RIGHT = "right"
    LEFT = "left"
    COMPLETE = "complete"

    @property
    def target_pose(self) -> Optional[PoseLabel]:
        """Pose the user must hold for this step (None once complete)."""
        return _STEP_TARGETS.get(self)


_STEP_TARGETS = {
    CaptureStep.CENTER: PoseLabel.FRONT,
    CaptureStep.RIGHT: PoseLabel.RIGHT,
    CaptureStep.LEFT: PoseLabel.LEFT,
}

# Order in which the sequencer walks through the steps
CAPTURE_ORDER = (CaptureStep.CENTER, CaptureStep.RIGHT, CaptureStep.LEFT, CaptureStep.COMPLETE)


class DetectionCondition(str, Enum):
    """
    Outcome of a single tick, as reported to the status callback.

    NO_FACE, MULTIPLE_FACES and DEGENERATE_GEOMETRY are transient: they reset
    stability but never stop the session. DETECTOR_FAILED is terminal.
    """

    OK = "ok"
    NO_FACE = "no_face"
    MULTIPLE_FACES = "multiple_faces"
    DEGENERATE_GEOMETRY = "degenerate_geometry"
    CAPTURED = "captured"
    CAPTURE_FAILED = "capture_failed"
    DETECTOR_FAILED = "detector_failed"
    COMPLETE = "complete"


@dataclass
class LandmarkFrame:
    """
    Landmarks for one detected face in one video frame.

    Attributes:
        points: Facial landmarks in pixel coordinates, shape (N, 2).
        score: Detection confidence score (0.0 to 1.0).
        bbox: Bounding box (x1, y1, x2, y2) in pixels.
    """

    points: np.ndarray
    score: float = 1.0
    bbox: Tuple[int, int, int, int] = (0, 0, 0, 0)


@dataclass(frozen=True)
class PoseMetrics:
    """Geometric measurements behind a classification, all scale-normalized."""

    nose_offset: float
    mouth_offset: float
    eye_ratio: float
    face_skew: float
    combined_offset: float


@dataclass(frozen=True)
class ClassificationResult:
    """
    Result of classifying one LandmarkFrame.

    Attributes:
        pose: The classified head orientation.
        confidence: How far past the deciding threshold the metric is (0.0 to 1.0).
        metrics: The measurements the decision was based on.
    """

    pose: PoseLabel
    confidence: float
    metrics: PoseMetrics


@dataclass(frozen=True)
class CapturedImage:
    """
    One captured enrollment image.

    Attributes:
        image_data: Encoded image bytes (JPEG with the bundled encoder).
        position: Capture step the image was taken for (center, right or left).
    """

    image_data: bytes
    position: CaptureStep


@dataclass(frozen=True)
class CaptureStatus:
    """
    Progress snapshot handed to the status callback after every tick.

    Attributes:
        step: Sequencer step after the tick.
        pose: Pose classified this tick, or None if no usable face.
        stable_count: Stability count after the tick.
        condition: What happened this tick.
        error: Human-readable error message, if any.
        images_captured: Number of images captured so far (0 to 3).
        instruction: Instruction text for the current step.
        progress: Progress text for the current step.
    """

    step: CaptureStep
    pose: Optional[PoseLabel]
    stable_count: int
    condition: DetectionCondition
    error: Optional[str] = None
    images_captured: int = 0
    instruction: str = ""
    progress: str = ""
