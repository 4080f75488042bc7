"""
Core Module for the Guided Face Capture Engine

This package walks a user through a three-pose face capture (front, right,
left), classifying head direction from facial landmarks and capturing an
image automatically once the requested pose has been held steadily.

Main components:
    - config: Configuration loading and management
    - direction_classifier: Head direction from 2D landmarks
    - stability: Window of recent classifications
    - cooldown: Minimum gap between captures
    - sequencer: center -> right -> left -> complete state machine
    - frame_loop: asyncio loop tying it all together
    - mediapipe_detector: MediaPipe landmark detector (import it directly,
      it pulls in MediaPipe)

Usage:
    from posecapture import FrameLoop, DirectionClassifier, get_capture_config
    from posecapture.mediapipe_detector import MediaPipeLandmarkDetector
"""

from posecapture.config import (
    get_config,
    get_section,
    get_classifier_config,
    get_stability_config,
    get_capture_config,
    get_detection_config,
)

from posecapture.types import (
    PoseLabel,
    CaptureStep,
    DetectionCondition,
    LandmarkFrame,
    PoseMetrics,
    ClassificationResult,
    CapturedImage,
    CaptureStatus,
)

from posecapture.landmarks import LandmarkLayout, IBUG_68, MEDIAPIPE_478, get_layout
from posecapture.direction_classifier import DirectionClassifier
from posecapture.stability import StabilityTracker
from posecapture.cooldown import CooldownGate
from posecapture.sequencer import CaptureSequencer
from posecapture.session import CaptureSession
from posecapture.frame_loop import FrameLoop
from posecapture.errors import PoseCaptureError, DetectorFailure, CaptureFailure
from posecapture.encoder import JpegEncoder

__all__ = [
    # Configuration
    "get_config",
    "get_section",
    "get_classifier_config",
    "get_stability_config",
    "get_capture_config",
    "get_detection_config",
    # Types
    "PoseLabel",
    "CaptureStep",
    "DetectionCondition",
    "LandmarkFrame",
    "PoseMetrics",
    "ClassificationResult",
    "CapturedImage",
    "CaptureStatus",
    # Landmark layouts
    "LandmarkLayout",
    "IBUG_68",
    "MEDIAPIPE_478",
    "get_layout",
    # Engine
    "DirectionClassifier",
    "StabilityTracker",
    "CooldownGate",
    "CaptureSequencer",
    "CaptureSession",
    "FrameLoop",
    "JpegEncoder",
    # Errors
    "PoseCaptureError",
    "DetectorFailure",
    "CaptureFailure",
]
