"""
Exceptions raised by the pose capture engine.

Transient conditions (no face, several faces, unusable geometry) are not
exceptions; they are reported as a DetectionCondition on the status callback.
"""


class PoseCaptureError(Exception):
    """Base class for pose capture errors."""


class DetectorFailure(PoseCaptureError):
    """The landmark detector is unavailable. Ends the capture session."""


class CaptureFailure(PoseCaptureError):
    """A single image capture failed. The step is retried on later ticks."""
