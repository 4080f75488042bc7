"""
User-facing status text for the capture flow.

Presentation layers render CaptureStatus however they like; this module only
supplies the wording for each step and condition.
"""

from typing import Optional

from posecapture.types import CaptureStatus, CaptureStep, DetectionCondition, PoseLabel

INSTRUCTIONS = {
    CaptureStep.CENTER: "Look straight at the camera",
    CaptureStep.RIGHT: "Turn your head slightly to the right",
    CaptureStep.LEFT: "Turn your head slightly to the left",
    CaptureStep.COMPLETE: "Capture complete!",
}

PROGRESS = {
    CaptureStep.CENTER: "Step 1 of 3: Center Position",
    CaptureStep.RIGHT: "Step 2 of 3: Right Position",
    CaptureStep.LEFT: "Step 3 of 3: Left Position",
    CaptureStep.COMPLETE: "Complete!",
}

CONDITION_MESSAGES = {
    DetectionCondition.NO_FACE: "No face detected. Please position your face clearly in front of the camera.",
    DetectionCondition.MULTIPLE_FACES: "Multiple faces detected. Please ensure only one face is visible.",
    DetectionCondition.DEGENERATE_GEOMETRY: "Face not clearly visible. Please face the camera.",
    DetectionCondition.CAPTURE_FAILED: "Failed to capture image. Please try again.",
    DetectionCondition.DETECTOR_FAILED: "Face detection is unavailable.",
}


def instruction_for(step: CaptureStep) -> str:
    """Instruction shown while the sequencer is at `step`."""
    return INSTRUCTIONS[step]


def progress_for(step: CaptureStep) -> str:
    """Progress label for `step`, e.g. 'Step 2 of 3: Right Position'."""
    return PROGRESS[step]


def build_status(
    step: CaptureStep,
    pose: Optional[PoseLabel],
    stable_count: int,
    condition: DetectionCondition,
    images_captured: int,
    error: Optional[str] = None,
) -> CaptureStatus:
    """
    Assemble a CaptureStatus, filling in the text fields.

    If `error` is not given, the default message for `condition` is used
    (conditions without a message get no error).
    """
    if error is None:
        error = CONDITION_MESSAGES.get(condition)

    return CaptureStatus(
        step=step,
        pose=pose,
        stable_count=stable_count,
        condition=condition,
        error=error,
        images_captured=images_captured,
        instruction=instruction_for(step),
        progress=progress_for(step),
    )
