"""
Capture Sequencer

A strictly linear state machine over the enrollment steps:

    center -> right -> left -> complete

Each successful capture appends exactly one CapturedImage for the current step
and advances to the next one. There are no back transitions and no skipped
steps. Entering `complete` hands the three images to the completion callback
exactly once.

Captures are two-phase so the frame loop can await slow encoding in between:

    if sequencer.try_begin_capture():
        try:
            data = encode(frame)
        except Exception:
            sequencer.abort_capture()
        else:
            sequencer.record_capture(data)
"""

import logging
from typing import Callable, List, Optional, Tuple

from posecapture.types import CAPTURE_ORDER, CapturedImage, CaptureStep, PoseLabel

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[List[CapturedImage]], None]


class CaptureSequencer:
    """Owns the current step and the ordered list of captured images."""

    def __init__(self, on_complete: Optional[CompletionCallback] = None):
        self.on_complete = on_complete
        self._step = CaptureStep.CENTER
        self._images: List[CapturedImage] = []
        self._capturing = False
        self._completion_sent = False

    @property
    def step(self) -> CaptureStep:
        return self._step

    @property
    def target_pose(self) -> Optional[PoseLabel]:
        return self._step.target_pose

    @property
    def images(self) -> Tuple[CapturedImage, ...]:
        """Captured images so far, in capture order."""
        return tuple(self._images)

    @property
    def is_capturing(self) -> bool:
        return self._capturing

    @property
    def is_complete(self) -> bool:
        return self._step is CaptureStep.COMPLETE

    def try_begin_capture(self) -> bool:
        """
        Claim the capture slot for the current step.

        Returns:
            False if a capture is already in flight or the sequence is
            complete, True otherwise (the caller must then call either
            record_capture() or abort_capture()).
        """
        if self._capturing or self.is_complete:
            return False
        self._capturing = True
        return True

    def abort_capture(self) -> None:
        """Release the capture slot without advancing."""
        self._capturing = False

    def record_capture(self, image_data: bytes) -> CapturedImage:
        """
        Store the image for the current step and advance.

        Raises:
            RuntimeError: If no capture was begun.
        """
        if not self._capturing:
            raise RuntimeError("record_capture() called without try_begin_capture()")

        image = CapturedImage(image_data=image_data, position=self._step)
        self._images.append(image)

        self._step = CAPTURE_ORDER[CAPTURE_ORDER.index(self._step) + 1]
        self._capturing = False
        logger.info(f"Captured {image.position.value} image ({len(self._images)}/3), next step: {self._step.value}")

        if self.is_complete:
            self._notify_complete()

        return image

    def _notify_complete(self) -> None:
        if self._completion_sent:
            return
        self._completion_sent = True
        if self.on_complete is not None:
            self.on_complete(list(self._images))
