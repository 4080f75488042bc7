"""
Capture session state.

CaptureSession bundles every piece of state that survives between ticks of
the frame loop: the sequencer, the stability window, the cooldown timestamp
and the detection re-entrancy flag. The frame loop receives a session instead
of holding loose counters, so each part can be tested on its own.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from posecapture.cooldown import CooldownGate
from posecapture.sequencer import CaptureSequencer, CompletionCallback
from posecapture.stability import StabilityTracker
from posecapture.types import CapturedImage, DetectionCondition


@dataclass
class CaptureSession:
    """
    Mutable state of one enrollment flow.

    Attributes:
        sequencer: Current step and captured images.
        stability: Window of recent poses.
        cooldown: Time of the last successful capture.
        detection_in_flight: True while a detector call is pending.
        last_condition: Outcome of the most recent completed detection.
    """

    sequencer: CaptureSequencer = field(default_factory=CaptureSequencer)
    stability: StabilityTracker = field(default_factory=StabilityTracker)
    cooldown: CooldownGate = field(default_factory=CooldownGate)
    detection_in_flight: bool = False
    last_condition: Optional[DetectionCondition] = None

    @classmethod
    def from_config(
        cls,
        stability_config: Optional[Dict[str, Any]] = None,
        capture_config: Optional[Dict[str, Any]] = None,
        on_complete: Optional[CompletionCallback] = None,
    ) -> "CaptureSession":
        """Build a fresh session from the `stability` and `capture` config sections."""
        return cls(
            sequencer=CaptureSequencer(on_complete=on_complete),
            stability=StabilityTracker(stability_config),
            cooldown=CooldownGate(capture_config),
        )

    @property
    def is_complete(self) -> bool:
        return self.sequencer.is_complete

    def record_capture(self, image_data: bytes, now: float) -> CapturedImage:
        """
        Commit a successful capture.

        Advances the sequencer, then clears the stability window and restarts
        the cooldown, so the next pose has to become stable on its own.
        """
        image = self.sequencer.record_capture(image_data)
        self.stability.reset()
        self.cooldown.mark(now)
        return image
