"""
Stability tracking for per-frame pose classifications.

Keeps a bounded window of the most recent poses and reports how many of them
agree with the newest one. A single missing observation (no face, several
faces, unusable geometry) wipes the window.
"""

import logging
from collections import deque
from typing import Any, Deque, Dict, Optional

from posecapture.types import PoseLabel

logger = logging.getLogger(__name__)


class StabilityTracker:
    """
    Reports whether the latest pose has been held consistently.

    The count is taken against the most recently observed pose rather than the
    majority of the window, so stability follows the user's current pose
    instead of stale history.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Args:
            config: Configuration dictionary containing (all optional):
                - window_size: Number of recent poses kept (default 12)
                - threshold: Matching poses needed to be stable (default 9)
        """
        config = config or {}
        self.capacity = config.get("window_size", 12)
        self.threshold = config.get("threshold", 9)

        if self.capacity < 1:
            raise ValueError(f"window_size must be positive, got {self.capacity}")
        if not 1 <= self.threshold <= self.capacity:
            raise ValueError(
                f"threshold must be between 1 and window_size ({self.capacity}), got {self.threshold}"
            )

        self._window: Deque[PoseLabel] = deque(maxlen=self.capacity)
        self._stable_count = 0

    def observe(self, pose: Optional[PoseLabel]) -> int:
        """
        Record one classification.

        Args:
            pose: Classified pose, or None if the frame had no usable face.

        Returns:
            Number of poses in the window equal to `pose` (0 for None).
        """
        if pose is None:
            if self._window:
                logger.debug("Stability window cleared")
            self.reset()
            return 0

        self._window.append(pose)
        self._stable_count = sum(1 for p in self._window if p == pose)
        return self._stable_count

    def reset(self) -> None:
        """Clear the window."""
        self._window.clear()
        self._stable_count = 0

    @property
    def stable_count(self) -> int:
        return self._stable_count

    @property
    def is_stable(self) -> bool:
        return self._stable_count >= self.threshold

    @property
    def latest(self) -> Optional[PoseLabel]:
        """Most recently observed pose, or None if the window is empty."""
        return self._window[-1] if self._window else None

    def __len__(self) -> int:
        return len(self._window)
