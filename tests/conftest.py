"""
Shared pytest fixtures: synthetic landmark faces and a controllable clock.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from posecapture.landmarks import MEDIAPIPE_478, LandmarkLayout
from posecapture.types import LandmarkFrame


def build_face(
    nose_offset: float = 0.0,
    mouth_offset=None,
    eye_ratio: float = 1.0,
    chin_offset: float = 0.0,
    eye_distance: float = 100.0,
    center=(320.0, 240.0),
    layout: LandmarkLayout = MEDIAPIPE_478,
) -> LandmarkFrame:
    """
    Build a LandmarkFrame whose pose metrics are known in advance.

    Offsets are fractions of the outer eye distance, measured from the
    midpoint of the outer eye corners. `eye_ratio` is the width of the
    subject's right eye divided by the width of the left eye.
    """
    if mouth_offset is None:
        mouth_offset = nose_offset

    cx, cy = center
    d = eye_distance
    eye_width = 0.2 * d

    points = np.tile(np.array([cx, cy], dtype=np.float64), (layout.num_points, 1))

    right_outer = cx - d / 2
    left_outer = cx + d / 2
    points[layout.right_eye_outer] = [right_outer, cy - 0.3 * d]
    points[layout.right_eye_inner] = [right_outer + eye_width * eye_ratio, cy - 0.3 * d]
    points[layout.left_eye_outer] = [left_outer, cy - 0.3 * d]
    points[layout.left_eye_inner] = [left_outer - eye_width, cy - 0.3 * d]

    points[layout.nose_tip] = [cx + nose_offset * d, cy]
    points[layout.nose_base] = [cx + nose_offset * d, cy + 0.1 * d]

    mouth_x = cx + mouth_offset * d
    points[layout.mouth_right] = [mouth_x - 0.3 * d, cy + 0.4 * d]
    points[layout.mouth_left] = [mouth_x + 0.3 * d, cy + 0.4 * d]

    points[layout.chin] = [cx + chin_offset * d, cy + 0.8 * d]

    return LandmarkFrame(points=points, score=0.95, bbox=(int(cx - d), int(cy - d), int(cx + d), int(cy + d)))


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_face():
    """Factory for synthetic faces with known pose metrics."""
    return build_face


@pytest.fixture
def front_face():
    return build_face()


@pytest.fixture
def right_face():
    return build_face(nose_offset=0.25)


@pytest.fixture
def left_face():
    return build_face(nose_offset=-0.25)


@pytest.fixture
def clock():
    return FakeClock()
