"""
Landmark index layouts for the direction classifier.

The classifier only needs nine facial keypoints. Their indices depend on the
landmark model that produced the points, so each supported model gets a
LandmarkLayout.

"Right" and "left" follow the subject's anatomy, which matches how landmark
models label points: the subject's right eye appears on the image's left.
"""

from dataclasses import dataclass, fields
from typing import Dict


@dataclass(frozen=True)
class LandmarkLayout:
    """Indices of the keypoints used for pose classification."""

    name: str
    num_points: int
    nose_tip: int
    nose_base: int
    right_eye_outer: int
    right_eye_inner: int
    left_eye_inner: int
    left_eye_outer: int
    mouth_right: int
    mouth_left: int
    chin: int

    @property
    def max_index(self) -> int:
        """Highest landmark index this layout reads."""
        return max(
            getattr(self, f.name)
            for f in fields(self)
            if f.name not in ("name", "num_points")
        )


# 68-point iBUG annotation (dlib, face-api.js faceLandmark68Net)
IBUG_68 = LandmarkLayout(
    name="ibug_68",
    num_points=68,
    nose_tip=30,
    nose_base=33,
    right_eye_outer=36,
    right_eye_inner=39,
    left_eye_inner=42,
    left_eye_outer=45,
    mouth_right=48,
    mouth_left=54,
    chin=8,
)

# MediaPipe Face Landmarker (468 mesh points + 10 iris points)
MEDIAPIPE_478 = LandmarkLayout(
    name="mediapipe_478",
    num_points=478,
    nose_tip=1,
    nose_base=2,
    right_eye_outer=33,
    right_eye_inner=133,
    left_eye_inner=362,
    left_eye_outer=263,
    mouth_right=61,
    mouth_left=291,
    chin=152,
)

LAYOUTS: Dict[str, LandmarkLayout] = {
    IBUG_68.name: IBUG_68,
    MEDIAPIPE_478.name: MEDIAPIPE_478,
}


def get_layout(name: str) -> LandmarkLayout:
    """
    Look up a landmark layout by name.

    Raises:
        KeyError: If the layout is unknown.
    """
    if name not in LAYOUTS:
        raise KeyError(
            f"Unknown landmark layout '{name}'. "
            f"Available layouts: {list(LAYOUTS.keys())}"
        )
    return LAYOUTS[name]
