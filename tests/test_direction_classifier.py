"""
Unit Tests for Direction Classifier Module

This module tests the DirectionClassifier class:
- Metric computation from landmarks
- Strong, eye-ratio and mild (corroborated) decisions
- Confidence values
- Invariance to uniform scaling
- Degenerate geometry handling
- Landmark layouts and mirroring

Usage:
    pytest tests/test_direction_classifier.py -v
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from posecapture.direction_classifier import DirectionClassifier
from posecapture.landmarks import IBUG_68
from posecapture.types import LandmarkFrame, PoseLabel


@pytest.fixture
def classifier():
    return DirectionClassifier()


def scaled(frame: LandmarkFrame, factor: float) -> LandmarkFrame:
    return LandmarkFrame(points=frame.points * factor, score=frame.score, bbox=frame.bbox)


# ============================================================
# Test Metric Computation
# ============================================================

class TestComputeMetrics:
    """Tests for compute_metrics."""

    def test_centered_face_metrics(self, classifier, make_face):
        """A perfectly centered face has zero offsets and an eye ratio of 1."""
        metrics = classifier.compute_metrics(make_face())
        assert metrics.nose_offset == pytest.approx(0.0)
        assert metrics.mouth_offset == pytest.approx(0.0)
        assert metrics.combined_offset == pytest.approx(0.0)
        assert metrics.eye_ratio == pytest.approx(1.0)
        assert metrics.face_skew == pytest.approx(0.0)

    def test_offsets_are_normalized_by_eye_distance(self, classifier, make_face):
        """Offsets are fractions of the outer eye distance."""
        metrics = classifier.compute_metrics(
            make_face(nose_offset=0.1, mouth_offset=0.05, eye_distance=250.0)
        )
        assert metrics.nose_offset == pytest.approx(0.1)
        assert metrics.mouth_offset == pytest.approx(0.05)
        assert metrics.combined_offset == pytest.approx(0.075)

    def test_face_skew_uses_nose_and_chin(self, classifier, make_face):
        """Face skew adds the absolute nose and chin offsets."""
        metrics = classifier.compute_metrics(make_face(nose_offset=-0.1, chin_offset=0.2))
        assert metrics.face_skew == pytest.approx(0.3)

    def test_eye_ratio(self, classifier, make_face):
        """Eye ratio is right eye width over left eye width."""
        metrics = classifier.compute_metrics(make_face(eye_ratio=1.25))
        assert metrics.eye_ratio == pytest.approx(1.25)


# ============================================================
# Test Classification
# ============================================================

class TestClassify:
    """Tests for classify decisions and confidence."""

    def test_perfect_front(self, classifier, make_face):
        """Zero offsets and equal eyes give front with full confidence."""
        result = classifier.classify(make_face())
        assert result.pose is PoseLabel.FRONT
        assert result.confidence == 1.0

    @pytest.mark.parametrize("offset", [0.16, 0.2, 0.3, 0.6])
    def test_strong_positive_offset_is_right(self, classifier, make_face, offset):
        """Offsets beyond the strong threshold decide right on their own."""
        result = classifier.classify(make_face(nose_offset=offset))
        assert result.pose is PoseLabel.RIGHT

    @pytest.mark.parametrize("offset", [-0.16, -0.2, -0.3, -0.6])
    def test_strong_negative_offset_is_left(self, classifier, make_face, offset):
        """Negative offsets beyond the strong threshold decide left."""
        result = classifier.classify(make_face(nose_offset=offset))
        assert result.pose is PoseLabel.LEFT

    def test_strong_offset_beats_eye_ratio(self, classifier, make_face):
        """Strong offset has precedence over an eye ratio pointing the other way."""
        result = classifier.classify(make_face(nose_offset=0.2, eye_ratio=0.5))
        assert result.pose is PoseLabel.RIGHT

    def test_extreme_eye_ratio_high(self, classifier, make_face):
        """An eye ratio above the high bound gives right without any offset."""
        result = classifier.classify(make_face(eye_ratio=1.5))
        assert result.pose is PoseLabel.RIGHT

    def test_extreme_eye_ratio_low(self, classifier, make_face):
        """An eye ratio below the low bound gives left without any offset."""
        result = classifier.classify(make_face(eye_ratio=0.6))
        assert result.pose is PoseLabel.LEFT

    def test_mild_offset_with_eye_ratio(self, classifier, make_face):
        """A mild offset corroborated by a skewed eye ratio is a profile."""
        result = classifier.classify(make_face(nose_offset=0.1, eye_ratio=1.2))
        assert result.pose is PoseLabel.RIGHT

        result = classifier.classify(make_face(nose_offset=-0.1, eye_ratio=0.8))
        assert result.pose is PoseLabel.LEFT

    def test_mild_offset_with_face_skew(self, classifier, make_face):
        """A mild offset corroborated by face skew is a profile."""
        result = classifier.classify(make_face(nose_offset=-0.1, chin_offset=-0.2))
        assert result.pose is PoseLabel.LEFT

    def test_mild_offset_alone_is_front(self, classifier, make_face):
        """A mild offset without a second cue stays front."""
        result = classifier.classify(make_face(nose_offset=0.1))
        assert result.pose is PoseLabel.FRONT
        assert result.confidence == 0.0

    def test_mild_offset_with_opposing_ratio_is_front(self, classifier, make_face):
        """The eye ratio must point the same way as the offset."""
        result = classifier.classify(make_face(nose_offset=0.1, eye_ratio=0.8))
        assert result.pose is PoseLabel.FRONT

    def test_small_offset_is_front(self, classifier, make_face):
        """Offsets below the mild threshold are front with partial confidence."""
        result = classifier.classify(make_face(nose_offset=0.04))
        assert result.pose is PoseLabel.FRONT
        assert result.confidence == pytest.approx(0.5)

    def test_confidence_is_bounded(self, classifier, make_face):
        """Confidence never leaves [0, 1]."""
        for offset in [-1.0, -0.3, -0.1, 0.0, 0.05, 0.1, 0.3, 1.0]:
            for ratio in [0.5, 0.9, 1.0, 1.1, 2.0]:
                result = classifier.classify(make_face(nose_offset=offset, eye_ratio=ratio))
                assert 0.0 <= result.confidence <= 1.0

    def test_confidence_grows_past_threshold(self, classifier, make_face):
        """Confidence increases the further the offset is past the threshold."""
        low = classifier.classify(make_face(nose_offset=0.16)).confidence
        high = classifier.classify(make_face(nose_offset=0.25)).confidence
        assert low < high
        assert classifier.classify(make_face(nose_offset=0.3)).confidence == pytest.approx(1.0)

    def test_deterministic(self, classifier, make_face):
        """Identical input gives identical output."""
        face = make_face(nose_offset=0.12, eye_ratio=1.2)
        assert classifier.classify(face) == classifier.classify(face)


# ============================================================
# Test Scale Invariance
# ============================================================

class TestScaleInvariance:
    """The classifier output must not depend on face size or distance."""

    @pytest.mark.parametrize("factor", [0.25, 0.5, 2.0, 7.5, 40.0])
    def test_uniform_scaling(self, classifier, make_face, factor):
        for offset in [-0.3, -0.2, 0.0, 0.2, 0.3]:
            face = make_face(nose_offset=offset, eye_ratio=1.1)
            original = classifier.classify(face)
            rescaled = classifier.classify(scaled(face, factor))
            assert rescaled.pose is original.pose
            assert rescaled.confidence == pytest.approx(original.confidence)

    def test_eye_distance_does_not_matter(self, classifier, make_face):
        """Close and far faces with the same geometry classify the same."""
        near = classifier.classify(make_face(nose_offset=0.2, eye_distance=300.0))
        far = classifier.classify(make_face(nose_offset=0.2, eye_distance=30.0))
        assert near.pose is far.pose is PoseLabel.RIGHT


# ============================================================
# Test Degenerate Geometry
# ============================================================

class TestDegenerateGeometry:
    """Frames that cannot be classified must return None, never NaN."""

    def test_zero_eye_distance(self, classifier, make_face):
        face = make_face()
        face.points[:] = [320.0, 240.0]
        assert classifier.classify(face) is None

    def test_zero_eye_width(self, classifier, make_face):
        face = make_face(eye_ratio=0.0)
        assert classifier.classify(face) is None

    def test_nan_coordinates(self, classifier, make_face):
        face = make_face()
        face.points[classifier.layout.nose_tip] = [np.nan, np.nan]
        assert classifier.classify(face) is None

    def test_too_few_landmarks(self, classifier):
        face = LandmarkFrame(points=np.zeros((68, 2)))
        assert classifier.classify(face) is None

    def test_wrong_shape(self, classifier):
        face = LandmarkFrame(points=np.zeros(10))
        assert classifier.classify(face) is None


# ============================================================
# Test Configuration
# ============================================================

class TestClassifierConfig:
    """Tests for layouts, mirroring and thresholds."""

    def test_default_config(self, classifier):
        assert classifier.strong_threshold == 0.15
        assert classifier.mild_threshold == 0.08
        assert classifier.eye_ratio_low == 0.7
        assert classifier.eye_ratio_high == 1.4
        assert classifier.mirrored is True
        assert classifier.layout.name == "mediapipe_478"

    def test_ibug_layout(self, make_face):
        classifier = DirectionClassifier({"layout": "ibug_68"})
        assert classifier.classify(make_face(layout=IBUG_68)).pose is PoseLabel.FRONT
        assert classifier.classify(make_face(nose_offset=0.2, layout=IBUG_68)).pose is PoseLabel.RIGHT

    def test_layout_object(self, make_face):
        classifier = DirectionClassifier({"layout": IBUG_68})
        assert classifier.layout is IBUG_68

    def test_unmirrored_input_flips_sides(self, make_face):
        classifier = DirectionClassifier({"mirrored": False})
        assert classifier.classify(make_face(nose_offset=0.2)).pose is PoseLabel.LEFT
        assert classifier.classify(make_face(eye_ratio=0.6)).pose is PoseLabel.RIGHT

    def test_custom_thresholds(self, make_face):
        classifier = DirectionClassifier({"strong_threshold": 0.3, "mild_threshold": 0.2})
        assert classifier.classify(make_face(nose_offset=0.2)).pose is PoseLabel.FRONT

    def test_invalid_offset_thresholds(self):
        with pytest.raises(ValueError):
            DirectionClassifier({"strong_threshold": 0.05, "mild_threshold": 0.08})

    def test_invalid_eye_ratio_bounds(self):
        with pytest.raises(ValueError):
            DirectionClassifier({"eye_ratio_low": 1.2})

    def test_unknown_layout(self):
        with pytest.raises(KeyError):
            DirectionClassifier({"layout": "dlib_5"})
