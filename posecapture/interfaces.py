"""
Collaborator Interfaces Module

This module defines the abstract interfaces the frame loop depends on. The
engine never talks to a camera, a landmark model or an image codec directly;
it goes through these three contracts:

1. FrameSource - Hands out the current video frame (an opaque handle)
2. LandmarkDetector - Finds faces and their landmarks in a frame
3. ImageEncoder - Turns the frame at capture time into image bytes

Stub implementations are provided for tests and for driving the engine from
pre-recorded landmark streams.

Usage:
    from posecapture.interfaces import StubLandmarkDetector, StubFrameSource, StubImageEncoder

    detector = StubLandmarkDetector([[front_face]] * 12)
    loop = FrameLoop(detector, StubFrameSource(), StubImageEncoder())
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Iterable, List, Optional, Sequence

from posecapture.types import LandmarkFrame


class FrameSource(ABC):
    """Provides the most recent video frame."""

    @abstractmethod
    def read(self) -> Optional[Any]:
        """
        Get the current frame.

        Returns:
            An opaque frame handle (a BGR numpy array for the bundled
            adapters), or None if no frame is available yet.
        """
        pass


class LandmarkDetector(ABC):
    """
    Detects faces and their landmarks.

    The concrete implementation is MediaPipeLandmarkDetector in
    posecapture/mediapipe_detector.py.
    """

    @abstractmethod
    async def detect(self, frame: Any) -> Sequence[LandmarkFrame]:
        """
        Detect all faces in a frame.

        Args:
            frame: Frame handle from a FrameSource.

        Returns:
            One LandmarkFrame per detected face. An empty sequence means no
            face; more than one element means multiple faces.

        Raises:
            Exception: Any exception is treated as a detector failure and
                       ends the capture session.
        """
        pass


class ImageEncoder(ABC):
    """
    Encodes the frame grabbed at capture time.

    The concrete implementation is JpegEncoder in posecapture/encoder.py.
    Implementations are responsible for orientation correction (frames reach
    the engine in mirrored display orientation).
    """

    @abstractmethod
    def encode(self, frame: Any) -> bytes:
        """
        Encode a frame into image bytes.

        Raises:
            Exception: Any exception is treated as a capture failure; the
                       step is retried on a later tick.
        """
        pass


# ============================================================
# Stub implementations
# ============================================================


class StubFrameSource(FrameSource):
    """Always returns the same frame handle."""

    def __init__(self, frame: Any = "frame"):
        self.frame = frame

    def read(self) -> Optional[Any]:
        return self.frame


class StubLandmarkDetector(LandmarkDetector):
    """
    Replays a scripted sequence of detections.

    Each script entry is the list of faces for one call. Once the script runs
    out, every further call returns no faces.
    """

    def __init__(self, script: Iterable[Sequence[LandmarkFrame]] = ()):
        self._script = deque(list(faces) for faces in script)
        self.calls = 0

    def extend(self, script: Iterable[Sequence[LandmarkFrame]]) -> None:
        self._script.extend(list(faces) for faces in script)

    async def detect(self, frame: Any) -> Sequence[LandmarkFrame]:
        self.calls += 1
        if not self._script:
            return []
        return self._script.popleft()


class StubImageEncoder(ImageEncoder):
    """Encodes every frame as a short byte string and records what it saw."""

    def __init__(self):
        self.frames: List[Any] = []

    def encode(self, frame: Any) -> bytes:
        self.frames.append(frame)
        return f"image-{len(self.frames)}".encode()
