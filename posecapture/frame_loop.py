"""
Frame Loop Module

This module drives the capture flow. Every tick it:

1. Reads the current frame and asks the landmark detector for faces
2. Classifies the head direction of a single face
3. Feeds the pose into the stability window
4. Captures an image when the pose matches the current step's target, the
   pose is stable and the cooldown has elapsed

The loop runs on asyncio. run() starts one tick task per interval; a tick that
finds a detection or capture still pending returns immediately, so a slow
detector delays the flow instead of queueing work.

Usage:
    from posecapture.frame_loop import FrameLoop

    loop = FrameLoop(detector, frame_source, encoder,
                     config=capture_config, on_complete=handle_images)
    images = await loop.run()
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from posecapture.direction_classifier import DirectionClassifier
from posecapture.errors import CaptureFailure, DetectorFailure
from posecapture.interfaces import FrameSource, ImageEncoder, LandmarkDetector
from posecapture.sequencer import CompletionCallback
from posecapture.session import CaptureSession
from posecapture.status import build_status
from posecapture.types import (
    CapturedImage,
    CaptureStatus,
    ClassificationResult,
    DetectionCondition,
    LandmarkFrame,
    PoseLabel,
)

logger = logging.getLogger(__name__)

StatusCallback = Callable[[CaptureStatus], None]


class FrameLoop:
    """
    Cooperative, cancelable detection loop for one capture session.

    Attributes:
        session: All cross-tick state (step, images, stability, cooldown).
        classifier: Direction classifier applied to each detected face.
        error: The exception that ended the session, if detection failed.
        completion_error: What the on_complete callback raised, if anything.
        last_status: Most recent status reported.
    """

    def __init__(
        self,
        detector: LandmarkDetector,
        frame_source: FrameSource,
        encoder: ImageEncoder,
        session: Optional[CaptureSession] = None,
        classifier: Optional[DirectionClassifier] = None,
        config: Optional[Dict[str, Any]] = None,
        on_complete: Optional[CompletionCallback] = None,
        on_status: Optional[StatusCallback] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the FrameLoop.

        Args:
            detector: Landmark detector collaborator.
            frame_source: Supplies the current frame.
            encoder: Encodes the frame grabbed at capture time.
            session: Session state. A fresh one is built from `config` if omitted.
            classifier: Direction classifier. Defaults to DirectionClassifier().
            config: `capture` configuration section containing (all optional):
                - tick_interval: Seconds between ticks (default 0.1)
                - settle_delay: Seconds between the capture decision and
                                the frame grab (default 0.1)
                - cooldown_seconds: Minimum gap between captures (default 1.5)
            on_complete: Called once with the three images. Ignored if
                         `session` is given (set it on the session instead).
            on_status: Called with a CaptureStatus after every tick.
            clock: Monotonic time source in seconds.
        """
        config = config or {}

        self.detector = detector
        self.frame_source = frame_source
        self.encoder = encoder
        self.session = session or CaptureSession.from_config(
            capture_config=config, on_complete=on_complete
        )
        self.classifier = classifier or DirectionClassifier()
        self.on_status = on_status
        self.clock = clock

        self.tick_interval = config.get("tick_interval", 0.1)
        self.settle_delay = config.get("settle_delay", 0.1)

        self.error: Optional[BaseException] = None
        self.completion_error: Optional[Exception] = None
        self.last_status: Optional[CaptureStatus] = None
        self.last_result: Optional[ClassificationResult] = None

        self._stopped = False
        self._stop_event: Optional[asyncio.Event] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._stop_event is not None and not self._stopped

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def run(self) -> List[CapturedImage]:
        """
        Tick at a fixed interval until the session completes or stop() is called.

        Returns:
            The captured images (all three if the session completed).

        Raises:
            DetectorFailure: If the landmark detector failed, or a tick
                             raised an unexpected error.
            Exception: Whatever the on_complete callback raised. The three
                       images are still recorded in the session.
        """
        self._stop_event = asyncio.Event()
        if self._stopped or self.session.is_complete:
            self._stop_event.set()

        logger.info(f"Frame loop started (tick interval {self.tick_interval:.3f}s)")
        try:
            while not self._stop_event.is_set():
                self._spawn_tick()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.tick_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._stopped = True
            await self._cancel_pending()
            logger.info("Frame loop stopped")

        if self.error is not None:
            raise DetectorFailure(f"Landmark detector failed: {self.error}") from self.error
        if self.completion_error is not None:
            raise self.completion_error

        return list(self.session.sequencer.images)

    def stop(self) -> None:
        """Stop the loop. Pending ticks are cancelled when run() unwinds."""
        self._stopped = True
        if self._stop_event is not None:
            self._stop_event.set()

    def _spawn_tick(self) -> None:
        task = asyncio.create_task(self.tick())
        self._pending.add(task)
        task.add_done_callback(self._on_tick_done)

    def _on_tick_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        # Anything escaping tick() ends the session
        exc = task.exception()
        if exc is not None and self.error is None:
            self._fail(exc)

    async def _cancel_pending(self) -> None:
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def tick(self) -> Optional[CapturedImage]:
        """
        Run one detection/gating step.

        Returns:
            The CapturedImage if this tick triggered a successful capture,
            otherwise None (including skipped ticks).
        """
        session = self.session
        if (
            self._stopped
            or session.is_complete
            or session.sequencer.is_capturing
            or session.detection_in_flight
        ):
            return None

        faces: List[LandmarkFrame] = []
        frame = self.frame_source.read()
        if frame is not None:
            session.detection_in_flight = True
            try:
                faces = list(await self.detector.detect(frame))
            except Exception as e:
                self._fail(e)
                return None
            finally:
                session.detection_in_flight = False

        if self._stopped or session.is_complete:
            return None

        condition, result = self._evaluate(faces)
        pose = result.pose if result is not None else None
        stable_count = session.stability.observe(pose)
        session.last_condition = condition
        self.last_result = result

        self._report(pose, stable_count, condition)

        if self._should_capture(pose):
            logger.debug(f"Auto-capture triggered for {session.sequencer.step.value} ({stable_count} stable)")
            return await self.capture()
        return None

    def _evaluate(
        self, faces: List[LandmarkFrame]
    ) -> Tuple[DetectionCondition, Optional[ClassificationResult]]:
        """Turn the detector output into a condition and an optional classification."""
        if not faces:
            return DetectionCondition.NO_FACE, None
        if len(faces) > 1:
            return DetectionCondition.MULTIPLE_FACES, None

        result = self.classifier.classify(faces[0])
        if result is None:
            return DetectionCondition.DEGENERATE_GEOMETRY, None
        return DetectionCondition.OK, result

    def _should_capture(self, pose: Optional[PoseLabel]) -> bool:
        session = self.session
        return (
            pose is not None
            and not session.is_complete
            and pose == session.sequencer.target_pose
            and session.stability.is_stable
            and session.cooldown.permits(self.clock())
        )

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    async def capture(self) -> Optional[CapturedImage]:
        """
        Capture an image for the current step.

        Waits the settle delay, grabs a fresh frame and encodes it. At most one
        capture runs at a time; a call made while another is in flight returns
        None without doing anything.

        Returns:
            The CapturedImage, or None if the capture was rejected or failed.
        """
        session = self.session
        if not session.sequencer.try_begin_capture():
            return None

        step = session.sequencer.step
        try:
            if self.settle_delay > 0:
                await asyncio.sleep(self.settle_delay)
            frame = self.frame_source.read()
            if frame is None:
                raise CaptureFailure("No frame available at capture time")
            image_data = await asyncio.to_thread(self.encoder.encode, frame)
        except asyncio.CancelledError:
            session.sequencer.abort_capture()
            raise
        except Exception as e:
            session.sequencer.abort_capture()
            logger.warning(f"Capture for {step.value} failed: {e}")
            self._report(None, session.stability.stable_count, DetectionCondition.CAPTURE_FAILED,
                         error=f"Failed to capture image: {e}")
            return None

        try:
            image = session.record_capture(image_data, self.clock())
        except Exception as e:
            if not session.is_complete:
                raise
            # The image is recorded; only the completion callback failed
            logger.error(f"Completion callback raised: {e}")
            self.completion_error = e
            image = session.sequencer.images[-1]

        if session.is_complete:
            self.stop()
            error = None
            if self.completion_error is not None:
                error = f"Completion handler failed: {self.completion_error}"
            self._report(None, 0, DetectionCondition.COMPLETE, error=error)
        else:
            self._report(None, 0, DetectionCondition.CAPTURED)
        return image

    async def manual_capture(self) -> Optional[CapturedImage]:
        """
        Capture the current step on request, skipping the pose, stability and
        cooldown gates.

        Only allowed when the latest tick saw exactly one usable face.
        """
        session = self.session
        if session.is_complete:
            return None

        condition = session.last_condition or DetectionCondition.NO_FACE
        if condition is not DetectionCondition.OK:
            self._report(None, session.stability.stable_count, condition)
            return None

        return await self.capture()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _fail(self, exc: BaseException) -> None:
        logger.error(f"Landmark detection failed, stopping capture session: {exc!r}")
        self.error = exc
        self.stop()
        self._report(None, 0, DetectionCondition.DETECTOR_FAILED, error=f"Face detection is unavailable: {exc}")

    def _report(
        self,
        pose: Optional[PoseLabel],
        stable_count: int,
        condition: DetectionCondition,
        error: Optional[str] = None,
    ) -> None:
        session = self.session
        status = build_status(
            step=session.sequencer.step,
            pose=pose,
            stable_count=stable_count,
            condition=condition,
            images_captured=len(session.sequencer.images),
            error=error,
        )
        self.last_status = status

        if self.on_status is not None:
            try:
                self.on_status(status)
            except Exception as e:
                logger.exception(f"Status callback raised: {e}")
