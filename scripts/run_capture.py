"""
Guided Face Capture Demo

This script runs the three-pose capture flow against a webcam:
1. Look straight at the camera
2. Turn your head to the right
3. Turn your head to the left

Each image is captured automatically once the pose has been held steadily.
When all three are captured they are shown side by side.

Usage:
    python scripts/run_capture.py
    python scripts/run_capture.py --camera 1 --cooldown 2.0

Controls (during capture):
    - Press 'q' to quit
    - Press SPACE to capture the current step manually
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from posecapture.config import (
    get_capture_config,
    get_classifier_config,
    get_detection_config,
    get_stability_config,
)
from posecapture.direction_classifier import DirectionClassifier
from posecapture.encoder import JpegEncoder, decode_image
from posecapture.errors import DetectorFailure
from posecapture.frame_loop import FrameLoop
from posecapture.interfaces import FrameSource
from posecapture.mediapipe_detector import MediaPipeLandmarkDetector
from posecapture.session import CaptureSession
from posecapture.types import CapturedImage, CaptureStatus, DetectionCondition

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

WINDOW_NAME = "Guided Face Capture"


class WebcamFrameSource(FrameSource):
    """Holds the latest mirrored webcam frame read by the display loop."""

    def __init__(self, camera_index: int = 0):
        self.cap = cv2.VideoCapture(camera_index)
        if not self.cap.isOpened():
            raise RuntimeError(f"Could not open webcam {camera_index}")
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, 640)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, 480)
        self.latest: Optional[np.ndarray] = None

    def grab(self) -> Optional[np.ndarray]:
        ret, frame = self.cap.read()
        if not ret:
            return None
        self.latest = cv2.flip(frame, 1)  # Mirror
        return self.latest

    def read(self) -> Optional[np.ndarray]:
        return None if self.latest is None else self.latest.copy()

    def release(self) -> None:
        self.cap.release()


def draw_status(frame: np.ndarray, status: Optional[CaptureStatus], threshold: int) -> None:
    """Draw the step, instruction and stability bar (modifies frame in place)."""
    h, w = frame.shape[:2]

    overlay = frame.copy()
    cv2.rectangle(overlay, (0, 0), (w, 80), (0, 0, 0), -1)
    cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, frame)

    if status is None:
        cv2.putText(frame, "Starting...", (10, 25), cv2.FONT_HERSHEY_SIMPLEX,
                    0.6, (255, 255, 255), 1, cv2.LINE_AA)
        return

    cv2.putText(frame, status.progress, (10, 25), cv2.FONT_HERSHEY_SIMPLEX,
                0.6, (255, 255, 255), 1, cv2.LINE_AA)
    cv2.putText(frame, status.instruction, (10, 50), cv2.FONT_HERSHEY_SIMPLEX,
                0.6, (0, 255, 255), 1, cv2.LINE_AA)

    # Stability bar
    progress = min(1.0, status.stable_count / float(threshold))
    bar_x, bar_width = w - 170, 150
    cv2.rectangle(frame, (bar_x, 15), (bar_x + bar_width, 30), (100, 100, 100), -1)
    cv2.rectangle(frame, (bar_x, 15), (bar_x + int(bar_width * progress), 30),
                  (0, 255, 0) if progress >= 1.0 else (0, 200, 255), -1)

    pose_text = f"Pose: {status.pose.value if status.pose else '-'}  |  Images: {status.images_captured}/3"
    cv2.putText(frame, pose_text, (10, 72), cv2.FONT_HERSHEY_SIMPLEX,
                0.5, (200, 200, 200), 1, cv2.LINE_AA)

    if status.error and status.condition is not DetectionCondition.OK:
        cv2.putText(frame, status.error[:70], (10, h - 20), cv2.FONT_HERSHEY_SIMPLEX,
                    0.5, (0, 0, 255), 1, cv2.LINE_AA)

    if status.condition is DetectionCondition.CAPTURED:
        cv2.rectangle(frame, (5, 5), (w - 5, h - 5), (0, 255, 0), 8)


def show_preview(images: List[CapturedImage]) -> None:
    """Show the captured images side by side until a key is pressed."""
    tiles = []
    for image in images:
        tile = cv2.resize(decode_image(image.image_data), (320, 240))
        cv2.putText(tile, f"Position: {image.position.value}", (10, 25),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 0), 2, cv2.LINE_AA)
        tiles.append(tile)

    cv2.imshow("Captured Images", np.hstack(tiles))
    cv2.waitKey(0)


async def display_loop(source: WebcamFrameSource, loop: FrameLoop, threshold: int) -> None:
    """Read the webcam, draw the overlay and handle keys until the loop stops."""
    manual_task = None
    while loop.is_running or loop.last_status is None:
        frame = source.grab()
        if frame is None:
            logger.error("Webcam stopped delivering frames")
            loop.stop()
            break

        display = frame.copy()
        draw_status(display, loop.last_status, threshold)
        cv2.imshow(WINDOW_NAME, display)

        key = cv2.waitKey(1) & 0xFF
        if key == ord('q'):
            logger.info("Cancelled by user.")
            loop.stop()
            break
        elif key == ord(' ') and (manual_task is None or manual_task.done()):
            manual_task = asyncio.create_task(loop.manual_capture())

        await asyncio.sleep(1 / 30)

    if manual_task is not None and not manual_task.done():
        manual_task.cancel()


async def capture_session(args) -> List[CapturedImage]:
    capture_config = dict(get_capture_config())
    if args.cooldown is not None:
        capture_config["cooldown_seconds"] = args.cooldown
    stability_config = get_stability_config()

    logger.info("Initializing face detector...")
    detector = MediaPipeLandmarkDetector(get_detection_config())
    source = WebcamFrameSource(args.camera)

    session = CaptureSession.from_config(stability_config, capture_config)
    loop = FrameLoop(
        detector,
        source,
        JpegEncoder(capture_config),
        session=session,
        classifier=DirectionClassifier(get_classifier_config()),
        config=capture_config,
    )

    try:
        run_task = asyncio.create_task(loop.run())
        await display_loop(source, loop, session.stability.threshold)
        return await run_task
    finally:
        source.release()
        detector.close()
        cv2.destroyAllWindows()


def main():
    parser = argparse.ArgumentParser(
        description="Guided three-pose face capture",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        "--camera", type=int, default=0,
        help="Webcam index (default: 0)"
    )
    parser.add_argument(
        "--cooldown", type=float, default=None,
        help="Seconds between captures (default: from config.yaml)"
    )
    args = parser.parse_args()

    try:
        images = asyncio.run(capture_session(args))
    except DetectorFailure as e:
        logger.error(f"Capture aborted: {e}")
        return 1

    if len(images) < 3:
        logger.info(f"Capture incomplete ({len(images)}/3 images).")
        return 1

    logger.info("Capture complete! Showing preview...")
    show_preview(images)
    cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    sys.exit(main())
