import argparse
import asyncio
import logging
import sys
from pathlib import Path

import cv2

from camera import CameraStream
from coach import PoseCoach
from pose_detection import DEFAULT_MODEL_PATH, MediaPipePoseBackend
from pose_library import PERFECT_POSE
from tracking import PoseTracker, TrackerConfig, TrackingSnapshot
from visualization import draw_guide, draw_landmarks, draw_score_bar, draw_status_panel

WINDOW_NAME = "Pose Coach"


def setup_logging(level: str = "INFO") -> None:
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Real-time pose matching coach")
    parser.add_argument("--camera", type=int, default=0, help="camera index")
    parser.add_argument("--model", type=Path, default=DEFAULT_MODEL_PATH, help="pose_landmarker .task file")
    parser.add_argument("--smoothing", type=float, default=0.35, help="EMA coefficient for new detections")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    logger = logging.getLogger(__name__)
    camera = CameraStream(camera_index=args.camera)
    if not camera.open():
        logger.error("Could not open webcam.")
        return 1
    camera.start()

    tracker = PoseTracker(
        MediaPipePoseBackend(model_path=args.model),
        camera,
        TrackerConfig(smoothing=args.smoothing),
    )
    coach = PoseCoach(target=PERFECT_POSE)

    def on_frame(snapshot: TrackingSnapshot) -> None:
        cam_frame = camera.latest
        if cam_frame is None or cam_frame.frame is None:
            return
        frame = cam_frame.frame.copy()
        result = coach.on_snapshot(snapshot)
        if result is not None:
            if result.guide is not None:
                draw_guide(frame, result.guide)
            draw_landmarks(frame, snapshot.landmarks)
            draw_score_bar(frame, result.score, result.emotion)
            lines = [
                f"Match: {result.score * 100:.0f}%  ({result.emotion.value})",
                result.feedback,
                f"FPS: {snapshot.fps:.1f}",
            ]
        else:
            lines = ["Looking for you..."]
        if snapshot.frame_error:
            lines.append(snapshot.frame_error)
        draw_status_panel(frame, lines, origin=(10, 50))
        cv2.imshow(WINDOW_NAME, frame)
        if cv2.waitKey(1) & 0xFF == ord("q"):
            tracker.stop()

    tracker.add_listener(on_frame)
    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    try:
        await tracker.launch()
    except asyncio.CancelledError:
        pass
    finally:
        tracker.stop()
        camera.release()
        cv2.destroyAllWindows()

    if tracker.snapshot.error:
        logger.error(tracker.snapshot.error)
        return 1
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
