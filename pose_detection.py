import asyncio
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import cv2

from pose_types import Landmark, LandmarkMap

logger = logging.getLogger(__name__)

MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/pose_landmarker/"
    "pose_landmarker_lite/float16/latest/pose_landmarker_lite.task"
)
DEFAULT_MODEL_PATH = Path("models") / "pose_landmarker_lite.task"

# MediaPipe's 33-point body model, reduced to the 17 keypoints used here.
MEDIAPIPE_INDEX_TO_NAME: Dict[int, str] = {
    0: "nose",
    2: "left_eye",
    5: "right_eye",
    7: "left_ear",
    8: "right_ear",
    11: "left_shoulder",
    12: "right_shoulder",
    13: "left_elbow",
    14: "right_elbow",
    15: "left_wrist",
    16: "right_wrist",
    23: "left_hip",
    24: "right_hip",
    25: "left_knee",
    26: "right_knee",
    27: "left_ankle",
    28: "right_ankle",
}


@dataclass
class RawKeypoint:
    x: float
    y: float
    z: Optional[float] = None
    visibility: Optional[float] = None


def remap_detection(raw_keypoints: Optional[Sequence[Any]]) -> LandmarkMap:
    landmarks: LandmarkMap = {}
    if not raw_keypoints:
        return landmarks

    for idx, point in enumerate(raw_keypoints):
        name = MEDIAPIPE_INDEX_TO_NAME.get(idx)
        if name is None or point is None:
            continue
        x = float(point.x)
        y = float(point.y)
        if not (math.isfinite(x) and math.isfinite(y)):
            continue
        z = getattr(point, "z", None)
        visibility = getattr(point, "visibility", None)
        landmarks[name] = Landmark(
            x,
            y,
            float(z) if z is not None else 0.0,
            None if visibility is None else max(0.0, min(1.0, float(visibility))),
        )
    return landmarks


class PoseDetectorBackend(ABC):
    """Async detector capability; acquire and release calls must be paired."""

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def acquire(self) -> Any: ...

    @abstractmethod
    async def detect(self, handle: Any, frame, timestamp_ms: float) -> Optional[Sequence[Any]]: ...

    @abstractmethod
    def release(self, handle: Any) -> None: ...


class MediaPipePoseBackend(PoseDetectorBackend):
    """
    MediaPipe Tasks PoseLandmarker in VIDEO mode, single pose.

    Frames are BGR arrays as delivered by OpenCV. Model loading and inference
    both run in a worker thread so the event loop keeps ticking.
    """

    def __init__(
        self,
        model_path: Path = DEFAULT_MODEL_PATH,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        self.model_path = Path(model_path)
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence
        self._last_timestamp_ms = -1

    def name(self) -> str:
        return "mediapipe_pose_landmarker"

    async def acquire(self) -> Any:
        return await asyncio.to_thread(self._create_landmarker)

    def _create_landmarker(self) -> Any:
        try:
            from mediapipe.tasks import python as mp_tasks
            from mediapipe.tasks.python import vision
        except ImportError as exc:
            raise RuntimeError("MediaPipe is not installed. Install it with: pip install mediapipe") from exc

        if not self.model_path.is_file():
            raise RuntimeError(f"Pose model not found at {self.model_path}. Download it from {MODEL_URL}")

        options = vision.PoseLandmarkerOptions(
            base_options=mp_tasks.BaseOptions(model_asset_path=str(self.model_path)),
            running_mode=vision.RunningMode.VIDEO,
            num_poses=1,
            min_pose_detection_confidence=self.min_detection_confidence,
            min_tracking_confidence=self.min_tracking_confidence,
        )
        landmarker = vision.PoseLandmarker.create_from_options(options)
        self._last_timestamp_ms = -1
        logger.info("Loaded pose model %s", self.model_path)
        return landmarker

    async def detect(self, handle: Any, frame, timestamp_ms: float) -> Optional[Sequence[Any]]:
        # VIDEO mode rejects timestamps that do not strictly increase.
        ts = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = ts
        return await asyncio.to_thread(self._detect_sync, handle, frame, ts)

    @staticmethod
    def _detect_sync(handle: Any, frame_bgr, timestamp_ms: int) -> Optional[Sequence[Any]]:
        import mediapipe as mp

        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        result = handle.detect_for_video(image, timestamp_ms)
        if not result or not result.pose_landmarks:
            return None
        return result.pose_landmarks[0]

    def release(self, handle: Any) -> None:
        if handle is not None:
            handle.close()
            logger.info("Released pose model")
