import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class CameraFrame:
    frame: Optional[np.ndarray]
    timestamp: float
    ok: bool


class CameraStream:
    def __init__(self, camera_index: int = 0, width: int = 1280, height: int = 720, target_fps: int = 30):
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.target_fps = target_fps
        self._capture: Optional[cv2.VideoCapture] = None
        self._latest: Optional[CameraFrame] = None
        self._lock = threading.Lock()
        self._running = False
        self._thread: Optional[threading.Thread] = None

    def open(self) -> bool:
        self._capture = cv2.VideoCapture(self.camera_index)
        if not self._capture.isOpened():
            logger.error("Could not open camera %d", self.camera_index)
            self._capture = None
            return False
        self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._capture.set(cv2.CAP_PROP_FPS, self.target_fps)
        return True

    @property
    def ready(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    @property
    def frame_size(self) -> Tuple[int, int]:
        latest = self.latest
        if latest is not None and latest.frame is not None:
            height, width = latest.frame.shape[:2]
            return width, height
        return self.width, self.height

    @property
    def latest(self) -> Optional[CameraFrame]:
        with self._lock:
            return self._latest

    def read(self) -> CameraFrame:
        capture = self._capture
        if capture is None:
            return CameraFrame(None, time.time(), False)

        ok, frame = capture.read()
        now = time.time()
        if not ok:
            return CameraFrame(None, now, False)
        result = CameraFrame(frame, now, True)
        with self._lock:
            self._latest = result
        return result

    def start(self) -> None:
        """Grab frames on a background thread so callers never wait on the device."""
        with self._lock:
            if self._running or self._capture is None:
                return
            self._running = True
        t = threading.Thread(target=self._grab_loop, name=f"camera-{self.camera_index}", daemon=True)
        self._thread = t
        t.start()

    def _grab_loop(self) -> None:
        idle = 1.0 / float(self.target_fps) if self.target_fps > 0 else 0.01
        while True:
            with self._lock:
                if not self._running:
                    return
            if not self.read().ok:
                time.sleep(idle)

    def current_frame(self) -> Optional[np.ndarray]:
        # While grabbing, hand out the newest frame instead of blocking on the device.
        if self._thread is not None:
            latest = self.latest
            return latest.frame if latest is not None else None
        return self.read().frame

    def stop(self) -> None:
        with self._lock:
            self._running = False
        t = self._thread
        if t is not None and t.is_alive():
            t.join(timeout=2.0)
        self._thread = None

    def release(self) -> None:
        self.stop()
        if self._capture is not None:
            self._capture.release()
            self._capture = None
