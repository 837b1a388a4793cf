"""
Realtime acquisition loop.

One coroutine owns the loop: each tick either does nothing (source not ready,
frame arrived too soon) or runs exactly one detection to completion before the
next tick is scheduled. Frames that arrive early are dropped, never queued.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, List, Optional

from history import FrameRateWindow
from pose_detection import PoseDetectorBackend, remap_detection
from pose_types import LandmarkMap
from smoothing import LandmarkSmoother

logger = logging.getLogger(__name__)

FRAME_ERROR_MESSAGE = "Pose detection frame failed"


class TrackerState(Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class TrackerConfig:
    smoothing: float = 0.35
    min_frame_interval_ms: float = 16.0
    tick_interval_ms: float = 1000.0 / 60.0
    fps_window: int = 20


@dataclass
class TrackingSnapshot:
    landmarks: Optional[LandmarkMap] = None
    fps: float = 0.0
    ready: bool = False
    error: Optional[str] = None
    frame_error: Optional[str] = None
    frame_count: int = 0
    timestamp_ms: Optional[float] = None


class TrackingSession:
    """Per-run smoothing and frame-rate state. Owned by exactly one tracker run."""

    def __init__(self, config: TrackerConfig):
        self.smoother = LandmarkSmoother(alpha=config.smoothing)
        self.frame_rate = FrameRateWindow(maxlen=config.fps_window)
        self.last_frame_ms: Optional[float] = None
        self.frame_count = 0


def _monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


class PoseTracker:
    def __init__(
        self,
        backend: PoseDetectorBackend,
        source,
        config: Optional[TrackerConfig] = None,
        clock: Callable[[], float] = _monotonic_ms,
    ):
        self.backend = backend
        self.source = source
        self.config = config or TrackerConfig()
        self._clock = clock
        self._state = TrackerState.IDLE
        self._handle: Any = None
        self._session: Optional[TrackingSession] = None
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Future] = None
        self._listeners: List[Callable[[TrackingSnapshot], None]] = []
        self.snapshot = TrackingSnapshot()

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def session(self) -> Optional[TrackingSession]:
        return self._session

    def add_listener(self, listener: Callable[[TrackingSnapshot], None]) -> None:
        self._listeners.append(listener)

    async def start(self) -> bool:
        if self._state is not TrackerState.IDLE:
            return self._state is TrackerState.RUNNING

        self._state = TrackerState.INITIALIZING
        logger.info("Acquiring pose detector %s", self.backend.name())
        acquire_task = asyncio.ensure_future(self.backend.acquire())
        try:
            handle = await asyncio.shield(acquire_task)
        except asyncio.CancelledError:
            # The acquisition keeps going; whatever it yields gets released.
            acquire_task.add_done_callback(self._release_orphan)
            self._state = TrackerState.STOPPED
            raise
        except Exception as exc:
            message = f"Unable to load pose detector: {exc}"
            logger.error(message)
            self._state = TrackerState.STOPPED
            self._publish(replace(self.snapshot, ready=False, error=message))
            return False

        if self._state is not TrackerState.INITIALIZING:
            # stop() landed while we were waiting.
            self.backend.release(handle)
            return False

        self._handle = handle
        self._session = TrackingSession(self.config)
        self._state = TrackerState.RUNNING
        logger.info("Pose tracker running")
        self._publish(TrackingSnapshot(ready=True))
        return True

    def _release_orphan(self, task: asyncio.Future) -> None:
        if task.cancelled() or task.exception() is not None:
            return
        self.backend.release(task.result())

    async def step(self, now_ms: Optional[float] = None) -> bool:
        """Run one scheduling tick. Returns True when a frame was processed."""
        if self._state is not TrackerState.RUNNING:
            return False
        session = self._session
        if self._in_flight is not None and not self._in_flight.done():
            # One detection at a time.
            return False
        if not self.source.ready:
            return False

        now = self._clock() if now_ms is None else now_ms
        last = session.last_frame_ms
        if last is not None and now - last < self.config.min_frame_interval_ms:
            return False

        frame = self.source.current_frame()
        if frame is None:
            return False
        session.last_frame_ms = now

        detect_task = asyncio.ensure_future(self.backend.detect(self._handle, frame, now))
        self._in_flight = detect_task
        try:
            # Shielded so the future only settles once the detector is really done.
            raw = await asyncio.shield(detect_task)
            detected = remap_detection(raw)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if session is not self._session:
                return False
            logger.warning("%s: %s", FRAME_ERROR_MESSAGE, exc)
            self._publish(replace(self.snapshot, frame_error=FRAME_ERROR_MESSAGE, timestamp_ms=now))
            return True

        if session is not self._session or self._state is not TrackerState.RUNNING:
            # Stopped while the detector was busy; the result belongs to nobody.
            return False

        session.frame_count += 1
        session.frame_rate.mark(now)
        landmarks = session.smoother.update(detected) if detected else session.smoother.previous

        self._publish(
            TrackingSnapshot(
                landmarks=dict(landmarks) if landmarks is not None else None,
                fps=session.frame_rate.mean(),
                ready=True,
                error=None,
                frame_error=None,
                frame_count=session.frame_count,
                timestamp_ms=now,
            )
        )
        return True

    async def run(self) -> None:
        try:
            if self._state is TrackerState.IDLE and not await self.start():
                return
            interval = self.config.tick_interval_ms / 1000.0
            while self._state is TrackerState.RUNNING:
                await self.step()
                await asyncio.sleep(interval)
        finally:
            self._teardown()

    def launch(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.ensure_future(self.run())
        return self._task

    def stop(self) -> None:
        if self._state is not TrackerState.STOPPED:
            logger.info("Stopping pose tracker")
        self._state = TrackerState.STOPPED
        task = self._task
        if task is not None and not task.done():
            task.cancel()
        self._teardown()

    def _teardown(self) -> None:
        handle, self._handle = self._handle, None
        in_flight, self._in_flight = self._in_flight, None
        self._session = None
        self._state = TrackerState.STOPPED
        self.snapshot = replace(self.snapshot, landmarks=None, ready=False)
        if handle is None:
            return
        if in_flight is not None and not in_flight.done():
            # The detector may still be running on a worker thread.
            logger.debug("Deferring detector release until the running detection finishes")
            in_flight.add_done_callback(lambda task: self._release_after_detect(task, handle))
            return
        self._release(handle)

    def _release_after_detect(self, task: asyncio.Future, handle: Any) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Detection finished after stop: %s", task.exception())
        self._release(handle)

    def _release(self, handle: Any) -> None:
        try:
            self.backend.release(handle)
        except Exception:
            logger.exception("Failed to release pose detector")

    def _publish(self, snapshot: TrackingSnapshot) -> None:
        self.snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Tracking listener failed")
