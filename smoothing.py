from typing import Optional

from pose_types import Landmark, LandmarkMap


class LandmarkSmoother:
    def __init__(self, alpha: float = 0.35):
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"smoothing alpha must be in (0, 1], got {alpha}")
        self.alpha = alpha
        self._previous: Optional[LandmarkMap] = None

    @property
    def previous(self) -> Optional[LandmarkMap]:
        return self._previous

    def reset(self) -> None:
        self._previous = None

    def update(self, current: LandmarkMap) -> LandmarkMap:
        previous = self._previous
        if previous is None:
            self._previous = dict(current)
            return self._previous

        smoothed: LandmarkMap = {}
        for name in set(previous) | set(current):
            prev = previous.get(name)
            curr = current.get(name)
            if curr is None:
                # Occluded this frame: hold the last value instead of dropping it.
                smoothed[name] = prev
            elif prev is None:
                smoothed[name] = curr
            else:
                smoothed[name] = self._smooth(prev, curr, self.alpha)
        self._previous = smoothed
        return smoothed

    @staticmethod
    def _smooth(prev: Landmark, curr: Landmark, alpha: float) -> Landmark:
        return Landmark(
            prev.x * (1.0 - alpha) + curr.x * alpha,
            prev.y * (1.0 - alpha) + curr.y * alpha,
            prev.z * (1.0 - alpha) + curr.z * alpha,
            curr.visibility if curr.visibility is not None else prev.visibility,
        )
