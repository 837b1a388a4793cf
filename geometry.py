import math
from typing import Mapping, Optional, Tuple

from pose_types import KEYPOINT_NAMES, TORSO_KEYPOINTS, Landmark, LandmarkMap, Skeleton

MIN_POSE_SCALE = 1e-4


def clamp(value: float, lo: float = -1.0, hi: float = 1.0) -> float:
    # NaN and infinities never leave this function.
    if math.isnan(value):
        return 0.0 if lo <= 0.0 <= hi else lo
    return max(lo, min(hi, value))


def _to_xy(lm: Landmark) -> Tuple[float, float]:
    return lm.x, lm.y


def distance_2d(a: Landmark, b: Landmark) -> float:
    ax, ay = _to_xy(a)
    bx, by = _to_xy(b)
    return math.hypot(ax - bx, ay - by)


def pose_center(landmarks: LandmarkMap) -> Tuple[float, float]:
    # Missing torso points count as zero, which pulls the center toward the origin.
    xs = [landmarks[k].x if k in landmarks else 0.0 for k in TORSO_KEYPOINTS]
    ys = [landmarks[k].y if k in landmarks else 0.0 for k in TORSO_KEYPOINTS]
    return sum(xs) / 4.0, sum(ys) / 4.0


def pose_scale(landmarks: LandmarkMap) -> float:
    if any(k not in landmarks for k in TORSO_KEYPOINTS):
        return 1.0

    left_shoulder = landmarks["left_shoulder"]
    right_shoulder = landmarks["right_shoulder"]
    left_hip = landmarks["left_hip"]
    right_hip = landmarks["right_hip"]

    shoulder_width = distance_2d(left_shoulder, right_shoulder)
    hip_width = distance_2d(left_hip, right_hip)
    torso_height = math.hypot(
        (left_shoulder.x + right_shoulder.x) / 2.0 - (left_hip.x + right_hip.x) / 2.0,
        (left_shoulder.y + right_shoulder.y) / 2.0 - (left_hip.y + right_hip.y) / 2.0,
    )
    scale = shoulder_width * 0.5 + hip_width * 0.2 + torso_height * 0.6
    if not math.isfinite(scale):
        return 1.0
    return max(MIN_POSE_SCALE, scale)


def normalize_landmarks(landmarks: LandmarkMap) -> LandmarkMap:
    # Body-centered frame: origin at the torso center, unit of torso size.
    center_x, center_y = pose_center(landmarks)
    scale = pose_scale(landmarks)

    normalized: LandmarkMap = {}
    for name, lm in landmarks.items():
        normalized[name] = Landmark(
            (lm.x - center_x) / scale,
            (lm.y - center_y) / scale,
            lm.z / scale,
            lm.visibility,
        )
    return normalized


def is_complete_skeleton(skeleton: Optional[Skeleton]) -> bool:
    if not isinstance(skeleton, Mapping) or not skeleton:
        return False
    for name in KEYPOINT_NAMES:
        point = skeleton.get(name)
        if point is None:
            return False
        try:
            if not (math.isfinite(float(point.x)) and math.isfinite(float(point.y))):
                return False
        except (AttributeError, TypeError, ValueError):
            return False
    return True


def skeleton_to_landmarks(skeleton: Skeleton) -> LandmarkMap:
    # Skeletons are authored on a 0..100 grid; landmarks use frame fractions.
    return {
        name: Landmark(float(point.x) / 100.0, float(point.y) / 100.0, 0.0)
        for name, point in skeleton.items()
    }
