import math
from dataclasses import dataclass
from typing import Optional

from geometry import clamp, distance_2d, is_complete_skeleton, normalize_landmarks, skeleton_to_landmarks
from pose_types import PRIORITY_KEYPOINTS, LandmarkMap, Skeleton


@dataclass
class ScoringConfig:
    # Mean normalized distance at which the score reaches zero.
    distance_scale: float = 1.25
    visibility_floor: float = 0.2
    visibility_ceiling: float = 1.0


DEFAULT_SCORING = ScoringConfig()


def visibility_weight(landmarks: LandmarkMap, name: str, config: ScoringConfig = DEFAULT_SCORING) -> float:
    lm = landmarks.get(name)
    if lm is None or lm.visibility is None:
        return 1.0
    span = max(config.visibility_ceiling - config.visibility_floor, 1e-6)
    return clamp((float(lm.visibility) - config.visibility_floor) / span, 0.0, 1.0)


def score_pose_match(
    current: LandmarkMap,
    target: Optional[Skeleton],
    config: ScoringConfig = DEFAULT_SCORING,
) -> float:
    if not current or not is_complete_skeleton(target):
        return 0.0

    current_normalized = normalize_landmarks(current)
    target_normalized = normalize_landmarks(skeleton_to_landmarks(target))

    weighted_distance = 0.0
    total_weight = 0.0
    for name in PRIORITY_KEYPOINTS:
        a = current_normalized.get(name)
        b = target_normalized.get(name)
        if a is None or b is None:
            continue
        # Weight comes from the raw detection, not the normalized copy.
        weight = visibility_weight(current, name, config)
        weighted_distance += distance_2d(a, b) * weight
        total_weight += weight

    if total_weight <= 0.0:
        return 0.0
    mean_distance = weighted_distance / total_weight
    if not math.isfinite(mean_distance):
        return 0.0
    return clamp(1.0 - mean_distance / config.distance_scale, 0.0, 1.0)
