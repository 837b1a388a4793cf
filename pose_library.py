import math
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from geometry import clamp
from pose_types import KEYPOINT_NAMES, Point2D, Skeleton


def _skeleton(points: Dict[str, Tuple[float, float]]) -> Skeleton:
    return {name: Point2D(float(x), float(y)) for name, (x, y) in points.items()}


# Reference guides on a 0..100 grid, y pointing down.
INITIAL_POSE: Skeleton = _skeleton(
    {
        "nose": (50, 25),
        "left_eye": (52, 24),
        "right_eye": (48, 24),
        "left_ear": (55, 26),
        "right_ear": (45, 26),
        "left_shoulder": (65, 35),
        "right_shoulder": (35, 35),
        "left_elbow": (70, 45),
        "right_elbow": (30, 45),
        "left_wrist": (75, 55),
        "right_wrist": (25, 55),
        "left_hip": (60, 60),
        "right_hip": (40, 60),
        "left_knee": (62, 75),
        "right_knee": (38, 75),
        "left_ankle": (64, 90),
        "right_ankle": (36, 90),
    }
)

PERFECT_POSE: Skeleton = _skeleton(
    {
        "nose": (50, 20),
        "left_eye": (52, 19),
        "right_eye": (48, 19),
        "left_ear": (56, 21),
        "right_ear": (44, 21),
        "left_shoulder": (70, 30),
        "right_shoulder": (30, 30),
        "left_elbow": (80, 45),
        "right_elbow": (20, 45),
        "left_wrist": (75, 60),
        "right_wrist": (25, 60),
        "left_hip": (60, 55),
        "right_hip": (40, 55),
        "left_knee": (65, 70),
        "right_knee": (35, 70),
        "left_ankle": (70, 85),
        "right_ankle": (30, 85),
    }
)

SKELETON_CONNECTIONS: List[Tuple[str, str]] = [
    ("left_shoulder", "right_shoulder"),
    ("left_shoulder", "left_elbow"),
    ("left_elbow", "left_wrist"),
    ("right_shoulder", "right_elbow"),
    ("right_elbow", "right_wrist"),
    ("left_shoulder", "left_hip"),
    ("right_shoulder", "right_hip"),
    ("left_hip", "right_hip"),
    ("left_hip", "left_knee"),
    ("left_knee", "left_ankle"),
    ("right_hip", "right_knee"),
    ("right_knee", "right_ankle"),
]


@dataclass
class SuggestedPose:
    id: str
    title: str
    skeleton: Skeleton


def interpolate_skeletons(start: Skeleton, end: Skeleton, alpha: float) -> Skeleton:
    alpha = clamp(alpha, 0.0, 1.0)
    interpolated: Skeleton = {}
    for name, a in start.items():
        b = end.get(name, a)
        interpolated[name] = Point2D(a.x + (b.x - a.x) * alpha, a.y + (b.y - a.y) * alpha)
    return interpolated


def skeleton_from_dict(data: Dict[str, Any]) -> Skeleton:
    # Accepts {"nose": {"x": .., "y": ..}, ...} as produced by external pose generators.
    if not isinstance(data, dict):
        raise ValueError("skeleton must be a mapping of keypoint name to point")
    skeleton: Skeleton = {}
    for name in KEYPOINT_NAMES:
        point = data.get(name)
        if not isinstance(point, dict):
            raise ValueError(f"skeleton is missing keypoint '{name}'")
        try:
            x = float(point["x"])
            y = float(point["y"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"keypoint '{name}' needs numeric x and y") from exc
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"keypoint '{name}' has non-finite coordinates")
        skeleton[name] = Point2D(x, y)
    return skeleton


def skeleton_to_dict(skeleton: Skeleton) -> Dict[str, Dict[str, float]]:
    return {name: {"x": point.x, "y": point.y} for name, point in skeleton.items()}


def fallback_suggestions(number_of_people: int) -> List[SuggestedPose]:
    if number_of_people == 1:
        return [
            SuggestedPose("confident-stance", "Confident Stance", PERFECT_POSE),
            SuggestedPose("hands-in-pockets", "Hands in Pockets", INITIAL_POSE),
        ]
    if number_of_people == 2:
        return [
            SuggestedPose("side-by-side", "Side by Side", PERFECT_POSE),
            SuggestedPose("gentle-embrace", "Gentle Embrace", INITIAL_POSE),
        ]
    return [
        SuggestedPose("staggered-lineup", "Staggered Lineup", PERFECT_POSE),
        SuggestedPose("candid-interaction", "Candid Interaction", INITIAL_POSE),
    ]
