from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


KEYPOINT_NAMES: Tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

# Scoring and visibility checks only look at the torso and arms.
PRIORITY_KEYPOINTS: Tuple[str, ...] = (
    "nose",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
)

TORSO_KEYPOINTS: Tuple[str, ...] = (
    "left_shoulder",
    "right_shoulder",
    "left_hip",
    "right_hip",
)


@dataclass
class Landmark:
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None


@dataclass
class Point2D:
    x: float
    y: float


LandmarkMap = Dict[str, Landmark]
Skeleton = Dict[str, Point2D]


@dataclass
class RigSignals:
    head_tilt: float = 0.0
    left_arm_lift: float = 0.0
    right_arm_lift: float = 0.0
    body_lean: float = 0.0
    balance_shift: float = 0.0


class EmotionState(Enum):
    CONFUSED = "confused"
    FOCUSED = "focused"
    HAPPY = "happy"
    CELEBRATE = "celebrate"
