import math
from dataclasses import dataclass
from typing import Optional

from pose_types import PRIORITY_KEYPOINTS, EmotionState, LandmarkMap

REPOSITION_MESSAGE = "Step back so your full upper body is visible."
NO_TARGET_MESSAGE = "Pick a pose guide to start matching."
FEEDBACK_TIERS = (
    "Fox is playful. Match shoulder and elbow angles first.",
    "Fox is focusing. Small arm and torso adjustments needed.",
    "Nice pose. Hold steady and refine your balance.",
    "Perfect match. Fox is celebrating!",
)

MIN_VISIBLE_KEYPOINTS = 6
VISIBILITY_FLOOR = 0.45


def _check_ordered(low: float, mid: float, high: float) -> None:
    if not 0.0 <= low < mid < high <= 1.0:
        raise ValueError(f"thresholds must satisfy 0 <= {low} < {mid} < {high} <= 1")


@dataclass(frozen=True)
class EmotionThresholds:
    confused_max: float = 0.4
    focused_max: float = 0.7
    happy_max: float = 0.9

    def __post_init__(self):
        _check_ordered(self.confused_max, self.focused_max, self.happy_max)


@dataclass(frozen=True)
class FeedbackThresholds:
    playful_below: float = 0.4
    focusing_below: float = 0.7
    refine_below: float = 0.9

    def __post_init__(self):
        _check_ordered(self.playful_below, self.focusing_below, self.refine_below)


def classify_emotion(score: float, thresholds: Optional[EmotionThresholds] = None) -> EmotionState:
    thresholds = thresholds or EmotionThresholds()
    if not math.isfinite(score):
        score = 0.0
    if score <= thresholds.confused_max:
        return EmotionState.CONFUSED
    if score <= thresholds.focused_max:
        return EmotionState.FOCUSED
    if score <= thresholds.happy_max:
        return EmotionState.HAPPY
    return EmotionState.CELEBRATE


def count_visible_priority_keypoints(landmarks: LandmarkMap, floor: float = VISIBILITY_FLOOR) -> int:
    count = 0
    for name in PRIORITY_KEYPOINTS:
        lm = landmarks.get(name)
        if lm is None:
            continue
        if lm.visibility is None or lm.visibility > floor:
            count += 1
    return count


def compose_feedback(
    score: float,
    landmarks: LandmarkMap,
    thresholds: Optional[FeedbackThresholds] = None,
    has_target: bool = True,
) -> str:
    thresholds = thresholds or FeedbackThresholds()
    # Visibility gate wins over any score.
    if count_visible_priority_keypoints(landmarks) < MIN_VISIBLE_KEYPOINTS:
        return REPOSITION_MESSAGE
    if not has_target:
        return NO_TARGET_MESSAGE
    if not math.isfinite(score):
        score = 0.0

    if score < thresholds.playful_below:
        return FEEDBACK_TIERS[0]
    if score < thresholds.focusing_below:
        return FEEDBACK_TIERS[1]
    if score < thresholds.refine_below:
        return FEEDBACK_TIERS[2]
    return FEEDBACK_TIERS[3]
