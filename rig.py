from typing import Optional

from geometry import clamp, normalize_landmarks
from pose_types import Landmark, LandmarkMap, RigSignals


def _arm_lift(shoulder: Optional[Landmark], elbow: Optional[Landmark], wrist: Optional[Landmark]) -> float:
    if shoulder is None or elbow is None or wrist is None:
        return 0.0
    # Image y grows downward, so a raised arm gives a positive lift.
    upper = shoulder.y - elbow.y
    lower = elbow.y - wrist.y
    return (upper + lower) * 1.8


def compute_rig_signals(landmarks: LandmarkMap) -> RigSignals:
    n = normalize_landmarks(landmarks)
    nose = n.get("nose")
    left_shoulder = n.get("left_shoulder")
    right_shoulder = n.get("right_shoulder")
    left_hip = n.get("left_hip")
    right_hip = n.get("right_hip")

    shoulder_slope = 0.0
    shoulder_width = 0.0
    if left_shoulder is not None and right_shoulder is not None:
        shoulder_slope = (left_shoulder.y - right_shoulder.y) * -2.5
        shoulder_width = left_shoulder.x - right_shoulder.x

    hip_center_x = 0.0
    if left_hip is not None and right_hip is not None:
        hip_center_x = (left_hip.x + right_hip.x) / 2.0

    nose_x = nose.x if nose is not None else 0.0

    return RigSignals(
        head_tilt=clamp(nose_x * -2.0 + shoulder_slope * 0.55),
        left_arm_lift=clamp(_arm_lift(left_shoulder, n.get("left_elbow"), n.get("left_wrist"))),
        right_arm_lift=clamp(_arm_lift(right_shoulder, n.get("right_elbow"), n.get("right_wrist"))),
        body_lean=clamp(shoulder_width * -0.8),
        balance_shift=clamp(hip_center_x * 2.4),
    )
