from typing import Dict, Iterable, Optional, Tuple

import cv2

from pose_library import SKELETON_CONNECTIONS
from pose_types import EmotionState, Landmark, LandmarkMap, Skeleton

EMOTION_COLORS: Dict[EmotionState, Tuple[int, int, int]] = {
    EmotionState.CONFUSED: (80, 80, 255),
    EmotionState.FOCUSED: (0, 200, 255),
    EmotionState.HAPPY: (0, 255, 180),
    EmotionState.CELEBRATE: (255, 0, 255),
}


def _to_pixel(lm: Landmark, image_size: Tuple[int, int]) -> Tuple[int, int]:
    width, height = image_size
    return int(lm.x * width), int(lm.y * height)


def draw_landmarks(frame, landmarks: LandmarkMap, color=(0, 255, 0), min_visibility: float = 0.45) -> None:
    height, width = frame.shape[:2]

    def visible(lm: Optional[Landmark]) -> bool:
        return lm is not None and (lm.visibility is None or lm.visibility > min_visibility)

    for name_a, name_b in SKELETON_CONNECTIONS:
        lm_a = landmarks.get(name_a)
        lm_b = landmarks.get(name_b)
        if not visible(lm_a) or not visible(lm_b):
            continue
        cv2.line(frame, _to_pixel(lm_a, (width, height)), _to_pixel(lm_b, (width, height)), color, 2)

    for lm in landmarks.values():
        if not visible(lm):
            continue
        cv2.circle(frame, _to_pixel(lm, (width, height)), 5, (0, 255, 255), -1)


def draw_guide(frame, skeleton: Skeleton, color=(255, 255, 255)) -> None:
    # Guides are on a 0..100 grid.
    height, width = frame.shape[:2]
    for name_a, name_b in SKELETON_CONNECTIONS:
        a = skeleton.get(name_a)
        b = skeleton.get(name_b)
        if a is None or b is None:
            continue
        pa = (int(a.x / 100.0 * width), int(a.y / 100.0 * height))
        pb = (int(b.x / 100.0 * width), int(b.y / 100.0 * height))
        cv2.line(frame, pa, pb, color, 1)


def draw_status_panel(frame, lines: Iterable[str], origin=(10, 30), color=(255, 255, 255)) -> None:
    x, y = origin
    for line in lines:
        cv2.putText(frame, line, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)
        y += 28


def draw_score_bar(frame, score: float, emotion: EmotionState, origin=(10, 10), size=(240, 12)) -> None:
    x, y = origin
    w, h = size
    cv2.rectangle(frame, (x, y), (x + w, y + h), (60, 60, 60), -1)
    filled = int(max(0.0, min(1.0, score)) * w)
    cv2.rectangle(frame, (x, y), (x + filled, y + h), EMOTION_COLORS[emotion], -1)
