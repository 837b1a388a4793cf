"""
Contract for the hosted advice service, with local fallbacks.

The service itself (pose suggestions, free-form match advice) lives elsewhere;
this module only fixes what goes in and out and what to do when it fails.
"""

import json
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional

from pose_library import SuggestedPose, fallback_suggestions

logger = logging.getLogger(__name__)

DEFAULT_ADVICE_SCORE = 0.5
# Diagonal of the 0..100 skeleton grid.
MAX_SKELETON_DISTANCE = math.hypot(100.0, 100.0)


@dataclass
class MatchAdvice:
    score: float
    feedback: str


class AdviceService(ABC):
    @abstractmethod
    def suggest_poses(self, number_of_people: int) -> List[SuggestedPose]: ...

    @abstractmethod
    def match_advice(self, user_pose_json: str, suggested_pose_json: str) -> MatchAdvice: ...


def sanitize_advice_score(raw: Any) -> float:
    try:
        score = float(raw)
    except (TypeError, ValueError):
        logger.error("Invalid match score from advice service, defaulting to %.1f: %r", DEFAULT_ADVICE_SCORE, raw)
        return DEFAULT_ADVICE_SCORE
    if not math.isfinite(score) or score < 0.0 or score > 1.0:
        logger.error("Invalid match score from advice service, defaulting to %.1f: %r", DEFAULT_ADVICE_SCORE, raw)
        return DEFAULT_ADVICE_SCORE
    return score


def suggest_poses(number_of_people: int, service: Optional[AdviceService] = None) -> List[SuggestedPose]:
    if service is None:
        return fallback_suggestions(number_of_people)
    try:
        suggestions = service.suggest_poses(number_of_people)
    except Exception:
        logger.exception("Error getting pose suggestions")
        return fallback_suggestions(number_of_people)
    return suggestions or fallback_suggestions(number_of_people)


def local_match_advice(user_pose_json: str, suggested_pose_json: str) -> MatchAdvice:
    try:
        user = json.loads(user_pose_json)
        suggested = json.loads(suggested_pose_json)
        keys = [k for k in suggested if user.get(k)]
        if not keys:
            return MatchAdvice(0.0, "No keypoints available.")

        total = 0.0
        for key in keys:
            a = user[key]
            b = suggested[key]
            total += math.hypot(float(a["x"]) - float(b["x"]), float(a["y"]) - float(b["y"]))
        normalized = min(1.0, max(0.0, (total / len(keys)) / MAX_SKELETON_DISTANCE))
    except (AttributeError, KeyError, TypeError, ValueError):
        logger.exception("Error computing pose score")
        return MatchAdvice(0.0, "Unable to compute pose score.")

    score = 1.0 - normalized
    if not math.isfinite(score):
        return MatchAdvice(0.0, "Unable to compute pose score.")
    if score > 0.85:
        feedback = "Great! Hold that pose."
    elif score > 0.6:
        feedback = "Almost there, small adjustments needed."
    elif score > 0.35:
        feedback = "Getting warmer, adjust your stance."
    else:
        feedback = "Adjust to better match the guide."
    return MatchAdvice(score, feedback)


def request_match_advice(
    user_pose_json: str,
    suggested_pose_json: str,
    service: Optional[AdviceService] = None,
) -> MatchAdvice:
    if service is not None:
        try:
            advice = service.match_advice(user_pose_json, suggested_pose_json)
            return MatchAdvice(sanitize_advice_score(advice.score), advice.feedback)
        except Exception:
            logger.exception("Advice service failed, using local match score")
    return local_match_advice(user_pose_json, suggested_pose_json)
