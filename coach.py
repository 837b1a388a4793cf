from dataclasses import dataclass, field
from typing import Optional

from feedback import EmotionThresholds, FeedbackThresholds, classify_emotion, compose_feedback
from geometry import is_complete_skeleton
from pose_library import INITIAL_POSE, interpolate_skeletons
from pose_types import EmotionState, LandmarkMap, RigSignals, Skeleton
from rig import compute_rig_signals
from scoring import ScoringConfig, score_pose_match
from tracking import TrackingSnapshot


@dataclass
class CoachFrame:
    score: float
    rig: RigSignals
    emotion: EmotionState
    feedback: str
    guide: Optional[Skeleton] = None
    fps: float = 0.0


@dataclass
class CoachSettings:
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    emotion: EmotionThresholds = field(default_factory=EmotionThresholds)
    feedback: FeedbackThresholds = field(default_factory=FeedbackThresholds)


class PoseCoach:
    def __init__(
        self,
        target: Optional[Skeleton] = None,
        start_pose: Skeleton = INITIAL_POSE,
        settings: Optional[CoachSettings] = None,
    ):
        self.target = target
        self.start_pose = start_pose
        self.settings = settings or CoachSettings()
        self.latest: Optional[CoachFrame] = None

    def set_target(self, target: Optional[Skeleton]) -> None:
        self.target = target

    def evaluate(self, landmarks: Optional[LandmarkMap], fps: float = 0.0) -> CoachFrame:
        landmarks = landmarks or {}
        has_target = is_complete_skeleton(self.target)

        score = score_pose_match(landmarks, self.target, self.settings.scoring)
        guide = interpolate_skeletons(self.start_pose, self.target, score) if has_target else None
        frame = CoachFrame(
            score=score,
            rig=compute_rig_signals(landmarks),
            emotion=classify_emotion(score, self.settings.emotion),
            feedback=compose_feedback(score, landmarks, self.settings.feedback, has_target=has_target),
            guide=guide,
            fps=fps,
        )
        self.latest = frame
        return frame

    def on_snapshot(self, snapshot: TrackingSnapshot) -> Optional[CoachFrame]:
        # Tracker listener: runs right after each publish, on the loop's thread.
        if snapshot.landmarks is None:
            return None
        return self.evaluate(snapshot.landmarks, snapshot.fps)
