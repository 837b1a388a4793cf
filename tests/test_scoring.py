"""Tests for pose match scoring and rig signal mapping."""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from geometry import skeleton_to_landmarks
from pose_library import INITIAL_POSE, PERFECT_POSE
from pose_types import PRIORITY_KEYPOINTS, Landmark, Point2D, RigSignals
from rig import compute_rig_signals
from scoring import ScoringConfig, score_pose_match, visibility_weight


def _landmarks_for(skeleton, visibility=1.0):
    landmarks = skeleton_to_landmarks(skeleton)
    for lm in landmarks.values():
        lm.visibility = visibility
    return landmarks


# ============================================================================
# Match scorer
# ============================================================================


class TestScorePoseMatch:
    def test_identical_pose_scores_one(self):
        assert score_pose_match(_landmarks_for(PERFECT_POSE), PERFECT_POSE) == pytest.approx(1.0)

    def test_identical_pose_at_other_position_and_size(self):
        landmarks = {
            name: Landmark(lm.x * 0.5 + 0.2, lm.y * 0.5 + 0.1, 0.0, 1.0)
            for name, lm in skeleton_to_landmarks(PERFECT_POSE).items()
        }
        assert score_pose_match(landmarks, PERFECT_POSE) == pytest.approx(1.0)

    def test_null_target_scores_zero(self):
        assert score_pose_match(_landmarks_for(PERFECT_POSE), None) == 0.0

    def test_incomplete_target_scores_zero(self):
        target = dict(PERFECT_POSE)
        del target["left_knee"]
        assert score_pose_match(_landmarks_for(PERFECT_POSE), target) == 0.0

    @pytest.mark.parametrize("target", [["nose"], "nose", 42, 3.5, ("nose", "neck")])
    def test_non_mapping_target_scores_zero(self, target):
        assert score_pose_match(_landmarks_for(PERFECT_POSE), target) == 0.0

    def test_empty_current_scores_zero(self):
        assert score_pose_match({}, PERFECT_POSE) == 0.0

    def test_zero_total_weight_scores_zero(self):
        landmarks = _landmarks_for(PERFECT_POSE, visibility=0.1)
        assert score_pose_match(landmarks, PERFECT_POSE) == 0.0

    def test_only_non_priority_keys_scores_zero(self):
        landmarks = {
            name: lm
            for name, lm in _landmarks_for(PERFECT_POSE).items()
            if name not in PRIORITY_KEYPOINTS
        }
        assert score_pose_match(landmarks, PERFECT_POSE) == 0.0

    def test_knees_and_ankles_do_not_affect_score(self):
        landmarks = _landmarks_for(PERFECT_POSE)
        landmarks["left_knee"].x += 0.3
        landmarks["right_ankle"].y -= 0.2
        assert score_pose_match(landmarks, PERFECT_POSE) == pytest.approx(1.0)

    def test_different_pose_scores_lower(self):
        score = score_pose_match(_landmarks_for(INITIAL_POSE), PERFECT_POSE)
        assert 0.0 < score < 1.0

    def test_monotonic_in_single_keypoint_distance(self):
        previous = None
        for step in range(12):
            landmarks = _landmarks_for(PERFECT_POSE)
            landmarks["right_wrist"].x -= 0.05 * step
            score = score_pose_match(landmarks, PERFECT_POSE)
            assert 0.0 <= score <= 1.0
            if previous is not None:
                assert score <= previous + 1e-12
            previous = score
        assert previous < 1.0

    def test_low_visibility_key_is_ignored(self):
        landmarks = _landmarks_for(PERFECT_POSE)
        landmarks["left_wrist"].x += 0.4
        landmarks["left_wrist"].visibility = 0.2
        assert score_pose_match(landmarks, PERFECT_POSE) == pytest.approx(1.0)

    def test_calibration_constant_changes_sensitivity(self):
        landmarks = _landmarks_for(INITIAL_POSE)
        strict = score_pose_match(landmarks, PERFECT_POSE, ScoringConfig(distance_scale=0.5))
        loose = score_pose_match(landmarks, PERFECT_POSE, ScoringConfig(distance_scale=5.0))
        assert strict < loose

    def test_non_finite_input_never_leaks(self):
        landmarks = _landmarks_for(PERFECT_POSE)
        landmarks["nose"].x = float("nan")
        assert score_pose_match(landmarks, PERFECT_POSE) == 0.0


@pytest.mark.parametrize(
    "visibility,expected",
    [(None, 1.0), (0.0, 0.0), (0.2, 0.0), (0.6, 0.5), (1.0, 1.0)],
)
def test_visibility_weight(visibility, expected):
    landmarks = {"nose": Landmark(0.5, 0.5, 0.0, visibility)}
    assert visibility_weight(landmarks, "nose") == pytest.approx(expected)


# ============================================================================
# Rig signals
# ============================================================================


def _fields(rig: RigSignals):
    return [rig.head_tilt, rig.left_arm_lift, rig.right_arm_lift, rig.body_lean, rig.balance_shift]


class TestRigSignals:
    def test_empty_map_gives_neutral_rig(self):
        assert compute_rig_signals({}) == RigSignals()

    def test_reference_pose(self):
        rig = compute_rig_signals(_landmarks_for(PERFECT_POSE))
        assert rig.head_tilt == pytest.approx(0.0)
        assert rig.balance_shift == pytest.approx(0.0)
        # Arms hang below the shoulders, shoulders are 0.4 apart on a 0.39 scale.
        assert rig.left_arm_lift == -1.0
        assert rig.right_arm_lift == -1.0
        assert rig.body_lean == pytest.approx(0.4 / 0.39 * -0.8)

    def test_raised_arms_lift(self):
        landmarks = _landmarks_for(PERFECT_POSE)
        landmarks["left_elbow"].y = 0.2
        landmarks["left_wrist"].y = 0.05
        rig = compute_rig_signals(landmarks)
        assert rig.left_arm_lift > 0.9
        assert rig.right_arm_lift < 0.0

    def test_missing_arm_terms_contribute_zero(self):
        landmarks = _landmarks_for(PERFECT_POSE)
        del landmarks["right_elbow"]
        rig = compute_rig_signals(landmarks)
        assert rig.right_arm_lift == 0.0
        assert rig.left_arm_lift == -1.0

    def test_head_turned_left_tilts(self):
        landmarks = _landmarks_for(PERFECT_POSE)
        landmarks["nose"].x = 0.4
        rig = compute_rig_signals(landmarks)
        assert rig.head_tilt > 0.0

    def test_hips_shifted_right_shift_balance(self):
        landmarks = _landmarks_for(PERFECT_POSE)
        landmarks["left_hip"].x += 0.05
        landmarks["right_hip"].x += 0.05
        assert compute_rig_signals(landmarks).balance_shift > 0.0

    def test_outputs_always_bounded(self):
        landmarks = {
            "nose": Landmark(5.0, -3.0),
            "left_shoulder": Landmark(9.0, 0.0),
            "right_shoulder": Landmark(-9.0, 4.0),
            "left_elbow": Landmark(0.0, -20.0),
            "left_wrist": Landmark(0.0, -40.0),
            "left_hip": Landmark(30.0, 1.0),
            "right_hip": Landmark(31.0, 1.0),
        }
        for value in _fields(compute_rig_signals(landmarks)):
            assert -1.0 <= value <= 1.0

    def test_accepts_converted_skeleton_points(self):
        rig = compute_rig_signals(skeleton_to_landmarks({"nose": Point2D(50, 20)}))
        assert -1.0 <= rig.head_tilt <= 1.0
