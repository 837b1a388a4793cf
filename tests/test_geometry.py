"""Tests for landmark normalization and skeleton helpers."""

import math
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from geometry import (
    clamp,
    is_complete_skeleton,
    normalize_landmarks,
    pose_center,
    pose_scale,
    skeleton_to_landmarks,
)
from pose_library import PERFECT_POSE
from pose_types import Landmark, Point2D


def _reference_landmarks():
    landmarks = skeleton_to_landmarks(PERFECT_POSE)
    for lm in landmarks.values():
        lm.z = 0.1
        lm.visibility = 0.8
    return landmarks


def _transform(landmarks, factor=1.0, dx=0.0, dy=0.0):
    return {
        name: Landmark(lm.x * factor + dx, lm.y * factor + dy, lm.z * factor, lm.visibility)
        for name, lm in landmarks.items()
    }


def _assert_same(a, b):
    assert a.keys() == b.keys()
    for name in a:
        assert a[name].x == pytest.approx(b[name].x, abs=1e-9)
        assert a[name].y == pytest.approx(b[name].y, abs=1e-9)
        assert a[name].z == pytest.approx(b[name].z, abs=1e-9)
        assert a[name].visibility == b[name].visibility


# ============================================================================
# Normalizer
# ============================================================================


class TestNormalizeLandmarks:
    @pytest.mark.parametrize("factor", [0.25, 0.5, 2.0, 3.7])
    def test_scale_invariant(self, factor):
        base = _reference_landmarks()
        _assert_same(normalize_landmarks(base), normalize_landmarks(_transform(base, factor=factor)))

    @pytest.mark.parametrize("dx,dy", [(0.1, 0.0), (-0.2, 0.15), (0.33, -0.4)])
    def test_translation_invariant(self, dx, dy):
        base = _reference_landmarks()
        _assert_same(normalize_landmarks(base), normalize_landmarks(_transform(base, dx=dx, dy=dy)))

    def test_torso_center_maps_to_origin(self):
        normalized = normalize_landmarks(_reference_landmarks())
        torso = [normalized[k] for k in ("left_shoulder", "right_shoulder", "left_hip", "right_hip")]
        assert sum(lm.x for lm in torso) == pytest.approx(0.0, abs=1e-9)
        assert sum(lm.y for lm in torso) == pytest.approx(0.0, abs=1e-9)

    def test_scale_formula(self):
        landmarks = skeleton_to_landmarks(PERFECT_POSE)
        # shoulders 0.4 apart, hips 0.2 apart, torso 0.25 tall
        assert pose_scale(landmarks) == pytest.approx(0.5 * 0.4 + 0.2 * 0.2 + 0.6 * 0.25)

    def test_z_is_scaled_not_centered(self):
        landmarks = _reference_landmarks()
        scale = pose_scale(landmarks)
        normalized = normalize_landmarks(landmarks)
        assert normalized["nose"].z == pytest.approx(0.1 / scale)

    def test_missing_torso_point_disables_scaling_and_biases_center(self):
        landmarks = _reference_landmarks()
        del landmarks["right_hip"]
        assert pose_scale(landmarks) == 1.0
        cx, cy = pose_center(landmarks)
        # right hip counted as (0, 0)
        assert cx == pytest.approx((0.7 + 0.3 + 0.6) / 4.0)
        assert cy == pytest.approx((0.3 + 0.3 + 0.55) / 4.0)
        normalized = normalize_landmarks(landmarks)
        assert normalized["nose"].x == pytest.approx(0.5 - cx)

    def test_output_keys_are_input_keys(self):
        landmarks = {"nose": Landmark(0.5, 0.2), "left_wrist": Landmark(0.7, 0.6, 0.0, 0.3)}
        normalized = normalize_landmarks(landmarks)
        assert set(normalized) == {"nose", "left_wrist"}
        assert normalized["left_wrist"].visibility == 0.3
        assert normalized["nose"].visibility is None

    def test_input_not_mutated(self):
        landmarks = _reference_landmarks()
        before = {k: (v.x, v.y, v.z) for k, v in landmarks.items()}
        normalize_landmarks(landmarks)
        assert {k: (v.x, v.y, v.z) for k, v in landmarks.items()} == before

    def test_degenerate_torso_uses_floor(self):
        point = Landmark(0.5, 0.5)
        landmarks = {k: Landmark(point.x, point.y) for k in ("left_shoulder", "right_shoulder", "left_hip", "right_hip")}
        landmarks["nose"] = Landmark(0.5, 0.4)
        normalized = normalize_landmarks(landmarks)
        assert math.isfinite(normalized["nose"].y)
        assert pose_scale(landmarks) == pytest.approx(1e-4)

    def test_empty_map(self):
        assert normalize_landmarks({}) == {}


# ============================================================================
# Helpers
# ============================================================================


def test_clamp_bounds_and_nan():
    assert clamp(3.0) == 1.0
    assert clamp(-3.0) == -1.0
    assert clamp(float("inf"), 0.0, 1.0) == 1.0
    assert clamp(float("nan")) == 0.0
    assert clamp(float("nan"), 0.2, 1.0) == 0.2


def test_skeleton_to_landmarks_converts_percent():
    landmarks = skeleton_to_landmarks({"nose": Point2D(50, 20)})
    assert landmarks["nose"].x == pytest.approx(0.5)
    assert landmarks["nose"].y == pytest.approx(0.2)
    assert landmarks["nose"].z == 0.0


def test_is_complete_skeleton():
    assert is_complete_skeleton(PERFECT_POSE)
    assert not is_complete_skeleton(None)
    partial = dict(PERFECT_POSE)
    del partial["left_ankle"]
    assert not is_complete_skeleton(partial)
    broken = dict(PERFECT_POSE)
    broken["nose"] = Point2D(float("nan"), 10.0)
    assert not is_complete_skeleton(broken)
