"""
Tests for pose validation and error metrics.
"""

import numpy as np
import pytest

from SoftPoseEstimation.algorithms.pose import (
    PoseValidator,
    rotation_error_deg,
    translation_error,
)
from SoftPoseEstimation.core.structures import Pose


def test_rotation_error():
    a = Pose.from_rotation_vector([0.0, 0.0, 0.0], [0, 0, 5])
    b = Pose.from_rotation_vector([0.0, 0.0, np.radians(10.0)], [0, 0, 5])
    assert rotation_error_deg(a.rotation, a.rotation) == pytest.approx(0.0, abs=1e-9)
    assert rotation_error_deg(a.rotation, b.rotation) == pytest.approx(10.0)


def test_translation_error():
    assert translation_error([0, 0, 5.05], [0, 0, 5]) == pytest.approx(0.01)
    assert translation_error([0, 0, 5.05], [0, 0, 5], relative=False) == pytest.approx(0.05)
    assert translation_error([1, 0, 0], [0, 0, 0]) == pytest.approx(1.0)


def test_true_pose_is_valid(cube, pixel_camera, frontal_pose):
    image_points = frontal_pose.project(cube, pixel_camera)
    matches = [(k, k) for k in range(8)]

    result = PoseValidator().validate_pose(frontal_pose, image_points, cube, matches, pixel_camera)

    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []
    assert result.metrics['mean_reprojection_error'] == pytest.approx(0.0, abs=1e-6)
    assert result.metrics['match_ratio'] == 1.0
    assert result.quality_score == pytest.approx(1.0)


def test_object_behind_camera(cube, pixel_camera):
    behind = Pose(rotation=np.eye(3), translation=np.array([0.0, 0.0, -5.0]))
    matches = [(k, k) for k in range(8)]

    result = PoseValidator().validate_pose(behind, np.zeros((8, 2)), cube, matches, pixel_camera)

    assert not result.is_valid
    assert result.metrics['num_behind_camera'] == 8
    assert result.quality_score == 0.0


def test_too_few_matches(cube, pixel_camera, frontal_pose):
    image_points = frontal_pose.project(cube, pixel_camera)
    result = PoseValidator(min_matches=4).validate_pose(
        frontal_pose, image_points, cube, [(0, 0), (1, 1)], pixel_camera
    )
    assert not result.is_valid
    assert any('Insufficient matches' in e for e in result.errors)


def test_high_reprojection_error_warns(cube, pixel_camera, frontal_pose):
    image_points = frontal_pose.project(cube, pixel_camera) + 20.0
    matches = [(k, k) for k in range(8)]

    result = PoseValidator(max_reprojection_error=5.0).validate_pose(
        frontal_pose, image_points, cube, matches, pixel_camera
    )

    assert result.is_valid
    assert len(result.warnings) == 1
    assert result.quality_score < 1.0


def test_compare_to_ground_truth(frontal_pose):
    shifted = Pose(rotation=np.eye(3), translation=np.array([0.0, 0.0, 5.5]))
    errors = PoseValidator().compare_to_ground_truth(shifted, frontal_pose)
    assert errors['rotation_error_deg'] == pytest.approx(0.0, abs=1e-9)
    assert errors['translation_error'] == pytest.approx(0.1)
