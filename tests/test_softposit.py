"""
End-to-end tests for the SoftPOSIT estimator.
"""

import numpy as np
import pytest

from SoftPoseEstimation import (
    CameraModel,
    EstimationStatus,
    Pose,
    SoftPositConfig,
    SoftPositEstimator,
    SoftPositParams,
    estimate_pose,
)
from SoftPoseEstimation.algorithms.pose import rotation_error_deg, translation_error
from SoftPoseEstimation.data.synthetic import generate_scene, perturb_pose


PARAMS = SoftPositParams(beta0=0.0004, noise_std=1.0)


def _check_frontal_recovery(result, correspondences):
    assert result
    assert result.status == EstimationStatus.SUCCESS
    assert result.converged
    assert result.beta_count > 20
    assert np.allclose(result.model.translation, [0.0, 0.0, 5.0], atol=0.05)
    assert np.allclose(result.model.rotation, np.eye(3), atol=1e-3)
    assert set(result.matches) == correspondences


def test_recovers_pose_from_true_start(frontal_scene, pixel_camera, frontal_pose):
    image_points, world_points, correspondences = frontal_scene

    result = SoftPositEstimator().estimate(image_points, world_points, PARAMS, frontal_pose, pixel_camera)

    _check_frontal_recovery(result, correspondences)


def test_recovers_pose_from_wrong_depth(frontal_scene, pixel_camera):
    image_points, world_points, correspondences = frontal_scene
    initial = Pose(rotation=np.eye(3), translation=np.array([0.0, 0.0, 4.0]))

    result = SoftPositEstimator().estimate(image_points, world_points, PARAMS, initial, pixel_camera)

    _check_frontal_recovery(result, correspondences)


def test_clutter_and_occlusion(cube):
    true_pose = Pose.from_rotation_vector([0.3, -0.2, 0.1], [0.2, -0.1, 6.0])
    scene = generate_scene(cube, true_pose=true_pose, num_occluded=1, num_clutter=2, seed=11)
    initial = perturb_pose(true_pose, rotation_deg=3.0, translation_scale=0.02, seed=5)

    result = estimate_pose(scene.image_points, scene.world_points, PARAMS, initial, scene.camera)

    assert result
    assert result.converged
    assert rotation_error_deg(result.model.rotation, true_pose.rotation) < 1.0
    assert translation_error(result.model.translation, true_pose.translation) < 0.02
    assert result.num_matches >= 5
    assert scene.correspondence_accuracy(result.matches) >= 0.85


def test_history_matches_iterations(frontal_scene, pixel_camera, frontal_pose):
    image_points, world_points, _ = frontal_scene

    result = SoftPositEstimator().estimate(image_points, world_points, PARAMS, frontal_pose, pixel_camera)

    assert len(result.history) == result.beta_count
    betas = result.history.as_array()[:, 0]
    assert betas[0] == pytest.approx(PARAMS.beta0)
    assert np.allclose(betas[1:] / betas[:-1], SoftPositConfig.BETA_UPDATE)
    assert result.final_error < result.metadata['max_delta']
    assert 0.0 <= result.history.last.match_ratio <= 1.0
    assert result.assignment.shape == (9, 9)


def test_estimation_is_deterministic(frontal_scene, pixel_camera):
    image_points, world_points, _ = frontal_scene
    initial = Pose(rotation=np.eye(3), translation=np.array([0.0, 0.0, 4.0]))

    first = SoftPositEstimator().estimate(image_points, world_points, PARAMS, initial, pixel_camera)
    second = SoftPositEstimator().estimate(image_points, world_points, PARAMS, initial, pixel_camera)

    assert np.array_equal(first.model.rotation, second.model.rotation)
    assert np.array_equal(first.model.translation, second.model.translation)
    assert first.matches == second.matches
    assert first.beta_count == second.beta_count


def test_result_passes_validation(frontal_scene, pixel_camera, frontal_pose):
    image_points, world_points, _ = frontal_scene
    estimator = SoftPositEstimator()

    result = estimator.estimate_with_validation(image_points, world_points, PARAMS, frontal_pose, pixel_camera)

    assert estimator.validate_result(result)
    assert 'validation_failed' not in result.metadata


class _CountingEstimator(SoftPositEstimator):
    def __init__(self, **overrides):
        super().__init__(**overrides)
        self.input_checks = 0

    def validate_input(self, *args, **kwargs):
        self.input_checks += 1
        return super().validate_input(*args, **kwargs)


def test_validated_estimate_checks_input_once(frontal_scene, pixel_camera, frontal_pose):
    image_points, world_points, _ = frontal_scene
    estimator = _CountingEstimator()

    result = estimator.estimate_with_validation(image_points, world_points, PARAMS, frontal_pose, pixel_camera)
    assert result
    assert estimator.input_checks == 1

    rejected = estimator.estimate_with_validation(np.zeros((4, 3)), world_points, PARAMS, frontal_pose, pixel_camera)
    assert rejected.status == EstimationStatus.INVALID_INPUT
    assert estimator.input_checks == 2


def test_final_assignment_mass(frontal_scene, pixel_camera):
    image_points, world_points, _ = frontal_scene
    initial = Pose(rotation=np.eye(3), translation=np.array([0.0, 0.0, 4.0]))

    result = SoftPositEstimator().estimate(image_points, world_points, PARAMS, initial, pixel_camera)

    # Rows are normalized last; columns keep the drift of the final row pass
    assert np.allclose(result.assignment[:-1, :].sum(axis=1), 1.0, atol=1e-3)
    assert np.allclose(result.assignment[:, :-1].sum(axis=0), 1.0, atol=1e-2)


def test_plain_normalization_produces_pose(frontal_scene, pixel_camera, frontal_pose):
    image_points, world_points, _ = frontal_scene
    estimator = SoftPositEstimator(normalization='plain')

    result = estimator.estimate(image_points, world_points, PARAMS, frontal_pose, pixel_camera)

    assert estimator.get_algorithm_name() == "SoftPOSIT_plain"
    assert result
    assert result.model.is_orthonormal()


def test_schedule_that_never_runs(frontal_scene, pixel_camera, frontal_pose):
    image_points, world_points, _ = frontal_scene
    params = SoftPositParams(beta0=1.0, noise_std=1.0)

    result = SoftPositEstimator().estimate(image_points, world_points, params, frontal_pose, pixel_camera)

    assert result.success
    assert result.status == EstimationStatus.NOT_CONVERGED
    assert result.beta_count == 0
    assert len(result.history) == 0
    assert result.matches == []
    assert np.array_equal(result.model.translation, frontal_pose.translation)


@pytest.mark.parametrize("world_points", [
    # Three points
    np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.5]]),
    # Four coplanar points
    np.array([[-0.5, -0.5, 0.0], [0.5, -0.5, 0.0], [0.5, 0.5, 0.0], [-0.5, 0.5, 0.0]]),
])
def test_degenerate_model_is_ill_conditioned(world_points, pixel_camera):
    pose = Pose(rotation=np.eye(3), translation=np.array([0.0, 0.0, 5.0]))
    image_points = pose.project(world_points, pixel_camera)

    result = SoftPositEstimator().estimate(image_points, world_points, PARAMS, pose, pixel_camera)

    assert not result
    assert result.status == EstimationStatus.ILL_CONDITIONED
    assert result.model is None
    assert result.metadata['min_points'] == 4



def test_unit_focal_length_scene_is_ill_conditioned(cube):
    """
    Normalized coordinates with noise_std 1: alpha dwarfs every distance, the
    assignment stays uniform and the weighted sums cancel on the centered cube.
    """
    true_pose = Pose(rotation=np.eye(3), translation=np.array([0.0, 0.0, 5.0]))
    camera = CameraModel()
    image_points = true_pose.project(cube, camera)
    initial = Pose(rotation=np.eye(3), translation=np.array([0.0, 0.0, 1.0]))

    result = SoftPositEstimator().estimate(image_points, cube, PARAMS, initial, camera)

    assert not result
    assert result.status == EstimationStatus.ILL_CONDITIONED
    assert result.metadata['error'] == 'Projection-plane vectors vanished'
    assert result.model is None


def test_empty_point_sets(cube, pixel_camera):
    estimator = SoftPositEstimator()

    no_world = estimator.estimate(np.zeros((4, 2)), np.zeros((0, 3)), PARAMS, None, pixel_camera)
    no_image = estimator.estimate(np.zeros((0, 2)), cube, PARAMS, None, pixel_camera)

    for result in (no_world, no_image):
        assert not result
        assert result.status == EstimationStatus.INSUFFICIENT_POINTS
        assert result.model is None


@pytest.mark.parametrize("image_points, world_points, params, camera", [
    (np.zeros((4, 3)), np.zeros((8, 3)), PARAMS, None),
    (np.zeros((4, 2)), np.zeros((8, 2)), PARAMS, None),
    (np.full((4, 2), np.nan), np.zeros((8, 3)), PARAMS, None),
    (np.zeros((4, 2)), np.zeros((8, 3)), SoftPositParams(beta0=0.0), None),
    (np.zeros((4, 2)), np.zeros((8, 3)), SoftPositParams(noise_std=-1.0), None),
    (np.zeros((4, 2)), np.zeros((8, 3)), PARAMS, CameraModel(focal_length=0.0)),
])
def test_invalid_input(image_points, world_points, params, camera):
    result = SoftPositEstimator().estimate(image_points, world_points, params, None, camera)

    assert not result
    assert result.status == EstimationStatus.INVALID_INPUT
    assert 'error' in result.metadata


def test_zero_depth_initial_pose_is_rejected(cube):
    initial = Pose(rotation=np.eye(3), translation=np.zeros(3))
    result = SoftPositEstimator().estimate(np.zeros((8, 2)), cube, PARAMS, initial)
    assert result.status == EstimationStatus.INVALID_INPUT


def test_configuration_overrides():
    estimator = SoftPositEstimator(SoftPositConfig(beta_update=1.1), min_beta_count=5)

    assert estimator.settings.BETA_UPDATE == 1.1
    assert estimator.settings.MIN_BETA_COUNT == 5
    assert SoftPositConfig.MIN_BETA_COUNT == 20
    assert estimator.get_min_points() == 4
    assert estimator.alpha(1.0) == pytest.approx(10.21)
    assert estimator.max_delta(1.0) == pytest.approx(np.sqrt(10.21) / 2)

    with pytest.raises(ValueError):
        SoftPositEstimator(not_an_option=1)
