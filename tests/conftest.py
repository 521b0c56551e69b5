"""
Shared fixtures for the SoftPoseEstimation test suite.
"""

import sys
from pathlib import Path

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

project_root = Path(__file__).parent.parent  # Go up from tests/ to project root
sys.path.insert(0, str(project_root))

from SoftPoseEstimation.core.structures import CameraModel, Pose
from SoftPoseEstimation.data.synthetic import cube_points


@pytest.fixture
def cube():
    """Unit cube corners (+-0.5, +-0.5, +-0.5)"""
    return cube_points(1.0)


@pytest.fixture
def pixel_camera():
    return CameraModel(focal_length=800.0, principal_point=(320.0, 240.0))


@pytest.fixture
def frontal_pose():
    """Identity rotation, cube centered five units in front of the camera"""
    return Pose(rotation=np.eye(3), translation=np.array([0.0, 0.0, 5.0]))


@pytest.fixture
def frontal_scene(cube, pixel_camera, frontal_pose):
    """
    Noiseless projections of the cube, permuted.

    Returns:
        (image_points, world_points, correspondences)
    """
    projected = frontal_pose.project(cube, pixel_camera)
    order = np.random.default_rng(3).permutation(len(cube))
    image_points = projected[order]
    correspondences = {(j, int(k)) for j, k in enumerate(order)}
    return image_points, cube, correspondences
