"""
Synthetic scenes for testing and prototyping.

Generates model points, a ground-truth pose and the corresponding image
points without requiring actual images. Useful for:
- Unit testing
- Algorithm development
- Clutter, occlusion and noise experiments
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from SoftPoseEstimation.core.structures.geometry import CameraModel, Pose
from SoftPoseEstimation.logger import get_logger

logger = get_logger("data.synthetic")


def cube_points(size: float = 1.0) -> np.ndarray:
    """The 8 corners of an axis-aligned cube centered at the origin"""
    h = size / 2.0
    return np.array([
        [x, y, z]
        for x in (-h, h)
        for y in (-h, h)
        for z in (-h, h)
    ], dtype=np.float64)


def random_object_points(num_points: int = 10,
                         extent: float = 1.0,
                         seed: Optional[int] = None) -> np.ndarray:
    """
    Random model points uniformly spread in a cube of side ``extent``,
    centered at their centroid.
    """
    if num_points < 1:
        raise ValueError(f"num_points must be positive, got {num_points}")
    rng = np.random.default_rng(seed)
    points = rng.uniform(-extent / 2.0, extent / 2.0, size=(num_points, 3))
    return points - points.mean(axis=0)


@dataclass
class SyntheticScene:
    """
    A generated scene with ground truth.

    Attributes:
        world_points: Mx3 model points
        image_points: Nx2 image points (visible projections, then clutter), shuffled
        true_pose: Pose used to generate the image
        camera: Camera model used for projection
        correspondences: Ground-truth (image_index, world_index) pairs
    """
    world_points: np.ndarray
    image_points: np.ndarray
    true_pose: Pose
    camera: CameraModel
    correspondences: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def num_inliers(self) -> int:
        return len(self.correspondences)

    def correspondence_accuracy(self, matches) -> float:
        """Fraction of returned matches that are ground-truth correspondences"""
        if not matches:
            return 0.0
        truth = set(self.correspondences)
        return sum(1 for m in matches if tuple(m) in truth) / len(matches)


def generate_scene(world_points: Optional[np.ndarray] = None,
                   true_pose: Optional[Pose] = None,
                   camera: Optional[CameraModel] = None,
                   noise_std: float = 0.0,
                   num_occluded: int = 0,
                   num_clutter: int = 0,
                   image_size: Tuple[int, int] = (640, 480),
                   shuffle: bool = True,
                   seed: Optional[int] = None) -> SyntheticScene:
    """
    Generate a synthetic scene.

    Args:
        world_points: Model points (default: unit cube corners)
        true_pose: Ground-truth pose (default: random rotation, depth 5)
        camera: Camera model (default: f=800, principal point at image center)
        noise_std: Gaussian pixel noise added to visible projections
        num_occluded: Model points with no image point
        num_clutter: Extra image points uniformly spread over the image
        image_size: (width, height) used for clutter and the default camera
        shuffle: Randomly permute image points
        seed: Random seed for reproducibility

    Returns:
        SyntheticScene
    """
    rng = np.random.default_rng(seed)

    if world_points is None:
        world_points = cube_points()
    world_points = np.asarray(world_points, dtype=np.float64).reshape(-1, 3)
    n_world = len(world_points)

    if camera is None:
        width, height = image_size
        camera = CameraModel(focal_length=800.0, principal_point=(width / 2.0, height / 2.0))

    if true_pose is None:
        # Normalized Gaussian quaternions are uniform over SO(3)
        quat = rng.normal(size=4)
        rotation = Rotation.from_quat(quat / np.linalg.norm(quat)).as_matrix()
        true_pose = Pose(rotation=rotation, translation=np.array([0.0, 0.0, 5.0]))

    if num_occluded < 0 or num_occluded > n_world:
        raise ValueError(f"num_occluded must be in [0, {n_world}], got {num_occluded}")

    visible = np.sort(rng.permutation(n_world)[:n_world - num_occluded])
    projected = true_pose.project(world_points[visible], camera)
    if noise_std > 0:
        projected = projected + rng.normal(0.0, noise_std, size=projected.shape)

    width, height = image_size
    clutter = np.column_stack([
        rng.uniform(0, width, size=num_clutter),
        rng.uniform(0, height, size=num_clutter)
    ]) if num_clutter > 0 else np.zeros((0, 2))

    image_points = np.vstack([projected, clutter])
    # Row i of image_points is the projection of world point sources[i], or clutter (-1)
    sources = np.concatenate([visible, -np.ones(num_clutter, dtype=int)])

    if shuffle:
        order = rng.permutation(len(image_points))
        image_points = image_points[order]
        sources = sources[order]

    correspondences = [(int(j), int(k)) for j, k in enumerate(sources) if k >= 0]

    logger.debug(
        f"Generated scene: {n_world} model points, {len(visible)} visible, "
        f"{num_clutter} clutter, noise {noise_std}px"
    )

    return SyntheticScene(
        world_points=world_points,
        image_points=image_points,
        true_pose=true_pose,
        camera=camera,
        correspondences=correspondences
    )


def perturb_pose(pose: Pose,
                 rotation_deg: float = 5.0,
                 translation_scale: float = 0.1,
                 seed: Optional[int] = None) -> Pose:
    """
    Random perturbation of a pose, for initial guesses.

    Args:
        pose: Reference pose
        rotation_deg: Magnitude of the random rotation, degrees
        translation_scale: Relative magnitude of the translation offset
        seed: Random seed
    """
    rng = np.random.default_rng(seed)
    axis = rng.normal(size=3)
    axis /= np.linalg.norm(axis)
    delta = Rotation.from_rotvec(np.radians(rotation_deg) * axis).as_matrix()
    offset = rng.normal(size=3)
    offset *= translation_scale * np.linalg.norm(pose.translation) / np.linalg.norm(offset)
    return Pose(rotation=delta @ pose.rotation, translation=pose.translation + offset)
