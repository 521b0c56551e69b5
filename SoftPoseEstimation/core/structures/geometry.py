"""
Geometry primitives for SoftPOSIT.

Camera model, rigid pose and solver parameters. These are passive data
holders; the algorithms in ``SoftPoseEstimation.algorithms`` operate on them.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import cv2
import numpy as np


@dataclass(frozen=True)
class CameraModel:
    """
    Pinhole camera without skew or distortion.

    Attributes:
        focal_length: Focal length in pixels (same for both axes)
        principal_point: (cx, cy) in pixels
    """
    focal_length: float = 1.0
    principal_point: Tuple[float, float] = (0.0, 0.0)

    @classmethod
    def default(cls) -> 'CameraModel':
        """Unit focal length, principal point at the origin"""
        return cls()

    @classmethod
    def from_matrix(cls, camera_matrix: np.ndarray) -> 'CameraModel':
        """
        Build from a 3x3 intrinsic matrix.

        fx and fy are averaged; SoftPOSIT assumes square pixels.
        """
        K = np.asarray(camera_matrix, dtype=np.float64)
        if K.shape != (3, 3):
            raise ValueError(f"Camera matrix must be 3x3, got {K.shape}")
        focal = 0.5 * (K[0, 0] + K[1, 1])
        return cls(focal_length=float(focal), principal_point=(float(K[0, 2]), float(K[1, 2])))

    @property
    def matrix(self) -> np.ndarray:
        """3x3 intrinsic matrix K"""
        cx, cy = self.principal_point
        return np.array([
            [self.focal_length, 0.0, cx],
            [0.0, self.focal_length, cy],
            [0.0, 0.0, 1.0]
        ], dtype=np.float64)

    def normalize(self, image_points: np.ndarray) -> np.ndarray:
        """Pixel coordinates (Nx2) -> focal-length-normalized camera coordinates"""
        pts = np.asarray(image_points, dtype=np.float64).reshape(-1, 2)
        center = np.asarray(self.principal_point, dtype=np.float64)
        return (pts - center) / self.focal_length

    def denormalize(self, normalized_points: np.ndarray) -> np.ndarray:
        """Normalized camera coordinates (Nx2) -> pixel coordinates"""
        pts = np.asarray(normalized_points, dtype=np.float64).reshape(-1, 2)
        return pts * self.focal_length + np.asarray(self.principal_point, dtype=np.float64)


@dataclass
class Pose:
    """
    Rigid object pose in the camera frame: x_cam = R @ x_world + t.

    Attributes:
        rotation: 3x3 rotation matrix (rows r1, r2, r3)
        translation: 3-vector
    """
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))

    def __post_init__(self):
        self.rotation = np.asarray(self.rotation, dtype=np.float64).reshape(3, 3)
        self.translation = np.asarray(self.translation, dtype=np.float64).reshape(3)

    @classmethod
    def from_rotation_vector(cls, rvec, tvec) -> 'Pose':
        """Build a pose from a Rodrigues rotation vector and a translation"""
        R, _ = cv2.Rodrigues(np.asarray(rvec, dtype=np.float64).reshape(3, 1))
        return cls(rotation=R, translation=np.asarray(tvec, dtype=np.float64).reshape(3))

    @property
    def rotation_vector(self) -> np.ndarray:
        """Rodrigues rotation vector (3,)"""
        rvec, _ = cv2.Rodrigues(self.rotation)
        return rvec.reshape(3)

    def as_matrix(self) -> np.ndarray:
        """3x4 extrinsic matrix [R | t]"""
        return np.hstack([self.rotation, self.translation.reshape(3, 1)])

    def copy(self) -> 'Pose':
        return Pose(rotation=self.rotation.copy(), translation=self.translation.copy())

    def is_orthonormal(self, tol: float = 1e-6) -> bool:
        """Rows are unit-norm, mutually orthogonal and right-handed"""
        R = self.rotation
        if not np.allclose(R @ R.T, np.eye(3), atol=tol):
            return False
        return bool(np.isclose(np.linalg.det(R), 1.0, atol=tol))

    def transform(self, world_points: np.ndarray) -> np.ndarray:
        """World points (Nx3) -> camera frame (Nx3)"""
        pts = np.asarray(world_points, dtype=np.float64).reshape(-1, 3)
        return pts @ self.rotation.T + self.translation

    def project(self, world_points: np.ndarray, camera: Optional[CameraModel] = None) -> np.ndarray:
        """
        Perspective projection of world points to pixels.

        Args:
            world_points: Nx3 model points
            camera: Camera model (default: unit focal length, origin principal point)

        Returns:
            Nx2 image coordinates
        """
        camera = camera or CameraModel.default()
        pts = np.asarray(world_points, dtype=np.float64).reshape(-1, 1, 3)
        if pts.shape[0] == 0:
            return np.zeros((0, 2))
        projected, _ = cv2.projectPoints(
            pts,
            self.rotation_vector.reshape(3, 1),
            self.translation.reshape(3, 1),
            camera.matrix,
            None
        )
        return projected.reshape(-1, 2)


@dataclass(frozen=True)
class SoftPositParams:
    """
    Per-call parameters of the SoftPOSIT solver.

    Attributes:
        beta0: Initial annealing inverse temperature
        noise_std: Standard deviation of image noise, in pixels
    """
    beta0: float = 0.0004
    noise_std: float = 1.0
