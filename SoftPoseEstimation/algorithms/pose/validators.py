"""
Pose Validation Utilities

Validation of SoftPOSIT poses: rotation validity, depth, reprojection error
over the recovered matches, match coverage, and error metrics against a
ground-truth pose.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from SoftPoseEstimation.core.structures.geometry import CameraModel, Pose


@dataclass
class PoseValidationResult:
    """Result of pose validation"""
    is_valid: bool
    quality_score: float  # 0-1 scale
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metrics: Dict[str, float] = field(default_factory=dict)


def rotation_error_deg(R_a: np.ndarray, R_b: np.ndarray) -> float:
    """Angle of the relative rotation R_a^T R_b, in degrees"""
    relative = Rotation.from_matrix(np.asarray(R_a).T @ np.asarray(R_b))
    return float(np.degrees(relative.magnitude()))


def translation_error(t_a: np.ndarray, t_b: np.ndarray, relative: bool = True) -> float:
    """
    Translation error between two poses.

    Args:
        t_a: Estimated translation
        t_b: Reference translation
        relative: Divide by the norm of the reference translation
    """
    diff = float(np.linalg.norm(np.asarray(t_a, dtype=np.float64) - np.asarray(t_b, dtype=np.float64)))
    if not relative:
        return diff
    ref = float(np.linalg.norm(t_b))
    return diff / ref if ref > 0 else diff


class PoseValidator:
    """
    Validates SoftPOSIT poses and provides quality assessment.

    This class checks:
    - Rotation matrix validity (orthonormal rows, det = 1)
    - Object in front of the camera
    - Reprojection errors over the matched pairs
    - Fraction of model points that found a match
    """

    def __init__(self,
                 max_reprojection_error: float = 5.0,
                 min_matches: int = 4,
                 min_match_ratio: float = 0.3,
                 rotation_tolerance: float = 1e-6):
        """
        Initialize pose validator.

        Args:
            max_reprojection_error: Mean reprojection error above which a warning is raised (pixels)
            min_matches: Minimum number of matches required
            min_match_ratio: Minimum fraction of model points matched
            rotation_tolerance: Tolerance on R R^T = I and det(R) = 1
        """
        self.max_reprojection_error = max_reprojection_error
        self.min_matches = min_matches
        self.min_match_ratio = min_match_ratio
        self.rotation_tolerance = rotation_tolerance

    def validate_pose(self,
                      pose: Pose,
                      image_points: np.ndarray,
                      world_points: np.ndarray,
                      matches: Sequence[Tuple[int, int]],
                      camera: Optional[CameraModel] = None) -> PoseValidationResult:
        """
        Comprehensive pose validation.

        Args:
            pose: Estimated pose
            image_points: Nx2 image points (pixels)
            world_points: Mx3 model points
            matches: (image_index, world_index) pairs
            camera: Camera model

        Returns:
            PoseValidationResult with validation outcome and metrics
        """
        camera = camera or CameraModel.default()
        image_points = np.asarray(image_points, dtype=np.float64).reshape(-1, 2)
        world_points = np.asarray(world_points, dtype=np.float64).reshape(-1, 3)

        warnings = []
        errors = []
        metrics = {}

        # 1. Rotation
        if not pose.is_orthonormal(self.rotation_tolerance):
            errors.append("Invalid rotation matrix (rows not orthonormal or det != 1)")

        # 2. Depth
        metrics['translation_norm'] = float(np.linalg.norm(pose.translation))
        depths = pose.transform(world_points)[:, 2] if len(world_points) else np.zeros(0)
        num_behind = int(np.sum(depths <= 0))
        metrics['num_behind_camera'] = num_behind
        if num_behind > 0:
            errors.append(f"{num_behind} model points behind camera")

        # 3. Matches
        num_matches = len(matches)
        match_ratio = num_matches / len(world_points) if len(world_points) else 0.0
        metrics['num_matches'] = num_matches
        metrics['match_ratio'] = float(match_ratio)

        if num_matches < self.min_matches:
            errors.append(f"Insufficient matches: {num_matches} < {self.min_matches}")
        elif match_ratio < self.min_match_ratio:
            warnings.append(f"Low match ratio: {match_ratio:.2%} < {self.min_match_ratio:.2%}")

        # 4. Reprojection over matched pairs
        if num_matches > 0:
            reproj_errors = self.reprojection_errors(pose, image_points, world_points, matches, camera)
            metrics['mean_reprojection_error'] = float(np.mean(reproj_errors))
            metrics['median_reprojection_error'] = float(np.median(reproj_errors))
            metrics['max_reprojection_error'] = float(np.max(reproj_errors))

            if metrics['mean_reprojection_error'] > self.max_reprojection_error:
                warnings.append(
                    f"High reprojection error: {metrics['mean_reprojection_error']:.2f} > "
                    f"{self.max_reprojection_error}"
                )

        quality_score = self._compute_quality_score(metrics, len(errors), len(warnings))

        return PoseValidationResult(
            is_valid=len(errors) == 0,
            quality_score=quality_score,
            warnings=warnings,
            errors=errors,
            metrics=metrics
        )

    def reprojection_errors(self,
                            pose: Pose,
                            image_points: np.ndarray,
                            world_points: np.ndarray,
                            matches: Sequence[Tuple[int, int]],
                            camera: CameraModel) -> np.ndarray:
        """Pixel distance between each matched image point and its projected model point"""
        idx_img = np.array([m[0] for m in matches], dtype=int)
        idx_world = np.array([m[1] for m in matches], dtype=int)
        projected = pose.project(world_points[idx_world], camera)
        return np.linalg.norm(projected - image_points[idx_img], axis=1)

    def compare_to_ground_truth(self, pose: Pose, true_pose: Pose) -> Dict[str, float]:
        """Rotation error (degrees) and relative translation error"""
        return {
            'rotation_error_deg': rotation_error_deg(pose.rotation, true_pose.rotation),
            'translation_error': translation_error(pose.translation, true_pose.translation),
        }

    def _compute_quality_score(self, metrics: Dict[str, float], num_errors: int, num_warnings: int) -> float:
        """Compute overall quality score (0-1)"""
        if num_errors > 0:
            return 0.0

        score = 1.0

        if 'mean_reprojection_error' in metrics:
            reproj_score = max(0.0, 1.0 - metrics['mean_reprojection_error'] / (2 * self.max_reprojection_error))
            score *= 0.5 + 0.5 * reproj_score

        score *= 0.5 + 0.5 * min(1.0, metrics.get('match_ratio', 0.0))
        score *= 0.9 ** num_warnings

        return float(np.clip(score, 0.0, 1.0))
