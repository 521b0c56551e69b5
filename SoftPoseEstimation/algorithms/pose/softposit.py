"""
SoftPOSIT Pose Estimation Module

Estimates the pose of a rigid object from 2D image points and 3D model
points when the correspondences between them are unknown. Correspondence
and pose are solved jointly by deterministic annealing: a soft assignment
matrix is sharpened while POSIT refines the pose under it.

Key Features:
- Slack row/column absorbing clutter and occluded model points
- Slack-aware Sinkhorn normalization
- Scaled-orthographic pose refinement with SVD orthonormalization
- Per-iteration diagnostics returned with the result

Usage:
    estimator = SoftPositEstimator()
    result = estimator.estimate(image_points, world_points, params, initial_pose, camera)
    if result:
        pose, matches = result.model, result.matches
"""

import math
from typing import Optional, Tuple

import numpy as np

from SoftPoseEstimation.config import SoftPositConfig
from SoftPoseEstimation.core.interfaces.base_estimator import (
    BaseEstimator,
    EstimationResult,
    EstimationStatus
)
from SoftPoseEstimation.core.structures.annealing import (
    AnnealingHistory,
    AnnealingState,
    IterationStats
)
from SoftPoseEstimation.core.structures.geometry import CameraModel, Pose, SoftPositParams
from SoftPoseEstimation.algorithms.assignment import (
    AssignmentBuilder,
    AssignmentProblem,
    DominantPairFinder,
    MatchCounter,
    SinkhornNormalizer
)
from SoftPoseEstimation.logger import get_logger
from .posit_refiner import PoseRefiner

logger = get_logger("pose.softposit")


class SoftPositEstimator(BaseEstimator):
    """
    Joint correspondence and pose estimation by deterministic annealing.

    The estimator is stateless between calls: every call to estimate()
    owns its working matrices, and the result is a pure function of the
    inputs and the configuration.
    """

    def __init__(self, config: Optional[SoftPositConfig] = None, **overrides):
        """
        Initialize estimator.

        Args:
            config: Solver configuration (default: SoftPositConfig())
            **overrides: Configuration overrides, e.g. beta_update=1.1
        """
        base = config.to_dict() if config is not None else {}
        self.settings = SoftPositConfig(**{**base, **overrides})
        super().__init__(**self.settings.to_dict())

        self.normalizer = SinkhornNormalizer(
            max_iterations=self.settings.SINKHORN_MAX_ITERATIONS,
            tolerance=self.settings.SINKHORN_TOLERANCE,
            method=self.settings.NORMALIZATION
        )
        self.pair_finder = DominantPairFinder()
        self.match_counter = MatchCounter()

    def get_algorithm_name(self) -> str:
        return f"SoftPOSIT_{self.settings.NORMALIZATION}"

    def get_min_points(self) -> int:
        # L is rank deficient for fewer than four non-coplanar model points
        return 4

    # ------------------------------------------------------------------
    # Derived constants
    # ------------------------------------------------------------------

    def alpha(self, noise_std: float) -> float:
        """Squared-distance threshold for inlier acceptance at 99% confidence"""
        return self.settings.CHI_SQUARE_99 * noise_std ** 2 + 1

    def max_delta(self, noise_std: float) -> float:
        """RMS error below which the pose is considered converged"""
        return math.sqrt(self.alpha(noise_std)) / 2

    # ------------------------------------------------------------------
    # Estimation
    # ------------------------------------------------------------------

    def estimate(self,
                 image_points,
                 world_points,
                 params: Optional[SoftPositParams] = None,
                 initial_pose: Optional[Pose] = None,
                 camera: Optional[CameraModel] = None) -> EstimationResult:
        """
        Estimate the object pose without known correspondences.

        Args:
            image_points: Image feature points (Nx2), pixels
            world_points: Model points (Mx3)
            params: beta0 and noise_std (default: SoftPositParams())
            initial_pose: Starting pose guess (default: identity at unit depth)
            camera: Camera model (default: unit focal length, origin principal point)

        Returns:
            EstimationResult whose model is the Pose on success. A result
            with success False (and no pose) is returned when the weighted
            normal matrix becomes ill-conditioned, the point sets are empty,
            or the input is malformed.
        """
        params = params or SoftPositParams(
            beta0=self.settings.DEFAULT_BETA0,
            noise_std=self.settings.DEFAULT_NOISE_STD
        )
        initial_pose = initial_pose if initial_pose is not None else Pose()
        camera = camera or CameraModel.default()

        is_valid, error_msg = self.validate_input(image_points, world_points, params, initial_pose, camera)
        if not is_valid:
            logger.warning(f"Invalid SoftPOSIT input: {error_msg}")
            return EstimationResult(
                success=False,
                status=EstimationStatus.INVALID_INPUT,
                metadata={'error': error_msg}
            )

        image_pts = np.asarray(image_points, dtype=np.float64).reshape(-1, 2)
        world_pts = np.asarray(world_points, dtype=np.float64).reshape(-1, 3)
        n_image, n_world = len(image_pts), len(world_pts)

        if n_image == 0 or n_world == 0:
            logger.warning(f"Cannot estimate pose from {n_image} image and {n_world} world points")
            return EstimationResult(
                success=False,
                status=EstimationStatus.INSUFFICIENT_POINTS,
                metadata={'error': 'Empty point set', 'n_image': n_image, 'n_world': n_world}
            )

        return self._anneal(image_pts, world_pts, params, initial_pose, camera)

    def _anneal(self,
                image_pts: np.ndarray,
                world_pts: np.ndarray,
                params: SoftPositParams,
                initial_pose: Pose,
                camera: CameraModel) -> EstimationResult:
        """Outer annealing loop"""
        cfg = self.settings
        n_image, n_world = len(image_pts), len(world_pts)

        alpha = self.alpha(params.noise_std)
        max_delta = self.max_delta(params.noise_std)
        scale = 1.0 / (max(n_image, n_world) + 1)

        centered_image = camera.normalize(image_pts)
        homogeneous_world = np.hstack([world_pts, np.ones((n_world, 1))])

        problem = AssignmentProblem(
            centered_image=centered_image,
            homogeneous_world=homogeneous_world,
            focal_length=camera.focal_length,
            alpha=alpha,
            scale=scale
        )
        builder = AssignmentBuilder(problem)
        refiner = PoseRefiner(
            centered_image,
            homogeneous_world,
            max_count=cfg.MAX_COUNT,
            condition_threshold=cfg.CONDITION_THRESHOLD
        )

        pose = initial_pose.copy()
        Tz0 = pose.translation[2]
        wk = homogeneous_world @ np.append(pose.rotation[2] / Tz0, 1.0)
        r1T = np.append(pose.rotation[0], pose.translation[0]) / Tz0
        r2T = np.append(pose.rotation[1], pose.translation[1]) / Tz0

        state = AnnealingState(beta=params.beta0)
        history = AnnealingHistory()
        assign_mat = np.ones((n_image + 1, n_world + 1)) + cfg.EPSILON0
        delta = float('inf')

        logger.info(
            f"SoftPOSIT: {n_image} image points, {n_world} world points, "
            f"beta0={params.beta0}, alpha={alpha:.3f}, max_delta={max_delta:.3f}"
        )

        while state.should_continue(cfg.BETA_FINAL):
            dist_mat = builder.distance_matrix(r1T, r2T, wk)
            assign_mat = builder.build(dist_mat, state.beta)
            assign_mat = self.normalizer.normalize(assign_mat).matrix

            num_match_pts = self.match_counter.count(assign_mat)
            non_slack = assign_mat[:n_image, :n_world]
            sum_non_slack = float(non_slack.sum())

            L = refiner.normal_matrix(non_slack)
            if refiner.is_ill_conditioned(L):
                logger.warning(
                    f"Normal matrix is ill-conditioned at beta={state.beta:.5f}, terminating search "
                    f"(needs at least {self.get_min_points()} non-coplanar model points)"
                )
                return self._failure(state, history, 'Weighted normal matrix is ill-conditioned')

            object_mat = np.linalg.inv(L)
            r1T_prev, r2T_prev = r1T, r2T

            step = refiner.refine(non_slack, object_mat, wk, dist_mat, max_delta)
            if step is None:
                return self._failure(state, history, 'Projection-plane vectors vanished')

            r1T, r2T, wk, delta = step.r1T, step.r2T, step.wk, step.delta
            pose_converged = delta < max_delta

            history.append(IterationStats(
                beta=state.beta,
                rms_error=delta,
                match_ratio=num_match_pts / n_world,
                non_slack_mass=sum_non_slack / n_world,
                pose_shift=float(np.sum((r1T - r1T_prev) ** 2) + np.sum((r2T - r2T_prev) ** 2))
            ))

            state.advance(cfg.BETA_UPDATE, pose_converged, cfg.MIN_BETA_COUNT)

            pose = Pose(rotation=step.rotation, translation=step.translation)

            logger.debug(
                f"iter {state.beta_count:3d}: beta={history.last.beta:.5f} "
                f"delta={delta:.4f} matches={num_match_pts}"
            )

        found_pose = bool(delta < max_delta and state.beta_count > cfg.MIN_BETA_COUNT)
        matches = self.pair_finder.matches(assign_mat)

        logger.info(
            f"SoftPOSIT finished after {state.beta_count} iterations: "
            f"converged={found_pose}, delta={delta:.4f}, matches={len(matches)}"
        )

        return EstimationResult(
            success=True,
            status=EstimationStatus.SUCCESS if found_pose else EstimationStatus.NOT_CONVERGED,
            model=pose,
            matches=matches,
            converged=found_pose,
            beta_count=state.beta_count,
            history=history,
            assignment=assign_mat,
            metadata={
                'algorithm': self.get_algorithm_name(),
                'final_beta': state.beta,
                'alpha': alpha,
                'max_delta': max_delta,
                'n_image': n_image,
                'n_world': n_world,
            }
        )

    def _failure(self, state: AnnealingState, history: AnnealingHistory, message: str) -> EstimationResult:
        return EstimationResult(
            success=False,
            status=EstimationStatus.ILL_CONDITIONED,
            beta_count=state.beta_count,
            history=history,
            metadata={'error': message, 'beta': state.beta, 'min_points': self.get_min_points()}
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_input(self,
                       image_points,
                       world_points,
                       params: Optional[SoftPositParams] = None,
                       initial_pose: Optional[Pose] = None,
                       camera: Optional[CameraModel] = None) -> Tuple[bool, str]:
        """
        Validate input data for pose estimation.

        Empty point sets are valid input; they are reported as
        INSUFFICIENT_POINTS by estimate().

        Returns:
            (is_valid, error_message)
        """
        try:
            image_pts = np.asarray(image_points, dtype=np.float64)
            world_pts = np.asarray(world_points, dtype=np.float64)
        except (TypeError, ValueError):
            return False, "Points must be numeric arrays"

        if image_pts.size and (image_pts.ndim != 2 or image_pts.shape[1] != 2):
            return False, f"Image points must be Nx2, got {image_pts.shape}"
        if world_pts.size and (world_pts.ndim != 2 or world_pts.shape[1] != 3):
            return False, f"World points must be Mx3, got {world_pts.shape}"

        if not np.all(np.isfinite(image_pts)) or not np.all(np.isfinite(world_pts)):
            return False, "Points contain NaN or Inf values"

        if params is not None:
            if not params.beta0 > 0:
                return False, f"beta0 must be positive, got {params.beta0}"
            if params.noise_std < 0:
                return False, f"noise_std must be non-negative, got {params.noise_std}"

        if initial_pose is not None:
            if not np.all(np.isfinite(initial_pose.rotation)) or not np.all(np.isfinite(initial_pose.translation)):
                return False, "Initial pose contains NaN or Inf values"
            if initial_pose.translation[2] == 0:
                return False, "Initial translation must have non-zero depth"

        if camera is not None:
            if not camera.focal_length > 0:
                return False, f"Focal length must be positive, got {camera.focal_length}"

        return True, ""

    def validate_result(self, result: EstimationResult) -> bool:
        """
        A successful result must carry a right-handed orthonormal rotation
        and a finite translation.
        """
        if not result.success or result.model is None:
            return False
        pose = result.model
        if not np.all(np.isfinite(pose.translation)):
            return False
        return pose.is_orthonormal(tol=1e-6)


# Convenience functions

def estimate_pose(image_points,
                  world_points,
                  params: Optional[SoftPositParams] = None,
                  initial_pose: Optional[Pose] = None,
                  camera: Optional[CameraModel] = None,
                  config: Optional[SoftPositConfig] = None) -> EstimationResult:
    """
    Functional entry point for SoftPOSIT.

    Args:
        image_points: Nx2 image points (pixels)
        world_points: Mx3 model points
        params: beta0 and noise_std
        initial_pose: Starting pose guess
        camera: Optional camera model
        config: Optional solver configuration

    Returns:
        EstimationResult (falsy on failure)
    """
    estimator = SoftPositEstimator(config=config)
    return estimator.estimate(image_points, world_points, params, initial_pose, camera)
