"""
POSIT pose refinement under a soft assignment.

Pose from Orthography and Scaling with ITerations: the perspective camera
is approximated by a scaled orthographic one, the two projection-plane
vectors are fitted by weighted least squares, an orthonormal rotation is
recovered from them with an SVD (Procrustes projection), and the
per-point depth corrections wk are updated so that the next fit moves
toward the true perspective solution.

Used for:
- The pose step of each SoftPOSIT annealing iteration
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from SoftPoseEstimation.logger import get_logger

logger = get_logger("pose.posit_refiner")


# Selects the two leading singular directions: A = U @ _PROCRUSTES @ V^T
_PROCRUSTES = np.array([[1.0, 0.0], [0.0, 1.0], [0.0, 0.0]])


@dataclass
class RefinementStep:
    """
    Output of one POSIT refinement.

    Attributes:
        r1T, r2T: Rescaled projection-plane 4-vectors for the next projection
        rotation: 3x3 orthonormal rotation with rows r1, r2, r3
        translation: (Tx, Ty, Tz)
        wk: Per-world-point depth correction
        delta: Assignment-weighted RMS reprojection error (pixels)
        num_iterations: Inner iterations performed
    """
    r1T: np.ndarray
    r2T: np.ndarray
    rotation: np.ndarray
    translation: np.ndarray
    wk: np.ndarray
    delta: float
    num_iterations: int = 1


class PoseRefiner:
    """
    Weighted least-squares POSIT step.

    Usage:
        refiner = PoseRefiner(centered_image, homogeneous_world, max_count=1)
        L = refiner.normal_matrix(assignment)
        if not refiner.is_ill_conditioned(L):
            step = refiner.refine(assignment, np.linalg.inv(L), wk, dist_mat, max_delta)
    """

    def __init__(self,
                 centered_image: np.ndarray,
                 homogeneous_world: np.ndarray,
                 max_count: int = 1,
                 condition_threshold: float = 1e10):
        """
        Args:
            centered_image: n_image x 2 normalized image points
            homogeneous_world: n_world x 4 homogeneous world points
            max_count: Maximum inner iterations per call to refine()
            condition_threshold: cond(L) above which L is treated as singular
        """
        self.centered_image = centered_image
        self.homogeneous_world = homogeneous_world
        self.max_count = max_count
        self.condition_threshold = condition_threshold

    @property
    def n_world(self) -> int:
        return self.homogeneous_world.shape[0]

    def normal_matrix(self, assignment: np.ndarray) -> np.ndarray:
        """
        L = sum_k (sum_j m_jk) S_k S_k^T, a 4x4 matrix.

        Args:
            assignment: n_image x n_world non-slack block
        """
        col_mass = assignment.sum(axis=0)
        S = self.homogeneous_world
        return (S * col_mass[:, np.newaxis]).T @ S

    def is_ill_conditioned(self, L: np.ndarray) -> bool:
        cond = np.linalg.cond(L)
        return not np.isfinite(cond) or cond > self.condition_threshold

    def step(self,
             assignment: np.ndarray,
             object_mat: np.ndarray,
             wk: np.ndarray,
             dist_mat: np.ndarray) -> Optional[RefinementStep]:
        """
        Single POSIT iteration.

        Args:
            assignment: n_image x n_world non-slack block
            object_mat: inv(L)
            wk: Current depth corrections (n_world,)
            dist_mat: Squared distances used for the RMS error

        Returns:
            RefinementStep, or None when the fitted vectors vanish
        """
        S = self.homogeneous_world

        # sum_{j,k} m_jk * wk_k * x_j * S_k
        weighted_u = S.T @ (wk * (assignment.T @ self.centered_image[:, 0]))
        weighted_v = S.T @ (wk * (assignment.T @ self.centered_image[:, 1]))

        r1T = object_mat @ weighted_u
        r2T = object_mat @ weighted_v

        X = np.column_stack([r1T[:3], r2T[:3]])
        U, s, Vt = np.linalg.svd(X, full_matrices=True)

        singular_sum = s[0] + s[1]
        if not np.isfinite(singular_sum) or singular_sum <= 0:
            logger.warning("Projection-plane vectors vanished; scale is undefined")
            return None

        A = U @ _PROCRUSTES @ Vt
        r1 = A[:, 0]
        r2 = A[:, 1]
        r3 = np.cross(r1, r2)

        Tz = 2.0 / singular_sum
        Tx = r1T[3] * Tz
        Ty = r2T[3] * Tz

        r1T = np.append(r1, Tx) / Tz
        r2T = np.append(r2, Ty) / Tz
        r3T = np.append(r3, Tz)

        wk = S @ r3T / Tz

        delta = float(np.sqrt(np.sum(assignment * dist_mat) / self.n_world))

        return RefinementStep(
            r1T=r1T,
            r2T=r2T,
            rotation=np.vstack([r1, r2, r3]),
            translation=np.array([Tx, Ty, Tz]),
            wk=wk,
            delta=delta
        )

    def refine(self,
               assignment: np.ndarray,
               object_mat: np.ndarray,
               wk: np.ndarray,
               dist_mat: np.ndarray,
               max_delta: float) -> Optional[RefinementStep]:
        """
        Run up to max_count POSIT iterations, stopping early once the
        RMS error is below max_delta.

        Returns:
            Last RefinementStep, or None on a degenerate fit
        """
        step = None
        count = 0
        pose_converged = False

        while not pose_converged and count < self.max_count:
            step = self.step(assignment, object_mat, wk, dist_mat)
            if step is None:
                return None
            wk = step.wk
            pose_converged = step.delta < max_delta
            count += 1

        if step is not None:
            step.num_iterations = count
        return step
