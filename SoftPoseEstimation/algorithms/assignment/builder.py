"""
Distance-weighted assignment matrix construction.

For the current scaled-orthographic pose vectors r1T, r2T (4-vectors) and
the per-point depth corrections wk, every image point j is compared with
the projection of every world point k:

    d_jk = f^2 * ((S_k . r1T - wk_k * x_j)^2 + (S_k . r2T - wk_k * y_j)^2)

and the non-slack block is filled with scale * exp(-beta * (d_jk - alpha)).
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class AssignmentProblem:
    """
    Inputs shared by every annealing iteration.

    Attributes:
        centered_image: n_image x 2 normalized image points
        homogeneous_world: n_world x 4 world points with a trailing 1
        focal_length: Focal length in pixels
        alpha: Squared-distance inlier threshold
        scale: Slack entry value, 1 / (max(n_image, n_world) + 1)
    """
    centered_image: np.ndarray
    homogeneous_world: np.ndarray
    focal_length: float
    alpha: float
    scale: float

    @property
    def n_image(self) -> int:
        return self.centered_image.shape[0]

    @property
    def n_world(self) -> int:
        return self.homogeneous_world.shape[0]


class AssignmentBuilder:
    """Turns the current pose vectors and point sets into an assignment matrix"""

    def __init__(self, problem: AssignmentProblem):
        self.problem = problem

    def distance_matrix(self, r1T: np.ndarray, r2T: np.ndarray, wk: np.ndarray) -> np.ndarray:
        """
        Squared image-plane distances between image points and projected world points.

        Returns:
            n_image x n_world matrix, in squared pixels
        """
        p = self.problem
        projected_u = p.homogeneous_world @ r1T
        projected_v = p.homogeneous_world @ r2T

        wkxj = np.outer(p.centered_image[:, 0], wk)
        wkyj = np.outer(p.centered_image[:, 1], wk)

        return p.focal_length ** 2 * (
            (projected_u[np.newaxis, :] - wkxj) ** 2 +
            (projected_v[np.newaxis, :] - wkyj) ** 2
        )

    def build(self, dist_mat: np.ndarray, beta: float) -> np.ndarray:
        """
        Fill a fresh slack-augmented assignment matrix.

        Args:
            dist_mat: n_image x n_world squared distances
            beta: Current inverse temperature

        Returns:
            (n_image + 1) x (n_world + 1) matrix
        """
        p = self.problem
        assign_mat = np.empty((p.n_image + 1, p.n_world + 1), dtype=np.float64)
        assign_mat[:p.n_image, :p.n_world] = p.scale * np.exp(-beta * (dist_mat - p.alpha))
        assign_mat[:, p.n_world] = p.scale
        assign_mat[p.n_image, :] = p.scale
        return assign_mat
