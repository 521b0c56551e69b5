"""
Sinkhorn normalization of slack-augmented assignment matrices.

Alternating column and row normalization drives the non-slack rows and
columns of the matrix toward unit sums. The slack column is never
normalized against itself (and likewise the slack row), so outlier mass
does not compete symmetrically with real correspondences.

Two variants are provided:
- 'slack_ratio': before iterating, the mutual-maximum cells of the input
  are located and their ratio to the slack entries of their row and column
  is recorded. After each column (row) pass, the slack entry of every
  such row (column) is reset to that ratio times the current cell value.
- 'plain': slack-exempt normalization with no slack repair.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from SoftPoseEstimation.logger import get_logger
from .dominant_pairs import DominantPair, DominantPairFinder

logger = get_logger("assignment.sinkhorn")


@dataclass
class NormalizationResult:
    """
    Outcome of a Sinkhorn normalization.

    Attributes:
        matrix: Normalized assignment matrix
        dominant_pairs: Pairs used for slack repair (empty for 'plain')
        num_iterations: Normalization rounds performed
        final_change: Total absolute change of the last round
        converged: final_change fell below the tolerance
    """
    matrix: np.ndarray
    dominant_pairs: List[DominantPair] = field(default_factory=list)
    num_iterations: int = 0
    final_change: float = 0.0
    converged: bool = False


class SinkhornNormalizer:
    """
    Slack-aware Sinkhorn normalizer.

    Usage:
        normalizer = SinkhornNormalizer()
        result = normalizer.normalize(assign_mat)
        M = result.matrix
    """

    def __init__(self,
                 max_iterations: int = 60,
                 tolerance: float = 1e-3,
                 method: str = 'slack_ratio',
                 pair_finder: Optional[DominantPairFinder] = None):
        """
        Args:
            max_iterations: Maximum normalization rounds
            tolerance: Stop when the total absolute change of a round is below this
            method: 'slack_ratio' or 'plain'
            pair_finder: Mutual-maximum finder used by 'slack_ratio'
        """
        if method not in ('slack_ratio', 'plain'):
            raise ValueError(f"Invalid normalization method: {method}. Valid methods: ['slack_ratio', 'plain']")
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.method = method
        self.pair_finder = pair_finder or DominantPairFinder()

    def normalize(self, assign_mat: np.ndarray) -> NormalizationResult:
        """
        Normalize until the change between rounds is below tolerance.

        Args:
            assign_mat: (n_image + 1) x (n_world + 1) non-negative matrix

        Returns:
            NormalizationResult
        """
        M = np.array(assign_mat, dtype=np.float64, copy=True)

        if self.method == 'slack_ratio':
            pairs = self.pair_finder.find(M)
        else:
            pairs = []

        num_iterations = 0
        change = self.tolerance + 1

        while abs(change) > self.tolerance and num_iterations < self.max_iterations:
            M_prev = M
            M = self.sinkhorn_step(M, pairs)
            num_iterations += 1
            change = float(np.sum(np.abs(M - M_prev)))

        converged = abs(change) <= self.tolerance
        if not converged:
            logger.debug(f"Sinkhorn stopped after {num_iterations} rounds (change {change:.2e})")

        return NormalizationResult(
            matrix=M,
            dominant_pairs=pairs,
            num_iterations=num_iterations,
            final_change=change,
            converged=converged
        )

    def sinkhorn_step(self, M: np.ndarray, pairs: List[DominantPair]) -> np.ndarray:
        """
        One column pass followed by one row pass, with slack repair.

        Args:
            M: Current matrix (not modified)
            pairs: Dominant pairs recorded on the input matrix

        Returns:
            New matrix
        """
        n_rows, n_cols = M.shape

        # Column normalization; slack column terms are not normalized against each other
        col_sums = M.sum(axis=0)
        col_sums[n_cols - 1] = 1.0
        M = M / col_sums[np.newaxis, :]

        # Fix values in the slack column
        for p in pairs:
            M[p.row, n_cols - 1] = p.row_slack_ratio * M[p.row, p.col]

        # Row normalization; slack row terms are not normalized against each other
        row_sums = M.sum(axis=1)
        row_sums[n_rows - 1] = 1.0
        M = M / row_sums[:, np.newaxis]

        # Fix values in the slack row
        for p in pairs:
            M[n_rows - 1, p.col] = p.col_slack_ratio * M[p.row, p.col]

        return M


def sinkhorn_slack(assign_mat: np.ndarray, **kwargs) -> np.ndarray:
    """Convenience function returning only the normalized matrix"""
    return SinkhornNormalizer(**kwargs).normalize(assign_mat).matrix
