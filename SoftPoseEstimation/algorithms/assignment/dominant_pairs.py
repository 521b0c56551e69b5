"""
Mutual-maximum detection in slack-augmented assignment matrices.

The last row and the last column of an assignment matrix are slack entries.
A cell (j, k) is dominant when it is the maximum of column k, that maximum
does not lie in the slack row, and it is strictly larger than every other
entry of row j (slack column included).
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np


@dataclass(frozen=True)
class DominantPair:
    """
    A mutual-maximum cell and its slack ratios.

    Attributes:
        row: Image point index
        col: World point index
        row_slack_ratio: M[row, slack_col] / M[row, col]
        col_slack_ratio: M[slack_row, col] / M[row, col]
    """
    row: int
    col: int
    row_slack_ratio: float
    col_slack_ratio: float


def _column_dominant_row(assign_mat: np.ndarray, col: int) -> Optional[int]:
    """Row of the mutual maximum in ``col``, or None"""
    n_rows = assign_mat.shape[0]
    column = assign_mat[:, col]
    imax = int(np.argmax(column))

    # Slack value is maximum in this column
    if imax == n_rows - 1:
        return None

    vmax = column[imax]
    others = np.delete(assign_mat[imax, :], col)
    if np.all(vmax > others):
        return imax
    return None


class DominantPairFinder:
    """Finds cells that are maximal in both their row and their column"""

    def find(self, assign_mat: np.ndarray) -> List[DominantPair]:
        """
        Ordered list of dominant pairs, by increasing column.

        Args:
            assign_mat: (n_image + 1) x (n_world + 1) matrix

        Returns:
            List of DominantPair
        """
        M = np.asarray(assign_mat, dtype=np.float64)
        n_rows, n_cols = M.shape
        pairs = []

        for k in range(n_cols - 1):
            imax = _column_dominant_row(M, k)
            if imax is None:
                continue
            value = M[imax, k]
            pairs.append(DominantPair(
                row=imax,
                col=k,
                row_slack_ratio=float(M[imax, n_cols - 1] / value),
                col_slack_ratio=float(M[n_rows - 1, k] / value),
            ))

        return pairs

    def matches(self, assign_mat: np.ndarray) -> List[tuple]:
        """(image_index, world_index) of every dominant pair"""
        return [(p.row, p.col) for p in self.find(assign_mat)]
