"""
Diagnostic count of confident one-to-one matches.
"""

import numpy as np

from .dominant_pairs import _column_dominant_row


class MatchCounter:
    """
    Counts non-slack columns whose maximum is also the maximum of its row.

    Reporting only; the count never feeds back into the solver. Because the
    row test is strict, two columns cannot share a row, so the count is
    bounded by min(n_image, n_world).
    """

    def count(self, assign_mat: np.ndarray) -> int:
        M = np.asarray(assign_mat, dtype=np.float64)
        if M.ndim != 2 or M.shape[0] < 2 or M.shape[1] < 2:
            return 0
        return sum(
            1 for k in range(M.shape[1] - 1)
            if _column_dominant_row(M, k) is not None
        )

    __call__ = count


def num_matches(assign_mat: np.ndarray) -> int:
    """Convenience wrapper around MatchCounter"""
    return MatchCounter().count(assign_mat)
