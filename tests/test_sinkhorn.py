"""
Tests for slack-aware Sinkhorn normalization.
"""

import numpy as np
import pytest

from SoftPoseEstimation.algorithms.assignment import SinkhornNormalizer, sinkhorn_slack


def _near_permutation(n_image=4, n_world=4, seed=0):
    """Positive matrix with one strong cell per world column, plus slack"""
    rng = np.random.default_rng(seed)
    M = rng.uniform(0.01, 0.1, size=(n_image + 1, n_world + 1))
    for k in range(n_world):
        M[k, k] += 1.0
    M[:, -1] = 0.1
    M[-1, :] = 0.1
    return M


def test_rows_sum_to_one():
    # More image points than world points leaves one row unpaired
    result = SinkhornNormalizer().normalize(_near_permutation(n_image=5))
    row_sums = result.matrix[:-1, :].sum(axis=1)
    assert np.allclose(row_sums, 1.0, atol=1e-12)


def test_column_sums_within_row_pass_drift():
    result = SinkhornNormalizer().normalize(_near_permutation())
    assert result.converged
    # Slack-row repair follows the row pass, so columns are not exact
    col_sums = result.matrix[:, :-1].sum(axis=0)
    assert np.allclose(col_sums, 1.0, atol=1e-2)


def test_result_is_a_fixed_point():
    normalizer = SinkhornNormalizer()
    result = normalizer.normalize(_near_permutation(seed=4))
    again = normalizer.sinkhorn_step(result.matrix, result.dominant_pairs)
    assert np.sum(np.abs(again - result.matrix)) < 1e-3


def test_slack_entries_follow_dominant_cells():
    result = SinkhornNormalizer().normalize(_near_permutation())
    M = result.matrix
    assert len(result.dominant_pairs) == 4
    for p in result.dominant_pairs:
        assert M[-1, p.col] == pytest.approx(p.col_slack_ratio * M[p.row, p.col])


def test_input_is_not_modified():
    M = _near_permutation()
    original = M.copy()
    SinkhornNormalizer().normalize(M)
    assert np.array_equal(M, original)


def test_plain_method_has_no_pairs():
    result = SinkhornNormalizer(method='plain').normalize(_near_permutation())
    assert result.dominant_pairs == []
    assert np.allclose(result.matrix[:-1, :].sum(axis=1), 1.0)


def test_max_iterations_bound():
    result = SinkhornNormalizer(max_iterations=1, tolerance=0.0).normalize(_near_permutation())
    assert result.num_iterations == 1
    assert not result.converged


def test_invalid_method():
    with pytest.raises(ValueError):
        SinkhornNormalizer(method='softmax')


def test_convenience_function_matches_class():
    M = _near_permutation(seed=2)
    assert np.array_equal(sinkhorn_slack(M), SinkhornNormalizer().normalize(M).matrix)
