"""
Soft assignment between image points and model points.

Components:
- AssignmentBuilder: distance-weighted assignment matrix
- SinkhornNormalizer: slack-aware row/column normalization
- DominantPairFinder: mutual-maximum cells and their slack ratios
- MatchCounter: diagnostic count of confident matches
"""

from .builder import AssignmentBuilder, AssignmentProblem
from .dominant_pairs import DominantPair, DominantPairFinder
from .sinkhorn import SinkhornNormalizer, NormalizationResult, sinkhorn_slack
from .match_counter import MatchCounter, num_matches


__all__ = [
    'AssignmentBuilder',
    'AssignmentProblem',
    'DominantPair',
    'DominantPairFinder',
    'SinkhornNormalizer',
    'NormalizationResult',
    'sinkhorn_slack',
    'MatchCounter',
    'num_matches',
]
