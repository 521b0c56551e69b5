"""
Algorithms Module

Submodules:
- assignment: soft assignment, Sinkhorn normalization, match extraction
- pose: POSIT refinement, the SoftPOSIT annealing loop, validation

Usage:
    from SoftPoseEstimation.algorithms import SoftPositEstimator, SinkhornNormalizer
"""

from SoftPoseEstimation.algorithms.assignment import (
    AssignmentBuilder,
    AssignmentProblem,
    DominantPair,
    DominantPairFinder,
    SinkhornNormalizer,
    NormalizationResult,
    MatchCounter,
    num_matches,
)

from SoftPoseEstimation.algorithms.pose import (
    PoseRefiner,
    RefinementStep,
    SoftPositEstimator,
    PoseEstimator,
    estimate_pose,
    PoseValidator,
    PoseValidationResult,
)


__all__ = [
    # Assignment
    'AssignmentBuilder',
    'AssignmentProblem',
    'DominantPair',
    'DominantPairFinder',
    'SinkhornNormalizer',
    'NormalizationResult',
    'MatchCounter',
    'num_matches',

    # Pose
    'PoseRefiner',
    'RefinementStep',
    'SoftPositEstimator',
    'PoseEstimator',
    'estimate_pose',
    'PoseValidator',
    'PoseValidationResult',
]
