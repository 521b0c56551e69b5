"""
Core interfaces.

Usage:
    from SoftPoseEstimation.core.interfaces import BaseEstimator, EstimationResult

    class MyEstimator(BaseEstimator):
        def estimate(self, *args):
            ...
"""

from .base_estimator import (
    BaseEstimator,
    EstimationResult,
    EstimationStatus
)


__all__ = [
    'BaseEstimator',
    'EstimationResult',
    'EstimationStatus',
]
