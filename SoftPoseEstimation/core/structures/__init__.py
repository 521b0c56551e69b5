from .geometry import CameraModel, Pose, SoftPositParams
from .annealing import AnnealingState, IterationStats, AnnealingHistory

__all__ = [
    'CameraModel',
    'Pose',
    'SoftPositParams',
    'AnnealingState',
    'IterationStats',
    'AnnealingHistory',
]
