"""
SoftPoseEstimation - pose estimation without known correspondences

SoftPOSIT: joint estimation of image-to-model correspondences and the
rigid pose of an object by deterministic annealing.
"""

from .logger import (
    setup_logger,
    get_logger,
    configure_root_logger,
    disable_console_logging,
    set_level
)
from .config import SoftPositConfig
from .core.structures import (
    CameraModel,
    Pose,
    SoftPositParams,
    AnnealingState,
    IterationStats,
    AnnealingHistory,
)
from .core.interfaces import EstimationResult, EstimationStatus
from .algorithms.pose import SoftPositEstimator, estimate_pose, PoseValidator

__version__ = "1.0.0"
__all__ = [
    "setup_logger",
    "get_logger",
    "configure_root_logger",
    "disable_console_logging",
    "set_level",
    "SoftPositConfig",
    "CameraModel",
    "Pose",
    "SoftPositParams",
    "AnnealingState",
    "IterationStats",
    "AnnealingHistory",
    "EstimationResult",
    "EstimationStatus",
    "SoftPositEstimator",
    "estimate_pose",
    "PoseValidator",
]
