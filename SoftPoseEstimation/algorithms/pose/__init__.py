from .posit_refiner import PoseRefiner, RefinementStep
from .softposit import SoftPositEstimator, estimate_pose
from .validators import (
    PoseValidator,
    PoseValidationResult,
    rotation_error_deg,
    translation_error
)

# The orchestrator is the pose estimator of this package
PoseEstimator = SoftPositEstimator

__all__ = [
    'PoseRefiner',
    'RefinementStep',
    'SoftPositEstimator',
    'PoseEstimator',
    'estimate_pose',
    'PoseValidator',
    'PoseValidationResult',
    'rotation_error_deg',
    'translation_error',
]
