"""
Base interface for estimation algorithms.

This defines the contract for algorithms that estimate a rigid pose from
image and model points, and the result object they return.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from SoftPoseEstimation.core.structures.annealing import AnnealingHistory
from SoftPoseEstimation.logger import get_logger

logger = get_logger("core.interfaces")


class EstimationStatus(Enum):
    """Status codes for estimation results"""
    SUCCESS = "success"
    NOT_CONVERGED = "not_converged"
    ILL_CONDITIONED = "ill_conditioned"
    INSUFFICIENT_POINTS = "insufficient_points"
    INVALID_INPUT = "invalid_input"


@dataclass
class EstimationResult:
    """
    Result of a pose estimation.

    A failed result (``success`` False) carries no pose. A successful result
    always carries a pose; ``converged`` tells whether the annealing reached
    its acceptance criterion or merely ran out of schedule.

    Attributes:
        success: Whether a pose was produced
        status: Status code from EstimationStatus
        model: Estimated Pose (None on failure)
        matches: (image_index, world_index) pairs that are mutual maxima
        converged: RMS error below threshold after the minimum iteration count
        beta_count: Number of annealing iterations performed
        history: Per-iteration diagnostics
        assignment: Final (n_image + 1) x (n_world + 1) assignment matrix
        metadata: Additional algorithm-specific information
    """
    success: bool
    status: EstimationStatus
    model: Optional[Any] = None
    matches: List[Tuple[int, int]] = field(default_factory=list)
    converged: bool = False
    beta_count: int = 0
    history: AnnealingHistory = field(default_factory=AnnealingHistory)
    assignment: Optional[np.ndarray] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        """Allow truthiness check"""
        return self.success

    @property
    def num_matches(self) -> int:
        return len(self.matches)

    @property
    def final_error(self) -> float:
        """RMS error of the last annealing iteration (inf if none ran)"""
        if len(self.history) == 0:
            return float('inf')
        return self.history.last.rms_error

    def print_summary(self):
        """Log estimation result summary"""
        logger.info("=" * 60)
        logger.info("SOFTPOSIT RESULT")
        logger.info("=" * 60)
        logger.info(f"Status: {self.status.value}")
        logger.info(f"Converged: {self.converged}")
        logger.info(f"Iterations: {self.beta_count}")

        if self.model is not None:
            logger.info(f"Rotation:\n{np.array2string(self.model.rotation, precision=4)}")
            logger.info(f"Translation: {np.array2string(self.model.translation, precision=4)}")
            logger.info(f"Matches: {self.num_matches}")
            logger.info(f"Final RMS error: {self.final_error:.4f}")

        if self.metadata:
            logger.info("Metadata:")
            for key, value in self.metadata.items():
                logger.info(f"  {key}: {value}")
        logger.info("=" * 60)


class BaseEstimator(ABC):
    """
    Abstract base class for pose estimation algorithms.

    Implementations validate their inputs, run the estimation and report
    every expected numeric outcome through EstimationResult rather than
    raising.
    """

    def __init__(self, **config):
        """
        Initialize estimator with configuration.

        Args:
            **config: Algorithm-specific configuration parameters
        """
        self.config = config

    @abstractmethod
    def estimate(self, *args, **kwargs) -> EstimationResult:
        """
        Perform estimation.

        Returns:
            EstimationResult: Estimation result with model and metadata
        """
        pass

    @abstractmethod
    def validate_input(self, *args, **kwargs) -> Tuple[bool, str]:
        """
        Validate input data before estimation.

        Returns:
            Tuple[bool, str]: (is_valid, error_message)
        """
        pass

    @abstractmethod
    def validate_result(self, result: EstimationResult) -> bool:
        """
        Validate estimation result.

        Args:
            result: Estimation result to validate

        Returns:
            bool: True if result is valid
        """
        pass

    def get_min_points(self) -> int:
        """Minimum number of model points for a non-degenerate estimate"""
        return 0

    def get_algorithm_name(self) -> str:
        """Human-readable algorithm name"""
        return self.__class__.__name__

    def estimate_with_validation(self, *args, **kwargs) -> EstimationResult:
        """
        Estimate, then check a successful result with validate_result.

        estimate() already rejects invalid input with INVALID_INPUT, so
        input validation runs once, inside it.

        Returns:
            EstimationResult: Estimation result, with
            metadata['validation_failed'] set when the result check fails
        """
        result = self.estimate(*args, **kwargs)

        if result.success and not self.validate_result(result):
            result.metadata['validation_failed'] = True

        return result

    def __repr__(self) -> str:
        return f"{self.get_algorithm_name()}(config={self.config})"
