"""
Annealing state and per-iteration diagnostics.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Iterator, List

import numpy as np


@dataclass
class AnnealingState:
    """
    Deterministic annealing bookkeeping.

    Attributes:
        beta: Current inverse temperature (monotonically increasing)
        beta_count: Number of completed outer iterations
        converged: Pose converged and enough iterations were run
    """
    beta: float
    beta_count: int = 0
    converged: bool = False

    def advance(self, beta_update: float, pose_converged: bool, min_beta_count: int):
        """Grow beta geometrically and update the convergence flag"""
        self.beta *= beta_update
        self.beta_count += 1
        self.converged = bool(pose_converged and self.beta_count > min_beta_count)

    def should_continue(self, beta_final: float) -> bool:
        return self.beta < beta_final and not self.converged


@dataclass(frozen=True)
class IterationStats:
    """One diagnostic record per outer iteration"""
    beta: float
    rms_error: float
    match_ratio: float
    non_slack_mass: float
    pose_shift: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class AnnealingHistory:
    """Ordered, append-only sequence of IterationStats"""
    records: List[IterationStats] = field(default_factory=list)

    def append(self, stats: IterationStats):
        self.records.append(stats)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[IterationStats]:
        return iter(self.records)

    def __getitem__(self, index) -> IterationStats:
        return self.records[index]

    @property
    def last(self) -> IterationStats:
        if not self.records:
            raise IndexError("Annealing history is empty")
        return self.records[-1]

    def as_array(self) -> np.ndarray:
        """
        Stack records into an (n, 5) array.

        Columns: beta, rms_error, match_ratio, non_slack_mass, pose_shift
        """
        if not self.records:
            return np.zeros((0, 5))
        return np.array([
            [r.beta, r.rms_error, r.match_ratio, r.non_slack_mass, r.pose_shift]
            for r in self.records
        ])

    def to_list(self) -> List[Dict[str, float]]:
        return [r.to_dict() for r in self.records]
