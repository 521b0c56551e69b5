"""
Plots for SoftPOSIT diagnostics.
"""

from pathlib import Path
from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .core.structures.annealing import AnnealingHistory
from .logger import get_logger

logger = get_logger("visualization")


def plot_annealing_history(history: AnnealingHistory,
                           output_path: Optional[str] = None,
                           show: bool = False):
    """
    Plot the diagnostics of every annealing iteration against beta.

    Args:
        history: Annealing history of an estimation result
        output_path: Save the figure here if given
        show: Display the figure interactively

    Returns:
        matplotlib Figure
    """
    data = history.as_array()
    fig, axes = plt.subplots(2, 2, figsize=(12, 8))

    panels = [
        (axes[0, 0], 1, 'RMS error (px)', True),
        (axes[0, 1], 2, 'Match ratio', False),
        (axes[1, 0], 3, 'Non-slack mass / model point', False),
        (axes[1, 1], 4, 'Pose shift', True),
    ]

    for ax, column, title, log_y in panels:
        if len(data):
            ax.plot(data[:, 0], data[:, column], 'o-', markersize=3)
        ax.set_xscale('log')
        if log_y and len(data) and np.all(data[:, column] > 0):
            ax.set_yscale('log')
        ax.set_xlabel('beta')
        ax.set_title(title)
        ax.grid(True, alpha=0.3)

    fig.suptitle(f'SoftPOSIT annealing ({len(data)} iterations)')
    fig.tight_layout()

    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150)
        logger.info(f"Annealing plot saved to: {output_path}")

    if show:
        plt.show()

    return fig


def plot_correspondences(image_points: np.ndarray,
                         projected_points: np.ndarray,
                         matches: Sequence[Tuple[int, int]],
                         image_size: Optional[Tuple[int, int]] = None,
                         output_path: Optional[str] = None,
                         show: bool = False):
    """
    Overlay image points and projected model points, linking matched pairs.

    Args:
        image_points: Nx2 image points
        projected_points: Mx2 model points projected with the estimated pose
        matches: (image_index, world_index) pairs
        image_size: (width, height) to fix the axes
        output_path: Save the figure here if given
        show: Display the figure interactively

    Returns:
        matplotlib Figure
    """
    image_points = np.asarray(image_points).reshape(-1, 2)
    projected_points = np.asarray(projected_points).reshape(-1, 2)

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.scatter(image_points[:, 0], image_points[:, 1], c='tab:blue', s=25, label='image points')
    ax.scatter(projected_points[:, 0], projected_points[:, 1], c='tab:red', marker='x', s=40,
               label='projected model')

    for j, k in matches:
        ax.plot([image_points[j, 0], projected_points[k, 0]],
                [image_points[j, 1], projected_points[k, 1]],
                'g-', linewidth=1)

    if image_size is not None:
        ax.set_xlim(0, image_size[0])
        ax.set_ylim(image_size[1], 0)
    else:
        ax.invert_yaxis()

    ax.set_aspect('equal')
    ax.legend(loc='upper right')
    ax.set_title(f'{len(matches)} matches')

    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150)
        logger.info(f"Correspondence plot saved to: {output_path}")

    if show:
        plt.show()

    return fig
