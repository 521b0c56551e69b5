"""
Point set, camera and result file I/O.

Supported point formats:
- .npy: (N, dim) array
- .txt / .csv: whitespace or comma separated rows
- .json: list of rows, or {"points": [...]}
"""

import json
import pickle
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from SoftPoseEstimation.core.interfaces.base_estimator import EstimationResult
from SoftPoseEstimation.core.structures.geometry import CameraModel, Pose
from SoftPoseEstimation.logger import get_logger

logger = get_logger("data.io")


def save_result_pickle(result: EstimationResult, filepath: str):
    """
    Pickle a complete estimation result, assignment matrix and history included.

    JSON export keeps only a summary; use this to reload a result for plotting
    or further analysis.
    """
    if not isinstance(result, EstimationResult):
        raise TypeError(f"Expected EstimationResult, got {type(result).__name__}")

    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'wb') as f:
        pickle.dump(result, f, protocol=pickle.HIGHEST_PROTOCOL)
    logger.info(f"Result pickled to: {filepath}")


def load_result_pickle(filepath: str) -> EstimationResult:
    """
    Load a result written by save_result_pickle.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is corrupted or holds something else
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Result file not found: {filepath}")

    try:
        with open(path, 'rb') as f:
            result = pickle.load(f)
    except (pickle.UnpicklingError, EOFError) as e:
        raise ValueError(f"Corrupted result file: {filepath}") from e

    if not isinstance(result, EstimationResult):
        raise ValueError(f"{filepath} does not contain an EstimationResult")
    return result


def _read_json(path: Path) -> Any:
    with open(path, 'r') as f:
        return json.load(f)


def load_points(filepath: str, dim: int) -> np.ndarray:
    """
    Load an (N, dim) point array.

    Args:
        filepath: .npy, .txt, .csv or .json file
        dim: 2 for image points, 3 for world points

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: On unsupported format or wrong dimensionality
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Point file not found: {filepath}")

    suffix = path.suffix.lower()
    if suffix == '.npy':
        points = np.load(path)
    elif suffix in ('.txt', '.csv'):
        delimiter = ',' if suffix == '.csv' else None
        points = np.loadtxt(path, delimiter=delimiter, ndmin=2)
    elif suffix == '.json':
        data = _read_json(path)
        if isinstance(data, dict):
            data = data.get('points', [])
        points = np.asarray(data, dtype=np.float64)
    else:
        raise ValueError(f"Unsupported point file format: {suffix}")

    points = np.asarray(points, dtype=np.float64)
    if points.size == 0:
        return np.zeros((0, dim))
    if points.ndim != 2 or points.shape[1] != dim:
        raise ValueError(f"Expected (N, {dim}) points in {filepath}, got {points.shape}")

    logger.debug(f"Loaded {len(points)} points from {filepath}")
    return points


def load_camera(filepath: str) -> CameraModel:
    """
    Load a camera model from JSON.

    Accepted keys: {"focal_length", "principal_point"} or {"camera_matrix"}.
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Camera file not found: {filepath}")

    data = _read_json(path)
    if 'camera_matrix' in data:
        return CameraModel.from_matrix(np.asarray(data['camera_matrix']))
    if 'focal_length' not in data:
        raise ValueError(f"Camera file {filepath} has neither 'focal_length' nor 'camera_matrix'")

    principal_point = data.get('principal_point', (0.0, 0.0))
    return CameraModel(
        focal_length=float(data['focal_length']),
        principal_point=(float(principal_point[0]), float(principal_point[1]))
    )


def load_pose(filepath: str) -> Pose:
    """
    Load a pose from JSON.

    Accepted keys: "rotation" (3x3) or "rotation_vector" (3,), and "translation" (3,).
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Pose file not found: {filepath}")

    data = _read_json(path)
    if 'translation' not in data:
        raise ValueError(f"Pose file {filepath} has no 'translation'")
    if 'rotation' in data:
        return Pose(rotation=np.asarray(data['rotation']), translation=np.asarray(data['translation']))
    if 'rotation_vector' in data:
        return Pose.from_rotation_vector(data['rotation_vector'], data['translation'])
    raise ValueError(f"Pose file {filepath} has neither 'rotation' nor 'rotation_vector'")


def pose_to_dict(pose: Pose) -> Dict[str, Any]:
    return {
        'rotation': pose.rotation.tolist(),
        'rotation_vector': pose.rotation_vector.tolist(),
        'translation': pose.translation.tolist(),
    }


def result_to_dict(result: EstimationResult) -> Dict[str, Any]:
    """JSON-serializable summary of an estimation result"""
    return {
        'success': result.success,
        'status': result.status.value,
        'converged': result.converged,
        'beta_count': result.beta_count,
        'pose': pose_to_dict(result.model) if result.model is not None else None,
        'matches': [[int(j), int(k)] for j, k in result.matches],
        'history': result.history.to_list(),
        'metadata': {k: v for k, v in result.metadata.items() if isinstance(v, (str, int, float, bool))},
    }


def save_result_json(result: EstimationResult, filepath: str, extra: Optional[Dict[str, Any]] = None):
    """
    Write an estimation result as JSON.

    Args:
        result: Estimation result
        filepath: Output path
        extra: Additional top-level entries (e.g. validation metrics)
    """
    payload = result_to_dict(result)
    if extra:
        payload.update(extra)

    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(payload, f, indent=2)
    logger.info(f"Result saved to: {filepath}")
