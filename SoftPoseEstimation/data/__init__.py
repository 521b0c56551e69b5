"""
Data loading, export and synthetic scene generation.
"""

from .io import (
    save_result_pickle,
    load_result_pickle,
    load_points,
    load_camera,
    load_pose,
    pose_to_dict,
    result_to_dict,
    save_result_json,
)
from .synthetic import SyntheticScene, generate_scene, cube_points, random_object_points, perturb_pose


__all__ = [
    'save_result_pickle',
    'load_result_pickle',
    'load_points',
    'load_camera',
    'load_pose',
    'pose_to_dict',
    'result_to_dict',
    'save_result_json',
    'SyntheticScene',
    'generate_scene',
    'cube_points',
    'random_object_points',
    'perturb_pose',
]
