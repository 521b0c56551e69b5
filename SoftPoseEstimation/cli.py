"""
Command line interface for SoftPOSIT.

Examples:
    softposit --image-points img.txt --world-points model.txt --camera cam.json
    softposit --demo --clutter 4 --occluded 2 --noise 1.0 --plot-dir ./plots
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from .config import (
    PRESET_CONFIGS,
    config_from_dict,
    create_config_from_preset,
    load_config,
    merge_configs,
)
from .core.structures.geometry import CameraModel, Pose
from .algorithms.pose.softposit import SoftPositEstimator
from .algorithms.pose.validators import PoseValidator
from .data.io import load_camera, load_points, load_pose, save_result_json, save_result_pickle
from .data.synthetic import generate_scene, perturb_pose, random_object_points
from .logger import configure_root_logger, disable_console_logging, get_logger, set_level

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SoftPOSIT: object pose from unmatched image and model points"
    )

    # Input
    parser.add_argument('--image-points', type=str, default=None,
                        help='Image points file (.npy, .txt, .csv, .json), Nx2 pixels')
    parser.add_argument('--world-points', type=str, default=None,
                        help='Model points file (.npy, .txt, .csv, .json), Mx3')
    parser.add_argument('--camera', type=str, default=None,
                        help='Camera JSON with focal_length and principal_point (default: unit camera)')
    parser.add_argument('--initial-pose', type=str, default=None,
                        help='Initial pose JSON (rotation or rotation_vector, translation)')
    parser.add_argument('--initial-depth', type=float, default=None,
                        help='Initial guess: identity rotation at this depth (overrides --initial-pose)')

    # Synthetic demo
    parser.add_argument('--demo', action='store_true',
                        help='Run on a synthetic cube scene instead of input files')
    parser.add_argument('--clutter', type=int, default=0,
                        help='Demo: number of clutter image points')
    parser.add_argument('--occluded', type=int, default=0,
                        help='Demo: number of occluded model points')
    parser.add_argument('--object-points', type=int, default=0,
                        help='Demo: use this many random model points instead of a cube')
    parser.add_argument('--seed', type=int, default=0,
                        help='Demo: random seed')

    # Solver
    parser.add_argument('--preset', type=str, default='default',
                        choices=list(PRESET_CONFIGS.keys()),
                        help='Solver preset')
    parser.add_argument('--config', type=str, default=None,
                        help='JSON configuration file (merged over the preset)')
    parser.add_argument('--beta0', type=float, default=None,
                        help='Initial annealing inverse temperature')
    parser.add_argument('--noise', type=float, default=None,
                        help='Image noise standard deviation in pixels')

    # Output
    parser.add_argument('--output', type=str, default=None,
                        help='Write the result to this path (.pkl: full pickled result, otherwise JSON summary)')
    parser.add_argument('--plot-dir', type=str, default=None,
                        help='Save diagnostic plots to this directory')

    # Logging
    parser.add_argument('--verbose', action='store_true',
                        help='Enable verbose logging')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Log to file')
    parser.add_argument('--quiet', action='store_true',
                        help='No console output (use with --log-file)')

    return parser


def _solver_config(args):
    config = create_config_from_preset(args.preset)
    if args.config:
        config = merge_configs(config, load_config(args.config))
    if args.beta0 is not None:
        config['params']['beta0'] = args.beta0
    if args.noise is not None:
        config['params']['noise_std'] = args.noise
    return config_from_dict(config)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_root_logger(level='INFO', log_file=args.log_file)
    if args.verbose:
        set_level('DEBUG')
    if args.quiet:
        disable_console_logging()

    try:
        solver_config, params = _solver_config(args)

        true_pose = None
        if args.demo:
            object_points = random_object_points(args.object_points, seed=args.seed) if args.object_points > 0 else None
            scene = generate_scene(
                world_points=object_points,
                noise_std=params.noise_std if args.noise is not None else 0.0,
                num_occluded=args.occluded,
                num_clutter=args.clutter,
                seed=args.seed
            )
            image_points, world_points = scene.image_points, scene.world_points
            camera = scene.camera
            true_pose = scene.true_pose
            initial_pose = perturb_pose(true_pose, rotation_deg=10.0, translation_scale=0.1, seed=args.seed)
        else:
            if not args.image_points or not args.world_points:
                parser.error("--image-points and --world-points are required unless --demo is given")
            image_points = load_points(args.image_points, dim=2)
            world_points = load_points(args.world_points, dim=3)
            camera = load_camera(args.camera) if args.camera else CameraModel.default()
            initial_pose = load_pose(args.initial_pose) if args.initial_pose else Pose()

        if args.initial_depth is not None:
            initial_pose = Pose(rotation=np.eye(3), translation=np.array([0.0, 0.0, args.initial_depth]))

    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1

    estimator = SoftPositEstimator(config=solver_config)
    result = estimator.estimate(image_points, world_points, params, initial_pose, camera)
    result.print_summary()

    extra = {}
    if result:
        validation = PoseValidator().validate_pose(result.model, image_points, world_points, result.matches, camera)
        extra['validation'] = {
            'is_valid': validation.is_valid,
            'quality_score': validation.quality_score,
            'warnings': validation.warnings,
            'errors': validation.errors,
            'metrics': validation.metrics,
        }
        for warning in validation.warnings:
            logger.warning(warning)
        for error in validation.errors:
            logger.warning(error)

        if true_pose is not None:
            extra['ground_truth'] = PoseValidator().compare_to_ground_truth(result.model, true_pose)
            logger.info(
                f"Ground truth: rotation error {extra['ground_truth']['rotation_error_deg']:.3f} deg, "
                f"translation error {extra['ground_truth']['translation_error']:.2%}"
            )

    if args.output:
        if Path(args.output).suffix.lower() == '.pkl':
            save_result_pickle(result, args.output)
        else:
            save_result_json(result, args.output, extra=extra)

    if args.plot_dir and result:
        from .visualization import plot_annealing_history, plot_correspondences

        plot_dir = Path(args.plot_dir)
        plot_annealing_history(result.history, output_path=str(plot_dir / 'annealing.png'))
        plot_correspondences(
            image_points,
            result.model.project(world_points, camera),
            result.matches,
            output_path=str(plot_dir / 'correspondences.png')
        )

    return 0 if result else 1


if __name__ == "__main__":
    sys.exit(main())
