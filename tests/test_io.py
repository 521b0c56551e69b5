"""
Tests for point, camera, pose and result file I/O.
"""

import json

import numpy as np
import pytest

from SoftPoseEstimation.core.interfaces import EstimationResult, EstimationStatus
from SoftPoseEstimation.core.structures import AnnealingHistory, IterationStats, Pose
from SoftPoseEstimation.data.io import (
    load_result_pickle,
    load_camera,
    load_points,
    load_pose,
    result_to_dict,
    save_result_json,
    save_result_pickle,
)


POINTS = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])


def test_load_points_formats(tmp_path):
    np.save(tmp_path / 'points.npy', POINTS)
    np.savetxt(tmp_path / 'points.txt', POINTS)
    np.savetxt(tmp_path / 'points.csv', POINTS, delimiter=',')
    with open(tmp_path / 'points.json', 'w') as f:
        json.dump({'points': POINTS.tolist()}, f)

    for name in ('points.npy', 'points.txt', 'points.csv', 'points.json'):
        assert np.allclose(load_points(str(tmp_path / name), dim=3), POINTS)


def test_load_single_point_text_file(tmp_path):
    np.savetxt(tmp_path / 'one.txt', POINTS[:1, :2])
    assert load_points(str(tmp_path / 'one.txt'), dim=2).shape == (1, 2)


def test_load_points_errors(tmp_path):
    np.savetxt(tmp_path / 'points.txt', POINTS)
    with pytest.raises(ValueError):
        load_points(str(tmp_path / 'points.txt'), dim=2)
    with pytest.raises(FileNotFoundError):
        load_points(str(tmp_path / 'missing.txt'), dim=2)

    (tmp_path / 'points.xyz').write_text("1 2 3\n")
    with pytest.raises(ValueError):
        load_points(str(tmp_path / 'points.xyz'), dim=3)


def test_load_camera(tmp_path, pixel_camera):
    (tmp_path / 'cam.json').write_text(json.dumps({'focal_length': 800, 'principal_point': [320, 240]}))
    (tmp_path / 'K.json').write_text(json.dumps({'camera_matrix': pixel_camera.matrix.tolist()}))
    (tmp_path / 'bad.json').write_text(json.dumps({'fx': 800}))

    assert load_camera(str(tmp_path / 'cam.json')) == pixel_camera
    assert load_camera(str(tmp_path / 'K.json')) == pixel_camera
    with pytest.raises(ValueError):
        load_camera(str(tmp_path / 'bad.json'))


def test_load_pose(tmp_path):
    (tmp_path / 'R.json').write_text(json.dumps({'rotation': np.eye(3).tolist(), 'translation': [0, 0, 5]}))
    (tmp_path / 'rvec.json').write_text(json.dumps({'rotation_vector': [0, 0, 0], 'translation': [0, 0, 5]}))
    (tmp_path / 'bad.json').write_text(json.dumps({'rotation': np.eye(3).tolist()}))

    for name in ('R.json', 'rvec.json'):
        pose = load_pose(str(tmp_path / name))
        assert np.allclose(pose.rotation, np.eye(3))
        assert np.allclose(pose.translation, [0, 0, 5])

    with pytest.raises(ValueError):
        load_pose(str(tmp_path / 'bad.json'))


def test_save_result_json(tmp_path):
    history = AnnealingHistory()
    history.append(IterationStats(beta=0.0004, rms_error=2.0, match_ratio=0.5, non_slack_mass=0.7, pose_shift=0.1))
    result = EstimationResult(
        success=True,
        status=EstimationStatus.SUCCESS,
        model=Pose(),
        matches=[(0, 2), (1, 0)],
        converged=True,
        beta_count=1,
        history=history,
        metadata={'alpha': 10.21, 'skipped': np.zeros(3)}
    )

    path = tmp_path / 'out' / 'result.json'
    save_result_json(result, str(path), extra={'note': 'test'})

    with open(path) as f:
        data = json.load(f)

    assert data['status'] == 'success'
    assert data['matches'] == [[0, 2], [1, 0]]
    assert data['pose']['translation'] == [0.0, 0.0, 1.0]
    assert data['history'][0]['rms_error'] == 2.0
    assert data['metadata'] == {'alpha': 10.21}
    assert data['note'] == 'test'


def test_failed_result_has_no_pose():
    data = result_to_dict(EstimationResult(success=False, status=EstimationStatus.ILL_CONDITIONED))
    assert data['pose'] is None
    assert data['status'] == 'ill_conditioned'


def test_result_pickle_round_trip(tmp_path):
    result = EstimationResult(
        success=True,
        status=EstimationStatus.NOT_CONVERGED,
        model=Pose(translation=np.array([0.0, 0.0, 5.0])),
        matches=[(0, 1)],
        assignment=np.full((3, 3), 0.5),
    )
    path = tmp_path / 'nested' / 'result.pkl'
    save_result_pickle(result, str(path))

    loaded = load_result_pickle(str(path))

    assert loaded.status == EstimationStatus.NOT_CONVERGED
    assert loaded.matches == [(0, 1)]
    assert np.array_equal(loaded.assignment, result.assignment)
    assert np.array_equal(loaded.model.translation, [0.0, 0.0, 5.0])


def test_result_pickle_errors(tmp_path):
    with pytest.raises(TypeError):
        save_result_pickle({'points': POINTS}, str(tmp_path / 'points.pkl'))
    with pytest.raises(FileNotFoundError):
        load_result_pickle(str(tmp_path / 'missing.pkl'))

    (tmp_path / 'garbage.pkl').write_bytes(b'not a pickle')
    with pytest.raises(ValueError):
        load_result_pickle(str(tmp_path / 'garbage.pkl'))
