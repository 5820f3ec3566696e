"""Tests for BufferGeometry and merging."""

import numpy as np
import pytest

from neuromask.core.mesh import BufferGeometry, merge_geometries


def _triangle() -> BufferGeometry:
    return BufferGeometry.from_points(
        [[0, 0, 0], [1, 0, 0], [0, 1, 0]],
        [[0, 0, 1], [0, 0, 1], [0, 0, 1]],
    )


def _quad_indexed() -> BufferGeometry:
    return BufferGeometry(
        positions=np.array([0, 0, 0, 1, 0, 0, 1, 1, 0, 0, 1, 0], dtype=np.float32),
        normals=np.zeros(12, dtype=np.float32),
        indices=np.array([0, 1, 2, 0, 2, 3], dtype=np.uint32),
    )


def test_from_points_without_normals():
    geo = BufferGeometry.from_points(np.zeros((4, 3)))
    assert geo.vertex_count == 4
    assert not geo.has_normals
    assert not geo.has_indices


def test_compute_normals_indexed():
    geo = _quad_indexed()
    geo.compute_normals()
    np.testing.assert_array_almost_equal(geo.normals_3d(), np.tile([0, 0, 1], (4, 1)))


def test_compute_normals_flat():
    geo = BufferGeometry.from_points([[0, 0, 0], [0, 1, 0], [1, 0, 0]])
    geo.compute_normals()
    np.testing.assert_array_almost_equal(geo.normals_3d(), np.tile([0, 0, -1], (3, 1)))


def test_to_non_indexed():
    geo = _quad_indexed()
    geo.compute_normals()
    flat = geo.to_non_indexed()
    assert not flat.has_indices
    assert flat.vertex_count == 6
    assert flat.has_normals


def test_translate_and_rotate_chain():
    geo = _triangle().translate(0, 1, 0).rotate_x(np.pi / 2)
    np.testing.assert_array_almost_equal(geo.positions_3d()[0], [0, 0, 1], decimal=6)
    np.testing.assert_array_almost_equal(geo.normals_3d()[0], [0, -1, 0], decimal=6)


def test_center():
    geo = BufferGeometry.from_points([[1, 1, 1], [3, 5, 7]]).center()
    lo, hi = geo.bounding_box()
    np.testing.assert_array_almost_equal(lo, [-1, -2, -3])
    np.testing.assert_array_almost_equal(hi, [1, 2, 3])


def test_clone_is_independent():
    geo = _triangle()
    copy = geo.clone()
    copy.translate(5, 0, 0)
    assert geo.positions[0] == 0.0


def test_merge_concatenates():
    merged = merge_geometries([_triangle(), _triangle().translate(2, 0, 0)])
    assert merged.vertex_count == 6
    assert merged.has_normals


def test_merge_rejects_indexed():
    quad = _quad_indexed()
    quad.compute_normals()
    with pytest.raises(ValueError, match="indexed"):
        merge_geometries([_triangle(), quad])


def test_merge_rejects_missing_normals():
    with pytest.raises(ValueError, match="normals"):
        merge_geometries([BufferGeometry.from_points(np.zeros((3, 3)))])


def test_merge_rejects_empty_list():
    with pytest.raises(ValueError):
        merge_geometries([])
