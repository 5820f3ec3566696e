"""Tests for the analytic head surface."""

import numpy as np
import pytest

from neuromask.anatomy import face_surface
from neuromask.anatomy.face_surface import build_head_geometry, evaluate, evaluate_many


def test_deterministic():
    a = evaluate(0.3, -0.2, 1.45)
    b = evaluate(0.3, -0.2, 1.45)
    np.testing.assert_array_equal(a, b)


def test_nose_is_frontmost_on_midline():
    nose = evaluate(0.0, face_surface.NOSE_CENTER_V, 1.45)
    cheek = evaluate(0.5, face_surface.NOSE_CENTER_V, 1.45)
    assert nose[2] > cheek[2]
    assert nose[2] > 1.0


def test_left_right_mirror():
    for u, v in [(0.3, 0.1), (0.55, -0.25), (0.8, -0.9)]:
        left = evaluate(-u, v, 1.45)
        right = evaluate(u, v, 1.45)
        assert left[0] == pytest.approx(-right[0])
        assert left[1] == pytest.approx(right[1])
        assert left[2] == pytest.approx(right[2])


def test_forehead_above_chin():
    assert evaluate(0.0, 0.9, 1.45)[1] > evaluate(0.0, -0.9, 1.45)[1]


def test_head_width_scales_x():
    narrow = evaluate(0.6, 0.5, 1.0)
    wide = evaluate(0.6, 0.5, 2.0)
    assert wide[0] > narrow[0]
    assert wide[2] == pytest.approx(narrow[2])


def test_chin_narrows():
    # Just above and just below the chin threshold
    above = evaluate(0.5, face_surface.CHIN_V + 1e-6, 1.45)
    below = evaluate(0.5, face_surface.CHIN_V - 1e-6, 1.45)
    assert abs(below[0]) < abs(above[0]) * 0.85


def test_evaluate_many_matches_scalar():
    rng = np.random.default_rng(3)
    u = rng.uniform(-1, 1, 50)
    v = rng.uniform(-1, 1, 50)
    batch = evaluate_many(u, v, 1.6)
    for i in range(50):
        np.testing.assert_allclose(batch[i], evaluate(u[i], v[i], 1.6), atol=1e-12)


def test_head_geometry_normals_face_forward():
    geo = build_head_geometry(1.45, segments=8)
    assert geo.vertex_count == 81
    assert geo.triangle_count == 128
    center = geo.normals_3d()[40]
    assert center[2] > 0.5


def test_head_geometry_rejects_zero_segments():
    with pytest.raises(ValueError):
        build_head_geometry(1.45, segments=0)


# evaluate(u, v, 1.45) over a 9x9 grid, u and v = -1, -0.75, ..., 1.
# Rows step v from chin to forehead, columns step u from left to right.
GOLDEN_GRID = np.array([
    [(-0.476863046751, -1.046162167925, -0.068255684067), (-0.513667425396, -1.046162167925, 0.080288962102), (-0.429165403769, -1.046162167925, 0.221680643572),
     (-0.243312765616, -1.046162167925, 0.322528658384), (0.000000000000, -1.046162167925, 0.359016994375), (0.243312765616, -1.046162167925, 0.322528658384),
     (0.429165403769, -1.046162167925, 0.221680643572), (0.513667425396, -1.046162167925, 0.080288962102), (0.476863046751, -1.046162167925, -0.068255684067)],
    [(-0.521642813528, -0.906538807484, -0.166754282859), (-0.561903302902, -0.906538807484, 0.105517519608), (-0.469466129145, -0.906538807484, 0.364678445032),
     (-0.266161021467, -0.906538807484, 0.549525704604), (0.000000000000, -0.906538807484, 0.616406236925), (0.266161021467, -0.906538807484, 0.549525704604),
     (0.469466129145, -0.906538807484, 0.364678445032), (0.561903302902, -0.906538807484, 0.105517519608), (0.521642813528, -0.906538807484, -0.166754282859)],
    [(-0.694532526142, -0.692252430155, -0.297400883979), (-0.748136675693, -0.692252430155, 0.076173624761), (-0.625062759723, -0.692252430155, 0.431759162897),
     (-0.354375603011, -0.692252430155, 0.685381548911), (0.000000000000, -0.692252430155, 0.777145961457), (0.354375603011, -0.692252430155, 0.685381548911),
     (0.625062759723, -0.692252430155, 0.431759162897), (0.748136675693, -0.692252430155, 0.076173624761), (0.694532526142, -0.692252430155, -0.297400883979)],
    [(-0.722636638466, -0.420951775602, -0.353553390593), (-0.818409868634, -0.420951775602, 0.115556029786), (-0.727629858690, -0.420951775602, 0.561576258474),
     (-0.368715337115, -0.420951775602, 0.817729178974), (0.000000000000, -0.420951775602, 1.048323976956), (0.368715337115, -0.420951775602, 0.817729178974),
     (0.727629858690, -0.420951775602, 0.561576258474), (0.818409868634, -0.420951775602, 0.115556029786), (0.722636638466, -0.420951775602, -0.353553390593)],
    [(-0.735784176708, -0.114981309594, -0.380587052482), (-0.792572136322, -0.114981309594, 0.097480192179), (-0.662188264397, -0.114981309594, 0.552526761153),
     (-0.375423686425, -0.114981309594, 0.877312274978), (0.000000000000, -0.114981309594, 1.064521895368), (0.375423686425, -0.114981309594, 0.877312274978),
     (0.662188264397, -0.114981309594, 0.552526761153), (0.792572136322, -0.114981309594, 0.097480192179), (0.735784176708, -0.114981309594, -0.380587052482)],
    [(-0.733703023291, 0.200459078041, -0.376275362916), (-0.790330359097, 0.200459078041, 0.096375834254), (-0.660315275805, 0.200459078041, 0.626267158113),
     (-0.374361806716, 0.200459078041, 0.947153411256), (0.000000000000, 0.200459078041, 1.063254907564), (0.374361806716, 0.200459078041, 0.947153411256),
     (0.660315275805, 0.200459078041, 0.626267158113), (0.790330359097, 0.200459078041, 0.096375834254), (0.733703023291, 0.200459078041, -0.376275362916)],
    [(-0.716436252319, 0.499389549714, -0.340973434936), (-0.771730935531, 0.499389549714, 0.087333911516), (-0.644775592480, 0.499389549714, 0.495016702265),
     (-0.365551675952, 0.499389549714, 0.785797600355), (0.000000000000, 0.499389549714, 0.891006524188), (0.365551675952, 0.499389549714, 0.785797600355),
     (0.644775592480, 0.499389549714, 0.495016702265), (0.771730935531, 0.499389549714, 0.087333911516), (0.716436252319, 0.499389549714, -0.340973434936)],
    [(-0.684341238061, 0.757190033263, -0.277588754049), (-0.737158822102, 0.757190033263, 0.071099121515), (-0.615890842766, 0.757190033263, 0.402996408330),
     (-0.349175639404, 0.757190033263, 0.639723082409), (0.000000000000, 0.757190033263, 0.725374371012), (0.349175639404, 0.757190033263, 0.639723082409),
     (0.615890842766, 0.757190033263, 0.402996408330), (0.737158822102, 0.757190033263, 0.071099121515), (0.684341238061, 0.757190033263, -0.277588754049)],
    [(-0.638082258290, 0.952627944163, -0.191341716183), (-0.687329565668, 0.952627944163, 0.049008570165), (-0.574258860866, 0.952627944163, 0.277785116510),
     (-0.325572635609, 0.952627944163, 0.440960632174), (0.000000000000, 0.952627944163, 0.500000000000), (0.325572635609, 0.952627944163, 0.440960632174),
     (0.574258860866, 0.952627944163, 0.277785116510), (0.687329565668, 0.952627944163, 0.049008570165), (0.638082258290, 0.952627944163, -0.191341716183)],
])


def test_golden_grid():
    steps = np.linspace(-1.0, 1.0, 9)
    actual = np.array([[evaluate(u, v, 1.45) for u in steps] for v in steps])
    np.testing.assert_allclose(actual, GOLDEN_GRID, rtol=1e-9, atol=1e-11)


def test_golden_grid_vectorized():
    uu, vv = np.meshgrid(np.linspace(-1.0, 1.0, 9), np.linspace(-1.0, 1.0, 9))
    batch = evaluate_many(uu.ravel(), vv.ravel(), 1.45)
    np.testing.assert_allclose(batch.reshape(9, 9, 3), GOLDEN_GRID, rtol=1e-9, atol=1e-11)
