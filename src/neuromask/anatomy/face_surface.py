"""Analytic head surface: parametric (u, v) -> 3D point on a synthetic head.

The base shape is an ellipsoid patch swept over the front of the head.
Four additive sculpting terms then raise the nose bridge, brow ridge and
cheekbones and narrow the chin.  They are applied in a fixed order so
that later terms see the post-sculpt ``z``.

Coordinate frame: +X is the subject's left (viewer right), +Y up, +Z out of
the face.  ``u`` runs left/right and ``v`` runs chin (-1) to forehead (+1).

This module has ZERO GL imports; all math is done with NumPy.
"""

import math

import numpy as np
from numpy.typing import NDArray

from neuromask.core.math_utils import Vec3, map_range
from neuromask.core.mesh import BufferGeometry
from neuromask.constants import HEAD_DEPTH, HEAD_HALF_WIDTH_FACTOR, HEAD_HEIGHT

# Sculpt parameters
NOSE_CENTER_V = -0.15
NOSE_RADIUS = 0.3
NOSE_HEIGHT = 0.28

BROW_V = 0.25
BROW_HALF_HEIGHT = 0.2
BROW_MAX_U = 0.7
BROW_HEIGHT = 0.08

CHEEK_U = 0.55
CHEEK_RADIUS = 0.3
CHEEK_V_RANGE = (-0.5, 0.0)
CHEEK_LATERAL = 0.08
CHEEK_FORWARD = 0.05

CHIN_V = -0.7
CHIN_FORWARD = 0.05
CHIN_NARROWING = 0.8


def evaluate(u: float, v: float, head_width: float) -> Vec3:
    """Map a parametric coordinate to a point on the sculpted head.

    Pure function of its inputs; identical arguments give bit-identical
    results.

    Args:
        u: Left/right coordinate in [-1, 1].
        v: Chin (-1) to forehead (+1) coordinate.
        head_width: Cranial width factor (1.45 for the default head).
    """
    w = head_width * HEAD_HALF_WIDTH_FACTOR
    h = HEAD_HEIGHT
    d = HEAD_DEPTH

    # Base ellipsoid mapping
    theta = map_range(u, -1.0, 1.0, -math.pi / 1.6, math.pi / 1.6)
    phi = map_range(v, -1.0, 1.0, math.pi / 2.5, -math.pi / 3)

    x = w * math.sin(theta) * math.cos(phi * 0.5)
    y = -h * math.sin(phi)
    z = d * math.cos(theta) * math.cos(phi)

    # 1. Nose bridge
    nose_dist = math.sqrt(u * u + (v - NOSE_CENTER_V) ** 2)
    if nose_dist < NOSE_RADIUS:
        z += NOSE_HEIGHT * max(0.0, 1.0 - nose_dist / NOSE_RADIUS) ** 2

    # 2. Brow ridge
    brow_dist = abs(v - BROW_V)
    if brow_dist < BROW_HALF_HEIGHT and abs(u) < BROW_MAX_U:
        z += BROW_HEIGHT * math.cos(brow_dist * math.pi / 0.4)

    # 3. Cheekbones
    if CHEEK_V_RANGE[0] < v < CHEEK_V_RANGE[1]:
        cheek_dist = abs(abs(u) - CHEEK_U)
        if cheek_dist < CHEEK_RADIUS:
            falloff = math.cos(cheek_dist * math.pi / 0.6)
            x += (1.0 if u > 0 else -1.0) * CHEEK_LATERAL * falloff
            z += CHEEK_FORWARD * falloff

    # 4. Chin
    if v < CHIN_V:
        z += CHIN_FORWARD
        x *= CHIN_NARROWING

    return np.array([x, y, z], dtype=np.float64)


def evaluate_many(u: NDArray, v: NDArray, head_width: float) -> NDArray[np.float64]:
    """Vectorized :func:`evaluate` over matching (N,) arrays -> (N, 3)."""
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    w = head_width * HEAD_HALF_WIDTH_FACTOR

    theta = map_range(u, -1.0, 1.0, -np.pi / 1.6, np.pi / 1.6)
    phi = map_range(v, -1.0, 1.0, np.pi / 2.5, -np.pi / 3)

    x = w * np.sin(theta) * np.cos(phi * 0.5)
    y = -HEAD_HEIGHT * np.sin(phi)
    z = HEAD_DEPTH * np.cos(theta) * np.cos(phi)

    nose_dist = np.sqrt(u * u + (v - NOSE_CENTER_V) ** 2)
    nose = nose_dist < NOSE_RADIUS
    z = z + np.where(nose, NOSE_HEIGHT * np.maximum(0.0, 1.0 - nose_dist / NOSE_RADIUS) ** 2, 0.0)

    brow_dist = np.abs(v - BROW_V)
    brow = (brow_dist < BROW_HALF_HEIGHT) & (np.abs(u) < BROW_MAX_U)
    z = z + np.where(brow, BROW_HEIGHT * np.cos(brow_dist * np.pi / 0.4), 0.0)

    cheek_dist = np.abs(np.abs(u) - CHEEK_U)
    cheek = (v > CHEEK_V_RANGE[0]) & (v < CHEEK_V_RANGE[1]) & (cheek_dist < CHEEK_RADIUS)
    falloff = np.cos(cheek_dist * np.pi / 0.6)
    side = np.where(u > 0, 1.0, -1.0)
    x = x + np.where(cheek, side * CHEEK_LATERAL * falloff, 0.0)
    z = z + np.where(cheek, CHEEK_FORWARD * falloff, 0.0)

    chin = v < CHIN_V
    z = z + np.where(chin, CHIN_FORWARD, 0.0)
    x = np.where(chin, x * CHIN_NARROWING, x)

    return np.column_stack([x, y, z])


def build_head_geometry(head_width: float, segments: int = 48) -> BufferGeometry:
    """Tessellate the parametric domain into an indexed head mesh.

    Vertex normals are computed from the triangles and face outward (+Z
    on the face front).  Usable as a snap target.
    """
    if segments < 1:
        raise ValueError(f"segments must be >= 1, got: {segments}")
    ticks = np.linspace(-1.0, 1.0, segments + 1)
    uu, vv = np.meshgrid(ticks, ticks)
    pos = evaluate_many(uu.ravel(), vv.ravel(), head_width)

    cols = segments + 1
    idxs = []
    for iv in range(segments):
        for iu in range(segments):
            a = iv * cols + iu
            b = a + 1
            c = a + cols
            d = c + 1
            # Counter-clockwise seen from +Z (u grows toward +X, v toward +Y)
            idxs.extend([a, b, d, a, d, c])

    geo = BufferGeometry(
        positions=pos.astype(np.float32).ravel(),
        normals=np.zeros(len(pos) * 3, dtype=np.float32),
        indices=np.array(idxs, dtype=np.uint32),
    )
    geo.compute_normals()
    return geo


def sample_ghost_points(head_width: float, count: int = 1000, seed: int = 0) -> NDArray[np.float64]:
    """Random (count, 3) point cloud over the head for preview display."""
    rng = np.random.default_rng(seed)
    u = rng.uniform(-1.0, 1.0, count)
    v = rng.uniform(-1.0, 1.0, count)
    return evaluate_many(u, v, head_width)
