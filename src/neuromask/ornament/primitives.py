"""Procedural primitive mesh builders for ornament shapes.

All functions return indexed :class:`BufferGeometry` with positions +
normals (except the icosahedron, which is emitted flat-shaded and
non-indexed).  Axes follow the render convention: Y is the primitive's
long axis, so an ornament's "up" maps onto the surface normal.
"""

import math

import numpy as np

from neuromask.core.mesh import BufferGeometry


def make_box(width: float, height: float, depth: float) -> BufferGeometry:
    """Create a box with unique normals per face (24 verts, 12 tris).

    Centered at origin. Dimensions along X, Y, Z respectively.
    """
    hw, hh, hd = width / 2, height / 2, depth / 2

    positions = []
    normals = []
    indices = []

    faces = [
        # (normal, 4 corners)
        ([1, 0, 0],  [(hw, -hh, -hd), (hw, hh, -hd), (hw, hh, hd), (hw, -hh, hd)]),
        ([-1, 0, 0], [(-hw, -hh, hd), (-hw, hh, hd), (-hw, hh, -hd), (-hw, -hh, -hd)]),
        ([0, 1, 0],  [(-hw, hh, -hd), (-hw, hh, hd), (hw, hh, hd), (hw, hh, -hd)]),
        ([0, -1, 0], [(-hw, -hh, hd), (-hw, -hh, -hd), (hw, -hh, -hd), (hw, -hh, hd)]),
        ([0, 0, 1],  [(-hw, -hh, hd), (hw, -hh, hd), (hw, hh, hd), (-hw, hh, hd)]),
        ([0, 0, -1], [(hw, -hh, -hd), (-hw, -hh, -hd), (-hw, hh, -hd), (hw, hh, -hd)]),
    ]

    for normal, corners in faces:
        base = len(positions)
        for c in corners:
            positions.append(c)
            normals.append(normal)
        indices.extend([base, base + 1, base + 2, base, base + 2, base + 3])

    pos = np.array(positions, dtype=np.float32).ravel()
    nrm = np.array(normals, dtype=np.float32).ravel()
    idx = np.array(indices, dtype=np.uint32)

    return BufferGeometry(positions=pos, normals=nrm, indices=idx)


def make_cylinder(
    radius_top: float,
    radius_bottom: float,
    height: float,
    segments: int = 16,
) -> BufferGeometry:
    """Create a (possibly tapered) cylinder along the Y axis, centered at origin.

    A zero radius at either end produces a cone; caps are only emitted
    for non-zero radii.
    """
    if segments < 3:
        raise ValueError(f"segments must be >= 3, got: {segments}")
    positions = []
    normals = []
    indices = []
    half_h = height / 2
    slope = (radius_bottom - radius_top) / height if height else 0.0

    # --- Side ---
    for i in range(segments + 1):
        theta = (i / segments) * 2 * math.pi
        sin_t, cos_t = math.sin(theta), math.cos(theta)
        n = np.array([cos_t, slope, sin_t])
        n /= np.linalg.norm(n)
        positions.append((radius_bottom * cos_t, -half_h, radius_bottom * sin_t))
        normals.append(tuple(n))
        positions.append((radius_top * cos_t, half_h, radius_top * sin_t))
        normals.append(tuple(n))

    for i in range(segments):
        b = i * 2
        indices.extend([b, b + 1, b + 2, b + 1, b + 3, b + 2])

    # --- Caps ---
    for y, radius, sign in ((half_h, radius_top, 1.0), (-half_h, radius_bottom, -1.0)):
        if radius <= 0:
            continue
        center = len(positions)
        positions.append((0.0, y, 0.0))
        normals.append((0.0, sign, 0.0))
        for i in range(segments):
            theta = (i / segments) * 2 * math.pi
            positions.append((radius * math.cos(theta), y, radius * math.sin(theta)))
            normals.append((0.0, sign, 0.0))
        for i in range(segments):
            n = center + 1 + i
            nn = center + 1 + (i + 1) % segments
            if sign > 0:
                indices.extend([center, nn, n])
            else:
                indices.extend([center, n, nn])

    pos = np.array(positions, dtype=np.float32).ravel()
    nrm = np.array(normals, dtype=np.float32).ravel()
    idx = np.array(indices, dtype=np.uint32)

    return BufferGeometry(positions=pos, normals=nrm, indices=idx)


def make_cone(radius: float, height: float, segments: int = 16) -> BufferGeometry:
    """Cone along +Y with its apex at y = height / 2."""
    return make_cylinder(0.0, radius, height, segments)


def make_torus(
    radius: float,
    tube: float,
    radial_segments: int = 8,
    tubular_segments: int = 16,
) -> BufferGeometry:
    """Create a torus lying in the XY plane (axis along Z), centered at origin."""
    positions = []
    normals = []
    indices = []

    for j in range(radial_segments + 1):
        v = j / radial_segments * 2 * math.pi
        for i in range(tubular_segments + 1):
            u = i / tubular_segments * 2 * math.pi
            cx, cy = radius * math.cos(u), radius * math.sin(u)
            x = (radius + tube * math.cos(v)) * math.cos(u)
            y = (radius + tube * math.cos(v)) * math.sin(u)
            z = tube * math.sin(v)
            positions.append((x, y, z))
            n = np.array([x - cx, y - cy, z])
            n /= max(np.linalg.norm(n), 1e-10)
            normals.append(tuple(n))

    cols = tubular_segments + 1
    for j in range(1, radial_segments + 1):
        for i in range(1, tubular_segments + 1):
            a = cols * j + i - 1
            b = cols * (j - 1) + i - 1
            c = cols * (j - 1) + i
            d = cols * j + i
            indices.extend([a, b, d, b, c, d])

    pos = np.array(positions, dtype=np.float32).ravel()
    nrm = np.array(normals, dtype=np.float32).ravel()
    idx = np.array(indices, dtype=np.uint32)

    return BufferGeometry(positions=pos, normals=nrm, indices=idx)


_ICO_T = (1.0 + math.sqrt(5.0)) / 2.0
_ICO_VERTS = np.array([
    (-1, _ICO_T, 0), (1, _ICO_T, 0), (-1, -_ICO_T, 0), (1, -_ICO_T, 0),
    (0, -1, _ICO_T), (0, 1, _ICO_T), (0, -1, -_ICO_T), (0, 1, -_ICO_T),
    (_ICO_T, 0, -1), (_ICO_T, 0, 1), (-_ICO_T, 0, -1), (-_ICO_T, 0, 1),
], dtype=np.float64)
_ICO_FACES = np.array([
    (0, 11, 5), (0, 5, 1), (0, 1, 7), (0, 7, 10), (0, 10, 11),
    (1, 5, 9), (5, 11, 4), (11, 10, 2), (10, 7, 6), (7, 1, 8),
    (3, 9, 4), (3, 4, 2), (3, 2, 6), (3, 6, 8), (3, 8, 9),
    (4, 9, 5), (2, 4, 11), (6, 2, 10), (8, 6, 7), (9, 8, 1),
], dtype=np.int64)


def make_icosahedron(radius: float, detail: int = 0) -> BufferGeometry:
    """Flat-shaded icosphere: each face split ``detail + 1`` ways per edge."""
    if detail < 0:
        raise ValueError(f"detail must be >= 0, got: {detail}")
    splits = detail + 1
    tris = []
    for f in _ICO_FACES:
        a, b, c = _ICO_VERTS[f[0]], _ICO_VERTS[f[1]], _ICO_VERTS[f[2]]
        # Barycentric lattice over the face
        rows = []
        for i in range(splits + 1):
            aj = a + (c - a) * (i / splits)
            bj = b + (c - b) * (i / splits)
            n_cols = splits - i
            rows.append([
                aj if n_cols == 0 else aj + (bj - aj) * (j / n_cols)
                for j in range(n_cols + 1)
            ])
        for i in range(splits):
            for j in range(2 * (splits - i) - 1):
                k = j // 2
                if j % 2 == 0:
                    tris.append((rows[i][k + 1], rows[i + 1][k], rows[i][k]))
                else:
                    tris.append((rows[i][k + 1], rows[i + 1][k + 1], rows[i + 1][k]))

    tris = np.array(tris, dtype=np.float64)
    tris = tris / np.linalg.norm(tris, axis=2, keepdims=True) * radius

    # Orient every face outward
    face_n = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    inward = np.einsum("ij,ij->i", face_n, tris.mean(axis=1)) < 0
    tris[inward] = tris[inward][:, [0, 2, 1], :]

    geo = BufferGeometry.from_points(tris.reshape(-1, 3))
    geo.compute_normals()
    return geo
