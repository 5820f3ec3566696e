"""NumPy-backed math utilities: Vec3, Quaternion, Mat4 operations.

Vectors are plain numpy arrays; quaternions are [x, y, z, w] arrays.
Matrices are 4x4 numpy arrays applied to column vectors (``m @ [x, y, z, 1]``),
so the translation lives in ``m[:3, 3]``.
"""

import numpy as np
from numpy.typing import NDArray

# Type aliases
Vec3 = NDArray[np.float64]
Mat4 = NDArray[np.float64]
Quat = NDArray[np.float64]  # [x, y, z, w]


def mat4_identity() -> Mat4:
    return np.eye(4, dtype=np.float64)


def mat4_from_quaternion(q: Quat) -> Mat4:
    """Convert quaternion [x,y,z,w] to 4x4 rotation matrix."""
    x, y, z, w = q
    m = np.eye(4, dtype=np.float64)
    m[0, 0] = 1 - 2 * (y * y + z * z)
    m[0, 1] = 2 * (x * y - z * w)
    m[0, 2] = 2 * (x * z + y * w)
    m[1, 0] = 2 * (x * y + z * w)
    m[1, 1] = 1 - 2 * (x * x + z * z)
    m[1, 2] = 2 * (y * z - x * w)
    m[2, 0] = 2 * (x * z - y * w)
    m[2, 1] = 2 * (y * z + x * w)
    m[2, 2] = 1 - 2 * (x * x + y * y)
    return m


def mat4_compose(position: Vec3, quaternion: Quat, scale: Vec3) -> Mat4:
    """Compose TRS matrix from position, quaternion rotation, and scale."""
    m = mat4_from_quaternion(quaternion)
    m[:3, 0] *= scale[0]
    m[:3, 1] *= scale[1]
    m[:3, 2] *= scale[2]
    m[0, 3] = position[0]
    m[1, 3] = position[1]
    m[2, 3] = position[2]
    return m


def mat4_inverse(m: Mat4) -> Mat4:
    return np.linalg.inv(m)


def mat3_normal(m: Mat4) -> NDArray[np.float64]:
    """Extract normal matrix (inverse transpose of upper-left 3x3)."""
    return np.linalg.inv(m[:3, :3]).T


# Quaternion operations

def quat_identity() -> Quat:
    return np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float64)


def quat_from_euler(x: float, y: float, z: float, order: str = "XYZ") -> Quat:
    """Create quaternion from Euler angles (radians)."""
    cx, sx = np.cos(x / 2), np.sin(x / 2)
    cy, sy = np.cos(y / 2), np.sin(y / 2)
    cz, sz = np.cos(z / 2), np.sin(z / 2)

    if order == "XYZ":
        return np.array([
            sx * cy * cz + cx * sy * sz,
            cx * sy * cz - sx * cy * sz,
            cx * cy * sz + sx * sy * cz,
            cx * cy * cz - sx * sy * sz,
        ], dtype=np.float64)
    elif order == "YXZ":
        return np.array([
            sx * cy * cz + cx * sy * sz,
            cx * sy * cz - sx * cy * sz,
            cx * cy * sz - sx * sy * cz,
            cx * cy * cz + sx * sy * sz,
        ], dtype=np.float64)
    else:
        raise ValueError(f"Unsupported Euler order: {order}")


def quat_from_unit_vectors(v_from: Vec3, v_to: Vec3) -> Quat:
    """Shortest-arc rotation taking unit vector *v_from* onto *v_to*.

    Antiparallel inputs rotate by pi about an axis perpendicular to
    *v_from*.
    """
    r = float(np.dot(v_from, v_to)) + 1.0
    if r < 1e-6:
        if abs(v_from[0]) > abs(v_from[2]):
            q = np.array([-v_from[1], v_from[0], 0.0, 0.0], dtype=np.float64)
        else:
            q = np.array([0.0, -v_from[2], v_from[1], 0.0], dtype=np.float64)
    else:
        c = np.cross(v_from, v_to)
        q = np.array([c[0], c[1], c[2], r], dtype=np.float64)
    return quat_normalize(q)


def quat_normalize(q: Quat) -> Quat:
    n = np.linalg.norm(q)
    if n < 1e-10:
        return quat_identity()
    return q / n


def quat_slerp(a: Quat, b: Quat, t: float) -> Quat:
    """Spherical linear interpolation between two quaternions."""
    dot = np.dot(a, b)
    if dot < 0:
        b = -b
        dot = -dot
    if dot > 0.9995:
        result = a + t * (b - a)
        return quat_normalize(result)
    theta = np.arccos(np.clip(dot, -1.0, 1.0))
    sin_theta = np.sin(theta)
    if sin_theta < 1e-10:
        return a.copy()
    wa = np.sin((1 - t) * theta) / sin_theta
    wb = np.sin(t * theta) / sin_theta
    return quat_normalize(wa * a + wb * b)


# Scalar / vector operations

def normalize(v: Vec3) -> Vec3:
    n = np.linalg.norm(v)
    if n < 1e-10:
        return np.zeros_like(v)
    return v / n


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def lerp_vec3(a: Vec3, b: Vec3, t: float) -> Vec3:
    return a + (b - a) * t


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def map_range(value, in_min: float, in_max: float, out_min: float, out_max: float):
    """Linearly remap *value* from [in_min, in_max] to [out_min, out_max].

    Works on scalars and numpy arrays alike; no clamping.
    """
    return ((value - in_min) * (out_max - out_min)) / (in_max - in_min) + out_min


def deg_to_rad(degrees: float) -> float:
    return degrees * np.pi / 180.0


def transform_points(m: Mat4, points: NDArray) -> NDArray[np.float64]:
    """Transform (N, 3) points by a 4x4 matrix."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    return pts @ m[:3, :3].T + m[:3, 3]


# Batch operations

def batch_mat4_compose(
    positions: NDArray, quaternions: NDArray, scales: NDArray,
) -> NDArray[np.float64]:
    """Compose (N, 4, 4) TRS matrices from (N, 3) positions, (N, 4)
    quaternions and (N,) uniform scales."""
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    q = np.asarray(quaternions, dtype=np.float64).reshape(-1, 4)
    s = np.asarray(scales, dtype=np.float64).reshape(-1)
    N = len(positions)
    x, y, z, w = q[:, 0], q[:, 1], q[:, 2], q[:, 3]

    m = np.zeros((N, 4, 4), dtype=np.float64)
    m[:, 0, 0] = 1 - 2 * (y * y + z * z)
    m[:, 0, 1] = 2 * (x * y - z * w)
    m[:, 0, 2] = 2 * (x * z + y * w)
    m[:, 1, 0] = 2 * (x * y + z * w)
    m[:, 1, 1] = 1 - 2 * (x * x + z * z)
    m[:, 1, 2] = 2 * (y * z - x * w)
    m[:, 2, 0] = 2 * (x * z - y * w)
    m[:, 2, 1] = 2 * (y * z + x * w)
    m[:, 2, 2] = 1 - 2 * (x * x + y * y)
    m[:, :3, :3] *= s[:, None, None]
    m[:, :3, 3] = positions
    m[:, 3, 3] = 1.0
    return m
