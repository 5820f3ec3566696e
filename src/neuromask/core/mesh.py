"""Mesh data structures for geometry storage (no GL dependencies)."""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray


@dataclass
class BufferGeometry:
    """Stores vertex attribute arrays for a mesh.

    All arrays use float32 for GL compatibility.
    positions: Nx3 flat array (x,y,z per vertex)
    normals: Nx3 flat array, may be empty for raw point clouds
    indices: triangle index array (uint32), optional for non-indexed geometry
    """
    positions: NDArray[np.float32]
    normals: NDArray[np.float32]
    indices: Optional[NDArray[np.uint32]] = None
    vertex_count: int = 0

    def __post_init__(self):
        if self.vertex_count == 0:
            self.vertex_count = len(self.positions) // 3

    @classmethod
    def from_points(
        cls,
        points: NDArray,
        normals: Optional[NDArray] = None,
    ) -> "BufferGeometry":
        """Build a non-indexed geometry from (N, 3) points."""
        pos = np.asarray(points, dtype=np.float32).reshape(-1, 3)
        if normals is None:
            nrm = np.zeros(0, dtype=np.float32)
        else:
            nrm = np.asarray(normals, dtype=np.float32).reshape(-1, 3).ravel()
        return cls(positions=pos.ravel(), normals=nrm)

    @property
    def triangle_count(self) -> int:
        if self.indices is not None:
            return len(self.indices) // 3
        return self.vertex_count // 3

    @property
    def has_indices(self) -> bool:
        return self.indices is not None and len(self.indices) > 0

    @property
    def has_normals(self) -> bool:
        return len(self.normals) == len(self.positions) and len(self.normals) > 0

    def positions_3d(self) -> NDArray[np.float32]:
        return self.positions.reshape(-1, 3)

    def normals_3d(self) -> NDArray[np.float32]:
        return self.normals.reshape(-1, 3)

    def compute_normals(self) -> None:
        """Compute per-vertex normals from face normals (flat or indexed)."""
        pos = self.positions.reshape(-1, 3).astype(np.float64)
        norms = np.zeros_like(pos)

        if self.has_indices:
            idx = self.indices.reshape(-1, 3)
            v0, v1, v2 = pos[idx[:, 0]], pos[idx[:, 1]], pos[idx[:, 2]]
            face_n = np.cross(v1 - v0, v2 - v0)
            for corner in range(3):
                np.add.at(norms, idx[:, corner], face_n)
        else:
            usable = len(pos) - len(pos) % 3
            tris = pos[:usable].reshape(-1, 3, 3)
            face_n = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
            norms[:usable] = np.repeat(face_n, 3, axis=0)

        lengths = np.linalg.norm(norms, axis=1, keepdims=True)
        lengths = np.maximum(lengths, 1e-10)
        norms /= lengths
        self.normals = norms.ravel().astype(np.float32)

    # ------------------------------------------------------------------
    # In-place transforms (return self for chaining)
    # ------------------------------------------------------------------

    def translate(self, x: float, y: float, z: float) -> "BufferGeometry":
        pos = self.positions.reshape(-1, 3)
        pos += np.array([x, y, z], dtype=np.float32)
        self.positions = pos.ravel()
        return self

    def scale(self, sx: float, sy: float, sz: float) -> "BufferGeometry":
        factors = np.array([sx, sy, sz], dtype=np.float32)
        self.positions = (self.positions.reshape(-1, 3) * factors).ravel()
        if self.has_normals:
            n = self.normals.reshape(-1, 3) / factors
            lengths = np.maximum(np.linalg.norm(n, axis=1, keepdims=True), 1e-10)
            self.normals = (n / lengths).astype(np.float32).ravel()
        return self

    def rotate_x(self, angle_rad: float) -> "BufferGeometry":
        c, s = np.cos(angle_rad), np.sin(angle_rad)
        rot = np.array([[1, 0, 0], [0, c, -s], [0, s, c]], dtype=np.float32)
        self.positions = (self.positions.reshape(-1, 3) @ rot.T).ravel()
        if self.has_normals:
            self.normals = (self.normals.reshape(-1, 3) @ rot.T).ravel()
        return self

    def to_non_indexed(self) -> "BufferGeometry":
        """Return a copy with indices expanded into a flat vertex stream."""
        if not self.has_indices:
            return self.clone()
        idx = self.indices.astype(np.int64)
        pos = self.positions.reshape(-1, 3)[idx]
        nrm = self.normals.reshape(-1, 3)[idx] if self.has_normals else None
        return BufferGeometry.from_points(pos, nrm)

    def bounding_box(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        pos = self.positions.reshape(-1, 3).astype(np.float64)
        if len(pos) == 0:
            zero = np.zeros(3, dtype=np.float64)
            return zero, zero.copy()
        return pos.min(axis=0), pos.max(axis=0)

    def center(self) -> "BufferGeometry":
        """Translate so the bounding-box center sits at the origin."""
        lo, hi = self.bounding_box()
        mid = (lo + hi) / 2.0
        return self.translate(-mid[0], -mid[1], -mid[2])

    def clone(self) -> "BufferGeometry":
        """Create a deep copy."""
        return BufferGeometry(
            positions=self.positions.copy(),
            normals=self.normals.copy(),
            indices=self.indices.copy() if self.indices is not None else None,
            vertex_count=self.vertex_count,
        )


def merge_geometries(geometries: list[BufferGeometry]) -> BufferGeometry:
    """Concatenate non-indexed geometries into one vertex stream.

    Raises ``ValueError`` if the list is empty, any part is indexed, or a
    part's attribute arrays are inconsistent.
    """
    if not geometries:
        raise ValueError("Cannot merge an empty geometry list")

    positions = []
    normals = []
    for i, geo in enumerate(geometries):
        if geo.has_indices:
            raise ValueError(f"Geometry {i} is indexed; convert with to_non_indexed() first")
        if len(geo.positions) == 0 or len(geo.positions) % 3 != 0:
            raise ValueError(f"Geometry {i} has malformed positions ({len(geo.positions)} floats)")
        if not geo.has_normals:
            raise ValueError(f"Geometry {i} is missing normals")
        positions.append(geo.positions)
        normals.append(geo.normals)

    return BufferGeometry(
        positions=np.concatenate(positions).astype(np.float32),
        normals=np.concatenate(normals).astype(np.float32),
    )
