"""Wavefront OBJ parser -> BufferGeometry, for user-supplied target meshes."""

import logging
from pathlib import Path

import numpy as np

from neuromask.core.mesh import BufferGeometry

logger = logging.getLogger(__name__)


def _resolve(index: int, count: int) -> int:
    # OBJ indices are 1-based; negative indices count back from the end
    return index - 1 if index > 0 else count + index


def parse_obj(text: str) -> BufferGeometry:
    """Parse a Wavefront OBJ string into indexed BufferGeometry.

    Supports ``v``, ``vn`` and ``f`` lines; other records (``vt``, ``o``,
    ``g``, materials) are skipped and every object lands in one mesh.
    Polygons are fan-triangulated.  Per-vertex normals from ``vn`` are used
    when they map one-to-one onto vertices, otherwise smooth normals are
    computed from the triangles.

    Raises ``ValueError`` on malformed records or out-of-range indices.
    """
    positions: list[list[float]] = []
    normals: list[list[float]] = []
    tri_indices: list[int] = []
    vertex_normal: dict[int, int] = {}
    normals_consistent = True

    for lineno, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        key = parts[0]

        try:
            if key == "v" and len(parts) >= 4:
                positions.append([float(parts[1]), float(parts[2]), float(parts[3])])
            elif key == "vn" and len(parts) >= 4:
                normals.append([float(parts[1]), float(parts[2]), float(parts[3])])
            elif key == "f":
                vi: list[int] = []
                for token in parts[1:]:
                    fields = token.split("/")
                    v = _resolve(int(fields[0]), len(positions))
                    if not 0 <= v < len(positions):
                        raise ValueError(f"vertex index {fields[0]} out of range")
                    vi.append(v)
                    if len(fields) >= 3 and fields[2]:
                        n = _resolve(int(fields[2]), len(normals))
                        if not 0 <= n < len(normals):
                            raise ValueError(f"normal index {fields[2]} out of range")
                        if vertex_normal.setdefault(v, n) != n:
                            normals_consistent = False
                    else:
                        normals_consistent = False
                for k in range(1, len(vi) - 1):
                    tri_indices.extend([vi[0], vi[k], vi[k + 1]])
        except ValueError as e:
            raise ValueError(f"OBJ line {lineno}: {e}") from e

    if not positions:
        raise ValueError("OBJ contains no vertices")

    pos_arr = np.array(positions, dtype=np.float32).reshape(-1)
    geo = BufferGeometry(
        positions=pos_arr,
        normals=np.zeros(0, dtype=np.float32),
        indices=np.array(tri_indices, dtype=np.uint32) if tri_indices else None,
    )

    if normals_consistent and normals and len(vertex_normal) == len(positions):
        order = [vertex_normal[v] for v in range(len(positions))]
        geo.normals = np.array(normals, dtype=np.float32)[order].reshape(-1)
    elif geo.has_indices:
        geo.compute_normals()

    logger.debug("Parsed OBJ: %d vertices, %d triangles", geo.vertex_count, geo.triangle_count)
    return geo


def load_obj_file(path) -> BufferGeometry:
    """Load an OBJ file from disk."""
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    return parse_obj(text)
