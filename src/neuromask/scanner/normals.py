"""Normal reconstruction for unstructured point clouds.

Each point's normal is the cross product of the offsets to two of its
nearest neighbours, oriented away from the origin (captured clouds are
centered on the head).  Points with too few usable neighbours fall back
to their own normalized position.
"""

import numpy as np
from numpy.typing import NDArray

from neuromask.constants import NORMAL_NEIGHBORS

# Minimum neighbours needed for a local plane estimate
MIN_NEIGHBORS = 3


def _position_normals(points: NDArray[np.float64]) -> NDArray[np.float64]:
    lengths = np.linalg.norm(points, axis=1, keepdims=True)
    out = np.zeros_like(points)
    ok = lengths[:, 0] > 1e-10
    out[ok] = points[ok] / lengths[ok]
    return out


def estimate_normals(points: NDArray, k: int = NORMAL_NEIGHBORS) -> NDArray[np.float64]:
    """Estimate one outward unit normal per point of an (N, 3) cloud.

    Uses the nearest neighbour plus the nearest of the remaining *k*
    neighbours that is not collinear with it.  Clouds of three points or
    fewer, and points whose neighbours are all collinear, get the
    normalized position as their normal.
    """
    from scipy.spatial import cKDTree

    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    n = len(pts)
    normals = _position_normals(pts)
    k = min(k, n - 1)
    if k < MIN_NEIGHBORS:
        return normals

    tree = cKDTree(pts)
    # k + 1 because the closest hit is the point itself
    _, idx = tree.query(pts, k=k + 1)

    for i in range(n):
        neighbors = [j for j in idx[i] if j != i][:k]
        v1 = pts[neighbors[0]] - pts[i]
        len1 = np.linalg.norm(v1)
        if len1 < 1e-12:
            continue
        for j in neighbors[1:]:
            v2 = pts[j] - pts[i]
            c = np.cross(v1, v2)
            c_len = np.linalg.norm(c)
            if c_len > 1e-9 * len1 * max(np.linalg.norm(v2), 1e-12):
                nrm = c / c_len
                if np.dot(nrm, pts[i]) < 0:
                    nrm = -nrm
                normals[i] = nrm
                break

    return normals
