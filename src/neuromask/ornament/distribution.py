"""Sampling laws that choose candidate parametric coordinates.

All laws are deterministic functions of (index, count): the random law
uses a seeded sine hash rather than a stateful RNG, so regenerating with
the same inputs reproduces the same samples.
"""

import math

from neuromask.core.math_utils import map_range
from neuromask.core.state import DistributionLaw
from neuromask.constants import (
    DISTRIBUTION_SEED,
    GOLDEN_ANGLE,
    RANDOM_V_OFFSET,
    SPIRAL_V_STRETCH,
)


def hash_noise(offset: float, seed: float = DISTRIBUTION_SEED) -> float:
    """Sine hash in [0, 1): ``fract(sin(seed + offset) * 10000)``."""
    x = math.sin(seed + offset) * 10000.0
    return x - math.floor(x)


def grid_coordinate(index: int, count: int) -> tuple[float, float]:
    dim = int(math.floor(math.sqrt(count)))
    if dim == 0:
        return -1.0, -1.0
    row = index // dim
    col = index % dim
    return (
        map_range(col, 0, dim, -1.0, 1.0),
        map_range(row, 0, dim, -1.0, 1.0),
    )


def spiral_coordinate(index: int, count: int) -> tuple[float, float]:
    angle = index * GOLDEN_ANGLE
    r = math.sqrt(index) / math.sqrt(count)
    u = r * math.cos(angle)
    v = r * math.sin(angle) * SPIRAL_V_STRETCH
    return u, v


def random_coordinate(index: int, seed: float = DISTRIBUTION_SEED) -> tuple[float, float]:
    u = map_range(hash_noise(index, seed), 0.0, 1.0, -1.0, 1.0)
    v = map_range(hash_noise(index + RANDOM_V_OFFSET, seed), 0.0, 1.0, -1.0, 1.0)
    return u, v


def sample_coordinate(law: DistributionLaw, index: int, count: int) -> tuple[float, float]:
    """Parametric (u, v) for sample *index* of *count* under *law*.

    When *count* is not a perfect square the grid law keeps adding rows
    above v = 1 (the surface function extends smoothly there).
    """
    law = DistributionLaw(law)
    if law is DistributionLaw.GRID:
        return grid_coordinate(index, count)
    if law is DistributionLaw.SPIRAL:
        return spiral_coordinate(index, count)
    return random_coordinate(index)
