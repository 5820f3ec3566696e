"""Zone masks partitioning the parametric face domain.

``inside`` is a pure predicate of (u, v, zone).  The eye cutout is a
separate rule that placement applies on top of the zone for the zones
that cover the eyes (:data:`EYE_CUTOUT_ZONES`).
"""

import math

from neuromask.core.state import ZoneLabel
from neuromask.constants import EYE_CENTERS, EYE_CUTOUT_RADIUS

# Ocular band ("domino") extents and eye holes
OCULAR_V_RANGE = (0.1, 0.6)
OCULAR_MAX_U = 0.85
OCULAR_HOLE_CENTERS = ((-0.4, 0.35), (0.4, 0.35))
OCULAR_HOLE_RADIUS = 0.15

# Filter unit ("respirator") extents
FILTER_V_RANGE = (-0.8, -0.1)
FILTER_MAX_U = 0.6

# Mandible ("jaw") extents
MANDIBLE_V_MAX = -0.4
MANDIBLE_SIDE_U = 0.7

EYE_CUTOUT_ZONES = frozenset({ZoneLabel.FULL, ZoneLabel.OCULAR_BAND})


def _within(u: float, v: float, center: tuple[float, float], radius: float) -> bool:
    return math.sqrt((u - center[0]) ** 2 + (v - center[1]) ** 2) < radius


def inside(u: float, v: float, zone: ZoneLabel) -> bool:
    """Return True if (u, v) belongs to *zone*."""
    zone = ZoneLabel(zone)

    if zone is ZoneLabel.FULL:
        return True

    if zone is ZoneLabel.OCULAR_BAND:
        if OCULAR_V_RANGE[0] < v < OCULAR_V_RANGE[1] and abs(u) < OCULAR_MAX_U:
            return not any(
                _within(u, v, c, OCULAR_HOLE_RADIUS) for c in OCULAR_HOLE_CENTERS
            )
        return False

    if zone is ZoneLabel.FILTER_UNIT:
        return FILTER_V_RANGE[0] < v < FILTER_V_RANGE[1] and abs(u) < FILTER_MAX_U

    # Mandible
    return v < MANDIBLE_V_MAX or (abs(u) > MANDIBLE_SIDE_U and v < 0)


def in_eye_cutout(u: float, v: float) -> bool:
    """True if (u, v) lies within the global eye cutout radius."""
    return any(_within(u, v, c, EYE_CUTOUT_RADIUS) for c in EYE_CENTERS)


def accepts(u: float, v: float, zone: ZoneLabel) -> bool:
    """Zone membership combined with the eye cutout where it applies."""
    if not inside(u, v, zone):
        return False
    if ZoneLabel(zone) in EYE_CUTOUT_ZONES and in_eye_cutout(u, v):
        return False
    return True
