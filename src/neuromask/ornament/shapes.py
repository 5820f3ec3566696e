"""Ornament shape palette: each shape is a merge of procedural primitives.

Every part is expanded to a non-indexed vertex stream before merging so
the result is one flat-shaded geometry shared by all instances.
"""

import logging
import math

from neuromask.core.mesh import BufferGeometry, merge_geometries
from neuromask.core.state import ShapeType
from neuromask.ornament.primitives import (
    make_box, make_cone, make_cylinder, make_icosahedron, make_torus,
)

logger = logging.getLogger(__name__)

FALLBACK_CONE = (0.2, 1.0, 8)


def _cone_parts() -> list[BufferGeometry]:
    spike = make_cone(0.15, 1.2, 6).translate(0, 0.6, 0)
    base = make_cylinder(0.3, 0.15, 0.3, 6).translate(0, 0.15, 0)
    collar = make_torus(0.2, 0.03, 4, 12).rotate_x(math.pi / 2).translate(0, 0.2, 0)
    return [spike, base, collar]


def _sphere_parts() -> list[BufferGeometry]:
    core = make_icosahedron(0.4, 1)
    ring = make_torus(0.6, 0.04, 6, 32).rotate_x(math.pi / 2)
    pin = make_cylinder(0.05, 0.05, 1.2, 6)
    return [core, ring, pin]


def _box_parts() -> list[BufferGeometry]:
    main = make_box(0.8, 0.8, 0.8)
    plate = make_box(1.0, 0.1, 0.6).translate(0, 0.45, 0)
    core = make_cylinder(0.2, 0.2, 1.0, 8).rotate_x(math.pi / 2)
    return [main, plate, core]


def _torus_parts() -> list[BufferGeometry]:
    ring = make_torus(0.4, 0.1, 6, 6)
    node_right = make_box(0.3, 0.3, 0.3).translate(0.4, 0, 0)
    node_left = make_box(0.3, 0.3, 0.3).translate(-0.4, 0, 0)
    return [ring, node_right, node_left]


def _cylinder_parts() -> list[BufferGeometry]:
    shaft = make_cylinder(0.15, 0.15, 1.0, 8)
    cap_top = make_cylinder(0.25, 0.25, 0.1, 16).translate(0, 0.45, 0)
    cap_bottom = make_cylinder(0.25, 0.25, 0.1, 16).translate(0, -0.45, 0)
    ring = make_torus(0.2, 0.05, 6, 16).rotate_x(math.pi / 2)
    return [shaft, cap_top, cap_bottom, ring]


_SHAPE_BUILDERS = {
    ShapeType.CONE: _cone_parts,
    ShapeType.SPHERE: _sphere_parts,
    ShapeType.BOX: _box_parts,
    ShapeType.TORUS: _torus_parts,
    ShapeType.CYLINDER: _cylinder_parts,
}


def fallback_geometry() -> BufferGeometry:
    radius, height, segments = FALLBACK_CONE
    return make_cone(radius, height, segments).to_non_indexed()


def build_ornament_geometry(shape: ShapeType) -> BufferGeometry:
    """Build the merged geometry for *shape*.

    Any failure while building or merging the parts is logged and the
    plain fallback cone is returned instead, so the caller always gets a
    renderable geometry.
    """
    try:
        builder = _SHAPE_BUILDERS[ShapeType(shape)]
        parts = [part.to_non_indexed() for part in builder()]
        return merge_geometries(parts)
    except (KeyError, ValueError) as e:
        logger.error("Ornament geometry merge failed for %r: %s", shape, e)
        return fallback_geometry()
