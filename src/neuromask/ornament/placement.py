"""Ornament placement: scatter instances over a zone of the head surface.

For each sample index the engine picks a parametric coordinate from the
configured distribution law, rejects it by zone (plus the eye cutout),
resolves a surface point either analytically or by snapping onto a target
mesh, and derives the instance's offset position, orientation, scale and
color.  With symmetry enabled every accepted sample is followed by its
mirror image across the sagittal (x = 0) plane.

The result is an immutable :class:`InstanceSet`; a regeneration always
produces a new set rather than mutating the old one.
"""

from __future__ import annotations

import colorsys
import itertools
import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray

from neuromask.anatomy import face_surface, zones
from neuromask.core.material import hex_to_rgb
from neuromask.core.math_utils import (
    Mat4, Quat, Vec3,
    batch_mat4_compose, clamp, map_range, normalize,
    quat_from_unit_vectors,
)
from neuromask.core.mesh import BufferGeometry
from neuromask.core.state import ColorMode, MaskConfig
from neuromask.ornament.distribution import hash_noise, sample_coordinate
from neuromask.ornament.snapping import TargetMesh, snap_to_target
from neuromask.constants import SCALE_NOISE_STEP, UP_AXIS

logger = logging.getLogger(__name__)

_UP = np.array(UP_AXIS, dtype=np.float64)
_FORWARD = np.array([0.0, 0.0, 1.0], dtype=np.float64)

# Depth coloring: fixed hue/saturation, lightness from z
DEPTH_HUE = 0.5
DEPTH_SATURATION = 0.8
DEPTH_Z_RANGE = (0.0, 1.5)
DEPTH_LIGHTNESS_RANGE = (0.2, 1.0)
DEPTH_LIGHTNESS_GAIN = 0.8

# Analytic normals: points near the nose tip face straight forward
NOSE_TIP_MIN_Z = 0.8
NOSE_TIP_MAX_ABS_X = 0.2

_generation_ids = itertools.count(1)


@dataclass(frozen=True)
class OrnamentInstance:
    """One placed ornament in its rest pose."""
    position: Vec3
    normal: Vec3
    quaternion: Quat
    scale: float
    color: tuple[float, float, float]
    rest_transform: Mat4
    uv: tuple[float, float]


class InstanceSet:
    """Immutable, ordered batch of ornament instances.

    Stored column-wise; index ``i`` is stable for the lifetime of the set
    and doubles as the render slot and binding key.
    """

    def __init__(
        self,
        positions: NDArray,
        normals: NDArray,
        quaternions: NDArray,
        scales: NDArray,
        colors: NDArray,
        uvs: NDArray,
        capacity: int,
    ):
        self.positions = _frozen(positions, (-1, 3))
        self.normals = _frozen(normals, (-1, 3))
        self.quaternions = _frozen(quaternions, (-1, 4))
        self.scales = _frozen(scales, (-1,))
        self.colors = _frozen(colors, (-1, 3))
        self.uvs = _frozen(uvs, (-1, 2))
        n = len(self.positions)
        for name in ("normals", "quaternions", "scales", "colors", "uvs"):
            if len(getattr(self, name)) != n:
                raise ValueError(f"InstanceSet {name} length does not match positions ({n})")
        if n > capacity:
            raise ValueError(f"InstanceSet holds {n} instances but capacity is {capacity}")
        self.capacity = capacity
        self.generation = next(_generation_ids)
        self._rest_transforms: Optional[NDArray[np.float64]] = None

    @classmethod
    def empty(cls, capacity: int = 0) -> "InstanceSet":
        return cls(
            np.zeros((0, 3)), np.zeros((0, 3)), np.zeros((0, 4)),
            np.zeros(0), np.zeros((0, 3)), np.zeros((0, 2)), capacity,
        )

    @property
    def count(self) -> int:
        return len(self.positions)

    def __len__(self) -> int:
        return self.count

    def __getitem__(self, index: int) -> OrnamentInstance:
        if index < 0:
            index += self.count
        if not 0 <= index < self.count:
            raise IndexError(f"instance index out of range: {index}")
        return OrnamentInstance(
            position=self.positions[index].copy(),
            normal=self.normals[index].copy(),
            quaternion=self.quaternions[index].copy(),
            scale=float(self.scales[index]),
            color=tuple(float(c) for c in self.colors[index]),
            rest_transform=self.rest_transforms[index].copy(),
            uv=(float(self.uvs[index, 0]), float(self.uvs[index, 1])),
        )

    def __iter__(self):
        for i in range(self.count):
            yield self[i]

    @property
    def rest_transforms(self) -> NDArray[np.float64]:
        """(N, 4, 4) rest-pose TRS matrices, built on first access."""
        if self._rest_transforms is None:
            m = batch_mat4_compose(self.positions, self.quaternions, self.scales)
            m.flags.writeable = False
            self._rest_transforms = m
        return self._rest_transforms

    def __repr__(self) -> str:
        return f"InstanceSet(count={self.count}, capacity={self.capacity}, generation={self.generation})"


def _frozen(values: NDArray, shape: tuple) -> NDArray[np.float64]:
    arr = np.array(values, dtype=np.float64).reshape(shape)
    arr.flags.writeable = False
    return arr


def analytic_normal(position: Vec3) -> Vec3:
    """Approximate outward normal of the analytic head at *position*."""
    if position[2] > NOSE_TIP_MIN_Z and abs(position[0]) < NOSE_TIP_MAX_ABS_X:
        return _FORWARD.copy()
    return normalize(np.array([position[0], position[1] * 0.5, position[2]]))


def instance_color(
    mode: ColorMode,
    position: Vec3,
    normal: Vec3,
    primary: tuple[float, float, float],
) -> tuple[float, float, float]:
    """RGB in [0, 1] for an instance under *mode*."""
    mode = ColorMode(mode)
    if mode is ColorMode.SOLID:
        return primary
    if mode is ColorMode.DEPTH:
        depth = map_range(float(position[2]), *DEPTH_Z_RANGE, *DEPTH_LIGHTNESS_RANGE)
        lightness = clamp(depth * DEPTH_LIGHTNESS_GAIN, 0.0, 1.0)
        return colorsys.hls_to_rgb(DEPTH_HUE, lightness, DEPTH_SATURATION)
    return tuple(float(c) * 0.5 + 0.5 for c in normal)


class PlacementEngine:
    """Generates :class:`InstanceSet` objects from a :class:`MaskConfig`.

    Stateless apart from remembering the last set it produced.
    """

    def __init__(self):
        self.last_generated: Optional[InstanceSet] = None

    def generate(
        self,
        config: MaskConfig,
        target_mesh: Optional[Union[TargetMesh, BufferGeometry]] = None,
        target_transform: Optional[Mat4] = None,
    ) -> InstanceSet:
        """Place ornaments for *config*, optionally snapped onto a mesh.

        Args:
            config: Design parameters (usually the derived render config).
            target_mesh: Mesh to snap onto, as a :class:`TargetMesh` or a raw
                geometry.  ``None`` uses the analytic head.
            target_transform: World transform for a raw geometry, or an
                override for a :class:`TargetMesh`.

        Returns:
            A new instance set.  Its count never exceeds ``config.capacity``.
        """
        mesh = _as_target(target_mesh, target_transform)
        primary = hex_to_rgb(config.primary_color)

        positions: list[Vec3] = []
        normals: list[Vec3] = []
        quats: list[Quat] = []
        scales: list[float] = []
        colors: list[tuple[float, float, float]] = []
        uvs: list[tuple[float, float]] = []

        def append(pos, nrm, scale, color, uv):
            positions.append(pos)
            normals.append(nrm)
            quats.append(quat_from_unit_vectors(_UP, nrm))
            scales.append(scale)
            colors.append(color)
            uvs.append(uv)

        for i in range(config.density):
            u, v = sample_coordinate(config.distribution, i, config.density)
            if not zones.accepts(u, v, config.zone):
                continue

            surface = face_surface.evaluate(u, v, config.head_width)
            if mesh is not None:
                position, normal = snap_to_target(surface, mesh)
            else:
                position = surface
                normal = analytic_normal(surface)
            position = position + normal * config.offset

            scale = config.scale_base + hash_noise(i * SCALE_NOISE_STEP) * config.scale_var
            color = instance_color(config.color_mode, position, normal, primary)
            append(position, normal, scale, color, (u, v))

            if config.symmetry:
                mirror = np.array([-1.0, 1.0, 1.0])
                append(position * mirror, normal * mirror, scale, color, (-u, v))

        if positions:
            result = InstanceSet(
                np.array(positions), np.array(normals), np.array(quats),
                np.array(scales), np.array(colors), np.array(uvs),
                capacity=config.capacity,
            )
        else:
            result = InstanceSet.empty(config.capacity)

        logger.info(
            "Placed %d/%d instances (zone=%s, distribution=%s, %s)",
            result.count, result.capacity, config.zone.value, config.distribution.value,
            "snapped" if mesh is not None else "analytic",
        )
        self.last_generated = result
        return result


def _as_target(
    target_mesh: Optional[Union[TargetMesh, BufferGeometry]],
    target_transform: Optional[Mat4],
) -> Optional[TargetMesh]:
    if target_mesh is None:
        return None
    if isinstance(target_mesh, TargetMesh):
        if target_transform is None:
            return target_mesh
        return TargetMesh(target_mesh.geometry, target_transform)
    if target_transform is None:
        return TargetMesh(target_mesh)
    return TargetMesh(target_mesh, target_transform)

