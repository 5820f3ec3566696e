"""Per-frame mask pipeline: design state -> instance set -> transforms.

Call order inside :meth:`MaskPipeline.tick`:
  1. Derive the render config from the base config and animations
  2. Regenerate the instance set if its generation key changed
     (generation fields plus target mesh identity); re-attach, which unbinds
  3. In AR mode, feed the landmark frame to the binding engine
  4. Package transforms, colors, material and geometry as a FrameOutput

Everything runs on the caller's thread.  A regeneration is built in full
before it replaces the current set, so a frame never sees a partial set.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
from numpy.typing import NDArray

from neuromask.animation.config_animation import derive_render_config
from neuromask.animation.preset_manager import PresetManager
from neuromask.core.events import EventBus, EventType
from neuromask.core.material import OrnamentMaterial
from neuromask.core.math_utils import Mat4
from neuromask.core.mesh import BufferGeometry
from neuromask.core.state import (
    ANIMATABLE_FIELDS, DEFAULT_CONFIG, AnimationDef, DesignState, MaskConfig, ShapeType,
)
from neuromask.export.design_io import DesignDocument
from neuromask.ornament.placement import InstanceSet, PlacementEngine
from neuromask.ornament.shapes import build_ornament_geometry
from neuromask.ornament.snapping import TargetMesh, prepare_target_geometry
from neuromask.skinning.landmark_binding import BindingEngine
from neuromask.tracking.landmark_source import LandmarkFrame

logger = logging.getLogger(__name__)


@dataclass
class FrameOutput:
    """Everything the render sink needs for one frame."""
    time: float
    config: MaskConfig
    transforms: NDArray[np.float64]     # (count, 4, 4)
    colors: NDArray[np.float64]         # (count, 3)
    count: int
    capacity: int
    material: OrnamentMaterial
    geometry: BufferGeometry
    regenerated: bool = False
    ar_mode: bool = False
    bound: bool = False
    head_detected: bool = False
    head_pose: Optional[Mat4] = None


class MaskPipeline:
    """Owns the design, the current instance set and the binding engine."""

    def __init__(self, config: MaskConfig = DEFAULT_CONFIG, event_bus: Optional[EventBus] = None):
        self.event_bus = event_bus or EventBus()
        self.design = DesignState(config=config)
        self.target: Optional[TargetMesh] = None
        self.placement = PlacementEngine()
        self.binding = BindingEngine(self.event_bus)
        self.presets = PresetManager()
        self.instances: InstanceSet = InstanceSet.empty()
        self.render_config: MaskConfig = config
        self.ar_mode = False
        self._generation_key: Optional[tuple] = None
        self._geometry_cache: dict[ShapeType, BufferGeometry] = {}

    # ------------------------------------------------------------------
    # Design editing
    # ------------------------------------------------------------------

    @property
    def config(self) -> MaskConfig:
        return self.design.config

    @property
    def animations(self) -> dict[str, AnimationDef]:
        return self.design.animations

    def set_config(self, config: MaskConfig) -> None:
        self.design.config = config.clamped()
        self.event_bus.publish(EventType.CONFIG_CHANGED, config=self.design.config)

    def update_config(self, **changes: Any) -> MaskConfig:
        """Change individual config fields (snake_case names)."""
        self.set_config(self.design.config.with_changes(**changes))
        return self.design.config

    def set_animation(self, key: str, **changes: Any) -> AnimationDef:
        """Create or update the animation driving config field *key*."""
        if key not in ANIMATABLE_FIELDS:
            raise ValueError(f"Field {key!r} cannot be animated")
        anim = self.design.update_animation(key, **changes)
        self.event_bus.publish(EventType.ANIMATIONS_CHANGED, animations=self.design.animations)
        return anim

    def clear_animations(self) -> None:
        self.design.animations.clear()
        self.event_bus.publish(EventType.ANIMATIONS_CHANGED, animations=self.design.animations)

    def apply_preset(self, name: str) -> MaskConfig:
        """Overlay a named preset and clear animations.  KeyError if unknown."""
        if not self.presets.presets:
            self.presets.load()
        if name not in self.presets.presets:
            raise KeyError(f"Unknown preset: {name}")
        self.presets.apply(name, self.design)
        self.event_bus.publish(EventType.PRESET_APPLIED, name=name)
        self.event_bus.publish(EventType.CONFIG_CHANGED, config=self.design.config)
        return self.design.config

    def load_document(self, document: DesignDocument) -> None:
        self.design = document.to_state()
        self.event_bus.publish(EventType.CONFIG_CHANGED, config=self.design.config)
        self.event_bus.publish(EventType.ANIMATIONS_CHANGED, animations=self.design.animations)

    def to_document(self) -> DesignDocument:
        return DesignDocument.from_state(self.design)

    # ------------------------------------------------------------------
    # Target mesh
    # ------------------------------------------------------------------

    def set_target_mesh(
        self,
        geometry: BufferGeometry,
        world_transform: Optional[Mat4] = None,
        normalize: bool = True,
    ) -> TargetMesh:
        """Snap future placements onto *geometry*.

        With *normalize* the mesh is centered and scaled to the standard
        target width first (uploaded meshes); captured point clouds are
        already in scene units and skip it.
        """
        if normalize:
            geometry = prepare_target_geometry(geometry, recompute_normals=geometry.has_indices)
        if world_transform is None:
            target = TargetMesh(geometry)
        else:
            target = TargetMesh(geometry, world_transform)
        self.target = target
        self.event_bus.publish(EventType.TARGET_MESH_CHANGED, target=target)
        return target

    def clear_target_mesh(self) -> None:
        self.target = None
        self.event_bus.publish(EventType.TARGET_MESH_CHANGED, target=None)

    # ------------------------------------------------------------------
    # AR mode
    # ------------------------------------------------------------------

    def enter_ar(self) -> None:
        self.ar_mode = True
        self.binding.reset("entered AR mode")

    def leave_ar(self) -> None:
        self.ar_mode = False
        self.binding.reset("left AR mode")

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def regenerate(self, config: MaskConfig) -> InstanceSet:
        """Build a new instance set for *config* and swap it in."""
        instances = self.placement.generate(config, self.target)
        self.instances = instances
        self.binding.attach(instances)
        self.event_bus.publish(EventType.INSTANCES_REGENERATED, instances=instances)
        return instances

    def ornament_geometry(self, shape: ShapeType) -> BufferGeometry:
        shape = ShapeType(shape)
        geometry = self._geometry_cache.get(shape)
        if geometry is None:
            geometry = build_ornament_geometry(shape)
            self._geometry_cache[shape] = geometry
        return geometry

    def tick(self, time: float, frame: Optional[LandmarkFrame] = None) -> FrameOutput:
        """Advance one frame at animation time *time* (seconds)."""
        render = derive_render_config(self.design.config, self.design.animations, time)
        self.render_config = render

        key = (render.generation_key(), self.target)
        regenerated = key != self._generation_key
        if regenerated:
            self.regenerate(render)
            self._generation_key = key

        if self.ar_mode and frame is not None:
            updated = self.binding.update(frame)
            transforms = updated if updated is not None else self.binding.last_transforms
        elif self.ar_mode:
            transforms = self.binding.last_transforms
        else:
            transforms = self.instances.rest_transforms

        output = FrameOutput(
            time=time,
            config=render,
            transforms=transforms,
            colors=self.instances.colors,
            count=self.instances.count,
            capacity=self.instances.capacity,
            material=OrnamentMaterial(roughness=render.roughness, metalness=render.metalness),
            geometry=self.ornament_geometry(render.shape),
            regenerated=regenerated,
            ar_mode=self.ar_mode,
            bound=self.binding.is_bound,
            head_detected=frame is not None and frame.head_detected,
            head_pose=frame.head_pose if frame is not None else None,
        )
        self.event_bus.publish(EventType.FRAME_UPDATE, output=output)
        return output
