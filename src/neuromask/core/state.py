"""Mask design state: configuration enums, MaskConfig and AnimationDef."""

import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any

from neuromask.core.material import hex_to_rgb
from neuromask.core.math_utils import clamp


class ZoneLabel(str, Enum):
    """Anatomical sub-region of the parametric face domain."""
    FULL = "full"
    OCULAR_BAND = "domino"
    FILTER_UNIT = "respirator"
    MANDIBLE = "jaw"


class DistributionLaw(str, Enum):
    GRID = "grid"
    SPIRAL = "spiral"
    RANDOM = "random"


class ShapeType(str, Enum):
    CONE = "cone"
    SPHERE = "sphere"
    BOX = "box"
    TORUS = "torus"
    CYLINDER = "cylinder"


class ColorMode(str, Enum):
    NORMAL = "normal"
    DEPTH = "depth"
    SOLID = "solid"


# Numeric field ranges (inclusive), matching the design controls.
FIELD_RANGES: dict[str, tuple[float, float]] = {
    "offset": (0.0, 0.5),
    "head_width": (1.0, 2.0),
    "density": (0, 1500),
    "scale_base": (0.01, 0.3),
    "scale_var": (0.0, 2.0),
    "roughness": (0.0, 1.0),
    "metalness": (0.0, 1.0),
}

# Fields that an AnimationDef may drive.
ANIMATABLE_FIELDS = ("head_width", "offset", "scale_base", "scale_var", "roughness", "metalness")

# Fields whose change invalidates the current instance set.
GENERATION_FIELDS = (
    "shape", "density", "distribution", "zone", "head_width", "offset",
    "scale_base", "scale_var", "symmetry", "color_mode", "primary_color",
)

_ENUM_FIELDS = {
    "zone": ZoneLabel,
    "distribution": DistributionLaw,
    "shape": ShapeType,
    "color_mode": ColorMode,
}

# Mapping from persisted camelCase keys to Python snake_case
JS_KEY_MAP: dict[str, str] = {
    "zone": "zone",
    "offset": "offset",
    "headWidth": "head_width",
    "distribution": "distribution",
    "density": "density",
    "symmetry": "symmetry",
    "shape": "shape",
    "scaleBase": "scale_base",
    "scaleVar": "scale_var",
    "colorMode": "color_mode",
    "primaryColor": "primary_color",
    "roughness": "roughness",
    "metalness": "metalness",
}
PY_KEY_MAP: dict[str, str] = {py: js for js, py in JS_KEY_MAP.items()}


@dataclass(frozen=True)
class MaskConfig:
    """Full set of mask design parameters.

    Immutable: derive variants with :meth:`with_changes`.
    """
    # Anatomy
    zone: ZoneLabel = ZoneLabel.FULL
    offset: float = 0.15
    head_width: float = 1.45

    # Pattern
    distribution: DistributionLaw = DistributionLaw.SPIRAL
    density: int = 400
    symmetry: bool = True

    # Element
    shape: ShapeType = ShapeType.CONE
    scale_base: float = 0.08
    scale_var: float = 0.5

    # Aesthetics
    color_mode: ColorMode = ColorMode.DEPTH
    primary_color: str = "#00ff9d"
    roughness: float = 0.2
    metalness: float = 0.8

    def __post_init__(self):
        for name, enum_cls in _ENUM_FIELDS.items():
            value = getattr(self, name)
            if not isinstance(value, enum_cls):
                try:
                    object.__setattr__(self, name, enum_cls(value))
                except ValueError:
                    raise ValueError(f"Invalid {name}: {value!r}") from None
        if self.density < 0:
            raise ValueError(f"density must be >= 0, got: {self.density}")
        object.__setattr__(self, "density", int(self.density))
        object.__setattr__(self, "symmetry", bool(self.symmetry))
        hex_to_rgb(self.primary_color)

    @property
    def capacity(self) -> int:
        """Worst-case instance count for storage sizing."""
        return self.density * (2 if self.symmetry else 1)

    def with_changes(self, **changes: Any) -> "MaskConfig":
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")
        return replace(self, **changes)

    def clamped(self) -> "MaskConfig":
        """Return a copy with every numeric field clamped to its range."""
        changes: dict[str, Any] = {}
        for name, (lo, hi) in FIELD_RANGES.items():
            value = getattr(self, name)
            clamped_value = clamp(value, lo, hi)
            if name == "density":
                clamped_value = int(clamped_value)
            if clamped_value != value:
                changes[name] = clamped_value
        return replace(self, **changes) if changes else self

    def generation_key(self) -> tuple:
        """Tuple of the fields that determine the generated instance set."""
        return tuple(getattr(self, name) for name in GENERATION_FIELDS)

    def to_js_dict(self) -> dict[str, Any]:
        """Serialize with persisted camelCase keys and enum tokens."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            out[PY_KEY_MAP[f.name]] = value
        return out

    @classmethod
    def from_js_dict(cls, d: dict[str, Any], base: "MaskConfig | None" = None) -> "MaskConfig":
        """Build a config from camelCase keys, filling gaps from *base*.

        Unknown keys are ignored.
        """
        changes = {}
        for js_key, value in d.items():
            py_key = JS_KEY_MAP.get(js_key)
            if py_key is not None:
                changes[py_key] = value
        return replace(base or cls(), **changes)


DEFAULT_CONFIG = MaskConfig()


@dataclass
class AnimationDef:
    """Sine oscillation of one numeric config field between min and max."""
    active: bool = False
    min: float = 0.0
    max: float = 1.0
    speed: float = 1.0

    def value_at(self, time: float) -> float:
        norm = (math.sin(time * self.speed) + 1.0) / 2.0
        return self.min + norm * (self.max - self.min)

    def to_dict(self) -> dict[str, Any]:
        return {"active": self.active, "min": self.min, "max": self.max, "speed": self.speed}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "AnimationDef":
        return cls(
            active=bool(d.get("active", False)),
            min=float(d.get("min", 0.0)),
            max=float(d.get("max", 1.0)),
            speed=float(d.get("speed", 1.0)),
        )


@dataclass
class DesignState:
    """Editable design: base config plus per-field animations.

    Animation keys are snake_case MaskConfig field names.
    """
    config: MaskConfig = field(default_factory=MaskConfig)
    animations: dict[str, AnimationDef] = field(default_factory=dict)

    def update_animation(self, key: str, **changes: Any) -> AnimationDef:
        """Merge *changes* into the animation for *key*, creating it if absent."""
        current = self.animations.get(key, AnimationDef())
        updated = replace(current, **changes)
        self.animations[key] = updated
        return updated

    def any_animation_active(self) -> bool:
        return any(a.active for a in self.animations.values())
