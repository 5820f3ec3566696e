"""Persisted design documents (JSON).

Layout::

    {
      "app": "NeuroMask",
      "version": "2.1",
      "timestamp": "2026-01-01T00:00:00+00:00",
      "config": {...camelCase MaskConfig...},
      "animations": {"headWidth": {"active": true, "min": 1.2, "max": 1.8, "speed": 2}}
    }

Animation keys are stored in the same camelCase form as config keys.
Missing fields fall back to defaults; unknown fields are ignored.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from neuromask.core.config_loader import load_json, save_json
from neuromask.core.state import (
    DEFAULT_CONFIG, JS_KEY_MAP, PY_KEY_MAP, AnimationDef, DesignState, MaskConfig,
)
from neuromask.constants import APP_NAME, DESIGN_FORMAT_VERSION

logger = logging.getLogger(__name__)


class DesignFormatError(ValueError):
    """A persisted design document is malformed."""


@dataclass
class DesignDocument:
    config: MaskConfig = DEFAULT_CONFIG
    animations: dict[str, AnimationDef] = field(default_factory=dict)
    app: str = APP_NAME
    version: str = DESIGN_FORMAT_VERSION
    timestamp: str = ""

    @classmethod
    def from_state(cls, design: DesignState) -> "DesignDocument":
        return cls(config=design.config, animations=dict(design.animations))

    def to_state(self) -> DesignState:
        return DesignState(config=self.config, animations=dict(self.animations))

    def to_dict(self) -> dict[str, Any]:
        timestamp = self.timestamp or datetime.now(timezone.utc).isoformat()
        return {
            "app": self.app,
            "version": self.version,
            "timestamp": timestamp,
            "config": self.config.to_js_dict(),
            "animations": {
                PY_KEY_MAP.get(key, key): anim.to_dict()
                for key, anim in self.animations.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Any) -> "DesignDocument":
        if not isinstance(data, dict):
            raise DesignFormatError(f"Design document must be a JSON object, got {type(data).__name__}")

        version = str(data.get("version", DESIGN_FORMAT_VERSION))
        if version != DESIGN_FORMAT_VERSION:
            logger.warning("Unknown design format version: %s (expected %s)",
                           version, DESIGN_FORMAT_VERSION)

        raw_config = data.get("config", {})
        if not isinstance(raw_config, dict):
            raise DesignFormatError("'config' must be an object")
        try:
            config = MaskConfig.from_js_dict(raw_config)
        except (TypeError, ValueError) as e:
            raise DesignFormatError(f"Invalid config: {e}") from e

        raw_anims = data.get("animations", {}) or {}
        if not isinstance(raw_anims, dict):
            raise DesignFormatError("'animations' must be an object")
        animations: dict[str, AnimationDef] = {}
        for key, value in raw_anims.items():
            if not isinstance(value, dict):
                raise DesignFormatError(f"Animation {key!r} must be an object")
            try:
                animations[JS_KEY_MAP.get(key, key)] = AnimationDef.from_dict(value)
            except (TypeError, ValueError) as e:
                raise DesignFormatError(f"Invalid animation {key!r}: {e}") from e

        return cls(
            config=config,
            animations=animations,
            app=str(data.get("app", APP_NAME)),
            version=version,
            timestamp=str(data.get("timestamp", "")),
        )


def save_design(path: str | Path, design: DesignState | DesignDocument) -> Path:
    """Write *design* as an indented JSON document and return the path."""
    if isinstance(design, DesignState):
        design = DesignDocument.from_state(design)
    path = Path(path)
    save_json(path, design.to_dict())
    logger.info("Saved design to %s", path)
    return path


def load_design(path: str | Path) -> DesignDocument:
    """Read a design document.  Raises DesignFormatError on bad content."""
    path = Path(path)
    try:
        data = load_json(path)
    except json.JSONDecodeError as e:
        raise DesignFormatError(f"{path.name} is not valid JSON: {e}") from e
    return DesignDocument.from_dict(data)
