"""Named design presets loaded from JSON config."""

import logging

from neuromask.core.state import DesignState, MaskConfig
from neuromask.core.config_loader import load_config

logger = logging.getLogger(__name__)


class PresetManager:
    """Manages design presets (camelCase partial configs keyed by name)."""

    def __init__(self):
        self.presets: dict[str, dict] = {}

    def load(self, filename: str = "presets.json") -> None:
        """Load presets from the bundled config directory."""
        self.presets = load_config(filename)

    def get_preset_names(self) -> list[str]:
        return list(self.presets.keys())

    def preset_config(self, name: str, base: MaskConfig) -> MaskConfig:
        """Overlay preset *name* on *base*.  Raises KeyError if unknown."""
        return MaskConfig.from_js_dict(self.presets[name], base=base)

    def apply(self, name: str, design: DesignState) -> None:
        """Apply a preset to *design*: overlay its fields, clear animations."""
        preset = self.presets.get(name)
        if preset is None:
            logger.warning("Unknown preset: %s", name)
            return
        design.config = MaskConfig.from_js_dict(preset, base=design.config)
        design.animations.clear()
        logger.info("Applied preset %s", name)
