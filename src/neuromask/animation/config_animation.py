"""Per-frame derivation of the render config from base config + animations."""

import logging
from typing import Mapping

from neuromask.core.state import ANIMATABLE_FIELDS, AnimationDef, MaskConfig

logger = logging.getLogger(__name__)

_warned_keys: set[str] = set()


def derive_render_config(
    base: MaskConfig,
    animations: Mapping[str, AnimationDef],
    time: float,
) -> MaskConfig:
    """Return the config to render at *time*.

    Every active animation on an animatable field replaces that field with
    its sine value; everything else comes from *base*.  Pure apart from a
    one-time warning per unknown key.
    """
    changes = {}
    for key, anim in animations.items():
        if key not in ANIMATABLE_FIELDS:
            if key not in _warned_keys:
                _warned_keys.add(key)
                logger.warning("Ignoring animation on non-animatable field %r", key)
            continue
        if anim.active:
            changes[key] = anim.value_at(time)
    if not changes:
        return base
    return base.with_changes(**changes)


def any_active(animations: Mapping[str, AnimationDef]) -> bool:
    return any(
        anim.active for key, anim in animations.items() if key in ANIMATABLE_FIELDS
    )
