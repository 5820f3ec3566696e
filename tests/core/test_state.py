"""Tests for mask design state."""

import math

import pytest

from neuromask.core.state import (
    ANIMATABLE_FIELDS, DEFAULT_CONFIG,
    AnimationDef, ColorMode, DesignState, DistributionLaw, MaskConfig, ShapeType, ZoneLabel,
)


def test_config_defaults():
    c = MaskConfig()
    assert c.zone is ZoneLabel.FULL
    assert c.offset == 0.15
    assert c.head_width == 1.45
    assert c.distribution is DistributionLaw.SPIRAL
    assert c.density == 400
    assert c.symmetry is True
    assert c.shape is ShapeType.CONE
    assert c.scale_base == 0.08
    assert c.scale_var == 0.5
    assert c.color_mode is ColorMode.DEPTH
    assert c.primary_color == "#00ff9d"
    assert c.roughness == 0.2
    assert c.metalness == 0.8


def test_enum_tokens_coerced():
    c = MaskConfig(zone="domino", distribution="grid", shape="box", color_mode="solid")
    assert c.zone is ZoneLabel.OCULAR_BAND
    assert c.distribution is DistributionLaw.GRID
    assert c.shape is ShapeType.BOX
    assert c.color_mode is ColorMode.SOLID


def test_invalid_enum_rejected():
    with pytest.raises(ValueError, match="zone"):
        MaskConfig(zone="forehead")


def test_negative_density_rejected():
    with pytest.raises(ValueError):
        MaskConfig(density=-1)


@pytest.mark.parametrize("color", ["teal", "#12345", "#zzzzzz", None])
def test_invalid_primary_color_rejected(color):
    with pytest.raises((TypeError, ValueError)):
        MaskConfig(primary_color=color)


def test_short_hex_primary_color_accepted():
    assert MaskConfig(primary_color="#0cf").primary_color == "#0cf"


def test_capacity():
    assert MaskConfig(density=100, symmetry=True).capacity == 200
    assert MaskConfig(density=100, symmetry=False).capacity == 100


def test_with_changes_rejects_unknown_field():
    with pytest.raises(ValueError):
        DEFAULT_CONFIG.with_changes(sparkle=True)


def test_clamped():
    c = MaskConfig(offset=0.9, head_width=0.2, density=5000, roughness=-1).clamped()
    assert c.offset == 0.5
    assert c.head_width == 1.0
    assert c.density == 1500
    assert c.roughness == 0.0


def test_clamped_returns_same_when_in_range():
    assert DEFAULT_CONFIG.clamped() is DEFAULT_CONFIG


def test_generation_key_ignores_material():
    a = DEFAULT_CONFIG.with_changes(roughness=0.9, metalness=0.1)
    assert a.generation_key() == DEFAULT_CONFIG.generation_key()
    b = DEFAULT_CONFIG.with_changes(head_width=1.6)
    assert b.generation_key() != DEFAULT_CONFIG.generation_key()


def test_js_dict_roundtrip():
    c = MaskConfig(zone="jaw", density=77, primary_color="#123456", symmetry=False)
    d = c.to_js_dict()
    assert d["zone"] == "jaw"
    assert d["headWidth"] == 1.45
    assert d["primaryColor"] == "#123456"
    assert MaskConfig.from_js_dict(d) == c


def test_from_js_dict_fills_from_base_and_ignores_unknown():
    base = MaskConfig(density=10)
    c = MaskConfig.from_js_dict({"scaleBase": 0.2, "glow": 3}, base=base)
    assert c.scale_base == 0.2
    assert c.density == 10


def test_animation_value_at():
    anim = AnimationDef(active=True, min=1.0, max=2.0, speed=1.0)
    assert anim.value_at(0.0) == pytest.approx(1.5)
    assert anim.value_at(math.pi / 2) == pytest.approx(2.0)
    assert anim.value_at(-math.pi / 2) == pytest.approx(1.0)


def test_animation_from_dict_defaults():
    anim = AnimationDef.from_dict({"active": True})
    assert anim == AnimationDef(active=True, min=0.0, max=1.0, speed=1.0)


def test_design_state_update_animation():
    design = DesignState()
    design.update_animation("offset", active=True, max=0.4)
    anim = design.update_animation("offset", speed=3.0)
    assert anim.active is True
    assert anim.max == 0.4
    assert anim.speed == 3.0
    assert design.any_animation_active()


def test_animatable_fields():
    assert set(ANIMATABLE_FIELDS) == {
        "head_width", "offset", "scale_base", "scale_var", "roughness", "metalness",
    }
