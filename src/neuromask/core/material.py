"""Material definitions handed to the render sink."""

from dataclasses import dataclass


@dataclass
class OrnamentMaterial:
    """Physically based material shared by every ornament instance.

    Per-instance colors travel with the instance set; ``color`` is the base
    tint the renderer multiplies them with.
    """
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    roughness: float = 0.2
    metalness: float = 0.8
    clearcoat: float = 1.0
    clearcoat_roughness: float = 0.1
    sheen: float = 0.5
    sheen_color: tuple[float, float, float] = (1.0, 1.0, 1.0)



def hex_to_rgb(color: int | str) -> tuple[float, float, float]:
    """Convert ``0xRRGGBB`` or ``"#RRGGBB"`` to an RGB tuple in 0..1."""
    if isinstance(color, str):
        text = color.strip().lstrip("#")
        if len(text) == 3:
            text = "".join(ch * 2 for ch in text)
        if len(text) != 6:
            raise ValueError(f"Invalid hex color: {color!r}")
        try:
            color_int = int(text, 16)
        except ValueError:
            raise ValueError(f"Invalid hex color: {color!r}") from None
    else:
        color_int = int(color)
    r = ((color_int >> 16) & 0xFF) / 255.0
    g = ((color_int >> 8) & 0xFF) / 255.0
    b = (color_int & 0xFF) / 255.0
    return (r, g, b)
