"""Headless mask report: regenerate a design and summarize the instance set.

Loads a saved design (or the defaults, or a named preset), runs placement
once on the analytic head or an OBJ target mesh, prints realized/capacity
counts with a per-zone breakdown, and optionally writes an orthographic
preview of the instance cloud.

Usage::

    python -m tools.mask_report --preset Cyber
    python -m tools.mask_report design.json --target scan.obj --preview out/mask.png
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import numpy as np

from neuromask.anatomy import zones
from neuromask.core.state import ZoneLabel
from neuromask.coordination.mask_pipeline import MaskPipeline
from neuromask.export.design_io import DesignFormatError, load_design
from neuromask.loaders.obj_parser import load_obj_file

logger = logging.getLogger(__name__)

BG_COLOR = (12, 12, 16)

# Pixels per scene unit at the default preview size
PREVIEW_SCALE = 150


# ── Projection ─────────────────────────────────────────────────────────

def orthographic_project(
    positions: np.ndarray,
    azimuth: float = 0,
    elevation: float = 0,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Project head-frame positions to 2D screen coordinates.

    Y is vertical and +Z faces the viewer at azimuth 0.

    Returns
    -------
    screen_x, screen_y, depth : (V,) float arrays (larger depth is nearer)
    """
    az = np.radians(azimuth)
    el = np.radians(elevation)
    ca, sa = np.cos(az), np.sin(az)
    ce, se = np.cos(el), np.sin(el)

    x, y, z = positions[:, 0], positions[:, 1], positions[:, 2]

    # Rotate around Y (vertical) by azimuth
    x1 = x * ca + z * sa
    z1 = -x * sa + z * ca

    # Tilt around screen-X by elevation
    screen_x = x1
    screen_y = y * ce - z1 * se
    depth = y * se + z1 * ce

    return screen_x, screen_y, depth


def render_preview(
    positions: np.ndarray,
    colors: np.ndarray,
    scales: np.ndarray,
    output_path: Path,
    size: int = 512,
    azimuth: float = 0,
    elevation: float = 0,
):
    """Draw instances as depth-sorted discs and save a PNG."""
    from PIL import Image, ImageDraw

    img = Image.new("RGB", (size, size), BG_COLOR)
    draw = ImageDraw.Draw(img)
    px_per_unit = PREVIEW_SCALE * size / 512

    if len(positions):
        sx, sy, depth = orthographic_project(positions, azimuth, elevation)
        # Painter's algorithm: far first
        for i in np.argsort(depth):
            cx = size / 2 + sx[i] * px_per_unit
            cy = size / 2 - sy[i] * px_per_unit
            r = max(1.0, scales[i] * px_per_unit * 0.5)
            rgb = tuple(int(round(c * 255)) for c in np.clip(colors[i], 0.0, 1.0))
            draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=rgb)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    img.save(output_path)
    return img


def zone_breakdown(uvs: np.ndarray) -> dict[str, int]:
    """Count instances whose parametric coordinate falls in each zone."""
    return {
        zone.value: int(sum(zones.inside(u, v, zone) for u, v in uvs))
        for zone in ZoneLabel
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Summarize a NeuroMask design")
    parser.add_argument("design", nargs="?", type=Path,
                        help="Saved design JSON (default: built-in defaults)")
    parser.add_argument("--preset", help="Apply a named preset after loading")
    parser.add_argument("--target", type=Path, help="OBJ mesh to snap onto")
    parser.add_argument("--time", type=float, default=0.0,
                        help="Animation time in seconds (default: 0)")
    parser.add_argument("--preview", type=Path, help="Write a PNG preview here")
    parser.add_argument("--size", type=int, default=512, help="Preview size in pixels")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")
    args = build_parser().parse_args(argv)

    pipeline = MaskPipeline()
    if args.design is not None:
        try:
            pipeline.load_document(load_design(args.design))
        except (OSError, DesignFormatError) as e:
            logger.error("Cannot load design %s: %s", args.design, e)
            return 1
    if args.preset:
        try:
            pipeline.apply_preset(args.preset)
        except KeyError:
            logger.error("Unknown preset %r (available: %s)", args.preset,
                         ", ".join(pipeline.presets.get_preset_names()))
            return 1
    if args.target is not None:
        try:
            pipeline.set_target_mesh(load_obj_file(args.target))
        except (OSError, ValueError) as e:
            logger.error("Cannot load target mesh %s: %s", args.target, e)
            return 1

    output = pipeline.tick(args.time)
    instances = pipeline.instances
    config = output.config

    print(f"shape={config.shape.value} zone={config.zone.value} "
          f"distribution={config.distribution.value} density={config.density} "
          f"symmetry={config.symmetry}")
    print(f"instances: {output.count}/{output.capacity}")
    for zone, count in zone_breakdown(instances.uvs).items():
        print(f"  {zone:<11s} {count:5d}")
    if output.count:
        lo, hi = instances.positions.min(axis=0), instances.positions.max(axis=0)
        print(f"bounds: min={np.round(lo, 3).tolist()} max={np.round(hi, 3).tolist()}")
        print(f"scale: {instances.scales.min():.3f}..{instances.scales.max():.3f}")

    if args.preview is not None:
        render_preview(instances.positions, instances.colors, instances.scales,
                       args.preview, size=args.size)
        logger.info("Preview saved to %s", args.preview)
    return 0


if __name__ == "__main__":
    sys.exit(main())
