"""Tests for the headless mask report tool."""

import numpy as np
import pytest

from neuromask.core.state import DesignState, MaskConfig
from neuromask.export.design_io import save_design
from tools.mask_report import main, orthographic_project, zone_breakdown


def test_orthographic_front_view():
    pts = np.array([[1.0, 2.0, 3.0]])
    sx, sy, depth = orthographic_project(pts)
    assert (sx[0], sy[0], depth[0]) == pytest.approx((1.0, 2.0, 3.0))


def test_orthographic_side_view():
    sx, _, depth = orthographic_project(np.array([[0.0, 0.0, 1.0]]), azimuth=90)
    assert sx[0] == pytest.approx(1.0)
    assert depth[0] == pytest.approx(0.0, abs=1e-12)


def test_zone_breakdown():
    counts = zone_breakdown(np.array([[0.0, 0.35], [0.0, -0.6], [0.0, 0.9]]))
    assert counts["full"] == 3
    assert counts["domino"] == 1
    assert counts["jaw"] == 1
    assert counts["respirator"] == 1


def test_report_defaults(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "shape=cone" in out
    assert "instances: " in out
    assert "/800" in out


def test_report_design_file(tmp_path, capsys):
    path = save_design(tmp_path / "mask.json", DesignState(
        config=MaskConfig(distribution="grid", density=100, symmetry=False),
    ))
    assert main([str(path)]) == 0
    assert "instances: 98/100" in capsys.readouterr().out


def test_report_preset(capsys):
    assert main(["--preset", "Cyber"]) == 0
    assert "shape=box" in capsys.readouterr().out


def test_report_unknown_preset():
    assert main(["--preset", "Chrome"]) == 1


def test_report_bad_design(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[]", encoding="utf-8")
    assert main([str(path)]) == 1


def test_report_obj_target(tmp_path, capsys):
    obj = tmp_path / "plane.obj"
    obj.write_text("v -1 -1 1\nv 1 -1 1\nv 1 1 1\nv -1 1 1\nf 1 2 3 4\n", encoding="utf-8")
    assert main(["--target", str(obj)]) == 0
    assert "instances:" in capsys.readouterr().out


def test_report_preview(tmp_path):
    pytest.importorskip("PIL")
    out = tmp_path / "preview" / "mask.png"
    assert main(["--preview", str(out), "--size", "128"]) == 0
    assert out.is_file()
