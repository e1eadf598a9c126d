"""Tests for the PIL mesh previews."""

import numpy as np
from PIL import Image

from faceoverlay.export.uv_layout import render_overlay, render_uv_layout
from faceoverlay.geometry.face_geometry import FaceGeometry

BG = (30, 30, 40)


def _non_background(img: Image.Image, bg=BG) -> int:
    arr = np.asarray(img)
    return int(np.any(arr != np.array(bg, dtype=np.uint8), axis=2).sum())


def test_uv_layout_size_and_content(grid_topology):
    geom = FaceGeometry(grid_topology)
    img = render_uv_layout(geom.uvs, geom.indices, size=128)
    assert img.size == (128, 128)
    assert _non_background(img) > 0


def test_uv_layout_corner_drawn():
    uvs = np.array([[0.0, 1.0], [1.0, 1.0], [0.0, 0.0]])
    img = render_uv_layout(uvs, [[0, 1, 2]], size=32, line_color=(255, 255, 255))
    # UV (0, 1) is the top-left pixel
    assert img.getpixel((0, 0)) == (255, 255, 255)


def test_uv_layout_saves(tmp_path, grid_topology):
    geom = FaceGeometry(grid_topology)
    out = tmp_path / "nested" / "uv.png"
    render_uv_layout(geom.uvs, geom.indices, size=64, output_path=out, title="uv")
    assert out.exists()
    assert Image.open(out).size == (64, 64)


def test_overlay_with_frames(tmp_path, grid_topology, grid_landmarks):
    geom = FaceGeometry(grid_topology)
    geom.set_size(640, 480)
    geom.update(grid_landmarks, False)
    out = tmp_path / "overlay.png"
    img = render_overlay(
        geom.positions, geom.indices, 640, 480,
        frames=[geom.track(0, 1, 26)],
        output_path=out,
    )
    assert img.size == (640, 480)
    assert out.exists()
    # Landmark (100, 50) lands back on its source pixel
    assert img.getpixel((100, 50)) != BG


def test_overlay_on_background(grid_topology, grid_landmarks):
    geom = FaceGeometry(grid_topology, scale=10.0)
    geom.set_size(640, 480)
    geom.update(grid_landmarks, False)
    background = Image.new("RGB", (320, 240), (0, 128, 0))
    img = render_overlay(geom.positions, geom.indices, 640, 480,
                         background=background, scale=10.0)
    assert img.size == (640, 480)
    assert img.getpixel((5, 5)) == (0, 128, 0)
    assert img.getpixel((100, 50)) == (255, 0, 255)
