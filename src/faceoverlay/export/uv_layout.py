"""Headless previews of the face mesh for checking UVs and alignment.

Renders with PIL, so it needs no GL context:

* :func:`render_uv_layout` draws the triangle wireframe in texture space,
  the quickest way to see whether a UV set is mirrored or misaligned.
* :func:`render_overlay` draws the posed mesh in source-frame pixels,
  optionally over the video frame, with tracked frames as RGB axis gizmos.

Usage::

    from faceoverlay.export.uv_layout import render_overlay

    img = render_overlay(
        geometry.positions, geometry.indices,
        width=640, height=480,
        background=frame_image,
        frames=[geometry.track_anchor("nose")],
        output_path="results/frame.png",
    )
"""

from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from PIL import Image, ImageDraw

from faceoverlay.geometry.tracking import TrackFrame

AXIS_COLORS = ((255, 60, 60), (60, 220, 60), (70, 120, 255))


def _draw_wireframe(
    draw: ImageDraw.ImageDraw,
    px: np.ndarray,
    py: np.ndarray,
    triangles: np.ndarray,
    color: tuple[int, int, int],
) -> None:
    for v0, v1, v2 in triangles:
        pts = [
            (float(px[v0]), float(py[v0])),
            (float(px[v1]), float(py[v1])),
            (float(px[v2]), float(py[v2])),
        ]
        draw.polygon(pts, outline=color)


def _save(img: Image.Image, output_path) -> None:
    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        img.save(str(output_path))


def render_uv_layout(
    uvs: np.ndarray,
    triangles: np.ndarray,
    size: int = 512,
    output_path: str | Path | None = None,
    title: str = "",
    bg_color: tuple[int, int, int] = (30, 30, 40),
    line_color: tuple[int, int, int] = (230, 200, 120),
) -> Image.Image:
    """Draw the mesh wireframe in UV space.

    Parameters
    ----------
    uvs : (N, 2) texture coordinates, GL convention (v up)
    triangles : (T, 3) int triangle indices
    size : square image side in pixels
    output_path : save PNG here (None = don't save)
    title : text overlay at top-left

    Returns
    -------
    PIL.Image.Image
    """
    uvs = np.asarray(uvs, dtype=np.float64).reshape(-1, 2)
    triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)

    px = uvs[:, 0] * (size - 1)
    py = (1.0 - uvs[:, 1]) * (size - 1)  # flip V for image coords

    img = Image.new("RGB", (size, size), bg_color)
    draw = ImageDraw.Draw(img)
    _draw_wireframe(draw, px, py, triangles, line_color)
    if title:
        draw.text((10, 10), title, fill=(255, 255, 255))

    _save(img, output_path)
    return img


def render_overlay(
    positions: np.ndarray,
    triangles: np.ndarray,
    width: int,
    height: int,
    background: Optional[Image.Image] = None,
    frames: Sequence[TrackFrame] = (),
    axis_length: float = 30.0,
    scale: float = 1.0,
    output_path: str | Path | None = None,
    bg_color: tuple[int, int, int] = (30, 30, 40),
    line_color: tuple[int, int, int] = (255, 0, 255),
) -> Image.Image:
    """Draw posed mesh positions over the source frame.

    Parameters
    ----------
    positions : (N, 3) local object-space positions
    triangles : (T, 3) int triangle indices
    width, height : source frame size in pixels
    background : optional frame image, resized to width x height
    frames : tracked frames drawn as X/Y/Z axis lines
    axis_length : gizmo length in object-space units
    scale : the position scale used by the geometry

    Returns
    -------
    PIL.Image.Image
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3) / scale
    triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)

    # Object space is centred with y up
    px = positions[:, 0] + 0.5 * width
    py = 0.5 * height - positions[:, 1]

    if background is not None:
        img = background.convert("RGB").resize((width, height))
    else:
        img = Image.new("RGB", (width, height), bg_color)
    draw = ImageDraw.Draw(img)
    _draw_wireframe(draw, px, py, triangles, line_color)

    for frame in frames:
        origin = frame.position / scale
        ox, oy = origin[0] + 0.5 * width, 0.5 * height - origin[1]
        for axis, color in zip(frame.axes, AXIS_COLORS):
            tip = origin + axis * axis_length
            draw.line(
                [(ox, oy), (tip[0] + 0.5 * width, 0.5 * height - tip[1])],
                fill=color, width=2,
            )

    _save(img, output_path)
    return img
