"""Rigid coordinate frames derived from three tracked landmarks.

A frame is anchored at the centroid of the three points.  Its X axis runs
from C to B, and its Y axis is B - A re-orthogonalized against X.  The
resulting rotation is a proper orthonormal basis even when the landmarks are
neither orthogonal nor equidistant, so an object attached to it follows the
face without drift correction.

Collinear or coincident triples have no defined frame.  Choosing a
non-degenerate triple is up to the caller; numpy produces NaN components
with a ``RuntimeWarning`` rather than raising.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from faceoverlay.core.math_utils import (
    Mat4,
    Quat,
    Vec3,
    mat3_to_quat,
    mat4_from_basis,
    mat4_with_translation,
    unit,
)


@dataclass(frozen=True)
class TrackFrame:
    """Local frame attached to a landmark triple.

    position: centroid of the three landmarks
    normal: unit normal of the landmark triangle
    rotation: 4x4 matrix whose columns are the orthonormal X, Y, Z axes
    """
    position: Vec3
    normal: Vec3
    rotation: Mat4

    @property
    def axes(self) -> tuple[Vec3, Vec3, Vec3]:
        r = self.rotation
        return r[:3, 0].copy(), r[:3, 1].copy(), r[:3, 2].copy()

    @property
    def matrix(self) -> Mat4:
        """Rigid transform placing an object at this frame."""
        return mat4_with_translation(self.rotation, self.position)

    @property
    def quaternion(self) -> Quat:
        return mat3_to_quat(self.rotation[:3, :3])


def compute_frame(positions: NDArray, a: int, b: int, c: int) -> TrackFrame:
    """Compute the frame for landmarks *a*, *b*, *c* of an (N, 3) array."""
    pts = np.asarray(positions).reshape(-1, 3)
    p_a = pts[a].astype(np.float64)
    p_b = pts[b].astype(np.float64)
    p_c = pts[c].astype(np.float64)

    center = (p_a + p_b + p_c) / 3.0

    x = unit(p_b - p_c)
    y = unit(p_b - p_a)
    z = unit(np.cross(x, y))
    y2 = unit(np.cross(x, z))
    z2 = unit(np.cross(x, y2))

    return TrackFrame(position=center, normal=z, rotation=mat4_from_basis(x, y2, z2))
