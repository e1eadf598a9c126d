"""Convert face-landmark estimator output into pixel-space landmark arrays.

MediaPipe reports landmarks normalized to the image: x and y in [0, 1],
z on the same scale as x.  :class:`~faceoverlay.geometry.face_geometry.FaceGeometry`
expects the "scaled mesh" convention instead: x and y in pixels and z
scaled by the image width.

Both MediaPipe result flavours are accepted without importing MediaPipe:

* legacy ``solutions.face_mesh`` results (``multi_face_landmarks``, each
  with a ``.landmark`` list)
* tasks ``FaceLandmarker`` results (``face_landmarks``, a list of lists)

An empty list means no face was found in the frame.  Skip
``FaceGeometry.update`` in that case and the mesh keeps its last pose.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np
from numpy.typing import NDArray

from faceoverlay.constants import FACE_VERT_COUNT

logger = logging.getLogger(__name__)


def _as_array(points: Any) -> NDArray[np.float64]:
    if isinstance(points, np.ndarray):
        return points.astype(np.float64).reshape(len(points), -1)[:, :3]
    landmarks = getattr(points, "landmark", points)
    return np.array([(p.x, p.y, p.z) for p in landmarks], dtype=np.float64).reshape(-1, 3)


def landmarks_from_normalized(
    points: Any,
    width: float,
    height: float,
    mirror: bool = False,
    count: Optional[int] = FACE_VERT_COUNT,
) -> NDArray[np.float32]:
    """Scale normalized landmarks to the pixel-space mesh convention.

    Parameters
    ----------
    points : landmark list, object with ``.landmark``, or (M, 3) array
        Normalized landmarks of a single face.
    width, height : float
        Size of the image the landmarks were estimated on.
    mirror : bool
        Negate x, to be paired with ``update(..., source_mirrored=True)``.
        This convention is inferred from the ``update`` arithmetic
        (``x + w/2`` lands a negated x back inside the frame), not from
        documented estimator behaviour.  For an estimator that mirrors as
        ``width - x``, subtract *width* from x instead of passing
        ``mirror=True``.
    count : int or None
        Keep only the first *count* points.  Refined models append iris
        landmarks after the 468 mesh points.

    Returns
    -------
    (N, 3) float32 array
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image size must be positive, got {width}x{height}")

    pts = _as_array(points)
    if count is not None:
        if len(pts) < count:
            raise ValueError(f"Expected at least {count} landmarks, got {len(pts)}")
        pts = pts[:count]

    out = np.empty_like(pts)
    out[:, 0] = pts[:, 0] * width
    out[:, 1] = pts[:, 1] * height
    out[:, 2] = pts[:, 2] * width
    if mirror:
        out[:, 0] = -out[:, 0]
    return out.astype(np.float32)


def landmarks_from_result(
    result: Any,
    width: float,
    height: float,
    mirror: bool = False,
    count: Optional[int] = FACE_VERT_COUNT,
) -> list[NDArray[np.float32]]:
    """Return one pixel-space landmark array per detected face."""
    faces = getattr(result, "multi_face_landmarks", None)
    if faces is None:
        faces = getattr(result, "face_landmarks", None)
    if not faces:
        return []

    arrays = [landmarks_from_normalized(face, width, height, mirror, count) for face in faces]
    logger.debug("Converted %d face(s) of %d landmarks", len(arrays), len(arrays[0]))
    return arrays
