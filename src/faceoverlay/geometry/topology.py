"""Fixed face-mesh topology: triangle connectivity and reference UVs.

The topology is a static asset shared read-only by every
:class:`~faceoverlay.geometry.face_geometry.FaceGeometry`.  It is loaded once
per process; malformed data is a configuration error and raises
:class:`TopologyError` at load time.

The JSON asset (``assets/meshdata/face_topology.json``) has the form::

    {
      "faces": [[a, b, c], ...],        # T triangles into N landmarks
      "uvs": [[u, v], ...],             # N reference UVs, v grows downward
      "uv_resolution": 4096             # optional: uvs are in pixels
    }

``tools/extract_topology.py`` produces it from the JS geometry module or
from an OBJ canonical face model.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from faceoverlay.constants import (
    DEFAULT_TOPOLOGY_FILE,
    FACE_TRI_COUNT,
    FACE_VERT_COUNT,
    MESHDATA_DIR,
    UV_SOURCE_RESOLUTION,
)
from faceoverlay.core.config_loader import load_json

logger = logging.getLogger(__name__)


class TopologyError(ValueError):
    """Raised when topology data is missing or malformed."""


class TopologyTable:
    """Immutable triangle list plus one reference UV per landmark."""

    def __init__(self, triangles, reference_uvs):
        try:
            tris = np.array(triangles, dtype=np.int64)
            uvs = np.array(reference_uvs, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise TopologyError(f"Topology data is not numeric: {e}") from e

        if tris.ndim == 1 and len(tris) % 3 == 0:
            tris = tris.reshape(-1, 3)
        if tris.ndim != 2 or tris.shape[1] != 3 or len(tris) == 0:
            raise TopologyError(f"Triangles must be a non-empty Tx3 list, got shape {tris.shape}")
        if uvs.ndim == 1 and len(uvs) % 2 == 0:
            uvs = uvs.reshape(-1, 2)
        if uvs.ndim != 2 or uvs.shape[1] != 2 or len(uvs) == 0:
            raise TopologyError(f"Reference UVs must be a non-empty Nx2 list, got shape {uvs.shape}")

        vertex_count = len(uvs)
        if tris.min() < 0 or tris.max() >= vertex_count:
            raise TopologyError(
                f"Triangle indices must lie in [0, {vertex_count}), "
                f"got [{tris.min()}, {tris.max()}]"
            )

        self._triangles = tris.astype(np.uint32)
        self._triangles.flags.writeable = False
        self._uvs = uvs
        self._uvs.flags.writeable = False

    @classmethod
    def from_pixel_coords(
        cls,
        faces: Sequence[int],
        uvs: Sequence[float],
        resolution: float = UV_SOURCE_RESOLUTION,
    ) -> "TopologyTable":
        """Build from flat index and pixel-space UV lists.

        *uvs* is ``[u0, v0, u1, v1, ...]`` in pixels of a square texture of
        side *resolution*.
        """
        if resolution <= 0:
            raise TopologyError(f"UV resolution must be positive, got {resolution}")
        pixel_uvs = np.asarray(uvs, dtype=np.float64)
        return cls(faces, pixel_uvs / resolution)

    @property
    def vertex_count(self) -> int:
        return len(self._uvs)

    @property
    def triangle_count(self) -> int:
        return len(self._triangles)

    @property
    def reference_uvs(self) -> NDArray[np.float32]:
        """All reference UVs as a read-only (N, 2) array."""
        return self._uvs

    def triangles(self) -> NDArray[np.uint32]:
        """The fixed (T, 3) triangle index array (read-only)."""
        return self._triangles

    def reference_uv(self, index: int) -> tuple[float, float]:
        u, v = self._uvs[index]
        return float(u), float(v)

    def __repr__(self) -> str:
        return f"TopologyTable(vertices={self.vertex_count}, triangles={self.triangle_count})"


def parse_topology(data: dict) -> TopologyTable:
    """Build a :class:`TopologyTable` from the parsed JSON asset."""
    if not isinstance(data, dict):
        raise TopologyError("Topology asset must be a JSON object")
    missing = [key for key in ("faces", "uvs") if key not in data]
    if missing:
        raise TopologyError(f"Topology asset is missing keys: {', '.join(missing)}")

    resolution = data.get("uv_resolution")
    if resolution is not None:
        uvs = np.asarray(data["uvs"], dtype=np.float64).ravel()
        return TopologyTable.from_pixel_coords(data["faces"], uvs, resolution)
    return TopologyTable(data["faces"], data["uvs"])


def load_topology(
    path: Optional[Union[str, Path]] = None,
    expected_vertices: Optional[int] = None,
    expected_triangles: Optional[int] = None,
) -> TopologyTable:
    """Load a topology from a JSON asset or a Wavefront OBJ file.

    With no *path* the bundled ``face_topology.json`` is used.  When
    *expected_vertices* or *expected_triangles* is given, a table of any
    other size is rejected.
    """
    path = Path(path) if path is not None else MESHDATA_DIR / DEFAULT_TOPOLOGY_FILE
    if not path.exists():
        raise TopologyError(
            f"Topology asset not found: {path} "
            f"(generate it with tools/extract_topology.py)"
        )

    if path.suffix.lower() == ".obj":
        from faceoverlay.loaders.obj_parser import load_obj_topology
        topology = load_obj_topology(path)
    else:
        try:
            data = load_json(path)
        except ValueError as e:
            raise TopologyError(f"Topology asset {path} is not valid JSON: {e}") from e
        topology = parse_topology(data)

    if expected_vertices is not None and topology.vertex_count != expected_vertices:
        raise TopologyError(
            f"Topology asset {path} has {topology.vertex_count} vertices, "
            f"expected {expected_vertices}"
        )
    if expected_triangles is not None and topology.triangle_count != expected_triangles:
        raise TopologyError(
            f"Topology asset {path} has {topology.triangle_count} triangles, "
            f"expected {expected_triangles}"
        )

    logger.info("Loaded face topology from %s: %d vertices, %d triangles",
                path.name, topology.vertex_count, topology.triangle_count)
    return topology


@lru_cache(maxsize=1)
def default_topology() -> TopologyTable:
    """The process-wide topology, loaded on first use."""
    return load_topology(
        expected_vertices=FACE_VERT_COUNT, expected_triangles=FACE_TRI_COUNT,
    )
