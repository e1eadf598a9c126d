"""Mesh data structures for geometry storage (no GL dependencies)."""

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from faceoverlay.core.math_utils import normalize_rows

# Attribute names as seen by a rendering sink
POSITION = "position"
NORMAL = "normal"
UV = "uv"
ATTRIBUTES = (POSITION, NORMAL, UV)


@dataclass
class BufferGeometry:
    """Stores vertex attribute arrays for an indexed triangle mesh.

    All arrays use float32 for GL compatibility.
    positions: Nx3 flat array (x,y,z per vertex)
    normals: Nx3 flat array
    uvs: Nx2 flat array (u,v per vertex)
    indices: triangle index array (uint32)

    Every attribute carries a dirty bit.  Writers call :meth:`mark_dirty`
    after touching a buffer; the sink calls :meth:`consume_dirty` after it
    re-uploads, so only changed buffers are transferred.
    """
    positions: NDArray[np.float32]
    normals: NDArray[np.float32]
    uvs: NDArray[np.float32]
    indices: NDArray[np.uint32]
    vertex_count: int = 0
    dirty: set[str] = field(default_factory=lambda: set(ATTRIBUTES))

    def __post_init__(self):
        if self.vertex_count == 0:
            self.vertex_count = len(self.positions) // 3

    @classmethod
    def allocate(cls, vertex_count: int, indices: NDArray) -> "BufferGeometry":
        """Create zeroed buffers for *vertex_count* vertices."""
        return cls(
            positions=np.zeros(vertex_count * 3, dtype=np.float32),
            normals=np.zeros(vertex_count * 3, dtype=np.float32),
            uvs=np.zeros(vertex_count * 2, dtype=np.float32),
            indices=np.ascontiguousarray(indices, dtype=np.uint32).ravel(),
            vertex_count=vertex_count,
        )

    # ── Dirty tracking ────────────────────────────────────────────────

    def mark_dirty(self, *attributes: str) -> None:
        for name in attributes:
            if name not in ATTRIBUTES:
                raise ValueError(f"Unknown attribute: {name}")
            self.dirty.add(name)

    def is_dirty(self, attribute: str) -> bool:
        return attribute in self.dirty

    def consume_dirty(self) -> tuple[str, ...]:
        """Return the dirty attribute names (in canonical order) and clear them."""
        changed = tuple(name for name in ATTRIBUTES if name in self.dirty)
        self.dirty.clear()
        return changed

    # ── Derived data ──────────────────────────────────────────────────

    def compute_normals(self) -> None:
        """Compute per-vertex normals by averaging adjacent unit face normals.

        Each triangle contributes its unit normal to its three vertices.
        Degenerate triangles contribute a zero vector, and a vertex whose
        sum is zero keeps a zero normal.
        """
        pos = self.positions.reshape(-1, 3).astype(np.float64)
        norms = np.zeros_like(pos)

        idx = self.indices.reshape(-1, 3).astype(np.intp)
        v0, v1, v2 = pos[idx[:, 0]], pos[idx[:, 1]], pos[idx[:, 2]]
        face_normals = normalize_rows(np.cross(v1 - v0, v2 - v0))
        for corner in range(3):
            np.add.at(norms, idx[:, corner], face_normals)

        self.normals[:] = normalize_rows(norms).ravel()
        self.mark_dirty(NORMAL)
