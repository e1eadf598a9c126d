"""Synthetic 468-vertex planar grid standing in for the face mesh."""

import numpy as np

from faceoverlay.geometry.topology import TopologyTable

GRID_ROWS = 18
GRID_COLS = 26  # 18 x 26 = 468 vertices


def make_grid_topology(rows: int = GRID_ROWS, cols: int = GRID_COLS) -> TopologyTable:
    """Regular grid triangulation with UVs spanning [0, 1]^2."""
    tris = []
    for r in range(rows - 1):
        for c in range(cols - 1):
            i = r * cols + c
            tris.append([i, i + 1, i + cols])
            tris.append([i + 1, i + cols + 1, i + cols])
    uvs = [[c / (cols - 1), r / (rows - 1)] for r in range(rows) for c in range(cols)]
    return TopologyTable(tris, uvs)


def make_grid_landmarks(
    rows: int = GRID_ROWS,
    cols: int = GRID_COLS,
    origin: tuple[float, float] = (100.0, 50.0),
    spacing: float = 10.0,
) -> np.ndarray:
    """Planar pixel-space landmarks (z = 0) laid out on the grid."""
    pts = np.zeros((rows * cols, 3), dtype=np.float64)
    for r in range(rows):
        for c in range(cols):
            pts[r * cols + c] = (origin[0] + c * spacing, origin[1] + r * spacing, 0.0)
    return pts
