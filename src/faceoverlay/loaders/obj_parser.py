"""Wavefront OBJ parser → TopologyTable.

Reads a textured face model such as MediaPipe's
``canonical_face_model.obj``, whose vertices are the landmarks in estimator
order and whose ``vt`` records hold the reference UV layout.
"""

import numpy as np

from faceoverlay.geometry.topology import TopologyError, TopologyTable


def parse_obj_topology(text: str) -> TopologyTable:
    """Parse a Wavefront OBJ string into a :class:`TopologyTable`.

    Supports ``v``, ``vt`` and ``f`` lines.  Quads and n-gons are fan
    triangulated.  Each vertex takes the UV referenced by the face corners
    that use it; ``vt`` is GL convention (v up) and is flipped to image
    convention (v down).

    Parameters
    ----------
    text : str
        The OBJ file contents.

    Returns
    -------
    TopologyTable
    """
    vertex_count = 0
    texcoords: list[list[float]] = []
    face_verts: list[list[int]] = []   # vertex indices per face
    face_uvs: list[list[int]] = []     # texcoord indices per face

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        key = parts[0]

        if key == "v" and len(parts) >= 4:
            vertex_count += 1
        elif key == "vt" and len(parts) >= 3:
            texcoords.append([float(parts[1]), float(parts[2])])
        elif key == "f":
            vi: list[int] = []
            ti: list[int] = []
            for token in parts[1:]:
                indices = token.split("/")
                vi.append(int(indices[0]) - 1)  # OBJ is 1-based
                if len(indices) >= 2 and indices[1]:
                    ti.append(int(indices[1]) - 1)
            if len(vi) < 3:
                raise TopologyError(f"OBJ face has fewer than 3 vertices: {line!r}")
            if len(ti) != len(vi):
                raise TopologyError(f"OBJ face lacks texture coordinates: {line!r}")
            face_verts.append(vi)
            face_uvs.append(ti)

    if vertex_count == 0 or not face_verts:
        raise TopologyError("OBJ data has no vertices or faces")

    # Triangulate faces (fan triangulation for quads/ngons)
    triangles: list[list[int]] = []
    uvs = np.full((vertex_count, 2), np.nan, dtype=np.float64)

    for fv, ft in zip(face_verts, face_uvs):
        for k in range(1, len(fv) - 1):
            triangles.append([fv[0], fv[k], fv[k + 1]])
        for v, t in zip(fv, ft):
            if not 0 <= v < vertex_count or not 0 <= t < len(texcoords):
                raise TopologyError(f"OBJ face index out of range: vertex {v + 1}, uv {t + 1}")
            u_gl, v_gl = texcoords[t]
            uvs[v] = (u_gl, 1.0 - v_gl)

    unmapped = np.isnan(uvs[:, 0])
    if unmapped.any():
        raise TopologyError(
            f"{int(unmapped.sum())} OBJ vertices are not used by any face "
            f"(first: {int(np.argmax(unmapped)) + 1})"
        )

    return TopologyTable(triangles, uvs)


def load_obj_topology(path) -> TopologyTable:
    """Load an OBJ file from disk.

    Parameters
    ----------
    path : str or Path
        Path to the ``.obj`` file.

    Returns
    -------
    TopologyTable
    """
    with open(path, "r") as f:
        text = f.read()
    return parse_obj_topology(text)
