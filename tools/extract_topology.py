#!/usr/bin/env python3
"""
Build assets/meshdata/face_topology.json from a face-mesh source.

Accepted inputs:
  * the JS geometry module of the browser demos, which exports
    ``FACES`` (flat triangle index list) and ``UVS`` (flat pixel UVs on a
    4096 texture)
  * a Wavefront OBJ with texture coordinates, e.g. MediaPipe's
    ``canonical_face_model.obj``

Usage::

    python tools/extract_topology.py js/geometry.js
    python tools/extract_topology.py canonical_face_model.obj -o face_topology.json
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path

from faceoverlay.constants import DEFAULT_TOPOLOGY_FILE, MESHDATA_DIR, UV_SOURCE_RESOLUTION
from faceoverlay.geometry.topology import TopologyTable, parse_topology
from faceoverlay.loaders.obj_parser import load_obj_topology

logger = logging.getLogger(__name__)


def extract_array(text: str, name: str) -> list[float]:
    """Return the numeric array literal assigned to ``name`` in JS source."""
    match = re.search(rf'\b(?:const|let|var)\s+{name}\s*=\s*\[', text)
    if match is None:
        raise ValueError(f"Could not find array: {name}")

    # Accumulate content, tracking bracket depth
    start = match.end() - 1
    depth = 0
    for i in range(start, len(text)):
        if text[i] == '[':
            depth += 1
        elif text[i] == ']':
            depth -= 1
            if depth == 0:
                body = text[start + 1:i]
                break
    else:
        raise ValueError(f"Unterminated array: {name}")

    # Drop comments, then split on commas (trailing commas allowed)
    body = re.sub(r'//[^\n]*', '', body)
    body = re.sub(r'/\*.*?\*/', '', body, flags=re.S)
    return [float(tok) for tok in (t.strip() for t in body.split(',')) if tok]


def topology_from_js(text: str, resolution: float = UV_SOURCE_RESOLUTION) -> dict:
    """Extract FACES/UVS from a JS module into the JSON asset layout."""
    faces = [int(v) for v in extract_array(text, 'FACES')]
    uvs = extract_array(text, 'UVS')
    if len(faces) % 3 != 0:
        raise ValueError(f"FACES length {len(faces)} is not a multiple of 3")
    if len(uvs) % 2 != 0:
        raise ValueError(f"UVS length {len(uvs)} is not a multiple of 2")
    return {
        "faces": [faces[i:i + 3] for i in range(0, len(faces), 3)],
        "uvs": [uvs[i:i + 2] for i in range(0, len(uvs), 2)],
        "uv_resolution": resolution,
    }


def topology_to_json(topology: TopologyTable) -> dict:
    return {
        "faces": topology.triangles().tolist(),
        "uvs": [[round(float(u), 7), round(float(v), 7)] for u, v in topology.reference_uvs],
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.split('\n\n')[0])
    parser.add_argument('source', type=Path, help='geometry.js or .obj file')
    parser.add_argument('-o', '--output', type=Path,
                        default=MESHDATA_DIR / DEFAULT_TOPOLOGY_FILE)
    parser.add_argument('--resolution', type=float, default=UV_SOURCE_RESOLUTION,
                        help='pixel size of the JS UV texture')
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format='%(message)s')

    try:
        if args.source.suffix.lower() == '.obj':
            data = topology_to_json(load_obj_topology(args.source))
        else:
            data = topology_from_js(args.source.read_text(encoding='utf-8'), args.resolution)
        topology = parse_topology(data)
    except ValueError as e:
        logger.error("Failed to extract topology from %s: %s", args.source, e)
        return 1

    args.output.parent.mkdir(parents=True, exist_ok=True)
    with open(args.output, 'w', encoding='utf-8') as f:
        json.dump(data, f, separators=(',', ':'))  # compact to save space
    logger.info("Wrote %s (%d vertices, %d triangles)",
                args.output, topology.vertex_count, topology.triangle_count)
    return 0


if __name__ == '__main__':
    sys.exit(main())
