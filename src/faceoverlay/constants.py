"""Shared constants and paths for FaceOverlay."""

from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"
CONFIG_DIR = ASSETS_DIR / "config"
MESHDATA_DIR = ASSETS_DIR / "meshdata"

DEFAULT_TOPOLOGY_FILE = "face_topology.json"
ANCHORS_FILE = "anchors.json"

# Face mesh constants
FACE_VERT_COUNT = 468  # MediaPipe face landmarks
FACE_TRI_COUNT = 898

# Reference UVs are authored in pixels of a square texture of this size
UV_SOURCE_RESOLUTION = 4096

# Local object space scale applied to landmark positions
DEFAULT_POSITION_SCALE = 1.0
