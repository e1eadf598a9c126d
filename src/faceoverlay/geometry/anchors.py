"""Named landmark triples for attaching props to rigid face regions."""

import logging
from functools import lru_cache
from typing import Any

from faceoverlay.constants import ANCHORS_FILE
from faceoverlay.core.config_loader import load_config

logger = logging.getLogger(__name__)

Anchor = tuple[int, int, int]


def parse_anchors(data: Any) -> dict[str, Anchor]:
    """Validate an ``{name: [a, b, c]}`` mapping."""
    if not isinstance(data, dict):
        raise ValueError("Anchor config must be a JSON object")

    anchors: dict[str, Anchor] = {}
    for name, triple in data.items():
        if (not isinstance(triple, (list, tuple)) or len(triple) != 3
                or not all(isinstance(i, int) and not isinstance(i, bool) for i in triple)):
            raise ValueError(f"Anchor '{name}' must be three landmark indices, got {triple!r}")
        if len(set(triple)) != 3:
            raise ValueError(f"Anchor '{name}' repeats a landmark: {triple!r}")
        anchors[name] = (triple[0], triple[1], triple[2])
    return anchors


@lru_cache(maxsize=1)
def load_anchors() -> dict[str, Anchor]:
    """Load the anchor table from assets/config/anchors.json."""
    anchors = parse_anchors(load_config(ANCHORS_FILE))
    logger.debug("Loaded %d face anchors: %s", len(anchors), ", ".join(anchors))
    return anchors


def get_anchor(name: str) -> Anchor:
    anchors = load_anchors()
    if name not in anchors:
        raise KeyError(f"Unknown anchor '{name}' (known: {', '.join(sorted(anchors))})")
    return anchors[name]
