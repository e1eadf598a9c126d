import numpy as np
import pytest

from faceoverlay.geometry.topology import TopologyTable
from tests.helpers import make_grid_landmarks, make_grid_topology


@pytest.fixture
def grid_topology() -> TopologyTable:
    return make_grid_topology()


@pytest.fixture
def grid_landmarks() -> np.ndarray:
    return make_grid_landmarks()
