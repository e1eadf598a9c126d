"""Tests for the face topology table and its loaders."""

import json

import numpy as np
import pytest

from faceoverlay.constants import (
    DEFAULT_TOPOLOGY_FILE,
    FACE_TRI_COUNT,
    FACE_VERT_COUNT,
    MESHDATA_DIR,
)
from faceoverlay.geometry import topology as topology_module
from faceoverlay.geometry.face_geometry import FaceGeometry
from faceoverlay.geometry.topology import (
    TopologyError,
    TopologyTable,
    default_topology,
    load_topology,
    parse_topology,
)


QUAD_FACES = [[0, 1, 2], [0, 2, 3]]
QUAD_UVS = [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]]


class TestTopologyTable:

    def test_counts(self, grid_topology):
        assert grid_topology.vertex_count == 468
        assert grid_topology.triangle_count == 2 * 17 * 25

    def test_triangles_shape(self, grid_topology):
        tris = grid_topology.triangles()
        assert tris.shape == (850, 3)
        assert tris.dtype == np.uint32

    def test_reference_uv(self):
        table = TopologyTable(QUAD_FACES, QUAD_UVS)
        assert table.reference_uv(2) == (1.0, 1.0)
        assert table.reference_uv(3) == (0.0, 1.0)

    def test_flat_lists_accepted(self):
        table = TopologyTable([0, 1, 2, 0, 2, 3], [0, 0, 1, 0, 1, 1, 0, 1])
        assert table.triangle_count == 2
        assert table.vertex_count == 4

    def test_arrays_are_read_only(self):
        table = TopologyTable(QUAD_FACES, QUAD_UVS)
        with pytest.raises(ValueError):
            table.triangles()[0, 0] = 3
        with pytest.raises(ValueError):
            table.reference_uvs[0, 0] = 0.5

    def test_input_is_copied(self):
        uvs = np.array(QUAD_UVS)
        table = TopologyTable(QUAD_FACES, uvs)
        uvs[0, 0] = 0.9
        assert table.reference_uv(0) == (0.0, 0.0)

    def test_from_pixel_coords(self):
        table = TopologyTable.from_pixel_coords(
            [0, 1, 2], [0, 0, 2048, 0, 4096, 1024],
        )
        np.testing.assert_array_almost_equal(
            table.reference_uvs, [[0, 0], [0.5, 0], [1.0, 0.25]],
        )

    def test_from_pixel_coords_bad_resolution(self):
        with pytest.raises(TopologyError):
            TopologyTable.from_pixel_coords([0, 1, 2], [0, 0, 1, 0, 0, 1], resolution=0)

    @pytest.mark.parametrize("faces, uvs", [
        ([[0, 1]], QUAD_UVS),                 # not triangles
        ([], QUAD_UVS),                       # no triangles
        (QUAD_FACES, [[0, 0, 0]]),            # UVs not pairs
        (QUAD_FACES, []),                     # no UVs
        ([[0, 1, 4]], QUAD_UVS),              # index out of range
        ([[0, -1, 2]], QUAD_UVS),             # negative index
        ([["a", "b", "c"]], QUAD_UVS),        # not numeric
    ])
    def test_malformed(self, faces, uvs):
        with pytest.raises(TopologyError):
            TopologyTable(faces, uvs)

    def test_error_is_value_error(self):
        assert issubclass(TopologyError, ValueError)


class TestParseTopology:

    def test_normalized(self):
        table = parse_topology({"faces": QUAD_FACES, "uvs": QUAD_UVS})
        assert table.vertex_count == 4

    def test_pixel_resolution(self):
        table = parse_topology({
            "faces": [[0, 1, 2]],
            "uvs": [[0, 0], [4096, 0], [0, 4096]],
            "uv_resolution": 4096,
        })
        assert table.reference_uv(1) == (1.0, 0.0)
        assert table.reference_uv(2) == (0.0, 1.0)

    def test_missing_keys(self):
        with pytest.raises(TopologyError, match="uvs"):
            parse_topology({"faces": QUAD_FACES})

    def test_not_an_object(self):
        with pytest.raises(TopologyError):
            parse_topology([QUAD_FACES, QUAD_UVS])


class TestLoadTopology:

    def test_load_json(self, tmp_path):
        path = tmp_path / "topo.json"
        path.write_text(json.dumps({"faces": QUAD_FACES, "uvs": QUAD_UVS}))
        table = load_topology(path)
        assert table.triangle_count == 2

    def test_load_obj(self, tmp_path):
        path = tmp_path / "quad.obj"
        path.write_text(
            "v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\n"
            "vt 0 0\nvt 1 0\nvt 1 1\nvt 0 1\n"
            "f 1/1 2/2 3/3 4/4\n"
        )
        table = load_topology(path)
        assert table.vertex_count == 4
        assert table.triangle_count == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(TopologyError, match="not found"):
            load_topology(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{faces: ")
        with pytest.raises(TopologyError, match="not valid JSON"):
            load_topology(path)

    def test_expected_vertices(self, tmp_path):
        path = tmp_path / "topo.json"
        path.write_text(json.dumps({"faces": QUAD_FACES, "uvs": QUAD_UVS}))
        with pytest.raises(TopologyError, match="expected 468"):
            load_topology(path, expected_vertices=468)

    def test_expected_triangles(self, tmp_path):
        path = tmp_path / "topo.json"
        path.write_text(json.dumps({"faces": QUAD_FACES, "uvs": QUAD_UVS}))
        with pytest.raises(TopologyError, match="2 triangles, expected 898"):
            load_topology(path, expected_triangles=898)
        assert load_topology(path, expected_triangles=2).triangle_count == 2

    def test_default_topology_uses_meshdata_dir(self, tmp_path, monkeypatch, grid_topology):
        data = {
            "faces": grid_topology.triangles().tolist(),
            "uvs": grid_topology.reference_uvs.tolist(),
        }
        (tmp_path / "face_topology.json").write_text(json.dumps(data))
        monkeypatch.setattr(topology_module, "MESHDATA_DIR", tmp_path)
        monkeypatch.setattr(topology_module, "FACE_TRI_COUNT", grid_topology.triangle_count)
        default_topology.cache_clear()
        try:
            first = default_topology()
            assert first.vertex_count == 468
            assert default_topology() is first
        finally:
            default_topology.cache_clear()

    def test_default_topology_missing_asset(self, tmp_path, monkeypatch):
        monkeypatch.setattr(topology_module, "MESHDATA_DIR", tmp_path)
        default_topology.cache_clear()
        try:
            with pytest.raises(TopologyError):
                default_topology()
        finally:
            default_topology.cache_clear()

    def test_default_topology_rejects_wrong_triangle_count(self, tmp_path, monkeypatch, grid_topology):
        data = {
            "faces": grid_topology.triangles().tolist(),
            "uvs": grid_topology.reference_uvs.tolist(),
        }
        (tmp_path / "face_topology.json").write_text(json.dumps(data))
        monkeypatch.setattr(topology_module, "MESHDATA_DIR", tmp_path)
        default_topology.cache_clear()
        try:
            with pytest.raises(TopologyError, match="850 triangles, expected 898"):
                default_topology()
        finally:
            default_topology.cache_clear()


BUNDLED_TOPOLOGY = MESHDATA_DIR / DEFAULT_TOPOLOGY_FILE


@pytest.mark.skipif(not BUNDLED_TOPOLOGY.exists(),
                    reason="face_topology.json not generated; run tools/extract_topology.py")
class TestBundledTopology:

    @pytest.fixture(autouse=True)
    def _fresh_cache(self):
        default_topology.cache_clear()
        yield
        default_topology.cache_clear()

    def test_counts(self):
        table = default_topology()
        assert table.vertex_count == FACE_VERT_COUNT
        assert table.triangle_count == FACE_TRI_COUNT

    def test_every_landmark_is_used(self):
        used = np.unique(default_topology().triangles())
        np.testing.assert_array_equal(used, np.arange(FACE_VERT_COUNT))

    def test_reference_uvs_in_unit_square(self):
        uvs = default_topology().reference_uvs
        assert uvs.min() >= 0.0
        assert uvs.max() <= 1.0

    def test_default_construction(self):
        geom = FaceGeometry()
        assert geom.vertex_count == FACE_VERT_COUNT
        assert geom.indices.shape == (FACE_TRI_COUNT, 3)
