import numpy as np
import pytest

from kittencore.mesh import Vertex
from kittencore.tetmesh import TetMesh, load_tet_mesh_obj, load_tetgen

CORNERS = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)]


def unit_tet(order=(0, 1, 2, 3)):
    return TetMesh(vertices=[Vertex(pos=p) for p in CORNERS], tet_indices=list(order))


def two_tets():
    pts = CORNERS + [(1.0, 1.0, 1.0)]
    return TetMesh(
        vertices=[Vertex(pos=p) for p in pts],
        tet_indices=[0, 1, 2, 3, 1, 2, 3, 4],
    )


def test_num_tet():
    assert two_tets().num_tet() == 2
    assert TetMesh().num_tet() == 0


def test_regen_surface_single_tet():
    mesh = unit_tet()
    mesh.regen_surface()
    assert len(mesh.indices) == 12
    assert mesh.groups == [12]
    tris = {tuple(sorted(mesh.indices[i : i + 3])) for i in range(0, 12, 3)}
    assert tris == {(0, 1, 2), (0, 1, 3), (1, 2, 3), (0, 2, 3)}


def test_regen_surface_is_outward():
    mesh = unit_tet()
    mesh.regen_surface()
    assert mesh.zeroth_moment() == pytest.approx(1 / 6)


def test_regen_surface_drops_shared_face():
    mesh = two_tets()
    mesh.regen_surface()
    tris = [tuple(sorted(mesh.indices[i : i + 3])) for i in range(0, len(mesh.indices), 3)]
    assert len(tris) == 6
    assert (1, 2, 3) not in tris


def test_flip_inverted_fixes_orientation():
    mesh = unit_tet((0, 1, 3, 2))
    mesh.flip_inverted()
    assert mesh.tet_indices == [0, 1, 2, 3]


def test_flip_inverted_keeps_positive():
    mesh = unit_tet()
    mesh.flip_inverted()
    assert mesh.tet_indices == [0, 1, 2, 3]


def test_flip_then_surface_has_positive_volume():
    mesh = unit_tet((0, 1, 3, 2))
    mesh.flip_inverted()
    mesh.regen_surface()
    assert mesh.zeroth_moment() > 0


def test_write_msh(tmp_path):
    mesh = unit_tet()
    mesh.regen_surface()
    out = tmp_path / "t.msh"
    mesh.write_msh(out)
    text = out.read_text()
    assert text.startswith("$MeshFormat\n4.1 0 8\n$EndMeshFormat\n")
    assert "$Nodes\n1 4 1 4\n3 0 0 4\n" in text
    assert "1 1 2 3 4\n" in text
    assert "$Surface\n4\n" in text
    assert text.endswith("$EndSurface\n")


def test_tets_obj_round_trip(tmp_path):
    mesh = two_tets()
    out = tmp_path / "t.obj"
    mesh.write_tets_obj(out)
    loaded = load_tet_mesh_obj(out)
    assert loaded.tet_indices == mesh.tet_indices
    assert [v.pos for v in loaded.vertices] == [v.pos for v in mesh.vertices]
    assert len(loaded.indices) == 18
    assert loaded.groups == [18]


def test_load_tet_mesh_obj_bounds(tmp_path):
    out = tmp_path / "t.obj"
    unit_tet().write_tets_obj(out)
    loaded = load_tet_mesh_obj(out)
    lo, hi = loaded.bounds
    assert np.allclose(lo, [0, 0, 0])
    assert np.allclose(hi, [1, 1, 1])


def test_load_tet_mesh_obj_bad_vertex(tmp_path):
    out = tmp_path / "bad.obj"
    out.write_text("v 1 two 3\n")
    with pytest.raises(ValueError):
        load_tet_mesh_obj(out)


def test_load_tetgen_assembles(tmp_path):
    (tmp_path / "m.node").write_text(
        "4 3 0 0\n1 0 0 0\n2 1 0 0\n3 0 1 0\n4 0 0 1\n# comment\n"
    )
    (tmp_path / "m.face").write_text("1 1\n1 1 2 3 0\n")
    (tmp_path / "m.ele").write_text("1 4 0\n1 1 2 3 4\n")
    mesh = load_tetgen(tmp_path / "m.node")
    load_tetgen(tmp_path / "m.face", mesh)
    load_tetgen(tmp_path / "m.ele", mesh)
    assert [v.pos for v in mesh.vertices] == CORNERS
    assert mesh.indices == [1, 2, 3]
    assert mesh.groups == [3]
    assert mesh.tet_indices == [1, 2, 3, 4]
    assert mesh.num_tet() == 1


def test_load_tetgen_unknown_extension(tmp_path):
    p = tmp_path / "m.txt"
    p.write_text("0\n")
    with pytest.raises(ValueError):
        load_tetgen(p)


def test_load_tetgen_too_few_records(tmp_path):
    p = tmp_path / "m.ele"
    p.write_text("2 4 0\n1 1 2 3 4\n")
    with pytest.raises(ValueError):
        load_tetgen(p)


def test_load_tetgen_short_record(tmp_path):
    p = tmp_path / "m.face"
    p.write_text("1 0\n1 1 2\n")
    with pytest.raises(ValueError):
        load_tetgen(p)