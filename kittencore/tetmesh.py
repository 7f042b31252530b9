"""Tetrahedral meshes: surface extraction, orientation repair and file I/O.

A ``TetMesh`` is a ``Mesh`` whose ``indices`` hold the boundary triangles
and whose ``tet_indices`` hold four vertex indices per tetrahedron.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np

from .mesh import Mesh, PathLike, Vertex, _parse_index_line, _parse_vertex_line

# Faces of a tetrahedron (a, b, c, d), wound outward for positive orientation.
_TET_FACES = ((0, 2, 1), (0, 1, 3), (1, 2, 3), (2, 0, 3))


@dataclass(eq=False)
class TetMesh(Mesh):
    """A mesh of tetrahedra with a triangle surface."""

    tet_indices: list[int] = field(default_factory=list)

    def num_tet(self) -> int:
        """The number of tetrahedra."""
        return len(self.tet_indices) // 4

    def _tets(self):
        for i in range(self.num_tet()):
            yield tuple(self.tet_indices[4 * i : 4 * i + 4])

    def write_msh(self, path: PathLike) -> None:
        """Write nodes, tetrahedra and surface as a Gmsh 4.1 style file."""
        nv = len(self.vertices)
        nt = self.num_tet()
        lines = ["$MeshFormat\n4.1 0 8\n$EndMeshFormat\n"]
        lines.append("$Nodes\n1 %d 1 %d\n3 0 0 %d\n" % (nv, nv, nv))
        lines.extend("%d\n" % i for i in range(1, nv + 1))
        for v in self.vertices:
            lines.append("%.16f %.16f %.16f\n" % v.pos)
        lines.append("$EndNodes\n$Elements\n1 %d 1 %d\n3 0 4 %d\n" % (nt, nt, nt))
        for i, (a, b, c, d) in enumerate(self._tets(), start=1):
            lines.append("%d %d %d %d %d\n" % (i, a + 1, b + 1, c + 1, d + 1))
        lines.append("$EndElements\n$Surface\n%d\n" % (len(self.indices) // 3))
        for a, b, c in self._triangle_rows():
            lines.append("%d %d %d\n" % (a, b, c))
        lines.append("$EndSurface\n")
        Path(path).write_text("".join(lines), encoding="utf-8")

    def flip_inverted(self) -> None:
        """Swap the last two indices of every negatively oriented tetrahedron."""
        pos = self._positions()
        for t in range(self.num_tet()):
            base = 4 * t
            i0, i1, i2, i3 = self.tet_indices[base : base + 4]
            edges = np.array([pos[i1] - pos[i0], pos[i2] - pos[i0], pos[i3] - pos[i0]])
            if np.linalg.det(edges) < 0:
                self.tet_indices[base + 2] = i3
                self.tet_indices[base + 3] = i2

    def regen_surface(self) -> None:
        """Rebuild ``indices`` from the faces that belong to exactly one tetrahedron.

        Interior faces are assumed to be shared by exactly two tetrahedra.
        """
        faces: dict[tuple[int, ...], tuple[int, int, int]] = {}
        for tet in self._tets():
            for a, b, c in _TET_FACES:
                tri = (tet[a], tet[b], tet[c])
                key = tuple(sorted(tri))
                if key in faces:
                    del faces[key]
                else:
                    faces[key] = tri
        self.indices = [i for tri in faces.values() for i in tri]
        self.groups = [len(self.indices)]

    def write_tets_obj(self, path: PathLike) -> None:
        """Write vertices and tetrahedra as four-index OBJ faces."""
        lines = ["# WaveFront *.obj file\n\n"]
        for v in self.vertices:
            lines.append("v %.16f %.16f %.16f\n" % v.pos)
        lines.append("# %d vertices\n\no mesh\n" % len(self.vertices))
        for a, b, c, d in self._tets():
            lines.append("f %d %d %d %d\n" % (a + 1, b + 1, c + 1, d + 1))
        lines.append("# %d tets\n\n" % self.num_tet())
        Path(path).write_text("".join(lines), encoding="utf-8")


def _records(path: Path) -> tuple[list[str], list[list[str]]]:
    """The header tokens and the following data lines' tokens, skipping comments."""
    rows = []
    for line in path.read_text(encoding="utf-8").splitlines():
        tokens = line.split("#", 1)[0].split()
        if tokens:
            rows.append(tokens)
    if not rows:
        raise ValueError(f"{path} has no header")
    return rows[0], rows[1:]


def _count(header: list[str], path: Path, body: list[list[str]]) -> int:
    try:
        n = int(header[0])
    except ValueError as exc:
        raise ValueError(f"bad header in {path}") from exc
    if n < 0 or n > len(body):
        raise ValueError(f"{path} declares {n} records but holds {len(body)}")
    return n


def _ints(tokens: list[str], n: int, path: Path) -> list[int]:
    if len(tokens) < n:
        raise ValueError(f"short record in {path}: {' '.join(tokens)}")
    try:
        return [int(t) for t in tokens[:n]]
    except ValueError as exc:
        raise ValueError(f"bad record in {path}: {' '.join(tokens)}") from exc


def load_tetgen(path: PathLike, mesh: Optional[TetMesh] = None) -> TetMesh:
    """Read a TetGen ``.node``, ``.face`` or ``.ele`` file into ``mesh``.

    Load the three files of one model into the same mesh to assemble it.
    Indices are stored exactly as written in the file.
    """
    p = Path(path)
    if mesh is None:
        mesh = TetMesh()
    ext = p.suffix
    if ext not in (".node", ".face", ".ele"):
        raise ValueError(f"not a tetgen file: {p}")

    header, body = _records(p)
    n = _count(header, p, body)
    records = body[:n]

    if ext == ".node":
        for tokens in records:
            if len(tokens) < 4:
                raise ValueError(f"short record in {p}: {' '.join(tokens)}")
            try:
                x, y, z = (float(t) for t in tokens[1:4])
            except ValueError as exc:
                raise ValueError(f"bad record in {p}: {' '.join(tokens)}") from exc
            mesh.vertices.append(Vertex(pos=(x, y, z)))
        if mesh.vertices:
            mesh.calculate_bounds()
    elif ext == ".face":
        for tokens in records:
            mesh.indices.extend(_ints(tokens, 4, p)[1:4])
        mesh.groups.append(len(mesh.indices))
    else:
        for tokens in records:
            mesh.tet_indices.extend(_ints(tokens, 5, p)[1:5])
    return mesh


def load_tet_mesh_obj(path: PathLike) -> TetMesh:
    """Read an OBJ file whose faces list four vertices per tetrahedron.

    The surface is regenerated from the tetrahedra.
    """
    mesh = TetMesh()
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        if line.startswith("v "):
            mesh.vertices.append(_parse_vertex_line(line[1:]))
        elif line.startswith("f "):
            mesh.tet_indices += _parse_index_line(line[1:], len(mesh.vertices))
    mesh.regen_surface()
    if mesh.vertices:
        mesh.calculate_bounds()
    return mesh