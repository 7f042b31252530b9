"""Triangle meshes: construction, OBJ/POLY output, bounds, hashing and volume moments.

Moments treat the triangles as the boundary of a closed solid whose faces
are wound counter-clockwise when seen from outside.
"""

from __future__ import annotations

import os
import re
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import numpy as np

PathLike = Union[str, "os.PathLike[str]"]
Bounds = tuple[np.ndarray, np.ndarray]

_MASK32 = 0xFFFFFFFF
_LEADING_INT = re.compile(r"[+-]?\d+")


def _floats(values: Sequence[float], n: int, name: str) -> tuple[float, ...]:
    out = tuple(float(v) for v in values)
    if len(out) != n:
        raise ValueError(f"{name} needs {n} components, got {len(out)}")
    return out


@dataclass(frozen=True)
class Vertex:
    """A mesh vertex: position, normal and texture coordinate."""

    pos: tuple[float, float, float] = (0.0, 0.0, 0.0)
    norm: tuple[float, float, float] = (0.0, 0.0, 0.0)
    uv: tuple[float, float] = (0.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pos", _floats(self.pos, 3, "pos"))
        object.__setattr__(self, "norm", _floats(self.norm, 3, "norm"))
        object.__setattr__(self, "uv", _floats(self.uv, 2, "uv"))


def _hash_combine(seed: int, value: int) -> int:
    seed &= _MASK32
    value &= _MASK32
    return (seed ^ (value + 0x9E3779B9 + ((seed << 6) & _MASK32) + (seed >> 2))) & _MASK32


def _float_bits(x: float) -> int:
    return struct.unpack("<I", struct.pack("<f", x))[0]


def _normal_matrix(mat: np.ndarray) -> np.ndarray:
    return np.linalg.inv(mat[:3, :3]).T


def _to_mat4(mat) -> np.ndarray:
    m = np.asarray(mat, dtype=float)
    if m.shape != (4, 4):
        raise ValueError(f"expected a 4x4 matrix, got shape {m.shape}")
    return m


@dataclass(eq=False)
class Mesh:
    """Vertices with an index buffer; ``groups`` holds index offsets of sub-meshes."""

    vertices: list[Vertex] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)
    groups: list[int] = field(default_factory=list)
    def_transform: np.ndarray = field(default_factory=lambda: np.eye(4))
    def_material: Any = None
    bounds: Optional[Bounds] = None

    # Helpers

    def _positions(self) -> np.ndarray:
        return np.array([v.pos for v in self.vertices], dtype=float).reshape(-1, 3)

    def _triangles(self) -> np.ndarray:
        """Triangle corner positions, shape (T, 3 corners, 3 components)."""
        count = len(self.indices) // 3
        if count == 0:
            return np.zeros((0, 3, 3))
        idx = np.asarray(self.indices[: 3 * count], dtype=int).reshape(-1, 3)
        return self._positions()[idx]

    def _triangle_rows(self):
        for i in range(len(self.indices) // 3):
            yield tuple(self.indices[3 * i + k] + 1 for k in range(3))

    # Construction and editing

    def hash_triangles(self) -> int:
        """A 32-bit hash of the index buffer and the raw vertex data."""
        h = _hash_combine(len(self.indices), len(self.vertices))
        for i in self.indices:
            h = _hash_combine(h, i)
        for v in self.vertices:
            for component in (*v.pos, *v.norm, *v.uv):
                h = _hash_combine(h, _float_bits(component))
        return h - (1 << 32) if h & 0x80000000 else h

    def set_from_line(self, points: Sequence[Sequence[float]]) -> None:
        """Make this mesh a polyline through ``points`` (index pairs per segment)."""
        pts = list(points)
        if len(pts) < 2:
            self.vertices = []
            self.indices = []
            return
        self.vertices = [Vertex(pos=p) for p in pts]
        self.indices = [i + k for i in range(len(pts) - 1) for k in (0, 1)]

    def polygonize(self) -> None:
        """Give every index its own vertex so that no vertex is shared."""
        old = self.vertices
        self.vertices = [old[i] for i in self.indices]
        self.indices = list(range(len(self.vertices)))

    def transform(self, mat) -> None:
        """Apply a 4x4 affine transform to positions, and its normal matrix to normals."""
        m = _to_mat4(mat)
        normal_mat = _normal_matrix(m)
        moved = []
        for v in self.vertices:
            pos = (m @ np.array([*v.pos, 1.0]))[:3]
            norm = normal_mat @ np.array(v.norm)
            moved.append(Vertex(pos=pos, norm=norm, uv=v.uv))
        self.vertices = moved

    def calculate_bounds(self) -> Bounds:
        """Compute, store and return the axis-aligned bounds (min, max)."""
        if not self.vertices:
            raise ValueError("cannot bound an empty mesh")
        pos = self._positions()
        self.bounds = (pos.min(axis=0), pos.max(axis=0))
        return self.bounds

    # Output

    def write_obj(self, path: PathLike, transform=None) -> None:
        """Write positions and triangles as a Wavefront OBJ file."""
        m = None if transform is None else _to_mat4(transform)
        lines = ["# WaveFront *.obj file\n\n"]
        for v in self.vertices:
            p = np.array(v.pos)
            if m is not None:
                p = (m @ np.array([*p, 1.0]))[:3]
            lines.append("v %.16f %.16f %.16f\n" % (p[0], p[1], p[2]))
        lines.append("# %d vertices\n\no mesh\n" % len(self.vertices))
        for a, b, c in self._triangle_rows():
            lines.append("f %d %d %d\n" % (a, b, c))
        lines.append("# %d triangles\n\n" % (len(self.indices) // 3))
        Path(path).write_text("".join(lines), encoding="utf-8")

    def write_poly(self, path: PathLike) -> None:
        """Write the surface as a TetGen .poly file."""
        lines = ["%d 3 0 0\n" % len(self.vertices)]
        for i, v in enumerate(self.vertices, start=1):
            lines.append("%d %.16f %.16f %.16f\n" % (i, v.pos[0], v.pos[1], v.pos[2]))
        lines.append("%d 0\n" % (len(self.indices) // 3))
        for a, b, c in self._triangle_rows():
            lines.append("1\n3 %d %d %d\n" % (a, b, c))
        lines.append("0\n0\n")
        Path(path).write_text("".join(lines), encoding="utf-8")

    # Moments

    def zeroth_moment(self) -> float:
        """The enclosed volume."""
        tris = self._triangles()
        return float(np.sum(np.linalg.det(tris)) / 6) if len(tris) else 0.0

    def first_moment(self) -> np.ndarray:
        """The integral of position over the enclosed volume."""
        tris = self._triangles()
        if not len(tris):
            return np.zeros(3)
        det = np.linalg.det(tris)
        return (det[:, None] * tris.sum(axis=1)).sum(axis=0) / 24.0

    def second_moment(self) -> np.ndarray:
        """The integral of the outer product x x^T over the enclosed volume."""
        tris = self._triangles()
        if not len(tris):
            return np.zeros((3, 3))
        det = np.linalg.det(tris)
        comps = tris.transpose(0, 2, 1)  # [t, component, corner]
        gram = np.einsum("tkc,tlc->tkl", comps, comps)
        sums = comps.sum(axis=2)
        per_tri = (gram + np.einsum("tk,tl->tkl", sums, sums)) / 120.0
        return np.einsum("t,tkl->kl", det, per_tri)

    def center_of_mass(self) -> np.ndarray:
        """The centroid of the enclosed volume."""
        volume = self.zeroth_moment()
        if volume == 0:
            raise ValueError("mesh encloses no volume")
        return self.first_moment() / volume


def gen_quad_mesh(rows: int = 1, cols: int = 1) -> Mesh:
    """A unit square in the xy plane split into ``rows`` x ``cols`` quads."""
    if rows < 1 or cols < 1:
        raise ValueError("rows and cols must be at least 1")
    vertices = []
    for r in range(rows + 1):
        for c in range(cols + 1):
            px, py = c / cols, r / rows
            vertices.append(Vertex((px, py, 0.0), (0.0, 0.0, 1.0), (px, py)))
    indices = []
    for r in range(rows):
        for c in range(cols):
            idx = r * (cols + 1) + c
            indices += [idx, idx + 1, idx + cols + 1, idx + 1, idx + cols + 2, idx + cols + 1]
    mesh = Mesh(vertices=vertices, indices=indices)
    mesh.calculate_bounds()
    return mesh


def gen_cyl_mesh(radial_segments: int, height_segments: int = 1, cap: bool = True) -> Mesh:
    """A unit-radius cylinder along y from 0 to 1, optionally closed by caps."""
    if radial_segments < 3:
        raise ValueError("a cylinder needs at least 3 radial segments")
    if height_segments < 1:
        raise ValueError("a cylinder needs at least 1 height segment")
    r = radial_segments
    h = 1 / height_segments
    num_wall = r * height_segments

    vertices = [Vertex()] * ((height_segments + 1) * r)
    indices = [0] * (6 * num_wall + (6 * (r - 2) if cap else 0))
    for i in range(r):
        angle = (2 * np.pi * i) / r
        cx, cz = float(np.cos(angle)), float(np.sin(angle))
        for j in range(height_segments + 1):
            vertices[i + j * r] = Vertex(pos=(cx, j * h, cz))

        for j in range(height_segments):
            ind = i + j * r
            nind = (i + 1) % r + j * r
            indices[6 * ind : 6 * ind + 6] = [
                ind + r, nind, ind,
                nind + r, nind, ind + r,
            ]

        if cap and 0 < i < r - 1:
            base = 6 * (i - 1 + num_wall)
            indices[base : base + 6] = [
                0, i, i + 1,
                i + num_wall, num_wall, i + 1 + num_wall,
            ]

    mesh = Mesh(vertices=vertices, indices=indices)
    mesh.calculate_bounds()
    return mesh


def _parse_index_line(rest: str, vertex_count: int) -> list[int]:
    out = []
    for token in rest.split():
        match = _LEADING_INT.match(token)
        if match is None:
            break
        i = int(match.group())
        out.append(vertex_count + i if i < 1 else i - 1)
    return out


def _parse_vertex_line(rest: str) -> Vertex:
    tokens = rest.split()
    try:
        x, y, z = (float(t) for t in tokens[:3])
    except ValueError as exc:
        raise ValueError(f"bad vertex line: v{rest}") from exc
    if len(tokens) < 3:
        raise ValueError(f"bad vertex line: v{rest}")
    return Vertex(pos=(x, y, z))


def load_mesh_exact(path: PathLike) -> Mesh:
    """Read vertices, faces and objects of an OBJ file exactly as written.

    Face indices may be negative (relative to the vertices read so far) and
    may carry ``/uv/normal`` suffixes, which are ignored. Each ``o`` line
    starts a new group.
    """
    mesh = Mesh()
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        if line.startswith("v "):
            mesh.vertices.append(_parse_vertex_line(line[1:]))
        elif line.startswith("f "):
            if not mesh.groups:
                mesh.groups.append(0)
            mesh.indices += _parse_index_line(line[1:], len(mesh.vertices))
        elif line.startswith("o "):
            mesh.groups.append(len(mesh.indices))
    mesh.groups.append(len(mesh.indices))
    if mesh.vertices:
        mesh.calculate_bounds()
    return mesh