# kittencore

Mesh, asset and timing utilities for simulation and graphics code, built on numpy.

## What is inside

- `kittencore.mesh`: `Vertex` (position, normal, uv) and `Mesh` (vertices, index buffer and
  index-offset `groups`). A `Mesh` can be hashed (`hash_triangles`), turned into a polyline
  (`set_from_line`), unshared (`polygonize`), transformed by a 4x4 matrix (`transform`) and bounded
  (`calculate_bounds`). It computes the volume (`zeroth_moment`), the first and second volume
  moments (`first_moment`, `second_moment`) and the centre of mass (`center_of_mass`) of a closed,
  consistently wound surface, and writes OBJ (`write_obj`, with an optional transform) and TetGen
  `.poly` files (`write_poly`). `gen_quad_mesh` and `gen_cyl_mesh` build a subdivided unit square and
  a unit cylinder; `load_mesh_exact` reads vertices, faces and `o` groups from an OBJ file, accepting
  negative indices and ignoring `/uv/normal` suffixes.
- `kittencore.tetmesh`: `TetMesh`, a `Mesh` with four indices per tetrahedron in `tet_indices`.
  It counts tetrahedra (`num_tet`), repairs inverted ones (`flip_inverted`), rebuilds the boundary
  surface (`regen_surface`) and writes Gmsh-style `.msh` (`write_msh`) and four-index OBJ files
  (`write_tets_obj`). `load_tetgen` reads a TetGen `.node`, `.face` or `.ele` file into a new or
  existing mesh; `load_tet_mesh_obj` reads tetrahedra from an OBJ file and regenerates the surface.
- `kittencore.preprocess`: `parse_asset_tag` splits file names such as `brick#border=8,8_.png`
  into a base name and tags; `load_text`; `load_text_with_includes` expands `#include "file"` and
  `#include <file>` lines, searching next to the including file, then the given include paths, then
  the working directory, and including each file at most once; `number_lines` prefixes each line
  with its zero-based number.
- `kittencore.cache`: `find_caches` lists the `<name>_*.tmp` files next to a path; `get_cache`
  returns the cache file path for a key and hash, touching an existing file or, when too many
  caches exist, deleting the least recently modified one.
- `kittencore.timing`: `StopWatch` records laps, `Timer` keeps per-tag count, mean, deviation and
  total of timed sections, `format_duration` picks a readable unit, and `fixed_update_adapter`
  splits a frame's time into dynamic steps around fixed-rate steps. Both timer classes accept a
  `clock` callable for testing.

## Install

```
pip install .
```

## Examples

Volume and centre of mass of a closed triangle mesh:

```python
from kittencore.mesh import load_mesh_exact

mesh = load_mesh_exact("model.obj")
print(mesh.zeroth_moment(), mesh.center_of_mass())
```

Assemble a tetrahedral mesh from TetGen output and export it:

```python
from kittencore.tetmesh import load_tetgen

mesh = load_tetgen("model.node")
load_tetgen("model.face", mesh)
load_tetgen("model.ele", mesh)
mesh.flip_inverted()
mesh.write_msh("model.msh")
```

Read the tags in an asset file name. A tag is recorded once a character that cannot belong to it
follows; that character becomes part of the name:

```python
from kittencore.preprocess import parse_asset_tag

print(parse_asset_tag("brick#border=8,8_.png"))  # ('brick_.tex', {'border': (8, 8, 0, 0)})
```

Run a fixed-rate update inside a variable frame time:

```python
from kittencore.timing import fixed_update_adapter

since_fixed = 0.0
since_fixed = fixed_update_adapter(print, print, 0.05, 1 / 60, since_fixed)
```

## What it does not do

The package has no rendering, windowing or GPU code. It does not decode images or fonts, and reads
meshes only from OBJ and TetGen text files; other model formats are not supported. It provides no
command-line tool.

## Running the tests

```
pip install .[test]
pytest
```