"""Cache file naming with a bounded number of cache files per key."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


def find_caches(path: PathLike) -> list[Path]:
    """Cache files belonging to ``path``: ``<name>_*.tmp`` in the same directory."""
    p = Path(path)
    name = p.name
    found = []
    for entry in p.parent.iterdir():
        if not entry.is_file() or entry.suffix != ".tmp":
            continue
        cname = entry.name
        if cname.startswith(name) and len(cname) > len(name) and cname[len(name)] == "_":
            found.append(entry)
    return sorted(found)


def get_cache(key: str, hash_value: int, num_cache: int = 8) -> Path:
    """The cache file path for ``key`` and ``hash_value``.

    An existing matching file is touched and returned. Otherwise, when
    ``num_cache`` or more caches for ``key`` exist, the least recently
    modified one is deleted and the path for a new file is returned.
    """
    if hash_value < 0:
        raise ValueError("hash value must not be negative")
    target = Path(f"{key}_{hash_value:x}.tmp")

    paths = find_caches(key)
    for p in paths:
        if p.name == target.name:
            os.utime(p)
            return p

    if paths and len(paths) >= num_cache:
        oldest = min(paths, key=lambda p: int(p.stat().st_mtime))
        oldest.unlink()

    return target