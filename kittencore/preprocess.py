"""Asset name tags, text loading and ``#include`` expansion for shader sources."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable, Union

PathLike = Union[str, "os.PathLike[str]"]
Tags = dict[str, tuple[int, int, int, int]]

_INCLUDE = re.compile(r'^ *#include +[<|"]([^\n">]+)[>|"] *\n?', re.MULTILINE)

_NAME, _TAG, _DATA = range(3)


def parse_asset_tag(filename: str) -> tuple[str, Tags]:
    """Split an asset file name into its base name and ``#tag=1,2`` tags.

    Everything before the last '.' is scanned. Text outside tags forms the
    name, which is returned with ".tex" appended. A tag starts at '#', its
    name is made of letters and may be followed by '=' and up to four
    comma-separated integers. A tag without values, or whose only value is
    zero, is stored as (1, 0, 0, 0). A tag is only recorded once a character
    that cannot belong to it follows; that character is then read as part
    of the name.
    """
    limit = filename.rfind(".")
    if limit < 0:
        limit = 0

    name: list[str] = []
    tag: list[str] = []
    data = [0, 0, 0, 0]
    data_i = 0
    tags: Tags = {}
    state = _NAME

    i = 0
    while i < limit:
        c = filename[i]
        if state == _NAME:
            if c == "#":
                state = _TAG
            else:
                name.append(c)
        elif state == _TAG:
            if c == "=":
                state = _DATA
            elif c.isalpha():
                tag.append(c)
            else:
                tags["".join(tag)] = (1, 0, 0, 0)
                tag.clear()
                state = _NAME
                continue  # read this character again as part of the name
        else:
            if "0" <= c <= "9":
                if data_i < 4:
                    data[data_i] = data[data_i] * 10 + ord(c) - ord("0")
            elif c == ",":
                data_i += 1
            else:
                if data_i < 4 and data[data_i]:
                    data_i += 1
                key = "".join(tag)
                tag.clear()
                if data_i == 0:
                    tags[key] = (1, 0, 0, 0)
                elif data_i <= 4:
                    values = data[:data_i] + [0] * (4 - data_i)
                    tags[key] = (values[0], values[1], values[2], values[3])
                data = [0, 0, 0, 0]
                data_i = 0
                state = _NAME
                continue
        i += 1

    return "".join(name) + ".tex", tags


def load_text(path: PathLike) -> str:
    """Read a whole text file."""
    return Path(path).read_text(encoding="utf-8")


def _locate(root: Path, rel: str, include_paths: Iterable[PathLike]) -> Path:
    candidate = root / rel
    if candidate.is_file():
        return candidate
    for inc in include_paths:
        candidate = Path(inc) / rel
        if candidate.is_file():
            return candidate
    candidate = Path(rel)
    if candidate.is_file():
        return candidate
    raise FileNotFoundError(f"could not open file {rel}")


def _expand(root: Path, rel: str, include_paths: tuple, seen: set[Path]) -> str:
    file = _locate(root, rel, include_paths)
    key = file.resolve()
    if key in seen:
        return ""
    seen.add(key)

    src = load_text(file)
    subroot = file.parent
    pieces: list[str] = []
    last = 0
    for match in _INCLUDE.finditer(src):
        pieces.append(src[last : match.start()])
        last = match.end()
        pieces.append(_expand(subroot, match.group(1), include_paths, seen))
        pieces.append("\n")
    pieces.append(src[last:])
    return "".join(pieces)


def load_text_with_includes(path: PathLike, include_paths: Iterable[PathLike] = ()) -> str:
    """Read a text file, replacing ``#include "file"`` lines with the file's text.

    Included files are looked up next to the including file, then in each of
    ``include_paths``, then relative to the working directory. A file is
    included at most once; later includes of it expand to nothing.
    """
    p = Path(path)
    return _expand(p.parent, str(path), tuple(include_paths), set())


def number_lines(text: str) -> str:
    """Prefix every line of ``text`` with its zero-based line number."""
    return "\n".join(f"{i:<4d}| {line}" for i, line in enumerate(text.split("\n")))