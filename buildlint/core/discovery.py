"""
Build file discovery for directory inputs.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


def find_build_files(path: str | Path, extensions: Iterable[str]) -> list[Path]:
    """
    Find build files under a directory, or return a single file.

    Explicitly named files are always returned, whatever their extension.
    A path that does not exist is returned as-is so the scan reports it
    as an IoError diagnostic instead of aborting the run.

    Args:
        path: File or directory to search
        extensions: Suffixes to match in directories, e.g. [".csproj", ".props"]

    Returns:
        Sorted list of matching files
    """
    path_obj = Path(path)

    if not path_obj.is_dir():
        return [path_obj]

    wanted = {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions}
    found = [p for p in path_obj.rglob("*") if p.is_file() and p.suffix.lower() in wanted]
    # Sort for consistent output
    found.sort()
    return found


def discover(paths: Iterable[str | Path], extensions: Iterable[str]) -> list[Path]:
    """Expand every input path, keeping first-seen order and dropping repeats."""
    exts = list(extensions)
    seen: set[Path] = set()
    result: list[Path] = []
    for path in paths:
        for found in find_build_files(path, exts):
            if found in seen:
                continue
            seen.add(found)
            result.append(found)
    return result
