"""Result-file discovery and file metadata."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

DEFAULT_EXTENSIONS = (".xnra",)


def _matches(name: str, extensions: Iterable[str]) -> bool:
    lowered = name.lower()
    return any(lowered.endswith(ext.lower()) for ext in extensions)


def find_result_files(
    root: str | Path,
    *,
    recursive: bool = True,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> list[Path]:
    """Return result files under ``root`` sorted by path."""
    root_path = Path(root)
    if not root_path.is_dir():
        raise NotADirectoryError(f"Result root is not a directory: {root_path}")

    exts = tuple(extensions)
    found: list[Path] = []
    pending = [root_path]
    while pending:
        current = pending.pop()
        with os.scandir(current) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    if recursive:
                        pending.append(Path(entry.path))
                elif entry.is_file() and _matches(entry.name, exts):
                    found.append(Path(entry.path))
    return sorted(found)


def file_mtime_ms(path: str | Path) -> int:
    """Modification time in integer epoch milliseconds, rounded."""
    return (os.stat(path).st_mtime_ns + 500_000) // 1_000_000


def companion_data_path(path: str | Path, dat_dirname: str = "dat", dat_extension: str = ".dat") -> Path:
    """Sibling ``dat/<stem>.dat`` path written next to a result file."""
    src = Path(path)
    return src.parent / dat_dirname / f"{src.stem}{dat_extension}"
