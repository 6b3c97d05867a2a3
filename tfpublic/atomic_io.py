"""Atomic writes for generated artifacts."""

from __future__ import annotations

import contextlib
import os
from pathlib import Path
from typing import Iterable, List, Mapping


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Write ``text`` to a sibling temp file, fsync it, then replace ``path``."""
    tmp = path.with_name(path.name + ".tmp")
    tmp.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(tmp, "wb") as handle:
            handle.write(text.encode(encoding))
            handle.flush()
            with contextlib.suppress(OSError):
                os.fsync(handle.fileno())
        os.replace(tmp, path)
    except Exception:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


def write_files_atomic(directory: Path, files: Mapping[str, str]) -> List[Path]:
    """Write each ``name -> content`` entry into ``directory``; returns written paths."""
    directory.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for name, content in files.items():
        target = directory / name
        write_text_atomic(target, content)
        written.append(target)
    return written


def remove_files(directory: Path, names: Iterable[str]) -> List[Path]:
    """Delete the named files from ``directory`` when present; returns removed paths."""
    removed: List[Path] = []
    for name in names:
        target = directory / name
        try:
            target.unlink()
        except FileNotFoundError:
            continue
        removed.append(target)
    return removed


__all__ = ["remove_files", "write_files_atomic", "write_text_atomic"]
