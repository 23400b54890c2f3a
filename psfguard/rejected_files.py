"""Locate rejected light frames on disk and move them into LIGHT_REJECT folders."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

# Calibration and already-rejected folders are never searched.
SKIPPED_DIRECTORIES = frozenset({"LIGHT_REJECT", "DARK", "FLAT", "BIAS"})

_SEPARATORS = re.compile(r"[\\/]")


def file_name_only(filename: str) -> str:
    """The last component of a Windows or Unix style path."""
    return _SEPARATORS.split(filename)[-1]


def possible_paths(base_dir, date_str: str, target_name: str, filename: str) -> list[Path]:
    """Candidate locations of ``filename`` under the usual acquisition layouts."""
    base = Path(base_dir)
    target = target_name.strip()
    return [
        base / date_str / target / date_str / "LIGHT" / filename,
        base / target / date_str / "LIGHT" / filename,
        base / date_str / target / date_str / "LIGHT" / "rejected" / filename,
        base / target / date_str / "LIGHT" / "rejected" / filename,
        base / "LIGHT" / filename,
        base / target / "LIGHT" / filename,
        base / target / "LIGHT" / filename,
    ]


def find_file_recursive(base_dir, filename: str) -> Optional[Path]:
    """Depth-first search for a file named ``filename``, skipping calibration folders.

    Directory entries are visited in sorted order.
    """
    directory = Path(base_dir)
    if directory.name in SKIPPED_DIRECTORIES:
        return None
    for entry in sorted(directory.iterdir()):
        if entry.is_dir():
            found = find_file_recursive(entry, filename)
            if found is not None:
                return found
        elif entry.name == filename:
            return entry
    return None


def reject_path(source_path) -> Path:
    """Where a rejected frame goes: its LIGHT (or LIGHT/rejected) folder becomes LIGHT_REJECT."""
    text = str(source_path)
    if "/LIGHT/rejected/" in text or "\\LIGHT\\rejected\\" in text:
        text = text.replace("/LIGHT/rejected/", "/LIGHT_REJECT/")
        text = text.replace("\\LIGHT\\rejected\\", "\\LIGHT_REJECT\\")
    else:
        text = text.replace("/LIGHT/", "/LIGHT_REJECT/")
        text = text.replace("\\LIGHT\\", "\\LIGHT_REJECT\\")
    return Path(text)


def locate_file(base_dir, date_str: str, target_name: str, filename: str) -> Optional[Path]:
    """Find a frame in the expected places, falling back to a recursive search."""
    for candidate in possible_paths(base_dir, date_str, target_name, filename):
        if candidate.exists():
            return candidate
    return find_file_recursive(base_dir, filename)


def move_to_reject(source_path, dry_run: bool = False) -> Path:
    """Move ``source_path`` to its reject location and return that location.

    With ``dry_run`` nothing on disk changes.
    """
    source = Path(source_path)
    destination = reject_path(source)
    if not dry_run:
        destination.parent.mkdir(parents=True, exist_ok=True)
        source.rename(destination)
    return destination