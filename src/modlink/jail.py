"""Project-root boundary checks for relative references."""

from __future__ import annotations

import os
import posixpath
from pathlib import Path

from modlink.errors import PathEscapesProject


def to_url_path(path: str) -> str:
    return path.replace("\\", "/")


def normalize_rel(path: str) -> str:
    """Normalize *path* to POSIX separators with ``.`` and ``..`` collapsed."""
    return posixpath.normpath(to_url_path(path))


def is_parent_path(path: str) -> bool:
    return path == ".." or path.startswith("../")


def is_relative(path: str) -> bool:
    return path == "." or path.startswith("./") or is_parent_path(path)


def check(relative_path: str) -> str:
    """Return the normalized project-relative path or reject an escape."""
    normalized = normalize_rel(relative_path)
    if is_parent_path(normalized):
        raise PathEscapesProject(
            "You should never link to a resource outside the current project.",
            context={"path": relative_path},
        )
    return normalized


def ensure_within_project(cwd: str | Path, base_dir: str | Path, reference: str) -> str:
    """Resolve *reference* against *base_dir* and return it relative to *cwd*.

    ``dir/`` + ``../../b.html`` and detours such as ``../dir/../../b.html`` are
    both rejected once they land outside *cwd*.
    """
    target = os.path.normpath(os.path.join(os.fspath(base_dir), to_url_path(reference)))
    relative = Path(os.path.relpath(target, os.fspath(cwd))).as_posix()
    try:
        return check(relative)
    except PathEscapesProject as exc:
        exc.context["reference"] = reference
        raise


__all__ = [
    "check",
    "ensure_within_project",
    "is_parent_path",
    "is_relative",
    "normalize_rel",
    "to_url_path",
]
