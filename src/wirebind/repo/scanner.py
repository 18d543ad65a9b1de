from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional

from wirebind.repo.ignore import should_ignore_dir, should_skip_file


def scan_python_files(
    repo_path: Path,
    generated_names: Iterable[str] = (),
    max_files: Optional[int] = None,
) -> list[str]:
    """
    Absolute paths of the .py files under repo_path, sorted so that a run over
    unchanged input always sees files in the same order. Generated outputs are
    skipped.
    """
    skip = set(generated_names)
    out: list[str] = []
    for root, dirs, files in _walk(repo_path):
        root_p = Path(root)

        # prune ignored dirs
        dirs[:] = sorted(d for d in dirs if not should_ignore_dir(root_p / d))

        for f in sorted(files):
            if f.endswith(".py") and not should_skip_file(f, skip):
                out.append(str((root_p / f).resolve()))
                if max_files is not None and len(out) >= max_files:
                    return out
    return out


def _walk(repo_path: Path):
    # Separate helper to make unit testing easier (can be mocked)
    return os.walk(repo_path)


def module_name_for(file_path: str, root: Path) -> tuple[str, bool]:
    """
    Dotted module name of a file relative to the scan root, and whether the
    file is a package (__init__.py).

      <root>/app/schemas.py     -> ("app.schemas", False)
      <root>/app/__init__.py    -> ("app", True)
      <root>/src/app/models.py  -> ("app.models", False)   (src layout)
    """
    rel = Path(os.path.relpath(file_path, str(root.resolve())))
    parts = list(rel.with_suffix("").parts)
    if parts and parts[0] == "src" and len(parts) > 1:
        parts = parts[1:]
    is_package = bool(parts) and parts[-1] == "__init__"
    if is_package:
        parts = parts[:-1]
    return ".".join(parts), is_package
