from __future__ import annotations

from pathlib import Path

DEFAULT_IGNORES = {
    "venv",
    "__pycache__",
    "node_modules",
    "site-packages",
    "dist",
    "build",
}


def should_ignore_dir(dir_path: Path) -> bool:
    # hidden dirs cover .git, .venv, .tox, caches
    return dir_path.name.startswith(".") or dir_path.name in DEFAULT_IGNORES


def should_skip_file(file_name: str, generated_names: set[str]) -> bool:
    return file_name.endswith("_gen.py") or file_name in generated_names
