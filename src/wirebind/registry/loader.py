from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from wirebind.domain.records import ImportRef, StructShape
from wirebind.errors import ScanError
from wirebind.extractors.imports import collect_imports
from wirebind.extractors.shapes import extract_shapes
from wirebind.log import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParsedModule:
    name: str
    file_path: str
    is_package: bool
    source: str
    tree: ast.Module = field(compare=False, repr=False)
    imports: dict[str, ImportRef] = field(default_factory=dict, compare=False)
    shapes: tuple[StructShape, ...] = ()


class ModuleLoader:
    """
    Parses modules and memoizes them by dotted module path, so a module is
    never parsed twice in a run. A module that cannot be found is memoized as
    missing.
    """

    def __init__(self, search_roots: list[Path]) -> None:
        self.search_roots = [p.resolve() for p in search_roots]
        self._cache: dict[str, Optional[ParsedModule]] = {}
        self.parse_count = 0

    def parse_file(self, file_path: str, module: str, is_package: bool = False) -> ParsedModule:
        """Parse a file of the scanned set. Syntax errors are fatal here."""
        cached = self._cache.get(module)
        if cached is not None and cached.file_path == file_path:
            return cached
        try:
            source = Path(file_path).read_text(encoding="utf-8")
            tree = ast.parse(source, filename=file_path)
        except SyntaxError as e:
            raise ScanError(f"cannot parse: {e.msg}", file_path=file_path, line=e.lineno) from e
        except (OSError, UnicodeDecodeError) as e:
            raise ScanError(f"cannot read: {e}", file_path=file_path) from e

        parsed = self._build(module, file_path, is_package, source, tree)
        self._cache[module] = parsed
        return parsed

    def load(self, module: str) -> Optional[ParsedModule]:
        """On-demand load of a module referenced from another one. Never raises."""
        if module in self._cache:
            return self._cache[module]

        found = self._find(module)
        parsed: Optional[ParsedModule] = None
        if found is None:
            logger.debug("module_not_found", module=module)
        else:
            file_path, is_package = found
            try:
                source = Path(file_path).read_text(encoding="utf-8")
                tree = ast.parse(source, filename=file_path)
                parsed = self._build(module, file_path, is_package, source, tree)
            except (SyntaxError, OSError, UnicodeDecodeError) as e:
                logger.warning("module_load_failed", module=module, file=file_path, error=str(e))

        self._cache[module] = parsed
        return parsed

    def _build(
        self, module: str, file_path: str, is_package: bool, source: str, tree: ast.Module
    ) -> ParsedModule:
        self.parse_count += 1
        return ParsedModule(
            name=module,
            file_path=file_path,
            is_package=is_package,
            source=source,
            tree=tree,
            imports=collect_imports(tree, module, is_package),
            shapes=tuple(extract_shapes(tree, module, file_path)),
        )

    def _find(self, module: str) -> Optional[tuple[str, bool]]:
        if not module:
            return None
        rel = Path(*module.split("."))
        for root in self.search_roots:
            candidate = root / rel.with_suffix(".py")
            if candidate.is_file():
                return str(candidate), False
            init = root / rel / "__init__.py"
            if init.is_file():
                return str(init), True
        return None
