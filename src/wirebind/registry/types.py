from __future__ import annotations

from typing import Optional

from wirebind.domain.records import ImportRef, ShapeRef, StructShape
from wirebind.errors import RegistryError
from wirebind.registry.loader import ModuleLoader, ParsedModule


class TypeRegistry:
    """
    Shapes keyed by identity (module, name).

    Lookup is exact; composition is the resolver's job. Modules outside the
    scanned set are pulled in through the loader the first time something
    references them.
    """

    def __init__(self, loader: ModuleLoader) -> None:
        self.loader = loader
        self._shapes: dict[tuple[str, str], StructShape] = {}
        self._by_name: dict[str, list[tuple[str, str]]] = {}
        self._modules: dict[str, ParsedModule] = {}
        self._scanned: set[str] = set()

    def add_module(self, mod: ParsedModule, scanned: bool = True) -> None:
        self._modules[mod.name] = mod
        if scanned:
            self._scanned.add(mod.name)
        for shape in mod.shapes:
            self.register(shape, scanned=scanned)

    def register(self, shape: StructShape, scanned: bool = True) -> None:
        key = shape.identity
        existing = self._shapes.get(key)
        if existing is not None:
            if existing.fields != shape.fields or existing.bases != shape.bases:
                raise RegistryError(
                    f"conflicting definitions of {shape.qualname} "
                    f"({existing.file_path}:{existing.line})",
                    file_path=shape.file_path,
                    line=shape.line,
                    name=shape.name,
                )
            return
        self._shapes[key] = shape
        if scanned:
            self._by_name.setdefault(shape.name, []).append(key)

    def __len__(self) -> int:
        return len(self._shapes)

    def get(self, module: str, name: str) -> Optional[StructShape]:
        return self._shapes.get((module, name))

    def module(self, name: str) -> Optional[ParsedModule]:
        mod = self._modules.get(name)
        if mod is not None:
            return mod
        mod = self.loader.load(name)
        if mod is not None:
            self.add_module(mod, scanned=False)
        return mod

    def is_foreign(self, shape: StructShape) -> bool:
        return shape.module not in self._scanned

    def lookup_local(self, module: str, name: str) -> Optional[StructShape]:
        """
        A plain identifier as seen from `module`: a class of that module, then
        a `from m import Name` symbol, then a unique match among scanned modules.
        """
        return self._lookup_local(module, name, set(), allow_global=True)

    def lookup_qualified(
        self,
        module: str,
        alias: str,
        name: str,
        imports: Optional[dict[str, ImportRef]] = None,
    ) -> Optional[StructShape]:
        """alias.Name as seen from `module`, using that module's own imports unless given."""
        if imports is None:
            mod = self.module(module)
            if mod is None:
                return None
            imports = mod.imports
        ref = imports.get(alias)
        if ref is None:
            return None
        target = ref.target_module
        if self.module(target) is None:
            return None
        return self._lookup_local(target, name, set(), allow_global=False)

    def resolve_ref(
        self,
        module: str,
        ref: ShapeRef,
        imports: Optional[dict[str, ImportRef]] = None,
    ) -> Optional[StructShape]:
        """
        A shape reference written in `module`. `imports` is the import map the
        reference was written under (a RoutingRecord's own); without it the
        module's parsed imports are used.
        """
        if ref.qualifier:
            return self.lookup_qualified(module, ref.qualifier, ref.name, imports)
        if imports is not None:
            imported = imports.get(ref.name)
            if imported is not None and imported.name and self.module(imported.module) is not None:
                found = self._lookup_local(imported.module, imported.name, set(), allow_global=False)
                if found is not None:
                    return found
        return self.lookup_local(module, ref.name)

    def _lookup_local(
        self, module: str, name: str, seen: set[tuple[str, str]], allow_global: bool
    ) -> Optional[StructShape]:
        if (module, name) in seen:
            return None
        seen.add((module, name))

        mod = self.module(module)
        shape = self.get(module, name)
        if shape is not None:
            return shape

        if mod is not None:
            ref = mod.imports.get(name)
            if ref is not None and ref.name:
                # re-exports (package __init__ importing from a submodule) chain here
                if self.module(ref.module) is not None:
                    found = self._lookup_local(ref.module, ref.name, seen, allow_global=False)
                    if found is not None:
                        return found

        if not allow_global:
            return None
        candidates = self._by_name.get(name, [])
        if len(candidates) == 1:
            return self._shapes[candidates[0]]
        return None
