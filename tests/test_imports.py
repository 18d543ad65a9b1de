import ast
import textwrap

from wirebind.domain.records import ImportRef
from wirebind.extractors.imports import collect_imports, resolve_relative


def test_collect_imports_aliases():
    src = textwrap.dedent(
        """
        import os
        import shared.common
        import shared.models as m
        from app.schemas import User, Item as It
        from . import helpers
        from .types import Paging

        try:
            from fast import thing
        except ImportError:
            thing = None

        def f():
            import hidden
        """
    )
    imports = collect_imports(ast.parse(src), "app.api.users")

    assert imports["os"] == ImportRef("os")
    assert imports["shared"] == ImportRef("shared")
    assert imports["shared.common"] == ImportRef("shared.common")
    assert imports["m"] == ImportRef("shared.models")
    assert imports["User"] == ImportRef("app.schemas", "User")
    assert imports["It"] == ImportRef("app.schemas", "Item")
    assert imports["helpers"] == ImportRef("app.api", "helpers")
    assert imports["helpers"].target_module == "app.api.helpers"
    assert imports["Paging"] == ImportRef("app.api.types", "Paging")
    assert imports["thing"] == ImportRef("fast", "thing")
    assert "hidden" not in imports


def test_resolve_relative():
    assert resolve_relative("app.api.users", False, 0, "x") == "x"
    assert resolve_relative("app.api.users", False, 1, "models") == "app.api.models"
    assert resolve_relative("app.api.users", False, 2, "models") == "app.models"
    assert resolve_relative("app", True, 1, "schemas") == "app.schemas"
    assert resolve_relative("app.api", True, 1, None) == "app.api"
    assert resolve_relative("app", False, 3, "x") is None
