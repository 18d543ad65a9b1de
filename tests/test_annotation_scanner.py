import ast
import textwrap

import pytest

from wirebind.domain.records import ShapeRef
from wirebind.errors import ScanError
from wirebind.extractors.annotations import extract_operations, parse_annotation
from wirebind.extractors.imports import collect_imports


def ops(src: str, strict: bool = False):
    src = textwrap.dedent(src)
    tree = ast.parse(src)
    return extract_operations(
        tree,
        src,
        "app.services",
        collect_imports(tree, "app.services"),
        file_path="app/services.py",
        strict=strict,
    )


def test_parse_annotation():
    ann = parse_annotation(" wirebind:api method=GET path=/users/:id", line=3)
    assert ann is not None
    assert (ann.verb, ann.path, ann.manual_func, ann.line) == ("GET", "/users/:id", "", 3)

    ann = parse_annotation("wirebind:api method=POST path=/upload manual_func=upload_raw")
    assert ann is not None
    assert ann.manual_func == "upload_raw"

    assert parse_annotation(" just a comment") is None


def test_parse_annotation_malformed_is_fatal():
    with pytest.raises(ScanError) as exc:
        parse_annotation("wirebind:api method=get path=/users", line=12, file_path="svc.py")
    assert exc.value.location == "svc.py:12"

    with pytest.raises(ScanError):
        parse_annotation("wirebind:api path=/users")


def test_extract_operations_basic():
    records = ops(
        """
        from app.schemas import GetUserRequest, User


        class UserService:
            # wirebind:api method=GET path=/users/:id
            def get_user(self, req: GetUserRequest) -> User:
                ...

            # Lists users.
            # wirebind:api method=GET path=/users
            async def list_users(self, req: "ListUsersRequest") -> bytes:
                ...

            def helper(self, x):
                ...
        """
    )
    assert [(r.verb, r.path, r.operation) for r in records] == [
        ("GET", "/users/:id", "get_user"),
        ("GET", "/users", "list_users"),
    ]

    first, second = records
    assert first.owner == "UserService"
    assert first.module == "app.services"
    assert first.request == ShapeRef(name="GetUserRequest")
    assert first.response == ShapeRef(name="User")
    assert not first.is_async
    assert first.imports["GetUserRequest"].module == "app.schemas"

    assert second.is_async
    assert second.request.name == "ListUsersRequest"
    assert second.response is None
    assert second.response_is_bytes


def test_annotation_above_decorators_and_qualified_request():
    records = ops(
        """
        import functools

        from app import schemas


        class Service:
            # wirebind:api method=PUT path=/items/:id
            @functools.cache
            def update(self, req: Optional[schemas.UpdateItem]) -> None:
                ...
        """
    )
    assert len(records) == 1
    r = records[0]
    assert r.request == ShapeRef(name="UpdateItem", qualifier="schemas", pointer=True)
    assert r.response is None
    assert not r.response_is_bytes
    assert r.parses_body


def test_blank_line_detaches_annotation():
    records = ops(
        """
        class Service:
            # wirebind:api method=GET path=/a

            def a(self, req: Req) -> None:
                ...
        """
    )
    assert records == []


def test_annotation_on_module_function_is_fatal():
    with pytest.raises(ScanError) as exc:
        ops(
            """
            # wirebind:api method=GET path=/a
            def a(req: Req):
                ...
            """
        )
    assert exc.value.name == "a"
    assert "receiver" in exc.value.message


def test_annotation_on_staticmethod_is_fatal():
    with pytest.raises(ScanError):
        ops(
            """
            class Service:
                # wirebind:api method=GET path=/a
                @staticmethod
                def a(req: Req):
                    ...
            """
        )


def test_wrong_param_count_is_fatal():
    with pytest.raises(ScanError) as exc:
        ops(
            """
            class Service:
                # wirebind:api method=GET path=/a
                def a(self, req: Req, other: int):
                    ...
            """
        )
    assert "exactly ONE" in exc.value.message
    assert exc.value.line == 4

    with pytest.raises(ScanError):
        ops(
            """
            class Service:
                # wirebind:api method=GET path=/a
                def a(self):
                    ...
            """
        )


def test_request_must_be_an_annotated_shape_reference():
    with pytest.raises(ScanError):
        ops(
            """
            class Service:
                # wirebind:api method=GET path=/a
                def a(self, req):
                    ...
            """
        )

    with pytest.raises(ScanError):
        ops(
            """
            class Service:
                # wirebind:api method=GET path=/a
                def a(self, req: list[Req]):
                    ...
            """
        )


def test_strict_mode_requires_return_annotation():
    src = """
        class Service:
            # wirebind:api method=GET path=/a
            def a(self, req: Req):
                ...
        """
    assert len(ops(src)) == 1
    with pytest.raises(ScanError):
        ops(src, strict=True)
