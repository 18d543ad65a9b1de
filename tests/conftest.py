from pathlib import Path
import textwrap

import pytest


def write(p: Path, s: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(textwrap.dedent(s), encoding="utf-8")


@pytest.fixture
def users_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    write(
        repo / "app" / "schemas.py",
        """
        from typing import Annotated, Optional

        from wirebind.bindings import Header, Path, Query


        class GetUserRequest:
            id: Annotated[str, Path("id")]
            authorization: Annotated[str, Header("Authorization")]
            filter: Annotated[str, Query("filter")]


        class ListUsersRequest:
            count: Annotated[int, Query("count,default=42")]
            role: Annotated[str, Query("role,default=guest")]
            ratio: Annotated[float, Query("ratio,default=0.75")]
            active: Annotated[bool, Query("active,default=True")]


        class CreateUserRequest:
            tenant: Annotated[str, Header("X-Tenant,default=public")]
            name: str
            email: str
            manager: Optional["User"]


        class User:
            id: str
            name: str
            tags: list[str]
            reports: list["User"]
        """,
    )
    write(
        repo / "app" / "services.py",
        """
        from app.schemas import CreateUserRequest, GetUserRequest, ListUsersRequest, User


        class UserService:
            # wirebind:api method=GET path=/users/:id
            def get_user(self, req: GetUserRequest) -> User:
                ...

            # wirebind:api method=GET path=/users
            async def list_users(self, req: ListUsersRequest) -> list[User]:
                ...

            # wirebind:api method=POST path=/users
            def create_user(self, req: CreateUserRequest) -> User:
                ...

            # wirebind:api method=GET path=/users/:id/avatar
            def avatar(self, req: GetUserRequest) -> bytes:
                ...

            # wirebind:api method=POST path=/upload manual_func=upload_raw
            def upload(self, req: CreateUserRequest) -> None:
                ...

            async def upload_raw(self, request):
                ...
        """,
    )
    return repo
