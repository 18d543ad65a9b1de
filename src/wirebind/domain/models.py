from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ParamLocation = Literal["query", "header", "path", "cookie"]


class Contact(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None


class OpenAPIInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = "API Core"
    description: str = (
        "wirebind has generated this API. To modify this description, please add the file meta.json."
    )
    version: str = "0.0.1"
    terms_of_service: Optional[str] = Field(default=None, alias="termsOfService")
    contact: Optional[Contact] = None


class OpenAPIMeta(BaseModel):
    """Contents of the optional metadata file (meta.json)."""

    openapi: str = "3.0.4"
    info: OpenAPIInfo = Field(default_factory=OpenAPIInfo)


class ParamEntry(BaseModel):
    name: str
    location: ParamLocation
    required: bool = False
    schema_: dict[str, Any] = Field(default_factory=lambda: {"type": "string"})


class MethodEntry(BaseModel):
    method: str                     # lower-case verb
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    parameters: list[ParamEntry] = Field(default_factory=list)
    request_body_ref: Optional[str] = None
    response_ref: Optional[str] = None
    response_is_binary: bool = False


class PathEntry(BaseModel):
    path: str                       # /users/{id}
    methods: list[MethodEntry] = Field(default_factory=list)


class SchemaEntry(BaseModel):
    name: str
    properties: dict[str, dict[str, Any]] = Field(default_factory=dict)


class Tag(BaseModel):
    name: str


class OpenAPIDocument(BaseModel):
    meta: OpenAPIMeta = Field(default_factory=OpenAPIMeta)
    tags: list[Tag] = Field(default_factory=list)
    paths: list[PathEntry] = Field(default_factory=list)
    schemas: list[SchemaEntry] = Field(default_factory=list)
