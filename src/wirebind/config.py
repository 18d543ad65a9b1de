"""Generator settings.

Values come from WIREBIND_* environment variables; CLI options override them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeneratorSettings(BaseSettings):
    templates_dir: Optional[Path] = Field(
        default=None, description="Directory searched for templates before the packaged ones"
    )
    meta_file: Path = Field(default=Path("meta.json"), description="OpenAPI info override file")
    handler_file: str = Field(default="wirebind_routes.py", description="Generated handler module")
    openapi_file: str = Field(default="openapi.json", description="Generated OpenAPI document")
    search_paths: list[Path] = Field(
        default_factory=list, description="Extra roots for modules referenced but not scanned"
    )
    strict: bool = Field(default=False, description="Require a return annotation on operations")
    serve_openapi: bool = Field(default=True, description="Register GET /openapi.json")
    log_level: str = Field(default="WARNING", description="Log level")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")

    model_config = SettingsConfigDict(env_prefix="WIREBIND_")
