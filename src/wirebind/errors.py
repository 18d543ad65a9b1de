from __future__ import annotations

from typing import Optional


class WirebindError(Exception):
    """
    Base error for a generation run.

    Carries the source location (file:line) and the offending operation or
    field name so the CLI can print something actionable.
    """

    def __init__(
        self,
        message: str,
        *,
        file_path: str = "",
        line: Optional[int] = None,
        name: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.file_path = file_path
        self.line = line
        self.name = name

    @property
    def location(self) -> str:
        if not self.file_path:
            return ""
        if self.line is None:
            return self.file_path
        return f"{self.file_path}:{self.line}"

    def __str__(self) -> str:
        parts = []
        if self.location:
            parts.append(self.location)
        if self.name:
            parts.append(self.name)
        parts.append(self.message)
        return ": ".join(parts)


class ScanError(WirebindError):
    """Annotated source does not fit the tool's contract."""


class RegistryError(WirebindError):
    """Same shape identity registered twice with different definitions."""


class ResolutionError(WirebindError):
    """A shape that must exist (the top-level request shape) could not be found."""


class RenderError(WirebindError):
    """Template, formatter or JSON failure while rendering artifacts."""
