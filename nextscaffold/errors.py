"""Exception hierarchy for nextscaffold.

Only :class:`UnknownOperationError` ever crosses the orchestrator boundary.
The remaining classes are raised by the rendering and mutation layers and
caught inside the tool handlers, which turn them into ``❌`` result text.
"""

from __future__ import annotations

from pathlib import Path


class NextScaffoldError(Exception):
    """Base class for every error raised by nextscaffold."""


class UnknownOperationError(NextScaffoldError):
    """Raised when a caller dispatches a tool name that is not registered."""

    def __init__(self, name: str, known: list[str] | None = None) -> None:
        self.name = name
        self.known = sorted(known or [])
        message = f"Unknown tool: {name}"
        if self.known:
            message += f" (available: {', '.join(self.known)})"
        super().__init__(message)


class TemplateNotFoundError(NextScaffoldError, FileNotFoundError):
    """Raised when a template id does not resolve to a file under the template root."""

    def __init__(self, template_id: str, template_dir: Path) -> None:
        self.template_id = template_id
        self.template_dir = template_dir
        super().__init__(f"Template not found: {template_id} (searched {template_dir})")


class MissingFileError(NextScaffoldError, FileNotFoundError):
    """Raised when a file that a previous step should have produced is absent."""

    def __init__(self, path: Path, hint: str = "") -> None:
        self.path = path
        self.hint = hint
        message = f"Required file not found: {path}"
        if hint:
            message += f". {hint}"
        super().__init__(message)
