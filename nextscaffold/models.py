"""Data model shared by every nextscaffold component.

Provides Pydantic v2 models for the project configuration and its
architecture choices, plus the small result types passed between the
executor, the handlers and the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


PackageManager = Literal["npm", "pnpm", "yarn", "bun"]
Database = Literal["none", "postgres", "mysql", "mongodb", "sqlite"]
Orm = Literal["none", "prisma", "drizzle", "mongoose"]
Auth = Literal["none", "better-auth"]
UiLibrary = Literal["none", "shadcn"]
StateManagement = Literal["none", "zustand", "redux"]
Testing = Literal["none", "jest", "vitest", "playwright"]

# Result text markers understood by callers.
SUCCESS_MARK = "✅"
FAILURE_MARK = "❌"
SKIP_MARK = "⏭️"
WARNING_MARK = "⚠️"

NAME_PATTERN = r"^[a-z0-9][a-z0-9._-]*$"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class Architecture(BaseModel):
    """Technology choices for the generated project.

    Field aliases accept the camelCase names used on the wire
    (``packageManager``, ``uiLibrary``, ...); snake_case works too.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    typescript: bool = Field(default=True)
    react_compiler: bool = Field(default=False, alias="reactCompiler")
    package_manager: PackageManager = Field(default="pnpm", alias="packageManager")
    database: Database = Field(default="postgres")
    orm: Orm = Field(default="prisma")
    auth: Auth = Field(default="better-auth")
    ui_library: UiLibrary = Field(default="shadcn", alias="uiLibrary")
    state_management: StateManagement = Field(default="none", alias="stateManagement")
    testing: Testing = Field(default="none")
    skip_install: bool = Field(
        default=False,
        alias="skipInstall",
        description="Skip every package-installing command and list it for manual execution",
    )


class ProjectConfiguration(BaseModel):
    """A project request: identity plus architecture.

    ``name`` and ``description`` are optional on input; the resolver fills
    them in and the resolved instance is treated as read-only.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=214, pattern=NAME_PATTERN)
    description: Optional[str] = Field(default=None, max_length=500)
    architecture: Architecture = Field(default_factory=Architecture)

    @property
    def arch(self) -> Architecture:
        return self.architecture

    def to_wire(self) -> dict[str, Any]:
        """Return the configuration using the camelCase wire names."""
        return self.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Process and tool results
# ---------------------------------------------------------------------------


@dataclass
class CommandResult:
    """Outcome of one external command.  Never raised, always returned."""

    success: bool
    output: str = ""
    exit_code: int = -1
    stderr: str = ""

    @property
    def combined_output(self) -> str:
        """Stdout followed by stderr, skipping empty streams."""
        return "\n".join(part for part in (self.output, self.stderr) if part)


@dataclass(frozen=True)
class TemplateMapping:
    """A template id paired with its destination, relative to the project root."""

    template_id: str
    destination: str


@dataclass
class ToolResult:
    """The response of a single tool call: human-readable text.

    Success or failure is conveyed by markers inside the text, the same
    convention callers apply when reading it back.
    """

    text: str
    files: list[str] = field(default_factory=list)

    @classmethod
    def success(cls, message: str, files: list[str] | None = None) -> "ToolResult":
        return cls(f"{SUCCESS_MARK} {message}", files=list(files or []))

    @classmethod
    def failure(cls, message: str) -> "ToolResult":
        return cls(f"{FAILURE_MARK} {message}")

    @property
    def succeeded(self) -> bool:
        """Apply the caller-side convention: any failure marker means failure."""
        lowered = self.text.lower()
        return (
            FAILURE_MARK not in self.text
            and "error:" not in lowered
            and "failed" not in lowered
        )

    def to_dict(self) -> dict[str, str]:
        """Serialise to the ``{"text": ...}`` response shape."""
        return {"text": self.text}
