"""Shared context and text helpers for the tool handlers."""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..config import Settings
from ..executor import CommandExecutor, StepReport
from ..models import FAILURE_MARK, NAME_PATTERN, SKIP_MARK, ProjectConfiguration, ToolResult
from ..resolver import validate_architecture
from ..scaffolder.docker_gen import DockerGenerator
from ..scaffolder.mutator import FileMutator
from ..scaffolder.templates import TemplateRenderer
from ..utils import get_logger

# Fixed locations shared by the handlers.
DB_CLIENT_PATH = "src/lib/db/index.ts"
LAYOUT_PATH = "src/app/layout.tsx"
GLOBALS_CSS_PATH = "src/app/globals.css"
NEXT_CONFIG_FILES = ("next.config.ts", "next.config.mjs", "next.config.js")

_REACT_COMPILER_RE = re.compile(r"\breactCompiler\s*:\s*(true|false)\b")


@dataclass
class ToolContext:
    """Collaborators every handler receives."""

    executor: CommandExecutor
    renderer: TemplateRenderer
    settings: Settings = field(default_factory=Settings)
    logger: Any = None

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = get_logger("nextscaffold.handlers")

    @property
    def docker(self) -> DockerGenerator:
        return DockerGenerator(self.renderer)

    def mutator(self, project_path: Path) -> FileMutator:
        return FileMutator(project_path)


def project_title(name: str) -> str:
    """``my-cool-app`` -> ``My Cool App``."""
    words = [part for part in name.replace("_", "-").replace(".", "-").split("-") if part]
    return " ".join(word.capitalize() for word in words) or name


def config_problems(config: ProjectConfiguration) -> ToolResult | None:
    """A configuration-error result when the ORM/database pair is unsupported."""
    problems = validate_architecture(config.arch)
    if not problems:
        return None
    return ToolResult.failure("Configuration error: " + "; ".join(problems))


def format_config(config: ProjectConfiguration) -> str:
    """The configuration as indented camelCase JSON, for result text."""
    return json.dumps(config.to_wire(), indent=2)


async def project_defaults(project_path: Path) -> dict[str, Any]:
    """Configuration values recovered from an existing project.

    Used in place of an omitted ``config`` so a tool run against a project
    keeps its identity: the name comes from ``package.json`` (falling back
    to the directory name), ``typescript`` from ``tsconfig.json`` or
    ``jsconfig.json`` and ``reactCompiler`` from the current next.config.
    Values that cannot be recovered are left to the resolver's defaults.
    """
    return await asyncio.to_thread(_read_project_defaults, project_path)


def _read_project_defaults(project_path: Path) -> dict[str, Any]:
    raw: dict[str, Any] = {}
    name = _project_name(project_path)
    if name:
        raw["name"] = name

    architecture: dict[str, Any] = {}
    if (project_path / "tsconfig.json").is_file():
        architecture["typescript"] = True
    elif (project_path / "jsconfig.json").is_file():
        architecture["typescript"] = False
    for filename in NEXT_CONFIG_FILES:
        path = project_path / filename
        if not path.is_file():
            continue
        match = _REACT_COMPILER_RE.search(path.read_text(encoding="utf-8"))
        if match:
            architecture["reactCompiler"] = match.group(1) == "true"
        break
    if architecture:
        raw["architecture"] = architecture
    return raw


def _project_name(project_path: Path) -> str | None:
    candidates = []
    manifest = project_path / "package.json"
    if manifest.is_file():
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except ValueError:
            # An unreadable manifest falls back to the directory name.
            data = None
        if isinstance(data, dict) and isinstance(data.get("name"), str):
            candidates.append(data["name"])
    candidates.append(project_path.name)
    for candidate in candidates:
        if len(candidate) <= 214 and re.match(NAME_PATTERN, candidate):
            return candidate
    return None


def next_steps(report: StepReport, cwd: Path, extra: list[str] | None = None) -> list[str]:
    """Render the "what is left to do" section for a multi-step handler.

    The section depends on how far *report* got: nothing to do, commands
    skipped on request, or the commands to resume from the failed step.
    """
    lines: list[str] = []
    remaining = report.resume_commands()
    if report.skipped and remaining:
        lines.append(f"{SKIP_MARK} Installation steps skipped (skipInstall is enabled). Run manually:")
    elif report.failed is not None:
        lines.append(f"{FAILURE_MARK} Resume from the failed step by running:")
    if remaining:
        lines.append(f"  cd {cwd}")
        lines.extend(f"  {command}" for command in remaining)
    if extra:
        lines.append("")
        lines.append("Next steps:")
        lines.extend(f"  - {item}" for item in extra)
    return lines
