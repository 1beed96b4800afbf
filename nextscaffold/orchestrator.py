"""Tool registry and dispatch.

The :class:`ToolOrchestrator` owns the name -> handler registry, parses and
defaults each request's configuration, serialises calls that target the same
directory and guarantees that nothing but :class:`UnknownOperationError`
escapes a call.  Every other failure comes back as ``❌`` result text.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from . import handlers
from .config import Settings
from .errors import NextScaffoldError, UnknownOperationError
from .executor import CommandExecutor
from .models import ProjectConfiguration, ToolResult
from .resolver import describe_validation_error, random_project_name, resolve_config
from .scaffolder.templates import TemplateRenderer
from .utils import get_logger

Handler = Callable[[handlers.ToolContext, Any, Path], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    """Registry entry for one tool."""

    name: str
    description: str
    handler: Handler
    path_key: str = "projectPath"
    requires_config: bool = True
    # When the config is optional and omitted: resolve defaults, or pass None.
    default_config: bool = True


TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        "scaffold_project",
        "Create a new Next.js project with create-next-app inside targetPath",
        handlers.scaffold_project,
        path_key="targetPath",
    ),
    ToolSpec(
        "create_directory_structure",
        "Create the additional source directories the architecture needs",
        handlers.create_directory_structure,
    ),
    ToolSpec(
        "update_package_json",
        "Merge scripts, dependencies and devDependencies into package.json",
        handlers.update_package_json,
    ),
    ToolSpec(
        "generate_dockerfile",
        "Generate Dockerfile, .dockerignore and docker-compose.yml",
        handlers.generate_dockerfile,
    ),
    ToolSpec(
        "generate_nextjs_custom_code",
        "Generate next.config and the privacy/terms pages",
        handlers.generate_nextjs_custom_code,
        requires_config=False,
    ),
    ToolSpec(
        "setup_shadcn",
        "Configure shadcn/ui: components.json, theme variables and base components",
        handlers.setup_shadcn,
    ),
    ToolSpec(
        "generate_base_components",
        "Generate the home page, health route, layout components and Button",
        handlers.generate_base_components,
    ),
    ToolSpec(
        "setup_database",
        "Configure the database client, ORM files, DATABASE_URL and run migrations",
        handlers.setup_database,
    ),
    ToolSpec(
        "setup_authentication",
        "Configure Better Auth and Better Auth UI and wrap the root layout",
        handlers.setup_authentication,
    ),
    ToolSpec(
        "install_dependencies",
        "Install dependencies with the selected package manager",
        handlers.install_dependencies,
        requires_config=False,
    ),
    ToolSpec(
        "validate_project",
        "Check that the generated project has the expected structure",
        handlers.validate_project,
        requires_config=False,
        default_config=False,
    ),
    ToolSpec(
        "generate_readme",
        "Generate README.md documenting the chosen stack",
        handlers.generate_readme,
    ),
)

# Natural dependency order for running every tool against one project.
PIPELINE_ORDER: tuple[str, ...] = (
    "scaffold_project",
    "create_directory_structure",
    "update_package_json",
    "install_dependencies",
    "generate_dockerfile",
    "generate_nextjs_custom_code",
    "setup_shadcn",
    "generate_base_components",
    "setup_database",
    "setup_authentication",
    "generate_readme",
    "validate_project",
)


class ToolOrchestrator:
    """Dispatches tool calls to their handlers."""

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        renderer: Optional[TemplateRenderer] = None,
        settings: Optional[Settings] = None,
        logger: Any = None,
        name_factory: Callable[[], str] = random_project_name,
    ) -> None:
        self.settings = settings or Settings()
        self.log = logger if logger is not None else get_logger(__name__)
        self.context = handlers.ToolContext(
            executor=executor or CommandExecutor(self.log, timeout=self.settings.command_timeout),
            renderer=renderer or TemplateRenderer(self.settings.template_dir),
            settings=self.settings,
            logger=self.log,
        )
        self.name_factory = name_factory
        self._registry: dict[str, ToolSpec] = {spec.name: spec for spec in TOOLS}
        self._locks: dict[Path, asyncio.Lock] = {}
        self._lock_users: dict[Path, int] = {}

    # -- Registry ----------------------------------------------------------

    def list_tools(self) -> list[ToolSpec]:
        return list(self._registry.values())

    def get(self, name: str) -> ToolSpec:
        """Look up *name*.

        Raises:
            UnknownOperationError: If no tool is registered under *name*.
        """
        spec = self._registry.get(name)
        if spec is None:
            raise UnknownOperationError(name, list(self._registry))
        return spec

    # -- Dispatch ----------------------------------------------------------

    async def call(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        """Run tool *name* with request *arguments*.

        Args:
            name: Registered tool name.
            arguments: ``{"config": {...}, "targetPath" | "projectPath": str,
                "packageManager": str}``; which keys are needed depends on the tool.

        Returns:
            The handler's :class:`ToolResult`.

        Raises:
            UnknownOperationError: If *name* is not registered.
        """
        spec = self.get(name)
        arguments = dict(arguments or {})

        raw_path = arguments.get(spec.path_key)
        if not raw_path:
            return ToolResult.failure(f"Missing required argument: {spec.path_key}")
        if not isinstance(raw_path, (str, Path)):
            return ToolResult.failure(
                f"Invalid argument: {spec.path_key} must be a string, got {type(raw_path).__name__}"
            )
        path = Path(raw_path).expanduser().resolve()

        raw_config = arguments.get("config")
        if raw_config is None and spec.requires_config:
            return ToolResult.failure("Missing required argument: config")
        if isinstance(raw_config, ProjectConfiguration):
            raw_config = raw_config.to_wire()
        if raw_config is not None and not isinstance(raw_config, Mapping):
            return ToolResult.failure(
                f"Invalid configuration: config must be an object, got {type(raw_config).__name__}"
            )
        if raw_config is None and spec.default_config and spec.path_key == "projectPath":
            try:
                raw_config = await handlers.project_defaults(path)
            except (OSError, ValueError) as exc:
                return ToolResult.failure(f"Cannot read the existing project at {path}: {exc}")
        if arguments.get("packageManager"):
            base = dict(raw_config or {})
            architecture = base.get("architecture")
            if architecture is not None and not isinstance(architecture, Mapping):
                return ToolResult.failure(
                    "Invalid configuration: architecture must be an object, "
                    f"got {type(architecture).__name__}"
                )
            base["architecture"] = {**(architecture or {}), "packageManager": arguments["packageManager"]}
            raw_config = base

        config: Optional[ProjectConfiguration] = None
        if raw_config is not None or spec.default_config:
            try:
                config = resolve_config(raw_config, name_factory=self.name_factory)
            except ValidationError as exc:
                return ToolResult.failure(f"Invalid configuration: {describe_validation_error(exc)}")

        lock_key = path / str(config.name) if spec.path_key == "targetPath" and config else path

        async with self._locked(lock_key):
            self.log.info("tool.start", tool=name, path=str(path))
            try:
                result = await spec.handler(self.context, config, path)
            except (NextScaffoldError, OSError, ValueError) as exc:
                self.log.exception("tool.error", tool=name, path=str(path))
                result = ToolResult.failure(f"{name} did not complete: {exc}")
            self.log.info("tool.finished", tool=name, succeeded=result.succeeded)
        return result

    @contextlib.asynccontextmanager
    async def _locked(self, key: Path) -> AsyncIterator[None]:
        """Hold the lock for *key*; the entry is dropped once nobody holds or awaits it."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    # -- Pipeline ----------------------------------------------------------

    async def run_pipeline(
        self,
        config: Mapping[str, Any] | ProjectConfiguration | None,
        target_path: str | Path,
        tools: Sequence[str] = PIPELINE_ORDER,
    ) -> list[tuple[str, ToolResult]]:
        """Call *tools* in order against one project, continuing past failures.

        The configuration is resolved once up front so every step sees the
        same project name.
        """
        for name in tools:
            self.get(name)
        try:
            resolved = resolve_config(config, name_factory=self.name_factory)
        except ValidationError as exc:
            return [("configuration", ToolResult.failure(f"Invalid configuration: {describe_validation_error(exc)}"))]

        target = Path(target_path).expanduser().resolve()
        project_path = target / str(resolved.name)
        results: list[tuple[str, ToolResult]] = []
        for name in tools:
            spec = self._registry[name]
            path = target if spec.path_key == "targetPath" else project_path
            result = await self.call(name, {"config": resolved.to_wire(), spec.path_key: str(path)})
            results.append((name, result))
        return results
