"""Project-level tools: scaffolding, layout, manifest, install and validation."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from ..adapters import architecture_dependencies, package_manager
from ..models import FAILURE_MARK, SKIP_MARK, SUCCESS_MARK, ProjectConfiguration, ToolResult
from ..scaffolder.mutator import merge_package_json
from .base import ToolContext, config_problems, format_config

BASE_DIRECTORIES = (
    "src/components/ui",
    "src/components/forms",
    "src/components/layout",
    "src/lib",
    "src/hooks",
    ".github/workflows",
)


def create_next_app_command(config: ProjectConfiguration) -> str:
    """The ``create-next-app`` invocation for *config*, run from the target directory."""
    arch = config.arch
    parts = [
        "npx create-next-app@latest",
        str(config.name),
        "--ts" if arch.typescript else "--js",
        "--app",
        "--eslint",
        "--tailwind",
        "--src-dir",
        "--turbopack",
        '--import-alias "@/*"',
        f"--use-{arch.package_manager}",
        "--react-compiler" if arch.react_compiler else "--no-react-compiler",
        "--yes",
    ]
    if arch.skip_install:
        parts.append("--skip-install")
    return " ".join(parts)


def project_directories(config: ProjectConfiguration) -> list[str]:
    """Directories the architecture needs on top of the create-next-app layout."""
    arch = config.arch
    directories = list(BASE_DIRECTORIES)
    if arch.state_management != "none":
        directories.append("src/stores")
    if arch.database != "none":
        directories.append("src/lib/db")
    if arch.auth != "none":
        directories.extend(["src/lib/auth", "src/components/auth"])
    if arch.testing != "none":
        directories.append("src/tests")
    return directories


def _tail(output: str, lines: int = 20) -> str:
    return "\n".join(output.strip().splitlines()[-lines:])


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def scaffold_project(
    ctx: ToolContext, config: ProjectConfiguration, target_path: Path
) -> ToolResult:
    """Run create-next-app in *target_path*, producing ``<target_path>/<name>``."""
    project_path = target_path / str(config.name)
    if not target_path.is_dir():
        return ToolResult.failure(f"Target directory does not exist: {target_path}")
    if (project_path / "package.json").is_file():
        return ToolResult.success(
            f"Next.js project already present at {project_path}; create-next-app was not re-run."
        )
    if project_path.exists() and any(project_path.iterdir()):
        return ToolResult.failure(
            f"Cannot create Next.js project: {project_path} exists and is not empty"
        )

    command = create_next_app_command(config)
    result = await ctx.executor.execute(command, target_path, label="create-next-app")
    if not result.success:
        detail = _tail(result.combined_output) or f"exit code {result.exit_code}"
        return ToolResult.failure(
            f"Failed to create Next.js project: {detail}\n\n"
            f"Run it manually:\n  cd {target_path}\n  {command}"
        )
    if not project_path.is_dir():
        return ToolResult.failure(
            f"Failed to create Next.js project: {project_path} was not created"
        )

    text = (
        f"Successfully created Next.js project at {project_path}\n\n"
        f"[Configuration]:\n{format_config(config)}\n\n"
        f"[Command executed]: {command}"
    )
    if result.output:
        text += f"\n\n[Output]:\n{_tail(result.output)}"
    return ToolResult.success(text, files=[str(project_path)])


async def create_directory_structure(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path
) -> ToolResult:
    """Create the extra source directories the architecture needs."""
    if not project_path.is_dir():
        return ToolResult.failure(
            f"Project directory not found: {project_path}. Run scaffold_project first."
        )
    directories = project_directories(config)
    for rel in directories:
        await asyncio.to_thread((project_path / rel).mkdir, parents=True, exist_ok=True)
    listing = "\n".join(f"- {rel}" for rel in directories)
    return ToolResult.success(
        f"Created {len(directories)} additional directories:\n{listing}", files=directories
    )


async def update_package_json(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path
) -> ToolResult:
    """Merge scripts and dependencies for the architecture into package.json."""
    problem = config_problems(config)
    if problem is not None:
        return problem
    if not (project_path / "package.json").is_file():
        return ToolResult.failure(
            f"Failed to update package.json: {project_path / 'package.json'} not found. "
            "Run scaffold_project first."
        )

    changes = architecture_dependencies(config.arch, str(config.name))
    try:
        await ctx.mutator(project_path).update_json(
            "package.json",
            lambda manifest: merge_package_json(
                manifest,
                scripts=changes.scripts,
                dependencies=changes.dependencies,
                dev_dependencies=changes.dev_dependencies,
                description=config.description,
            ),
        )
    except ValueError as exc:
        return ToolResult.failure(f"Failed to update package.json: {exc}")

    return ToolResult.success(
        "Updated package.json with:\n"
        f"- {len(changes.dependencies)} additional dependencies\n"
        f"- {len(changes.dev_dependencies)} additional dev dependencies\n"
        f"- {len(changes.scripts)} additional scripts",
        files=["package.json"],
    )


async def install_dependencies(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path
) -> ToolResult:
    """Single pass-through ``<pm> install``."""
    pm = package_manager(config.arch.package_manager)
    if config.arch.skip_install:
        return ToolResult(
            f"{SKIP_MARK} Skipped dependency installation (skipInstall is enabled). "
            f"Run `{pm.install}` in {project_path} when ready."
        )
    if not project_path.is_dir():
        return ToolResult.failure(f"Project directory not found: {project_path}")

    result = await ctx.executor.execute(pm.install, project_path, label="install dependencies")
    if not result.success:
        detail = _tail(result.combined_output) or f"exit code {result.exit_code}"
        return ToolResult.failure(
            f"Failed to install dependencies using {pm.name}: {detail}\n\n"
            f"Run `{pm.install}` manually in {project_path}."
        )
    return ToolResult.success(f"Successfully installed dependencies using {pm.name}")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _expected_files(config: ProjectConfiguration) -> list[str]:
    arch = config.arch
    files: list[str] = []
    if arch.database != "none":
        files.append("src/lib/db/index.ts")
        if arch.orm == "prisma":
            files.append("prisma/schema.prisma")
        elif arch.orm == "drizzle":
            files.extend(["drizzle.config.ts", "src/lib/db/schema.ts"])
    if arch.auth == "better-auth":
        files.extend(
            [
                "src/lib/auth/index.ts",
                "src/lib/auth/client.ts",
                "src/app/api/auth/[...all]/route.ts",
            ]
        )
    if arch.ui_library == "shadcn":
        files.append("components.json")
    return files


def _validation_checks(project_path: Path, config: ProjectConfiguration | None) -> list[tuple[str, bool]]:
    checks: list[tuple[str, bool]] = []
    manifest: dict | None = None
    manifest_path = project_path / "package.json"
    if manifest_path.is_file():
        try:
            loaded = json.loads(manifest_path.read_text(encoding="utf-8"))
            manifest = loaded if isinstance(loaded, dict) else None
        except ValueError:
            manifest = None
    checks.append(("package.json is present and valid JSON", manifest is not None))

    has_next_config = any(
        (project_path / name).is_file()
        for name in ("next.config.ts", "next.config.mjs", "next.config.js")
    )
    checks.append(("next.config is present", has_next_config))
    app_dir = project_path / "src" / "app"
    checks.append(("src/app directory exists", app_dir.is_dir()))
    checks.append(("root layout exists", app_dir.is_dir() and any(app_dir.glob("layout.*"))))

    if config is None:
        return checks

    if config.arch.typescript:
        checks.append(("tsconfig.json is present", (project_path / "tsconfig.json").is_file()))
    for rel in _expected_files(config):
        checks.append((f"{rel} exists", (project_path / rel).is_file()))

    if manifest is not None:
        declared = {**(manifest.get("dependencies") or {}), **(manifest.get("devDependencies") or {})}
        changes = architecture_dependencies(config.arch, str(config.name))
        for package in sorted({**changes.dependencies, **changes.dev_dependencies}):
            checks.append((f"package.json declares {package}", package in declared))
    return checks


async def validate_project(
    ctx: ToolContext, config: ProjectConfiguration | None, project_path: Path
) -> ToolResult:
    """Structural presence checks over the generated tree."""
    if not project_path.is_dir():
        return ToolResult.failure(f"Project directory not found: {project_path}")
    checks = await asyncio.to_thread(_validation_checks, project_path, config)
    lines = [f"{SUCCESS_MARK if ok else FAILURE_MARK} {label}" for label, ok in checks]
    problems = sum(1 for _, ok in checks if not ok)
    if problems:
        header = f"{FAILURE_MARK} Project validation found {problems} issue(s) in {project_path}"
    else:
        header = f"{SUCCESS_MARK} Project validation passed ({len(checks)} checks) for {project_path}"
    return ToolResult(header + "\n\n" + "\n".join(lines))
