"""The ``setup_database`` tool.

Writes the ORM configuration and the database client, syncs
``DATABASE_URL`` into the env files and then runs the schema and migration
commands one after another.  A failed command leaves every file in place
and the result lists the commands needed to finish by hand.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from ..adapters import AdapterDescriptor, describe_adapter, package_manager
from ..models import FAILURE_MARK, SUCCESS_MARK, ProjectConfiguration, ToolResult
from ..scaffolder.mutator import ENV_FILES
from ..scaffolder.templates import write_file
from .base import DB_CLIENT_PATH, ToolContext, config_problems, next_steps


async def _write_orm_files(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path, adapter: AdapterDescriptor
) -> list[str]:
    arch = config.arch
    mapping = {
        "__PROJECT_NAME__": str(config.name),
        "__PROVIDER__": adapter.provider_id,
        "__DIALECT__": adapter.provider_id,
    }
    written: list[str] = []
    if arch.orm == "prisma":
        await ctx.renderer.render_to_file(
            "db/schema.prisma.template", project_path / "prisma/schema.prisma", mapping
        )
        written.append("prisma/schema.prisma")
    elif arch.orm == "drizzle":
        await ctx.renderer.render_to_file(
            "db/drizzle.config.ts.template", project_path / "drizzle.config.ts", mapping
        )
        await ctx.renderer.render_to_file(
            f"db/drizzle-schema.{arch.database}.ts.template",
            project_path / "src/lib/db/schema.ts",
            mapping,
        )
        written.extend(["drizzle.config.ts", "src/lib/db/schema.ts"])
    elif arch.orm == "mongoose":
        await ctx.renderer.render_to_file(
            "db/mongoose-models.ts.template", project_path / "src/lib/db/models/index.ts", mapping
        )
        written.append("src/lib/db/models/index.ts")
    return written


async def setup_database(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path
) -> ToolResult:
    """Configure the database layer for the chosen database/ORM pair."""
    arch = config.arch
    if arch.database == "none":
        return ToolResult(f"{SUCCESS_MARK} No database configuration needed (database: none)")
    problem = config_problems(config)
    if problem is not None:
        return problem
    if not project_path.is_dir():
        return ToolResult.failure(
            f"Project directory not found: {project_path}. Run scaffold_project first."
        )

    adapter = describe_adapter(arch.database, arch.orm, arch.package_manager, str(config.name))
    ctx.logger.info(
        "database.setup", project=str(project_path), database=arch.database, orm=arch.orm
    )

    files = await _write_orm_files(ctx, config, project_path, adapter)
    await asyncio.to_thread(write_file, project_path / DB_CLIENT_PATH, adapter.driver_import_block)
    files.append(DB_CLIENT_PATH)
    await ctx.mutator(project_path).sync_env("DATABASE_URL", adapter.connection_url)

    report = await ctx.executor.run_steps(adapter.steps(), project_path, skip=arch.skip_install)

    summary = [
        f"- Database: {arch.database}",
        f"- ORM: {arch.orm}",
        f"- Files: {', '.join(files)}",
        f"- DATABASE_URL written to {', '.join(ENV_FILES)}",
    ]
    extra: list[str] = []
    if arch.database != "sqlite":
        pm = package_manager(arch.package_manager)
        extra.append(f"Start the database container with `{pm.script('docker:dev:up')}`")

    if report.failed is not None:
        failed_label = report.failed[0]
        header = f"{FAILURE_MARK} Database setup incomplete: {failed_label.lower()} did not succeed"
    else:
        header = f"{SUCCESS_MARK} Database setup completed successfully"

    sections = [header, "\n".join(summary)]
    if report.steps:
        sections.append("\n".join(report.lines()))
    steps_text = "\n".join(next_steps(report, project_path, extra))
    if steps_text:
        sections.append(steps_text)
    return ToolResult("\n\n".join(sections), files=files)
