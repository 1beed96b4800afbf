"""The ``setup_authentication`` tool (Better Auth + Better Auth UI)."""

from __future__ import annotations

import asyncio
import secrets
from pathlib import Path

from ..adapters import auth_adapter_block, auth_schema_steps
from ..models import FAILURE_MARK, SUCCESS_MARK, WARNING_MARK, ProjectConfiguration, TemplateMapping, ToolResult
from ..scaffolder.mutator import (
    ENV_FILES,
    has_body_element,
    insert_css_import,
    insert_import,
    wrap_body_children,
)
from .base import (
    DB_CLIENT_PATH,
    GLOBALS_CSS_PATH,
    LAYOUT_PATH,
    ToolContext,
    config_problems,
    next_steps,
    project_title,
)


PROVIDERS_SPECIFIER = "@/components/auth/providers"
PROVIDERS_IMPORT = f"import {{ Providers }} from '{PROVIDERS_SPECIFIER}';"
AUTH_UI_CSS_IMPORT = '@import "@daveyplate/better-auth-ui/css";'

AUTH_FILES = (
    TemplateMapping("auth/server.ts.template", "src/lib/auth/index.ts"),
    TemplateMapping("auth/client.ts.template", "src/lib/auth/client.ts"),
    TemplateMapping("auth/route.ts.template", "src/app/api/auth/[...all]/route.ts"),
    TemplateMapping("auth/page.tsx.template", "src/app/auth/[path]/page.tsx"),
    TemplateMapping("auth/providers.tsx.template", "src/components/auth/providers.tsx"),
)

SECRET_PLACEHOLDER = "replace-with-a-long-random-secret"
LOCAL_URL = "http://localhost:3000"


def _missing_prerequisites(config: ProjectConfiguration, project_path: Path) -> list[str]:
    missing = []
    if not (project_path / LAYOUT_PATH).is_file():
        missing.append(f"{LAYOUT_PATH} (run scaffold_project first)")
    if config.arch.orm in ("prisma", "drizzle") and not (project_path / DB_CLIENT_PATH).is_file():
        missing.append(f"{DB_CLIENT_PATH} (run setup_database first)")
    return missing


async def setup_authentication(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path
) -> ToolResult:
    """Configure Better Auth and inject the UI provider into the root layout."""
    arch = config.arch
    if arch.auth == "none":
        return ToolResult(f"{SUCCESS_MARK} No authentication configuration needed (auth: none)")
    if arch.database == "none":
        return ToolResult.failure(
            "Better Auth requires a database. Choose a database in the architecture "
            "and run setup_database before setup_authentication."
        )
    problem = config_problems(config)
    if problem is not None:
        return problem
    missing = _missing_prerequisites(config, project_path)
    if missing:
        return ToolResult.failure(
            "Cannot configure authentication, required files are missing:\n"
            + "\n".join(f"- {item}" for item in missing)
        )
    layout = await asyncio.to_thread((project_path / LAYOUT_PATH).read_text, encoding="utf-8")
    if "<Providers>" not in layout and not has_body_element(layout):
        return ToolResult.failure(
            f"Cannot wrap the root layout: {LAYOUT_PATH} has no <body>...</body> element. "
            f"Wrap the page content in <Providers> from '{PROVIDERS_SPECIFIER}' by hand, "
            "then run setup_authentication again."
        )

    ctx.logger.info("auth.setup", project=str(project_path), database=arch.database, orm=arch.orm)
    adapter_imports, database_adapter = auth_adapter_block(arch.database, arch.orm)
    mapping = {
        "__PROJECT_TITLE__": project_title(str(config.name)),
        "__ADAPTER_IMPORTS__": adapter_imports,
        "__DATABASE_ADAPTER__": database_adapter,
    }
    await ctx.renderer.render_mappings(AUTH_FILES, project_path, mapping)

    mutator = ctx.mutator(project_path)
    await mutator.apply(
        LAYOUT_PATH,
        lambda text: wrap_body_children(
            insert_import(text, PROVIDERS_IMPORT, PROVIDERS_SPECIFIER), "<Providers>", "</Providers>"
        ),
    )

    warnings: list[str] = []
    if (project_path / GLOBALS_CSS_PATH).is_file():
        await mutator.apply(GLOBALS_CSS_PATH, lambda text: insert_css_import(text, AUTH_UI_CSS_IMPORT))
    else:
        warnings.append(
            f"{WARNING_MARK} {GLOBALS_CSS_PATH} not found; add `{AUTH_UI_CSS_IMPORT}` to your stylesheet."
        )

    # Reuse an existing secret so every env file agrees.
    secret = (
        await mutator.read_env_value("BETTER_AUTH_SECRET")
        or await mutator.read_env_value("BETTER_AUTH_SECRET", ".env.local")
        or secrets.token_hex(32)
    )
    await mutator.sync_env(
        "BETTER_AUTH_SECRET", secret, example_value=SECRET_PLACEHOLDER, overwrite=False
    )
    await mutator.sync_env("BETTER_AUTH_URL", LOCAL_URL, overwrite=False)
    await mutator.sync_env("NEXT_PUBLIC_BETTER_AUTH_URL", LOCAL_URL, overwrite=False)

    steps = auth_schema_steps(arch.database, arch.orm, arch.package_manager)
    report = await ctx.executor.run_steps(steps, project_path, skip=arch.skip_install)

    files = [item.destination for item in AUTH_FILES]
    summary = [
        f"- Database adapter: {arch.orm if arch.orm != 'none' else 'native ' + arch.database + ' driver'}",
        f"- Files: {', '.join(files)}",
        f"- {LAYOUT_PATH} wrapped with <Providers>",
        f"- BETTER_AUTH_SECRET and BETTER_AUTH_URL written to {', '.join(ENV_FILES)}",
    ]
    if report.failed is not None:
        header = f"{FAILURE_MARK} Authentication setup incomplete: {report.failed[0].lower()} did not succeed"
    else:
        header = f"{SUCCESS_MARK} Better Auth + Better Auth UI has been configured successfully"

    sections = [header, "\n".join(summary + warnings)]
    if report.steps:
        sections.append("\n".join(report.lines()))
    extra = ["Visit /auth/sign-in and /auth/sign-up once the dev server is running"]
    sections.append("\n".join(next_steps(report, project_path, extra)))
    return ToolResult("\n\n".join(sections), files=files)
