"""Template-driven code generation tools.

Docker files, the Next.js config and legal pages, the base components and
the README.  These handlers only write files owned by templates, so a rerun
overwrites them with identical content.
"""

from __future__ import annotations

import html
import json
from pathlib import Path

from ..adapters import describe_adapter, package_manager
from ..models import ProjectConfiguration, TemplateMapping, ToolResult
from ..scaffolder.docker_gen import database_image
from .base import ToolContext, project_title

NEXT_PAGES = (
    TemplateMapping("pages/privacy.tsx.template", "src/app/privacy/page.tsx"),
    TemplateMapping("pages/terms.tsx.template", "src/app/terms/page.tsx"),
)

DATABASE_LABELS = {
    "none": "None",
    "postgres": "PostgreSQL",
    "mysql": "MySQL",
    "mongodb": "MongoDB",
    "sqlite": "SQLite",
}
ORM_LABELS = {"none": "Native driver", "prisma": "Prisma", "drizzle": "Drizzle", "mongoose": "Mongoose"}
STATE_LABELS = {"none": "None", "zustand": "Zustand", "redux": "Redux Toolkit"}
TESTING_LABELS = {"none": "None", "jest": "Jest", "vitest": "Vitest", "playwright": "Playwright"}


def _jsx_text(value: str) -> str:
    """Escape *value* for use as JSX text content."""
    return html.escape(value, quote=False).replace("{", "&#123;").replace("}", "&#125;")


def stack_items(config: ProjectConfiguration) -> list[str]:
    """Human-readable technology list shown on the home page and health route."""
    arch = config.arch
    items = ["Next.js", "TypeScript" if arch.typescript else "JavaScript", "Tailwind CSS"]
    if arch.ui_library == "shadcn":
        items.append("shadcn/ui")
    if arch.database != "none":
        items.append(DATABASE_LABELS[arch.database])
        if arch.orm != "none":
            items.append(ORM_LABELS[arch.orm])
    if arch.auth == "better-auth":
        items.append("Better Auth")
    if arch.state_management != "none":
        items.append(STATE_LABELS[arch.state_management])
    if arch.testing != "none":
        items.append(TESTING_LABELS[arch.testing])
    return items


# ---------------------------------------------------------------------------
# Docker
# ---------------------------------------------------------------------------


async def generate_dockerfile(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path
) -> ToolResult:
    """Write Dockerfile, .dockerignore and docker-compose.yml."""
    if not project_path.is_dir():
        return ToolResult.failure(f"Project directory not found: {project_path}")
    await ctx.docker.generate_all(project_path, config)

    database = config.arch.database
    image = database_image(database)
    if image:
        compose_line = f"- docker-compose.yml with {database} database setup ({image})"
    elif database == "sqlite":
        compose_line = "- docker-compose.yml with sqlite database setup (file-based, no service)"
    else:
        compose_line = "- docker-compose.yml with no database service (database: none)"
    return ToolResult.success(
        "Generated Docker configuration:\n"
        "- Dockerfile (from template)\n"
        "- .dockerignore\n"
        f"{compose_line}",
        files=["Dockerfile", ".dockerignore", "docker-compose.yml"],
    )


# ---------------------------------------------------------------------------
# Next.js config and pages
# ---------------------------------------------------------------------------


async def generate_nextjs_custom_code(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path
) -> ToolResult:
    """Write next.config and the privacy/terms pages."""
    if not project_path.is_dir():
        return ToolResult.failure(f"Project directory not found: {project_path}")

    arch = config.arch
    if arch.typescript:
        config_template, config_name = "next/next.config.ts.template", "next.config.ts"
    else:
        config_template, config_name = "next/next.config.mjs.template", "next.config.mjs"

    mapping = {
        "__REACT_COMPILER__": "true" if arch.react_compiler else "false",
        "__PROJECT_TITLE__": _jsx_text(project_title(str(config.name))),
    }
    await ctx.renderer.render_to_file(config_template, project_path / config_name, mapping)
    await ctx.renderer.render_mappings(NEXT_PAGES, project_path, mapping)

    files = [config_name] + [item.destination for item in NEXT_PAGES]
    listing = "\n".join(f"- {name}" for name in files)
    return ToolResult.success(
        f"Generated Next.js configuration and custom pages:\n{listing}", files=files
    )


# ---------------------------------------------------------------------------
# Base components
# ---------------------------------------------------------------------------


async def generate_base_components(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path
) -> ToolResult:
    """Home page, health route, layout components and the Button fallback."""
    if not project_path.is_dir():
        return ToolResult.failure(f"Project directory not found: {project_path}")

    arch = config.arch
    title = _jsx_text(project_title(str(config.name)))
    items = stack_items(config)
    auth_enabled = arch.auth == "better-auth"

    if auth_enabled:
        primary_action = (
            '        <Link href="/auth/sign-up">\n'
            "          <Button>Get started</Button>\n"
            "        </Link>"
        )
        header_imports = "import { UserMenu } from '@/components/auth/user-menu';"
        header_actions = "          <UserMenu />"
    else:
        primary_action = (
            '        <Link href="/privacy">\n'
            '          <Button variant="outline">Privacy</Button>\n'
            "        </Link>"
        )
        header_imports = ""
        header_actions = (
            '          <Link href="/privacy">Privacy</Link>\n'
            '          <Link href="/terms">Terms</Link>'
        )

    mapping = {
        "__PROJECT_NAME__": str(config.name),
        "__PROJECT_TITLE__": title,
        "__DESCRIPTION__": _jsx_text(str(config.description)),
        "__STACK_ITEMS__": json.dumps(items),
        "__STACK_JSON__": json.dumps(items),
        "__BUTTON_IMPORT__": "import { Button } from '@/components/ui/button';",
        "__PRIMARY_ACTION__": primary_action,
        "__HEADER_IMPORTS__": header_imports,
        "__HEADER_ACTIONS__": header_actions,
    }

    mappings = [
        TemplateMapping("pages/home.tsx.template", "src/app/page.tsx"),
        TemplateMapping("api/health.route.ts.template", "src/app/api/health/route.ts"),
        TemplateMapping("components/header.tsx.template", "src/components/layout/header.tsx"),
        TemplateMapping("components/footer.tsx.template", "src/components/layout/footer.tsx"),
    ]
    lines = [
        "Created home page (src/app/page.tsx)",
        "Created health check route (src/app/api/health/route.ts)",
        "Created layout components (header, footer)",
    ]
    if arch.ui_library == "none":
        mappings.append(TemplateMapping("components/button.tsx.template", "src/components/ui/button.tsx"))
        lines.append("Created reusable Button component with Tailwind CSS")
    else:
        lines.append("Using shadcn/ui Button (added by setup_shadcn)")
    if auth_enabled:
        mappings.append(
            TemplateMapping("components/user-menu.tsx.template", "src/components/auth/user-menu.tsx")
        )
        lines.append("Created authentication-related components (user menu)")

    await ctx.renderer.render_mappings(mappings, project_path, mapping)

    listing = "\n".join(f"- {line}" for line in lines)
    return ToolResult.success(
        f"Generated base components:\n{listing}", files=[m.destination for m in mappings]
    )


# ---------------------------------------------------------------------------
# README
# ---------------------------------------------------------------------------


def readme_context(config: ProjectConfiguration) -> dict:
    arch = config.arch
    return {
        "project": {
            "name": config.name,
            "title": project_title(str(config.name)),
            "description": config.description,
        },
        "arch": arch,
        "pm": package_manager(arch.package_manager),
        "adapter": describe_adapter(arch.database, arch.orm, arch.package_manager, str(config.name)),
        "labels": {
            "database": DATABASE_LABELS[arch.database],
            "orm": ORM_LABELS[arch.orm],
            "state_management": STATE_LABELS[arch.state_management],
            "testing": TESTING_LABELS[arch.testing],
        },
    }


async def generate_readme(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path
) -> ToolResult:
    """Render README.md for the chosen architecture."""
    if not project_path.is_dir():
        return ToolResult.failure(f"Project directory not found: {project_path}")
    await ctx.renderer.render_document_to_file(
        "README.md.j2", project_path / "README.md", readme_context(config)
    )
    return ToolResult.success(
        "Generated comprehensive README.md with project documentation", files=["README.md"]
    )
