"""The ``setup_shadcn`` tool."""

from __future__ import annotations

from pathlib import Path

from ..adapters import SHADCN_DEPENDENCIES, SHADCN_DEV_DEPENDENCIES, package_manager
from ..models import FAILURE_MARK, SKIP_MARK, SUCCESS_MARK, WARNING_MARK, ProjectConfiguration, ToolResult
from ..scaffolder.mutator import append_css_block, insert_css_import, merge_package_json
from .base import GLOBALS_CSS_PATH, ToolContext, next_steps

SHADCN_COMPONENTS = ("button", "card", "input", "label")
THEME_SENTINEL = "--radius:"
ANIMATE_CSS_IMPORT = '@import "tw-animate-css";'


def shadcn_add_command(pm_name: str) -> str:
    pm = package_manager(pm_name)
    return f"{pm.dlx} shadcn@latest add --yes --overwrite {' '.join(SHADCN_COMPONENTS)}"


async def setup_shadcn(
    ctx: ToolContext, config: ProjectConfiguration, project_path: Path
) -> ToolResult:
    """Write the shadcn/ui config and theme, then add the base components."""
    arch = config.arch
    if arch.ui_library == "none":
        return ToolResult(f"{SKIP_MARK} Shadcn/ui setup skipped (uiLibrary: none)")
    if not (project_path / GLOBALS_CSS_PATH).is_file():
        return ToolResult.failure(
            f"Cannot set up shadcn/ui: {project_path / GLOBALS_CSS_PATH} not found. "
            "Run scaffold_project first."
        )

    mapping = {"__TSX__": "true" if arch.typescript else "false"}
    await ctx.renderer.render_to_file(
        "shadcn/components.json.template", project_path / "components.json", mapping
    )
    await ctx.renderer.render_to_file("shadcn/utils.ts.template", project_path / "src/lib/utils.ts")

    theme = ctx.renderer.render("shadcn/theme.css.template")
    mutator = ctx.mutator(project_path)
    await mutator.apply(
        GLOBALS_CSS_PATH,
        lambda text: append_css_block(insert_css_import(text, ANIMATE_CSS_IMPORT), THEME_SENTINEL, theme),
    )

    notes: list[str] = []
    if (project_path / "package.json").is_file():
        await mutator.update_json(
            "package.json",
            lambda manifest: merge_package_json(
                manifest, dependencies=SHADCN_DEPENDENCIES, dev_dependencies=SHADCN_DEV_DEPENDENCIES
            ),
        )
        notes.append("- shadcn/ui dependencies added to package.json")
    else:
        notes.append(f"{WARNING_MARK} package.json not found; shadcn/ui dependencies were not recorded")

    command = shadcn_add_command(arch.package_manager)
    report = await ctx.executor.run_steps(
        [("shadcn/ui components", command)], project_path, skip=arch.skip_install
    )

    written = ["- components.json", "- src/lib/utils.ts", f"- {GLOBALS_CSS_PATH} theme variables"]
    if report.skipped:
        header = (
            f"{SUCCESS_MARK} shadcn/ui configuration written.\n"
            f"{SKIP_MARK} Skipped installation of shadcn/ui components (skipInstall is enabled)"
        )
    elif report.failed is not None:
        header = f"{FAILURE_MARK} shadcn/ui configuration written but adding components did not succeed"
    else:
        header = (
            f"{SUCCESS_MARK} shadcn/ui set up successfully with components: "
            f"{', '.join(SHADCN_COMPONENTS)}"
        )

    sections = [header, "\n".join(written + notes)]
    remaining = next_steps(report, project_path)
    if report.failed is not None:
        sections.append("\n".join(report.lines()))
    if remaining:
        sections.append("\n".join(remaining))
    return ToolResult("\n\n".join(sections), files=["components.json", "src/lib/utils.ts"])
