"""Tool handlers.  Each one is an ``async (ctx, config, path) -> ToolResult`` script."""

from .auth import setup_authentication
from .base import ToolContext, project_defaults
from .codegen import (
    generate_base_components,
    generate_dockerfile,
    generate_nextjs_custom_code,
    generate_readme,
)
from .database import setup_database
from .project import (
    create_directory_structure,
    install_dependencies,
    scaffold_project,
    update_package_json,
    validate_project,
)
from .ui import setup_shadcn

__all__ = [
    "ToolContext",
    "create_directory_structure",
    "generate_base_components",
    "generate_dockerfile",
    "generate_nextjs_custom_code",
    "generate_readme",
    "install_dependencies",
    "project_defaults",
    "scaffold_project",
    "setup_authentication",
    "setup_database",
    "setup_shadcn",
    "update_package_json",
    "validate_project",
]
