"""Tests for the template-driven code generation tools.

Covers:
- generate_dockerfile result text per database
- generate_nextjs_custom_code config variant and legal pages
- generate_base_components Button fallback and auth components
- generate_readme conditional sections
- Reruns overwrite with identical content
"""

from __future__ import annotations

from pathlib import Path

import pytest

from nextscaffold.handlers import (
    generate_base_components,
    generate_dockerfile,
    generate_nextjs_custom_code,
    generate_readme,
)
from nextscaffold.handlers.codegen import stack_items
from nextscaffold.resolver import resolve_config
from nextscaffold.scaffolder.templates import unresolved_tokens

pytestmark = pytest.mark.unit


def _config(**architecture):
    return resolve_config(
        {"name": "test-app", "description": "Shop <front> {demo}", "architecture": architecture}
    )


# ---------------------------------------------------------------------------
# generate_dockerfile
# ---------------------------------------------------------------------------


class TestGenerateDockerfile:
    @pytest.mark.asyncio
    async def test_postgres(self, tool_context, next_project: Path):
        result = await generate_dockerfile(tool_context, _config(), next_project)
        assert result.succeeded
        assert result.text.startswith("✅ Generated Docker configuration:")
        assert "docker-compose.yml with postgres database setup (postgres:17-alpine)" in result.text
        assert (next_project / "Dockerfile").is_file()
        assert (next_project / ".dockerignore").is_file()

    @pytest.mark.asyncio
    async def test_sqlite(self, tool_context, next_project: Path):
        result = await generate_dockerfile(tool_context, _config(database="sqlite"), next_project)
        assert "file-based" in result.text

    @pytest.mark.asyncio
    async def test_missing_project(self, tool_context, tmp_path: Path):
        result = await generate_dockerfile(tool_context, _config(), tmp_path / "missing")
        assert not result.succeeded


# ---------------------------------------------------------------------------
# generate_nextjs_custom_code
# ---------------------------------------------------------------------------


class TestGenerateNextjsCustomCode:
    @pytest.mark.asyncio
    async def test_typescript(self, tool_context, next_project: Path):
        result = await generate_nextjs_custom_code(tool_context, _config(reactCompiler=True), next_project)
        assert result.succeeded
        next_config = (next_project / "next.config.ts").read_text(encoding="utf-8")
        assert "reactCompiler: true" in next_config
        assert "output: 'standalone'" in next_config
        privacy = (next_project / "src/app/privacy/page.tsx").read_text(encoding="utf-8")
        assert "Test App" in privacy
        assert unresolved_tokens(privacy) == []
        assert (next_project / "src/app/terms/page.tsx").is_file()

    @pytest.mark.asyncio
    async def test_javascript_uses_mjs(self, tool_context, next_project: Path):
        result = await generate_nextjs_custom_code(tool_context, _config(typescript=False), next_project)
        assert "next.config.mjs" in result.text
        assert "reactCompiler: false" in (next_project / "next.config.mjs").read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# generate_base_components
# ---------------------------------------------------------------------------


class TestGenerateBaseComponents:
    @pytest.mark.asyncio
    async def test_without_ui_library_writes_button(self, tool_context, next_project: Path):
        result = await generate_base_components(
            tool_context, _config(uiLibrary="none", auth="none"), next_project
        )
        assert result.succeeded
        assert "Created reusable Button component with Tailwind CSS" in result.text
        assert (next_project / "src/components/ui/button.tsx").is_file()
        assert not (next_project / "src/components/auth/user-menu.tsx").exists()

    @pytest.mark.asyncio
    async def test_shadcn_and_auth(self, tool_context, next_project: Path):
        result = await generate_base_components(tool_context, _config(), next_project)
        assert "Using shadcn/ui Button" in result.text
        assert "Created authentication-related components (user menu)" in result.text
        assert not (next_project / "src/components/ui/button.tsx").exists()
        assert (next_project / "src/components/auth/user-menu.tsx").is_file()
        header = (next_project / "src/components/layout/header.tsx").read_text(encoding="utf-8")
        assert "UserMenu" in header

    @pytest.mark.asyncio
    async def test_home_page_content(self, tool_context, next_project: Path):
        await generate_base_components(tool_context, _config(), next_project)
        page = (next_project / "src/app/page.tsx").read_text(encoding="utf-8")
        assert "Shop &lt;front&gt; &#123;demo&#125;" in page
        assert '"Prisma"' in page
        assert unresolved_tokens(page) == []
        health = (next_project / "src/app/api/health/route.ts").read_text(encoding="utf-8")
        assert "name: 'test-app'" in health

    @pytest.mark.asyncio
    async def test_rerun_is_identical(self, tool_context, next_project: Path, tree_snapshot):
        config = _config()
        await generate_base_components(tool_context, config, next_project)
        first = tree_snapshot(next_project)
        await generate_base_components(tool_context, config, next_project)
        assert tree_snapshot(next_project) == first

    def test_stack_items(self):
        items = stack_items(_config(database="mongodb", orm="mongoose", stateManagement="redux"))
        assert items[:3] == ["Next.js", "TypeScript", "Tailwind CSS"]
        assert "MongoDB" in items
        assert "Mongoose" in items
        assert "Redux Toolkit" in items


# ---------------------------------------------------------------------------
# generate_readme
# ---------------------------------------------------------------------------


class TestGenerateReadme:
    @pytest.mark.asyncio
    async def test_default_stack(self, tool_context, next_project: Path):
        result = await generate_readme(tool_context, _config(), next_project)
        assert result.succeeded
        assert "Generated comprehensive README.md" in result.text
        readme = (next_project / "README.md").read_text(encoding="utf-8")
        assert readme.startswith("# Test App\n")
        assert "pnpm dev" in readme
        assert "## Database Setup (Prisma)" in readme
        assert "## Authentication" in readme
        assert "/auth/sign-in" in readme
        assert "https://ui.shadcn.com/docs" in readme
        assert "docker-compose up -d" in readme

    @pytest.mark.asyncio
    async def test_minimal_stack(self, tool_context, next_project: Path):
        config = _config(database="none", orm="none", auth="none", uiLibrary="none", packageManager="npm")
        await generate_readme(tool_context, config, next_project)
        readme = (next_project / "README.md").read_text(encoding="utf-8")
        assert "npm run dev" in readme
        assert "## Database Setup" not in readme
        assert "## Authentication" not in readme
        assert "prisma" not in readme.lower()

    @pytest.mark.asyncio
    async def test_sqlite_connection_string(self, tool_context, next_project: Path):
        await generate_readme(tool_context, _config(database="sqlite"), next_project)
        readme = (next_project / "README.md").read_text(encoding="utf-8")
        assert 'DATABASE_URL="file:./dev.db"' in readme
        assert "docker:dev:up" not in readme
