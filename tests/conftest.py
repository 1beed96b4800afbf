"""Shared pytest fixtures for the nextscaffold test suite.

Provides reusable fixtures for:
- A fake command executor that records commands instead of spawning them
- A create-next-app shaped project tree in a temporary directory
- Configuration payload builders
- An orchestrator wired to the fake executor
- Mock subprocess helpers for the executor tests
"""

from __future__ import annotations

import json
import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from nextscaffold.executor import CommandExecutor
from nextscaffold.handlers import ToolContext
from nextscaffold.models import CommandResult
from nextscaffold.orchestrator import ToolOrchestrator
from nextscaffold.scaffolder.templates import TemplateRenderer

PROJECT_NAME = "test-app"


# ---------------------------------------------------------------------------
# Fake executor
# ---------------------------------------------------------------------------


class FakeExecutor(CommandExecutor):
    """Records every command and returns scripted results.

    ``fail_on`` holds substrings; a command containing one of them fails with
    exit code 1.  ``on_command`` callbacks run for matching commands so a test
    can emulate the side effects of tools like create-next-app.
    """

    def __init__(self) -> None:
        super().__init__(logger=MagicMock())
        self.commands: list[tuple[str, Path]] = []
        self.fail_on: set[str] = set()
        self.on_command: dict[str, Callable[[Path], None]] = {}

    async def execute(self, command: str, cwd: str | Path, label: str = "") -> CommandResult:
        cwd = Path(cwd)
        self.commands.append((command, cwd))
        for needle, callback in self.on_command.items():
            if needle in command:
                callback(cwd)
        if any(needle in command for needle in self.fail_on):
            return CommandResult(success=False, output="", exit_code=1, stderr=f"boom: {command}")
        return CommandResult(success=True, output=f"ran {command}", exit_code=0)

    @property
    def command_lines(self) -> list[str]:
        return [command for command, _ in self.commands]


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def renderer() -> TemplateRenderer:
    """The real renderer over the bundled templates."""
    return TemplateRenderer()


@pytest.fixture
def tool_context(fake_executor: FakeExecutor, renderer: TemplateRenderer) -> ToolContext:
    return ToolContext(executor=fake_executor, renderer=renderer, logger=MagicMock())


@pytest.fixture
def orchestrator(fake_executor: FakeExecutor) -> ToolOrchestrator:
    """Orchestrator with the fake executor and a fixed project name."""
    return ToolOrchestrator(
        executor=fake_executor,
        logger=MagicMock(),
        name_factory=lambda: PROJECT_NAME,
    )


# ---------------------------------------------------------------------------
# Configuration payloads
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config() -> Callable[..., dict[str, Any]]:
    """Factory for wire-format configuration payloads.

    Usage:
        make_config(database="sqlite", orm="prisma", skipInstall=True)
    """

    def factory(name: Optional[str] = PROJECT_NAME, **architecture: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {"architecture": architecture}
        if name is not None:
            payload["name"] = name
        return payload

    return factory


# ---------------------------------------------------------------------------
# Generated project tree
# ---------------------------------------------------------------------------

LAYOUT_TSX = textwrap.dedent(
    """\
    import type { Metadata } from "next";
    import { Geist, Geist_Mono } from "next/font/google";
    import "./globals.css";

    const geistSans = Geist({
      variable: "--font-geist-sans",
      subsets: ["latin"],
    });

    const geistMono = Geist_Mono({
      variable: "--font-geist-mono",
      subsets: ["latin"],
    });

    export const metadata: Metadata = {
      title: "Create Next App",
      description: "Generated by create next app",
    };

    export default function RootLayout({
      children,
    }: Readonly<{
      children: React.ReactNode;
    }>) {
      return (
        <html lang="en">
          <body
            className={`${geistSans.variable} ${geistMono.variable} antialiased`}
          >
            {children}
          </body>
        </html>
      );
    }
    """
)

GLOBALS_CSS = textwrap.dedent(
    """\
    @import "tailwindcss";

    :root {
      --background: #ffffff;
      --foreground: #171717;
    }

    body {
      background: var(--background);
      color: var(--foreground);
    }
    """
)

PACKAGE_JSON = {
    "name": PROJECT_NAME,
    "version": "0.1.0",
    "private": True,
    "scripts": {
        "dev": "next dev --turbopack",
        "build": "next build --turbopack",
        "start": "next start",
        "lint": "eslint",
    },
    "dependencies": {"next": "15.5.4", "react": "19.1.0", "react-dom": "19.1.0"},
    "devDependencies": {"typescript": "^5", "tailwindcss": "^4"},
}


def write_next_app(project_dir: Path) -> Path:
    """Create the subset of a create-next-app tree the handlers touch."""
    (project_dir / "src" / "app").mkdir(parents=True, exist_ok=True)
    (project_dir / "public").mkdir(exist_ok=True)
    (project_dir / "package.json").write_text(json.dumps(PACKAGE_JSON, indent=2) + "\n", encoding="utf-8")
    (project_dir / "tsconfig.json").write_text('{"compilerOptions": {"strict": true}}\n', encoding="utf-8")
    (project_dir / "next.config.ts").write_text("export default {};\n", encoding="utf-8")
    (project_dir / "src" / "app" / "layout.tsx").write_text(LAYOUT_TSX, encoding="utf-8")
    (project_dir / "src" / "app" / "globals.css").write_text(GLOBALS_CSS, encoding="utf-8")
    (project_dir / "src" / "app" / "page.tsx").write_text("export default function Home() { return null; }\n", encoding="utf-8")
    return project_dir


@pytest.fixture
def next_project(tmp_path: Path) -> Path:
    """A freshly scaffolded project at ``<tmp>/test-app``."""
    return write_next_app(tmp_path / PROJECT_NAME)


def snapshot_tree(root: Path) -> dict[str, bytes]:
    """Relative path -> bytes for every file under *root*."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


# ---------------------------------------------------------------------------
# Mock subprocess (generic)
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_subprocess():
    """Factory for mock asyncio subprocess instances.

    Usage:
        proc = mock_subprocess(stdout="output", returncode=0)
        with patch("asyncio.create_subprocess_shell", return_value=proc):
            ...
    """

    def factory(stdout: str = "", stderr: str = "", returncode: int = 0) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


@pytest.fixture
def tree_snapshot() -> Callable[[Path], dict[str, bytes]]:
    """The :func:`snapshot_tree` helper, for idempotency assertions."""
    return snapshot_tree


@pytest.fixture
def next_app_factory() -> Callable[[Path], Path]:
    """The :func:`write_next_app` helper, for tests that build the tree themselves."""
    return write_next_app
