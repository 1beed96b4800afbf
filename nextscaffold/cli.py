"""Command-line entry point.

Examples::

    nextscaffold tools
    nextscaffold call setup_database --config project.json --path ./my-app
    nextscaffold pipeline --config project.json --path ./workspace
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

from .config import Settings
from .errors import UnknownOperationError
from .models import ToolResult
from .orchestrator import PIPELINE_ORDER, ToolOrchestrator
from .utils import (
    configure_logging,
    console,
    load_json,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nextscaffold",
        description="nextscaffold -- configuration-driven Next.js project generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  nextscaffold tools\n"
            "  nextscaffold call scaffold_project --config project.json --path ./workspace\n"
            "  nextscaffold call validate_project --path ./workspace/my-app\n"
            "  nextscaffold pipeline --config project.json --path ./workspace\n"
        ),
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="Settings JSON file (default: NEXTSCAFFOLD_* environment variables)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("tools", help="List the available tools")

    call = sub.add_parser("call", help="Run a single tool")
    call.add_argument("tool", help="Tool name (see `nextscaffold tools`)")
    call.add_argument("--config", "-c", default=None, help="Project configuration JSON file")
    call.add_argument(
        "--path",
        "-p",
        required=True,
        help="targetPath for scaffold_project, projectPath for every other tool",
    )
    call.add_argument("--package-manager", default=None, help="Override architecture.packageManager")

    pipeline = sub.add_parser("pipeline", help="Run every tool in dependency order")
    pipeline.add_argument("--config", "-c", default=None, help="Project configuration JSON file")
    pipeline.add_argument("--path", "-p", required=True, help="Directory the project is created in")
    return parser


def _print_result(name: str, result: ToolResult) -> None:
    console.rule(f"[bold]{name}[/bold]")
    if result.succeeded:
        print_success(result.text)
    else:
        print_error(result.text)


def _load_config(path: Optional[str]) -> Optional[dict[str, Any]]:
    if path is None:
        return None
    return load_json(path)


async def _run(args: argparse.Namespace, orchestrator: ToolOrchestrator) -> int:
    if args.command == "tools":
        print_summary_table(
            {spec.name: spec.description for spec in orchestrator.list_tools()}, title="Tools"
        )
        return 0

    config = _load_config(args.config)

    if args.command == "call":
        spec = orchestrator.get(args.tool)
        arguments: dict[str, Any] = {spec.path_key: args.path}
        if config is not None:
            arguments["config"] = config
        if args.package_manager:
            arguments["packageManager"] = args.package_manager
        result = await orchestrator.call(args.tool, arguments)
        _print_result(args.tool, result)
        return 0 if result.succeeded else 1

    results = await orchestrator.run_pipeline(config, args.path, PIPELINE_ORDER)
    for name, result in results:
        _print_result(name, result)
    print_summary_table(
        {name: "ok" if result.succeeded else "needs attention" for name, result in results},
        title="Pipeline",
    )
    return 0 if all(result.succeeded for _, result in results) else 1


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``nextscaffold`` and ``python -m nextscaffold``."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.load(Path(args.settings)) if args.settings else Settings.from_env()
    except (OSError, ValueError) as exc:
        print_error(f"Error: could not load settings: {exc}")
        sys.exit(2)
    configure_logging(settings)

    try:
        orchestrator = ToolOrchestrator(settings=settings)
        code = asyncio.run(_run(args, orchestrator))
    except UnknownOperationError as exc:
        print_error(f"Error: {exc}")
        sys.exit(2)
    except (OSError, ValueError) as exc:
        print_error(f"Error: could not read configuration: {exc}")
        sys.exit(2)

    if code:
        print_warning("Some steps did not complete; see the messages above.")
    sys.exit(code)


if __name__ == "__main__":
    main()
