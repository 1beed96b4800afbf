"""Idempotent edits to files produced by earlier steps.

Each string transform checks a sentinel first and returns its input unchanged
when the edit is already present, so running a handler twice leaves the
tree byte-identical.  :class:`FileMutator` applies the transforms to files
under a project root, writing only when the content actually changed.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Optional

from ..errors import MissingFileError
from ..utils import dump_json
from .templates import write_file

ENV_FILES = (".env", ".env.example", ".env.local")

_IMPORT_RE = re.compile(r"^import\b[^;]*;[ \t]*$", re.MULTILINE)
_CSS_IMPORT_RE = re.compile(r"^@import\b[^;]*;[ \t]*$", re.MULTILINE)
_BODY_RE = re.compile(r"(<body\b[^>]*>)(.*?)(</body>)", re.DOTALL)


# ---------------------------------------------------------------------------
# Env files
# ---------------------------------------------------------------------------


def upsert_env_var(content: str, key: str, value: str, *, overwrite: bool = True) -> str:
    """Set ``KEY="value"`` in dotenv *content*.

    An existing line is replaced when *overwrite* is true and left alone
    otherwise; a missing key is appended.
    """
    line = f'{key}="{value}"'
    pattern = re.compile(rf"^{re.escape(key)}=.*$", re.MULTILINE)
    match = pattern.search(content)
    if match:
        if not overwrite or match.group(0) == line:
            return content
        return content[: match.start()] + line + content[match.end():]
    if content and not content.endswith("\n"):
        content += "\n"
    return f"{content}{line}\n"


# ---------------------------------------------------------------------------
# Source files
# ---------------------------------------------------------------------------


def has_import(content: str, specifier: str) -> bool:
    """True when *content* already imports from *specifier*."""
    quoted = rf"""['"]{re.escape(specifier)}['"]"""
    return re.search(rf"^import\b[^;]*?{quoted}", content, re.MULTILINE) is not None


def insert_import(content: str, statement: str, specifier: str) -> str:
    """Insert *statement* after the last import unless *specifier* is imported already."""
    if has_import(content, specifier):
        return content
    statement = statement.rstrip()
    matches = list(_IMPORT_RE.finditer(content))
    if not matches:
        return f"{statement}\n{content}"
    end = matches[-1].end()
    return content[:end] + "\n" + statement + content[end:]


def has_body_element(content: str) -> bool:
    """Whether *content* has a ``<body>...</body>`` element to wrap."""
    return _BODY_RE.search(content) is not None


def wrap_body_children(content: str, opening: str, closing: str) -> str:
    """Wrap everything inside ``<body>...</body>`` with *opening*/*closing*.

    The opening tag is the sentinel; when it is already present or the file
    has no body element the content is returned unchanged.
    """
    if opening in content:
        return content
    match = _BODY_RE.search(content)
    if match is None:
        return content
    body_open, children, body_close = match.groups()
    indent = _line_indent(content, match.start(3))
    inner = "\n".join(line for line in children.splitlines() if line.strip())
    wrapped = (
        f"{body_open}\n"
        f"{indent}  {opening}\n"
        f"{_indent_block(inner, '  ')}\n"
        f"{indent}  {closing}\n"
        f"{indent}{body_close}"
    )
    return content[: match.start()] + wrapped + content[match.end():]


def _line_indent(content: str, position: int) -> str:
    line_start = content.rfind("\n", 0, position) + 1
    line = content[line_start:position]
    return line[: len(line) - len(line.lstrip())]


def _indent_block(block: str, prefix: str) -> str:
    return "\n".join(prefix + line if line.strip() else line for line in block.splitlines())


# ---------------------------------------------------------------------------
# Stylesheets
# ---------------------------------------------------------------------------


def insert_css_import(content: str, statement: str) -> str:
    """Add an ``@import`` after the existing ones; the statement is its own sentinel."""
    statement = statement.strip()
    if statement in content:
        return content
    matches = list(_CSS_IMPORT_RE.finditer(content))
    if not matches:
        return f"{statement}\n{content}"
    end = matches[-1].end()
    return content[:end] + "\n" + statement + content[end:]


def append_css_block(content: str, sentinel: str, block: str) -> str:
    """Append *block* unless *sentinel* already occurs in *content*."""
    if sentinel in content:
        return content
    block = block.strip("\n")
    if not content.strip():
        return block + "\n"
    return content.rstrip("\n") + "\n\n" + block + "\n"


# ---------------------------------------------------------------------------
# package.json
# ---------------------------------------------------------------------------


def merge_package_json(
    manifest: Mapping[str, Any],
    *,
    scripts: Optional[Mapping[str, str]] = None,
    dependencies: Optional[Mapping[str, str]] = None,
    dev_dependencies: Optional[Mapping[str, str]] = None,
    description: Optional[str] = None,
) -> dict[str, Any]:
    """Return a copy of *manifest* with the maps merged (last write wins per key)."""
    merged: dict[str, Any] = dict(manifest)
    for key, additions in (
        ("scripts", scripts),
        ("dependencies", dependencies),
        ("devDependencies", dev_dependencies),
    ):
        if additions:
            current = dict(merged.get(key) or {})
            current.update(additions)
            merged[key] = current
    if description is not None:
        merged["description"] = description
    return merged


# ---------------------------------------------------------------------------
# FileMutator
# ---------------------------------------------------------------------------


class FileMutator:
    """Applies string transforms to files under one project root."""

    def __init__(self, project_root: str | Path) -> None:
        self.project_root = Path(project_root)

    async def apply(
        self,
        rel_path: str,
        transform: Callable[[str], str],
        *,
        missing_ok: bool = False,
        hint: str = "",
    ) -> bool:
        """Read *rel_path*, transform it and write it back if it changed.

        Args:
            rel_path: File path relative to the project root.
            transform: Pure ``str -> str`` edit.
            missing_ok: Treat a missing file as empty instead of failing.
            hint: Extra guidance appended to the missing-file message.

        Returns:
            ``True`` when the file was written.

        Raises:
            MissingFileError: If the file is absent and *missing_ok* is false.
        """
        path = self.project_root / rel_path
        if path.is_file():
            original = await asyncio.to_thread(path.read_text, encoding="utf-8")
        elif missing_ok:
            original = ""
        else:
            raise MissingFileError(path, hint)

        updated = transform(original)
        if updated == original and path.is_file():
            return False
        await asyncio.to_thread(write_file, path, updated)
        return True

    async def sync_env(
        self,
        key: str,
        value: str,
        *,
        example_value: Optional[str] = None,
        overwrite: bool = True,
    ) -> list[str]:
        """Upsert *key* into every env file and return the files written.

        ``.env.example`` receives *example_value* when given, so secrets stay
        out of the committed example file.
        """
        changed: list[str] = []
        for name in ENV_FILES:
            file_value = example_value if name == ".env.example" and example_value is not None else value
            wrote = await self.apply(
                name,
                lambda text, v=file_value: upsert_env_var(text, key, v, overwrite=overwrite),
                missing_ok=True,
            )
            if wrote:
                changed.append(name)
        return changed

    async def read_env_value(self, key: str, filename: str = ".env") -> Optional[str]:
        """Return the unquoted value of *key* in *filename*, or ``None``."""
        path = self.project_root / filename
        if not path.is_file():
            return None
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        match = re.search(rf"^{re.escape(key)}=(.*)$", content, re.MULTILINE)
        if match is None:
            return None
        return match.group(1).strip().strip('"').strip("'")

    async def update_json(
        self,
        rel_path: str,
        transform: Callable[[dict[str, Any]], dict[str, Any]],
        *,
        hint: str = "",
    ) -> bool:
        """Parse a JSON object file, transform it and re-serialise with 2-space indent.

        Raises:
            MissingFileError: If the file does not exist.
            ValueError: If the file is not a JSON object.
        """

        def _edit(text: str) -> str:
            data = json.loads(text)
            if not isinstance(data, dict):
                raise ValueError(f"{rel_path} does not contain a JSON object")
            updated = transform(data)
            if updated == data:
                return text
            return dump_json(updated)

        return await self.apply(rel_path, _edit, hint=hint)
