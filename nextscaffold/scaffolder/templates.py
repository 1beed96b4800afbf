"""Template loading and placeholder substitution.

Source templates live in ``nextscaffold/scaffolder/templates/`` and carry
``__UPPER_SNAKE__`` placeholder tokens that are replaced in a single,
non-recursive pass.  Prose documents with conditional sections (the README)
are Jinja2 templates rendered through the same :class:`TemplateRenderer`.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from ..errors import TemplateNotFoundError
from ..models import TemplateMapping


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

TOKEN_PATTERN = re.compile(r"__[A-Z][A-Z0-9_]*?__")


def substitute(text: str, mapping: Mapping[str, str]) -> str:
    """Replace every token in *mapping* with its value.

    Tokens are matched in one pass over *text*, so values that happen to
    contain other tokens are inserted verbatim and never expanded.
    """
    if not mapping:
        return text
    for token in mapping:
        if not TOKEN_PATTERN.fullmatch(token):
            raise ValueError(f"Malformed placeholder token: {token!r}")
    pattern = re.compile("|".join(re.escape(token) for token in sorted(mapping, key=len, reverse=True)))
    return pattern.sub(lambda match: str(mapping[match.group(0)]), text)


def unresolved_tokens(text: str) -> list[str]:
    """Placeholder tokens still present in *text*, in order of appearance."""
    seen: list[str] = []
    for token in TOKEN_PATTERN.findall(text):
        if token not in seen:
            seen.append(token)
    return seen


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Loads templates from a template root and renders them.

    Token templates (``*.template``) go through :func:`substitute`; Jinja2
    templates (``*.j2``) go through :meth:`render_document`.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    # -- Token templates ---------------------------------------------------

    def load(self, template_id: str) -> str:
        """Return the raw text of *template_id*.

        Raises:
            TemplateNotFoundError: If no such file exists under the template root.
        """
        path = self.template_dir / template_id
        if not path.is_file():
            raise TemplateNotFoundError(template_id, self.template_dir)
        return path.read_text(encoding="utf-8")

    def render(self, template_id: str, mapping: Mapping[str, str] | None = None) -> str:
        """Load *template_id* and substitute *mapping* into it."""
        return substitute(self.load(template_id), mapping or {})

    async def render_to_file(
        self,
        template_id: str,
        output_path: str | Path,
        mapping: Mapping[str, str] | None = None,
    ) -> Path:
        """Render a token template and write the result to *output_path*.

        Parent directories are created automatically.
        """
        content = self.render(template_id, mapping)
        out = Path(output_path)
        await asyncio.to_thread(write_file, out, content)
        return out

    async def render_mappings(
        self,
        mappings: Iterable[TemplateMapping],
        project_root: str | Path,
        mapping: Mapping[str, str] | None = None,
    ) -> list[Path]:
        """Render each :class:`TemplateMapping` under *project_root*, in order."""
        root = Path(project_root)
        written: list[Path] = []
        for item in mappings:
            written.append(
                await self.render_to_file(item.template_id, root / item.destination, mapping)
            )
        return written

    # -- Jinja2 documents --------------------------------------------------

    def render_document(self, template_id: str, context: dict[str, Any]) -> str:
        """Render a Jinja2 template with *context*."""
        try:
            template = self.env.get_template(template_id)
        except TemplateNotFound as exc:
            raise TemplateNotFoundError(template_id, self.template_dir) from exc
        return template.render(**context)

    async def render_document_to_file(
        self,
        template_id: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a Jinja2 template and write it to *output_path*."""
        content = self.render_document(template_id, context)
        out = Path(output_path)
        await asyncio.to_thread(write_file, out, content)
        return out

    # -- Utility -----------------------------------------------------------

    def list_templates(self) -> list[str]:
        """Sorted template ids, relative to the template root."""
        if not self.template_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in self.template_dir.rglob("*")
            if p.is_file()
        )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
