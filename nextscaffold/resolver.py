"""Configuration resolution and compatibility checks.

``resolve_config`` turns a raw request payload into a fully defaulted,
read-only :class:`~nextscaffold.models.ProjectConfiguration`.
``validate_architecture`` checks the ORM x database support matrix.
Apart from the random name draw, everything here is pure.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from .models import Architecture, ProjectConfiguration

DEFAULT_DESCRIPTION = "A Next.js application scaffolded by nextscaffold"

# Which databases each ORM can drive.  ``none`` talks to the raw driver and
# therefore accepts any database.
ORM_DATABASES: dict[str, frozenset[str]] = {
    "prisma": frozenset({"postgres", "mysql", "mongodb", "sqlite"}),
    "drizzle": frozenset({"postgres", "mysql", "sqlite"}),
    "mongoose": frozenset({"mongodb"}),
}

_ADJECTIVES = (
    "brave", "calm", "clever", "eager", "fancy", "gentle", "happy", "jolly",
    "kind", "lively", "lucky", "mighty", "nimble", "proud", "quick", "quiet",
    "rapid", "shiny", "silent", "smart", "sunny", "swift", "tidy", "witty",
)
_COLORS = (
    "amber", "aqua", "azure", "beige", "black", "blue", "bronze", "coral",
    "crimson", "cyan", "gold", "gray", "green", "indigo", "ivory", "lime",
    "magenta", "olive", "orange", "pink", "plum", "purple", "red", "teal",
    "violet", "white", "yellow",
)


def random_project_name(rng: random.Random | None = None) -> str:
    """Return a lowercase ``adjective-color-app`` slug."""
    rng = rng or random.Random()
    return f"{rng.choice(_ADJECTIVES)}-{rng.choice(_COLORS)}-app"


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_config(
    raw: Mapping[str, Any] | ProjectConfiguration | None,
    *,
    name_factory: Callable[[], str] = random_project_name,
) -> ProjectConfiguration:
    """Apply defaults to a raw configuration payload.

    Args:
        raw: The request's ``config`` object (camelCase or snake_case keys),
            an already-built configuration, or ``None`` for all defaults.
        name_factory: Source of the project name when none is given.

    Returns:
        A resolved configuration with ``name`` and ``description`` set.

    Raises:
        pydantic.ValidationError: If an enum value or the name is invalid.
    """
    if raw is None:
        config = ProjectConfiguration()
    elif isinstance(raw, ProjectConfiguration):
        config = raw
    elif isinstance(raw, Mapping):
        config = ProjectConfiguration.model_validate(dict(raw))
    else:
        # Anything else is rejected by pydantic as a ValidationError.
        config = ProjectConfiguration.model_validate(raw)

    updates: dict[str, Any] = {}
    if not config.name:
        updates["name"] = name_factory()
    if not config.description:
        updates["description"] = DEFAULT_DESCRIPTION
    if not updates:
        return config
    # model_copy would skip validation of the generated name.
    return ProjectConfiguration.model_validate({**config.model_dump(), **updates})


def supported_databases(orm: str) -> frozenset[str]:
    """Databases *orm* can drive (every database for ``none``)."""
    if orm == "none":
        return frozenset({"none", "postgres", "mysql", "mongodb", "sqlite"})
    return ORM_DATABASES.get(orm, frozenset())


def validate_architecture(arch: Architecture) -> list[str]:
    """Return the compatibility problems in *arch* (empty when valid)."""
    problems: list[str] = []
    if arch.orm != "none" and arch.database not in supported_databases(arch.orm):
        allowed = ", ".join(sorted(supported_databases(arch.orm)))
        problems.append(
            f"ORM '{arch.orm}' does not support database '{arch.database}' "
            f"(supported: {allowed})"
        )
    return problems


def describe_validation_error(exc: ValidationError) -> str:
    """Flatten a pydantic error into one readable line per field."""
    lines = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "config"
        lines.append(f"{location}: {err.get('msg', 'invalid value')}")
    return "; ".join(lines)
