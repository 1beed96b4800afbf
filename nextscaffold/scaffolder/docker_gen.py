"""Docker file generation for the generated Next.js project.

Renders the ``Dockerfile``, ``.dockerignore`` and ``docker-compose.yml``
templates.  The compose file gets a database service, the matching
``depends_on`` entry, the app's ``DATABASE_URL`` and a named volume for every
server database; SQLite and ``none`` get none of these.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from ..adapters import compose_connection_url, database_name, package_manager
from ..models import ProjectConfiguration
from .templates import TemplateRenderer, write_file


_DATABASE_SERVICES: dict[str, dict[str, str]] = {
    "postgres": {
        "image": "postgres:17-alpine",
        "port": "5432:5432",
        "volume": "postgres_data",
        "data_dir": "/var/lib/postgresql/data",
        "environment": (
            "      - POSTGRES_USER=postgres\n"
            "      - POSTGRES_PASSWORD=postgres\n"
            "      - POSTGRES_DB={database}"
        ),
    },
    "mysql": {
        "image": "mysql:9",
        "port": "3306:3306",
        "volume": "mysql_data",
        "data_dir": "/var/lib/mysql",
        "environment": (
            "      - MYSQL_ROOT_PASSWORD=root\n"
            "      - MYSQL_USER=mysql\n"
            "      - MYSQL_PASSWORD=mysql\n"
            "      - MYSQL_DATABASE={database}"
        ),
    },
    "mongodb": {
        "image": "mongo:6.0",
        "port": "27017:27017",
        "volume": "mongodb_data",
        "data_dir": "/data/db",
        "environment": "      - MONGO_INITDB_DATABASE={database}",
    },
}


def database_image(database: str) -> str | None:
    """Docker image for *database*, ``None`` when it runs in-process or not at all."""
    service = _DATABASE_SERVICES.get(database)
    return service["image"] if service else None


class DockerGenerator:
    """Generates the Docker build and compose files."""

    # Template id -> output file name
    _DOCKER_FILES: dict[str, str] = {
        "docker/Dockerfile.template": "Dockerfile",
        "docker/dockerignore.template": ".dockerignore",
    }
    _COMPOSE_TEMPLATE = "docker/docker-compose.yml.template"

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate_all(self, project_path: Path, config: ProjectConfiguration) -> list[Path]:
        """Write all Docker files into *project_path* and return their paths."""
        pm = package_manager(config.arch.package_manager)
        mapping = {
            "__PM_SETUP__": pm.docker_setup,
            "__LOCKFILE__": pm.lockfile,
            "__FROZEN_INSTALL__": pm.frozen_install,
            "__BUILD_COMMAND__": pm.script("build"),
        }
        written: list[Path] = []
        for template_id, output_name in self._DOCKER_FILES.items():
            written.append(
                await self.renderer.render_to_file(template_id, project_path / output_name, mapping)
            )
        written.append(await self.generate_compose(project_path, config))
        return written

    async def generate_compose(self, project_path: Path, config: ProjectConfiguration) -> Path:
        """Write ``docker-compose.yml`` with the database sections for *config*."""
        content = self.renderer.render(self._COMPOSE_TEMPLATE, compose_sections(config))
        content = re.sub(r"\n{3,}", "\n\n", content)
        out = project_path / "docker-compose.yml"
        await asyncio.to_thread(write_file, out, content.rstrip("\n") + "\n")
        return out


# ---------------------------------------------------------------------------
# Compose sections
# ---------------------------------------------------------------------------


def compose_sections(config: ProjectConfiguration) -> dict[str, str]:
    """Token mapping for the compose template."""
    database = config.arch.database
    name = config.name or "app"
    sections = {
        "__PROJECT_NAME__": name,
        "__APP_ENVIRONMENT__": "",
        "__DATABASE_DEPENDS_ON__": "",
        "__DATABASE_SERVICE__": "",
        "__VOLUMES_SECTION__": "",
    }
    if database != "none":
        sections["__APP_ENVIRONMENT__"] = (
            f'      - DATABASE_URL={compose_connection_url(database, name)}'
        )

    service = _DATABASE_SERVICES.get(database)
    if service is None:
        return sections

    db_name = database_name(name)
    sections["__DATABASE_DEPENDS_ON__"] = "    depends_on:\n      - db"
    sections["__DATABASE_SERVICE__"] = (
        "\n"
        "  db:\n"
        f"    image: {service['image']}\n"
        f"    container_name: {name}-db\n"
        "    ports:\n"
        f"      - \"{service['port']}\"\n"
        "    environment:\n"
        f"{service['environment'].format(database=db_name)}\n"
        "    volumes:\n"
        f"      - {service['volume']}:{service['data_dir']}\n"
        "    restart: unless-stopped"
    )
    sections["__VOLUMES_SECTION__"] = f"\nvolumes:\n  {service['volume']}:"
    return sections
