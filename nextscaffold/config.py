"""Runtime settings for nextscaffold.

Typed, validated settings for the tool process itself (not for the generated
project, which is described by :mod:`nextscaffold.models`).  Settings come
from defaults, a saved JSON file or ``NEXTSCAFFOLD_*`` environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Process-wide settings, built once by the CLI and passed down."""

    template_dir: Optional[Path] = Field(
        default=None, description="Override for the bundled template directory"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")
    log_file: Optional[Path] = Field(
        default=Path("nextscaffold.log"),
        description="Debug log destination; ``None`` logs to stderr only",
    )
    command_timeout: Optional[int] = Field(
        default=None,
        ge=10,
        description="Seconds before an external command is killed; unset waits indefinitely",
    )

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the settings to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Settings":
        """Load previously-saved settings from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            NEXTSCAFFOLD_TEMPLATE_DIR, NEXTSCAFFOLD_LOG_LEVEL,
            NEXTSCAFFOLD_LOG_FORMAT, NEXTSCAFFOLD_LOG_FILE,
            NEXTSCAFFOLD_COMMAND_TIMEOUT.

        An empty ``NEXTSCAFFOLD_LOG_FILE`` disables the log file.
        """
        kwargs: dict[str, object] = {}
        if os.environ.get("NEXTSCAFFOLD_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["NEXTSCAFFOLD_TEMPLATE_DIR"])
        if os.environ.get("NEXTSCAFFOLD_LOG_LEVEL"):
            kwargs["log_level"] = os.environ["NEXTSCAFFOLD_LOG_LEVEL"].upper()
        if os.environ.get("NEXTSCAFFOLD_LOG_FORMAT"):
            kwargs["log_format"] = os.environ["NEXTSCAFFOLD_LOG_FORMAT"].lower()
        if "NEXTSCAFFOLD_LOG_FILE" in os.environ:
            log_file = os.environ["NEXTSCAFFOLD_LOG_FILE"]
            kwargs["log_file"] = Path(log_file) if log_file else None
        if os.environ.get("NEXTSCAFFOLD_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = int(os.environ["NEXTSCAFFOLD_COMMAND_TIMEOUT"])
        return cls(**kwargs)
