"""Tests for runtime settings (nextscaffold.config) and the shared helpers.

Covers:
- Default values
- Round-tripping through a saved JSON file
- Building settings from NEXTSCAFFOLD_* environment variables
- JSON helpers used for package.json
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from nextscaffold.config import Settings
from nextscaffold.utils import configure_logging, dump_json, get_logger, load_json

pytestmark = pytest.mark.unit

_ENV_KEYS = (
    "NEXTSCAFFOLD_TEMPLATE_DIR",
    "NEXTSCAFFOLD_LOG_LEVEL",
    "NEXTSCAFFOLD_LOG_FORMAT",
    "NEXTSCAFFOLD_LOG_FILE",
    "NEXTSCAFFOLD_COMMAND_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.template_dir is None
        assert settings.log_level == "INFO"
        assert settings.log_format == "console"
        assert settings.log_file == Path("nextscaffold.log")
        assert settings.command_timeout is None

    def test_save_and_load(self, tmp_path: Path):
        settings = Settings(log_level="DEBUG", command_timeout=600, template_dir=tmp_path / "tpl")
        saved = settings.save(tmp_path / "conf" / "settings.json")
        assert saved.exists()
        assert Settings.load(saved) == settings

    def test_saved_file_is_json(self, tmp_path: Path):
        saved = Settings().save(tmp_path / "settings.json")
        data = json.loads(saved.read_text(encoding="utf-8"))
        assert data["log_format"] == "console"

    def test_timeout_lower_bound(self):
        with pytest.raises(ValidationError):
            Settings(command_timeout=1)

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")


class TestFromEnv:
    def test_no_variables_gives_defaults(self, clean_env):
        assert Settings.from_env() == Settings()

    def test_reads_variables(self, clean_env, tmp_path: Path):
        clean_env.setenv("NEXTSCAFFOLD_TEMPLATE_DIR", str(tmp_path))
        clean_env.setenv("NEXTSCAFFOLD_LOG_LEVEL", "debug")
        clean_env.setenv("NEXTSCAFFOLD_LOG_FORMAT", "JSON")
        clean_env.setenv("NEXTSCAFFOLD_LOG_FILE", str(tmp_path / "run.log"))
        clean_env.setenv("NEXTSCAFFOLD_COMMAND_TIMEOUT", "900")

        settings = Settings.from_env()
        assert settings.template_dir == tmp_path
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"
        assert settings.log_file == tmp_path / "run.log"
        assert settings.command_timeout == 900

    def test_empty_log_file_disables_file_logging(self, clean_env):
        clean_env.setenv("NEXTSCAFFOLD_LOG_FILE", "")
        assert Settings.from_env().log_file is None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestJsonHelpers:
    def test_dump_json_format(self):
        assert dump_json({"a": 1}) == '{\n  "a": 1\n}\n'

    def test_load_json(self, tmp_path: Path):
        path = tmp_path / "package.json"
        path.write_text('{"name": "x"}', encoding="utf-8")
        assert load_json(path) == {"name": "x"}

    def test_load_json_rejects_non_objects(self, tmp_path: Path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            load_json(path)


class TestLogging:
    def test_configure_logging_writes_log_file(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "nextscaffold.log"
        configure_logging(Settings(log_file=log_file, log_format="json"))
        get_logger("tests").info("settings.test", answer=42)
        assert log_file.exists()
