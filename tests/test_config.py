"""Tests for the Config system."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pocketprefs.config import Config, reset_config


@pytest.fixture(autouse=True)
def _clean_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(config_dir=tmp_path)


class TestConfig:
    def test_default_values(self, config: Config) -> None:
        assert config.max_concurrency == 4
        assert config.log_to_file is True
        assert config.backup_path == Path.home() / "Documents" / "PocketPrefsBackups"

    def test_set_and_get(self, config: Config) -> None:
        with config.batch_update():
            config.set("backup_path", "/some/path")
        assert config.backup_path == Path("/some/path")

    def test_batch_update_writes_once_at_end(self, config: Config, tmp_path: Path) -> None:
        with config.batch_update():
            config.set("max_concurrency", 8)
            config.backup_path = Path("/new/path")
            assert not (tmp_path / "config.json").exists()

        data = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
        assert data["max_concurrency"] == 8
        assert data["backup_path"] == "/new/path"

    def test_persists_across_instances(self, config: Config, tmp_path: Path) -> None:
        config.max_concurrency = 2
        assert Config(config_dir=tmp_path).max_concurrency == 2

    @pytest.mark.parametrize(("raw", "expected"), [(0, 1), (-3, 1), ("lots", 4), (6, 6)])
    def test_max_concurrency_is_sanitized(self, config: Config, raw, expected: int) -> None:
        config.set("max_concurrency", raw)
        assert config.max_concurrency == expected

    def test_clearing_backup_path_restores_default(self, config: Config) -> None:
        config.backup_path = Path("/custom")
        config.backup_path = None
        assert config.backup_path == Path.home() / "Documents" / "PocketPrefsBackups"

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "config.json").write_text("{broken", encoding="utf-8")
        assert Config(config_dir=tmp_path).max_concurrency == 4

    def test_dotted_keys(self, config: Config) -> None:
        config.set("ui.window.width", 800)
        assert config.get("ui.window.width") == 800
        assert config.get("ui.missing", "fallback") == "fallback"

    def test_custom_apps_path(self, config: Config, tmp_path: Path) -> None:
        assert config.custom_apps_path == tmp_path / "custom_apps.json"
