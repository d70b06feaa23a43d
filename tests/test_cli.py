"""Tests for the command-line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pocketprefs import cli
from pocketprefs.cli import build_parser, create_context
from pocketprefs.config import Config
from pocketprefs.context import AppContext
from pocketprefs.models.app_config import AppConfigEntry


@pytest.fixture
def ctx(tmp_path: Path) -> AppContext:
    config = Config(config_dir=tmp_path / "data")
    with config.batch_update():
        config.set("log_to_file", False)
        config.backup_path = tmp_path / "snapshots"
        config.max_concurrency = 2
    return create_context(config)


def invoke(ctx: AppContext, *argv: str) -> int:
    args = build_parser().parse_args(list(argv))
    return args.func(ctx, args)


class TestCli:
    def test_context_wiring(self, ctx: AppContext, tmp_path: Path) -> None:
        assert ctx.catalog.snapshot_root == tmp_path / "snapshots"
        assert ctx.registry.custom_apps == []

    def test_list_empty(self, ctx: AppContext, capsys: pytest.CaptureFixture[str]) -> None:
        assert invoke(ctx, "list") == 0
        assert "No snapshots" in capsys.readouterr().out

    def test_backup_then_restore_custom_app(
        self, ctx: AppContext, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        live = tmp_path / "tool.cfg"
        live.write_text("v1")
        ctx.install_checker = _AlwaysInstalled()
        ctx.registry.add(
            AppConfigEntry(name="Tool", bundle_id="com.example.tool", config_paths=[str(live)])
        )

        assert invoke(ctx, "backup", "--app", "com.example.tool") == 0
        (snapshot,) = ctx.catalog.list_snapshots()
        assert [a.bundle_id for a in snapshot.apps] == ["com.example.tool"]
        assert "Backed up 1/1" in capsys.readouterr().out

        live.write_text("v2")
        assert invoke(ctx, "restore", snapshot.name, "--app", "com.example.tool") == 0
        assert live.read_text() == "v1"

    def test_restore_unknown_snapshot(self, ctx: AppContext) -> None:
        assert invoke(ctx, "restore", "Backup_2000-01-01_00-00-00") == 1

    def test_export_and_dry_run_import(
        self, ctx: AppContext, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        ctx.registry.add(AppConfigEntry(name="Tool", bundle_id="com.example.tool", config_paths=["~/.tool"]))
        export = tmp_path / "export.json"

        assert invoke(ctx, "export", str(export)) == 0
        assert json.loads(export.read_text(encoding="utf-8"))["version"] == 1

        assert invoke(ctx, "import", str(export), "--dry-run") == 0
        assert "0 added, 0 updated, 1 skipped" in capsys.readouterr().out

    def test_invalid_export_id(self, ctx: AppContext, tmp_path: Path) -> None:
        assert invoke(ctx, "export", str(tmp_path / "x.json"), "--id", "not-a-uuid") == 1


class _AlwaysInstalled:
    def is_installed(self, bundle_id: str) -> bool:
        return True


class TestMain:
    def test_verbose_flag_reaches_logger(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = Config(config_dir=tmp_path / "data")
        with config.batch_update():
            config.set("log_to_file", False)
            config.backup_path = tmp_path / "snapshots"
        calls: list[tuple] = []
        monkeypatch.setattr(cli, "get_config", lambda: config)
        monkeypatch.setattr(cli, "setup_logger", lambda *args, **kwargs: calls.append((args, kwargs)))

        assert cli.main(["--verbose", "list"]) == 0
        assert cli.main(["list"]) == 0

        assert [kwargs["verbose"] for _, kwargs in calls] == [True, False]
        assert "No snapshots" in capsys.readouterr().out

    def test_transfer_error_exit_code(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = Config(config_dir=tmp_path / "data")
        config.set("log_to_file", False)
        monkeypatch.setattr(cli, "get_config", lambda: config)

        assert cli.main(["export", str(tmp_path / "out.json")]) == 1
        assert "No custom apps to export" in capsys.readouterr().out
