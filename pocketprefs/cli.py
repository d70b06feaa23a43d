"""Command-line interface: wires services and runs a command.

Usage:
    pocketprefs [-v] list
    pocketprefs [-v] backup [--app BUNDLE_ID ...] [--incremental SNAPSHOT]
    pocketprefs [-v] restore SNAPSHOT [--app BUNDLE_ID ...]
    pocketprefs [-v] export FILE [--id UUID ...]
    pocketprefs [-v] import FILE [--dry-run]
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
from pathlib import Path
from uuid import UUID

from pocketprefs.config import Config, get_config
from pocketprefs.context import AppContext
from pocketprefs.core.backup import BackupEngine
from pocketprefs.core.catalog import SnapshotCatalog
from pocketprefs.core.install_checker import FilesystemInstallChecker
from pocketprefs.core.progress import ProgressUpdate
from pocketprefs.core.restore import RestoreEngine
from pocketprefs.core.transfer import TransferManager
from pocketprefs.data.presets import build_app_list
from pocketprefs.data.registry import CustomAppRegistry
from pocketprefs.errors import TransferError
from pocketprefs.logger import setup_logger
from pocketprefs.models.results import OperationResult


def create_context(config: Config | None = None, verbose: bool = False) -> AppContext:
    """Wire all services and return an AppContext."""
    config = config or get_config()

    # Logger
    setup_logger(config.data_dir / "logs" if config.log_to_file else None, verbose=verbose)

    install_checker = FilesystemInstallChecker()
    registry = CustomAppRegistry(config.custom_apps_path)
    registry.load()

    catalog = SnapshotCatalog(config.backup_path, install_checker)

    return AppContext(
        config=config,
        install_checker=install_checker,
        registry=registry,
        catalog=catalog,
        backup_engine=BackupEngine(catalog, max_concurrency=config.max_concurrency),
        restore_engine=RestoreEngine(max_concurrency=config.max_concurrency),
        transfer=TransferManager(registry),
    )


def _print_progress(update: ProgressUpdate) -> None:
    print(f"[{update.fraction:4.0%}] {update.message or ''}")


def _report(result: OperationResult, verb: str) -> int:
    print(f"{verb} {result.success_count}/{result.total_processed} app(s)")
    for name, error in result.failed_entries:
        print(f"  ✗ {name}: {error}")
    return 0 if result.is_success else 1


# ── Commands ──


def cmd_list(ctx: AppContext, args: argparse.Namespace) -> int:
    snapshots = ctx.catalog.list_snapshots()
    if not snapshots:
        print(f"No snapshots in {ctx.catalog.snapshot_root}")
        return 0
    for snapshot in snapshots:
        print(f"{snapshot.name}  ({snapshot.created_at:%Y-%m-%d %H:%M})")
        for app in snapshot.apps:
            marker = " " if app.is_currently_installed else "!"
            print(f"  {marker} {app.name} [{app.bundle_id}]")
    return 0


def cmd_backup(ctx: AppContext, args: argparse.Namespace) -> int:
    wanted = set(args.app or ())
    apps = [
        replace(app, is_selected=not wanted or app.bundle_id in wanted)
        for app in build_app_list(ctx.registry, ctx.install_checker)
    ]

    base = None
    if args.incremental:
        base = ctx.catalog.find(args.incremental)
        if base is None:
            print(f"Snapshot not found: {args.incremental}")
            return 1

    result = asyncio.run(ctx.backup_engine.perform_backup(apps, _print_progress, base))
    if result.total_processed == 0:
        print("Nothing to back up")
        return 0
    return _report(result, "Backed up")


def cmd_restore(ctx: AppContext, args: argparse.Namespace) -> int:
    snapshot = ctx.catalog.find(args.snapshot)
    if snapshot is None:
        print(f"Snapshot not found: {args.snapshot}")
        return 1

    wanted = set(args.app or ())
    for app in snapshot.apps:
        app.is_selected = not wanted or app.bundle_id in wanted

    result = asyncio.run(ctx.restore_engine.perform_restore(snapshot, _print_progress))
    if result.total_processed == 0:
        print("Nothing to restore")
        return 0
    return _report(result, "Restored")


def cmd_export(ctx: AppContext, args: argparse.Namespace) -> int:
    try:
        ids = [UUID(raw) for raw in args.id or ()]
    except ValueError:
        print(f"Invalid entry id in: {args.id}")
        return 1
    count = ctx.transfer.export_custom_apps(Path(args.file), ids)
    print(f"Exported {count} custom app(s) to {args.file}")
    return 0


def cmd_import(ctx: AppContext, args: argparse.Namespace) -> int:
    path = Path(args.file)
    if args.dry_run:
        result = ctx.transfer.preview_import(path)
        prefix = "Would import"
    else:
        result = ctx.transfer.import_custom_apps(path)
        prefix = "Imported"
    print(f"{prefix}: {result.added} added, {result.updated} updated, {result.skipped} skipped")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pocketprefs", description="Back up and restore app settings.")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to the console")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="list snapshots").set_defaults(func=cmd_list)

    p = sub.add_parser("backup", help="create a new snapshot")
    p.add_argument("--app", action="append", metavar="BUNDLE_ID", help="limit to these apps")
    p.add_argument("--incremental", metavar="SNAPSHOT", help="carry other apps over from SNAPSHOT")
    p.set_defaults(func=cmd_backup)

    p = sub.add_parser("restore", help="restore a snapshot")
    p.add_argument("snapshot")
    p.add_argument("--app", action="append", metavar="BUNDLE_ID", help="limit to these apps")
    p.set_defaults(func=cmd_restore)

    p = sub.add_parser("export", help="export custom apps")
    p.add_argument("file")
    p.add_argument("--id", action="append", metavar="UUID", help="limit to these entries")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="import custom apps")
    p.add_argument("file")
    p.add_argument("--dry-run", action="store_true", help="only show what would change")
    p.set_defaults(func=cmd_import)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)
    ctx = create_context(verbose=args.verbose)
    try:
        return args.func(ctx, args)
    except TransferError as e:
        print(f"Error: {e}")
        return 1

