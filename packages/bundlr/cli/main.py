"""Command-line interface for bundlr.

Every command loads the project config, builds an executor and reports the
``OperationResult``. Exit code is 0 on success and 1 otherwise.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from pydantic import ValidationError
from rich.console import Console
from rich.progress import Progress
from rich.table import Table

from bundlr.core.build import BuildExecutor, OperationResult, create_executor
from bundlr.core.config.loader import load_project_config
from bundlr.core.config.models import ProjectConfig
from bundlr.core.diff.models import ChangeType, DiffReport
from bundlr.core.fingerprint import format_bytes
from bundlr.core.progress import ProgressUpdate
from bundlr.core.utils.logging import configure_logging

console = Console()
logger = logging.getLogger(__name__)


def _load(config_path: str) -> ProjectConfig | None:
    path = Path(config_path).resolve()
    if not path.exists():
        console.print(f"[red]ERROR: Config file not found: {path}[/red]")
        return None
    try:
        config = load_project_config(path)
    except (ValidationError, ValueError, OSError) as e:
        console.print(f"[red]ERROR: Could not load config: {e}[/red]")
        return None

    configure_logging(
        level=config.logging.level,
        format_string=config.logging.format,
        filename=config.logging.filename,
        structured=config.logging.structured,
    )
    return config


def _report(result: OperationResult) -> int:
    if result.cancelled:
        console.print(f"[yellow]{result.operation} cancelled[/yellow]")
        return 1
    if not result.success:
        console.print(f"[red]ERROR: {result.error}[/red]")
        return 1
    return 0


def _run_with_progress(executor: BuildExecutor, args: argparse.Namespace) -> OperationResult:
    with Progress(console=console, transient=True) as progress:
        tasks: dict[str, int] = {}

        def on_progress(update: ProgressUpdate) -> None:
            if update.phase not in tasks:
                tasks[update.phase] = progress.add_task(update.phase, total=update.total)
            progress.update(tasks[update.phase], completed=update.current, total=update.total)

        if args.cmd == "diff":
            return executor.diff_versions(args.old, args.new, progress=on_progress)
        if args.manifest:
            return executor.package_manifest(args.manifest, progress=on_progress)
        return executor.package_all(progress=on_progress)


def cmd_build(executor: BuildExecutor, args: argparse.Namespace) -> int:
    """Package manifests and publish a new version when anything changed."""
    result = _run_with_progress(executor, args)
    code = _report(result)
    if code:
        return code

    for message in result.details.get("validation_errors", []):
        console.print(f"[yellow]Skipped group {message}[/yellow]")
    if result.changed:
        size = format_bytes(result.details.get("new_files_size", 0))
        console.print(f"[green]✅ Published version {result.version}[/green]")
        console.print(f"   New files: {len(result.details.get('new_files', []))} ({size})")
        console.print(f"   Stale files removed: {len(result.details.get('deleted_files', []))}")
    else:
        console.print(f"[green]✅ No changes[/green] (version stays {result.version})")
    return 0


def cmd_diff(executor: BuildExecutor, args: argparse.Namespace) -> int:
    """Print a bundle-level diff between two recorded versions."""
    result = _run_with_progress(executor, args)
    code = _report(result)
    if code:
        return code

    report: DiffReport = result.details["report"]
    table = Table(title=f"v{report.old_version} → v{report.new_version}")
    table.add_column("Group")
    table.add_column("Bundle")
    table.add_column("Change")
    table.add_column("Size delta", justify="right")
    for group in report.groups:
        if not group.has_changes and not args.all:
            continue
        for bundle in group.bundles:
            if bundle.change == ChangeType.SAME and not args.all:
                continue
            table.add_row(group.name, bundle.name, bundle.change.value, str(bundle.changed_size))
    console.print(table)
    console.print(
        f"Updates: {report.update_count} files, {format_bytes(report.update_size)} "
        f"(total delta {report.changed_size:+d} bytes)"
    )
    return 0


def cmd_history(executor: BuildExecutor, args: argparse.Namespace) -> int:
    """List build records, or attach a comment to one version."""
    if args.comment is not None:
        if args.version is None:
            console.print("[red]ERROR: --comment requires --version[/red]")
            return 1
        return _report(executor.comment_version(args.version, args.comment))

    result = executor.list_history()
    table = Table(title=f"Current version: {result.version}")
    table.add_column("Version", justify="right")
    table.add_column("Timestamp", justify="right")
    table.add_column("Record")
    table.add_column("Comment")
    for record in result.details["records"]:
        table.add_row(
            str(record["version"]), str(record["timestamp"]), record["file_name"], record["comment"]
        )
    console.print(table)
    return 0


def cmd_purge_history(executor: BuildExecutor, args: argparse.Namespace) -> int:
    result = executor.purge_history(keep_latest=args.keep, versions=args.version)
    code = _report(result)
    if not code:
        console.print(f"Deleted {len(result.details['deleted'])} build records")
    return code


def cmd_gc(executor: BuildExecutor, args: argparse.Namespace) -> int:
    result = executor.collect_garbage()
    code = _report(result)
    if not code:
        freed = format_bytes(result.details["freed_bytes"])
        console.print(f"Removed {len(result.details['deleted'])} stale files ({freed})")
    return code


def cmd_check(executor: BuildExecutor, args: argparse.Namespace) -> int:
    result = executor.check_cross_manifest_assets()
    code = _report(result)
    if code:
        return code
    shared = result.details["shared"]
    if not shared:
        console.print("[green]✅ No asset is shared between manifests[/green]")
        return 0
    for path, names in shared.items():
        console.print(f"[yellow]{path}[/yellow]: {', '.join(names)}")
    return 1


def cmd_set_version(executor: BuildExecutor, args: argparse.Namespace) -> int:
    result = executor.set_version(args.number)
    code = _report(result)
    if not code:
        console.print(f"Current version is now {result.version}")
    return code


COMMANDS = {
    "build": cmd_build,
    "diff": cmd_diff,
    "history": cmd_history,
    "purge-history": cmd_purge_history,
    "gc": cmd_gc,
    "check": cmd_check,
    "set-version": cmd_set_version,
}


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="bundlr",
        description="bundlr - content-addressed asset bundle packaging",
    )
    p.add_argument(
        "--config",
        default="bundlr.yaml",
        help="Path to project config YAML/JSON (default: bundlr.yaml)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    build = sub.add_parser("build", help="Package manifests and publish a new version")
    build.add_argument("--manifest", help="Package a single manifest (default: all)")

    diff = sub.add_parser("diff", help="Diff two recorded versions")
    diff.add_argument("old", type=int, help="Older version number")
    diff.add_argument("new", type=int, help="Newer version number")
    diff.add_argument("--all", action="store_true", help="Include unchanged bundles")

    history = sub.add_parser("history", help="List build records")
    history.add_argument("--version", type=int, help="Version to comment on")
    history.add_argument("--comment", help="Comment text (empty string clears it)")

    purge = sub.add_parser("purge-history", help="Delete stale build records")
    selection = purge.add_mutually_exclusive_group(required=True)
    selection.add_argument("--keep", type=int, help="Keep only the N newest records")
    selection.add_argument(
        "--version", type=int, action="append", help="Delete records of this version"
    )

    sub.add_parser("gc", help="Delete build files not referenced by the current version")
    sub.add_parser("check", help="Report assets shared between manifests")

    set_version = sub.add_parser("set-version", help="Override the current version number")
    set_version.add_argument("number", type=int, help="New version number")

    return p


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args(argv)

    config = _load(args.config)
    if config is None:
        return 1
    try:
        executor = create_executor(config)
    except (ValueError, OSError) as e:
        console.print(f"[red]ERROR: Could not load dependency map: {e}[/red]")
        return 1
    return COMMANDS[args.cmd](executor, args)


if __name__ == "__main__":
    sys.exit(main())
