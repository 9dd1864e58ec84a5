#!/usr/bin/env python3
"""Audit the demo sound collection for pairing, naming and manifest drift.

Example usage
-------------

    xc-audit check --root . --json-output reports/audit.json

Checks that every recording under ``sounds/`` has its ``.xc.json`` sidecar,
that names follow ``XC{id} - {English name} - {Genus species}.{ext}``, that
sidecars carry licence/recordist/species fields, and that ``index.json`` lists
exactly the pairs present on disk. Exit code is 0 when clean, 1 when
violations were found, 2 when the repository root cannot be used.

    xc-audit reindex --dry-run

Prints a manifest regenerated from the complete pairs on disk. Drop
``--dry-run`` to overwrite ``index.json``.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

from rich.table import Table
from rich.text import Text

from .checker import AuditReport, format_summary, run_audit
from .config import Settings, get_settings
from .console_utils import OutputLogger
from .logging import configure_logging, get_logger
from .manifest import build_manifest, render_manifest, write_manifest
from .scanner import scan_assets

logger = get_logger(__name__)

_COMMANDS = ("check", "reindex")
_SEVERITY_STYLES = {"error": "bold red", "warning": "yellow"}


def _common_arguments() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--root",
        type=Path,
        help="Repository root holding sounds/ and index.json (default: XC_AUDIT_ROOT or .)",
    )
    parent.add_argument("--sounds-dir", help="Asset directory relative to the root (default: sounds)")
    parent.add_argument("--manifest", help="Manifest path relative to the root (default: index.json)")
    parent.add_argument("--log-level", help="Log level for diagnostic output (default: LOG_LEVEL or WARNING)")
    return parent


def build_parser() -> argparse.ArgumentParser:
    common = _common_arguments()
    parser = argparse.ArgumentParser(
        prog="xc-audit",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command")

    check = subparsers.add_parser("check", parents=[common], help="Audit pairing, naming, sidecars and manifest")
    check.add_argument(
        "--require-field",
        action="append",
        default=[],
        metavar="FIELD",
        help="Additional sidecar field that must be present and non-empty. Repeat for several fields.",
    )
    check.add_argument("--json-output", type=Path, help="Optional path to write the full report as JSON")
    check.add_argument("--log-file", type=Path, help="Mirror console output to this file")
    check.add_argument("--strict", action="store_true", help="Treat warnings as failures")
    check.add_argument("--no-rich", action="store_true", help="Print a plain-text summary instead of a table")

    reindex = subparsers.add_parser("reindex", parents=[common], help="Regenerate index.json from pairs on disk")
    reindex.add_argument("--dry-run", action="store_true", help="Print the manifest instead of writing it")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    args_list = list(sys.argv[1:] if argv is None else argv)
    if not args_list or (args_list[0] not in _COMMANDS and args_list[0] not in ("-h", "--help")):
        args_list.insert(0, "check")
    return build_parser().parse_args(args_list)


def resolve_settings(args: argparse.Namespace, base: Optional[Settings] = None) -> Settings:
    base = base or get_settings()
    overrides: Dict[str, object] = {}
    if args.root is not None:
        overrides["root"] = args.root
    if args.sounds_dir:
        overrides["sounds_dir"] = args.sounds_dir
    if args.manifest:
        overrides["manifest_name"] = args.manifest
    if args.log_level:
        overrides["log_level"] = args.log_level
    return base.model_copy(update=overrides)


def render_table(report: AuditReport) -> Table:
    table = Table(title="Repository consistency", show_lines=False)
    table.add_column("Severity", no_wrap=True)
    table.add_column("Kind", no_wrap=True)
    table.add_column("Subject", overflow="fold")
    table.add_column("Detail", overflow="fold")
    for violation in report.violations:
        severity = violation.severity.value
        kind = violation.kind.value if violation.field is None else f"{violation.kind.value}({violation.field})"
        table.add_row(
            f"[{_SEVERITY_STYLES[severity]}]{severity}[/]",
            kind,
            Text(violation.subject),
            Text(violation.detail),
        )
    return table


def _print_report(report: AuditReport, out: OutputLogger) -> None:
    if not out.enable_rich:
        out.print(format_summary(report))
        return

    out.rule("xc-audit")
    out.print(f"sounds dir: {report.sounds_dir}", markup=False, highlight=False)
    out.print(f"manifest  : {report.manifest_path}", markup=False, highlight=False)
    entries = "unreadable" if report.manifest_entries is None else f"{report.manifest_entries:,}"
    out.print(f"{report.pairs:,} pair(s), {report.sidecars_checked:,} sidecar(s), manifest entries: {entries}")
    if not report.violations:
        out.print("[bold green]OK[/]: no violations found")
        return
    out.print(render_table(report))
    counts = ", ".join(f"{kind}={count}" for kind, count in report.counts_by_kind().items())
    status = "[bold green]OK[/]" if report.ok else "[bold red]ERROR[/]"
    out.print(f"{status}: {len(report.errors)} error(s), {len(report.warnings)} warning(s) ({counts})")


def run_check(args: argparse.Namespace, settings: Settings) -> int:
    required = list(dict.fromkeys([*settings.required_fields, *args.require_field]))
    with OutputLogger(enable_rich=not args.no_rich, log_file=args.log_file) as out:
        with out.status(f"Auditing {settings.sounds_path}..."):
            report = run_audit(settings, required_fields=required)
        _print_report(report, out)

    if args.json_output:
        args.json_output.parent.mkdir(parents=True, exist_ok=True)
        with args.json_output.open("w", encoding="utf-8") as handle:
            json.dump(report.to_dict(), handle, indent=2)
            handle.write("\n")
        print(f"Full JSON report written to {args.json_output}")

    return 1 if report.failed(strict=args.strict) else 0


def run_reindex(args: argparse.Namespace, settings: Settings) -> int:
    sounds_dir = settings.sounds_path
    if not sounds_dir.is_dir():
        print(f"error: asset directory does not exist: {sounds_dir}", file=sys.stderr)
        return 2

    pairs, violations = scan_assets(sounds_dir, settings.normalised_extensions())
    for violation in violations:
        print(f"warning: {violation}", file=sys.stderr)

    if args.dry_run:
        sys.stdout.write(render_manifest(build_manifest(pairs, prefix=settings.sounds_dir)))
        return 0

    entries = write_manifest(settings.manifest_path, pairs, prefix=settings.sounds_dir)
    print(f"Wrote {settings.manifest_path} ({len(entries):,} entries)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = resolve_settings(args)
    configure_logging(settings)

    if not settings.root.is_dir():
        print(f"error: repository root does not exist: {settings.root}", file=sys.stderr)
        return 2

    logger.debug("cli.start", command=args.command, root=str(settings.root))
    if args.command == "reindex":
        return run_reindex(args, settings)
    return run_check(args, settings)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
