"""Repository consistency audit for the demo sound collection.

The audit walks ``sounds/`` and checks three things:

* every audio file has a ``.xc.json`` sidecar and vice versa,
* every asset follows the ``XC{id} - {English name} - {Genus species}`` naming,
* ``index.json`` lists exactly the audio/sidecar pairs present on disk.

Each sidecar is also checked for the metadata fields attribution depends on.
The audit is read-only and never stops at the first problem: every violation
is collected into a single :class:`AuditReport`.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Sequence

from .config import Settings, get_settings
from .logging import get_logger
from .manifest import load_manifest, validate_manifest
from .naming import MalformedNameError, parse_filename, split_name
from .scanner import SIDECAR, iter_asset_files, scan_assets
from .sidecar import check_sidecar_identity, load_sidecar, validate_sidecar_schema
from .violations import Violation, ViolationKind, malformed_name

logger = get_logger(__name__)


@dataclass
class AuditReport:
    root: Path
    sounds_dir: Path
    manifest_path: Path
    violations: List[Violation] = field(default_factory=list)
    pairs: int = 0
    sidecars_checked: int = 0
    manifest_entries: Optional[int] = None

    @property
    def errors(self) -> List[Violation]:
        return [violation for violation in self.violations if violation.is_error]

    @property
    def warnings(self) -> List[Violation]:
        return [violation for violation in self.violations if not violation.is_error]

    @property
    def ok(self) -> bool:
        return not self.errors

    def failed(self, *, strict: bool = False) -> bool:
        if strict:
            return bool(self.violations)
        return not self.ok

    def of_kind(self, kind: ViolationKind) -> List[Violation]:
        return [violation for violation in self.violations if violation.kind is kind]

    def counts_by_kind(self) -> Dict[str, int]:
        counts = Counter(violation.kind.value for violation in self.violations)
        return dict(sorted(counts.items()))

    def to_dict(self) -> Dict[str, object]:
        return {
            "root": str(self.root),
            "sounds_dir": str(self.sounds_dir),
            "manifest": str(self.manifest_path),
            "ok": self.ok,
            "summary": {
                "pairs": self.pairs,
                "sidecars_checked": self.sidecars_checked,
                "manifest_entries": self.manifest_entries,
                "errors": len(self.errors),
                "warnings": len(self.warnings),
                "by_kind": self.counts_by_kind(),
            },
            "violations": [violation.to_dict() for violation in self.violations],
        }


def _check_names(files: Sequence[PurePosixPath]) -> List[Violation]:
    """One ``MalformedName`` per base name, reported against its first file."""

    violations: List[Violation] = []
    seen = set()
    for relative in files:
        key = relative.parent / split_name(relative.name)[0]
        if key in seen:
            continue
        seen.add(key)
        try:
            parse_filename(relative.name)
        except MalformedNameError as exc:
            violations.append(malformed_name(relative.as_posix(), str(exc)))
    return violations


def _check_sidecar(directory: Path, relative: PurePosixPath, required_fields: Sequence[str]) -> List[Violation]:
    subject = relative.as_posix()
    payload, violations = load_sidecar(directory / relative, subject)
    if payload is None:
        return violations

    violations.extend(validate_sidecar_schema(payload, subject, required_fields=required_fields))
    try:
        name = parse_filename(relative.name)
    except MalformedNameError:
        # Already reported by the naming check.
        return violations
    violations.extend(check_sidecar_identity(payload, name, subject))
    return violations


def run_audit(
    settings: Optional[Settings] = None,
    *,
    required_fields: Optional[Sequence[str]] = None,
) -> AuditReport:
    """Audit the asset tree and manifest described by ``settings``."""

    settings = settings or get_settings()
    sounds_dir = settings.sounds_path
    manifest_path = settings.manifest_path
    fields = list(required_fields if required_fields is not None else settings.required_fields)
    extensions = settings.normalised_extensions()

    report = AuditReport(root=settings.root, sounds_dir=sounds_dir, manifest_path=manifest_path)
    logger.debug("audit.start", root=str(settings.root), sounds_dir=str(sounds_dir), manifest=str(manifest_path))

    pairs, scan_violations = scan_assets(sounds_dir, extensions)
    report.pairs = len(pairs)
    report.violations.extend(scan_violations)

    files = list(iter_asset_files(sounds_dir, extensions)) if sounds_dir.is_dir() else []
    report.violations.extend(_check_names([relative for relative, _ in files]))

    for relative, role in files:
        if role != SIDECAR:
            continue
        report.sidecars_checked += 1
        report.violations.extend(_check_sidecar(sounds_dir, relative, fields))

    entries, manifest_violations = load_manifest(manifest_path, settings.manifest_name)
    report.violations.extend(manifest_violations)
    if entries is not None:
        report.manifest_entries = len(entries)
        report.violations.extend(validate_manifest(entries, pairs, settings.sounds_dir))

    logger.info(
        "audit.complete",
        pairs=report.pairs,
        errors=len(report.errors),
        warnings=len(report.warnings),
    )
    return report


def format_summary(report: AuditReport) -> str:
    lines: List[str] = []
    lines.append("Repository consistency summary")
    lines.append("================================")
    lines.append(f"  sounds dir       : {report.sounds_dir}")
    lines.append(f"  manifest         : {report.manifest_path}")
    lines.append(f"  asset pairs      : {report.pairs:,}")
    lines.append(f"  sidecars checked : {report.sidecars_checked:,}")
    if report.manifest_entries is not None:
        lines.append(f"  manifest entries : {report.manifest_entries:,}")
    else:
        lines.append("  manifest entries : <unreadable>")

    if not report.violations:
        lines.append("\nOK: no violations found")
        return "\n".join(lines)

    lines.append("")
    for kind, count in report.counts_by_kind().items():
        lines.append(f"* {kind}: {count}")
    for violation in report.violations:
        lines.append(f"    {violation.severity.value}: {violation}")
    status = "OK" if report.ok else "ERROR"
    lines.append(f"\n{status}: {len(report.errors)} error(s), {len(report.warnings)} warning(s)")
    return "\n".join(lines)


__all__ = ["AuditReport", "format_summary", "run_audit"]
