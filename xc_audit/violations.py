"""Violation records collected by the consistency audit.

Violations are plain data. The audit never raises on a bad asset; it records
the problem and keeps scanning, so one report lists everything that needs a
maintainer's attention.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Optional


class Severity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"


class ViolationKind(str, enum.Enum):
    ORPHAN_AUDIO = "OrphanAudio"
    ORPHAN_SIDECAR = "OrphanSidecar"
    DUPLICATE_AUDIO = "DuplicateAudio"
    MALFORMED_NAME = "MalformedName"
    MANIFEST_DRIFT = "ManifestDrift"
    MISSING_FIELD = "MissingField"
    UNREADABLE_FILE = "UnreadableFile"
    ID_MISMATCH = "IdMismatch"

    @property
    def severity(self) -> Severity:
        if self is ViolationKind.ID_MISMATCH:
            return Severity.WARNING
        return Severity.ERROR


@dataclass(frozen=True)
class Violation:
    """A single invariant violation.

    ``subject`` is whatever the violation is about: a path relative to the
    scanned directory, a base name, or a manifest entry label.
    """

    kind: ViolationKind
    subject: str
    detail: str = ""
    field: Optional[str] = None

    @property
    def severity(self) -> Severity:
        return self.kind.severity

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "subject": self.subject,
            "detail": self.detail,
        }
        if self.field is not None:
            payload["field"] = self.field
        return payload

    def __str__(self) -> str:
        label = self.kind.value
        if self.field is not None:
            label = f"{label}({self.field!r})"
        if self.detail:
            return f"{label}: {self.subject}: {self.detail}"
        return f"{label}: {self.subject}"


def orphan_audio(subject: str) -> Violation:
    return Violation(ViolationKind.ORPHAN_AUDIO, subject, "audio file has no .xc.json sidecar")


def orphan_sidecar(subject: str) -> Violation:
    return Violation(ViolationKind.ORPHAN_SIDECAR, subject, "sidecar has no matching audio file")


def malformed_name(subject: str, reason: str) -> Violation:
    return Violation(ViolationKind.MALFORMED_NAME, subject, reason)


def missing_field(subject: str, field: str) -> Violation:
    return Violation(ViolationKind.MISSING_FIELD, subject, "required field is absent or empty", field=field)


def unreadable_file(subject: str, reason: str) -> Violation:
    return Violation(ViolationKind.UNREADABLE_FILE, subject, reason)


def manifest_drift(subject: str, reason: str) -> Violation:
    return Violation(ViolationKind.MANIFEST_DRIFT, subject, reason)


__all__ = [
    "Severity",
    "Violation",
    "ViolationKind",
    "malformed_name",
    "manifest_drift",
    "missing_field",
    "orphan_audio",
    "orphan_sidecar",
    "unreadable_file",
]
