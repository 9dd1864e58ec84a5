"""Loading and validating ``*.xc.json`` metadata sidecars."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .logging import get_logger
from .naming import RecordingName
from .violations import Violation, ViolationKind, missing_field, unreadable_file

logger = get_logger(__name__)

DEFAULT_REQUIRED_FIELDS: Tuple[str, ...] = ("lic", "rec")
BINOMIAL_KEYS: Tuple[str, ...] = ("species", "binomial", "scientific_name")


class SidecarIdentity(BaseModel):
    """Catalog id as recorded in a sidecar. xc-fetch writes ``xc_id``; ``id`` is accepted too."""

    model_config = ConfigDict(extra="ignore")

    xc_id: Optional[int] = None
    id: Optional[int] = None

    @field_validator("xc_id", "id", mode="before")
    @classmethod
    def _strip_xc_prefix(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if value.upper().startswith("XC"):
                value = value[2:]
        return value

    @property
    def catalog_id(self) -> Optional[int]:
        return self.xc_id if self.xc_id is not None else self.id


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def load_sidecar(path: Path, subject: Optional[str] = None) -> Tuple[Optional[Dict[str, Any]], List[Violation]]:
    """Read ``path`` as a JSON object.

    Returns the decoded payload, or ``None`` with an ``UnreadableFile``
    violation when the file cannot be read or is not a JSON object.
    """

    subject = subject or str(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except OSError as exc:
        logger.warning("sidecar.unreadable", path=str(path), error=str(exc))
        return None, [unreadable_file(subject, f"unable to read sidecar: {exc}")]
    except (ValueError, RecursionError) as exc:
        logger.warning("sidecar.invalid_json", path=str(path), error=str(exc))
        return None, [unreadable_file(subject, f"invalid JSON: {exc}")]

    if not isinstance(payload, dict):
        return None, [unreadable_file(subject, f"expected a JSON object, found {type(payload).__name__}")]
    return payload, []


def validate_sidecar_schema(
    payload: Mapping[str, Any],
    subject: str = "<sidecar>",
    *,
    required_fields: Iterable[str] = DEFAULT_REQUIRED_FIELDS,
) -> List[Violation]:
    """Report a ``MissingField`` violation for each absent or empty required field.

    Species identifiers are required in addition to ``required_fields``:
    either both ``gen`` and ``sp``, or a combined binomial under one of
    :data:`BINOMIAL_KEYS`.
    """

    violations: List[Violation] = []
    for field in required_fields:
        if _is_blank(payload.get(field)):
            violations.append(missing_field(subject, field))

    has_binomial = any(not _is_blank(payload.get(key)) for key in BINOMIAL_KEYS)
    if not has_binomial:
        for field in ("gen", "sp"):
            if _is_blank(payload.get(field)):
                violations.append(missing_field(subject, field))
    return violations


def check_sidecar_identity(payload: Mapping[str, Any], name: RecordingName, subject: str) -> List[Violation]:
    """Compare the sidecar's catalog id with the one encoded in its filename."""

    try:
        identity = SidecarIdentity.model_validate(dict(payload))
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return [
            Violation(
                ViolationKind.ID_MISMATCH,
                subject,
                f"catalog id {location!r} is not numeric",
                field=location or None,
            )
        ]

    sidecar_id = identity.catalog_id
    if sidecar_id is None or sidecar_id == name.catalog_id:
        return []
    field = "xc_id" if identity.xc_id is not None else "id"
    return [
        Violation(
            ViolationKind.ID_MISMATCH,
            subject,
            f"sidecar records XC{sidecar_id} but filename says XC{name.catalog_id}",
            field=field,
        )
    ]


__all__ = [
    "BINOMIAL_KEYS",
    "DEFAULT_REQUIRED_FIELDS",
    "SidecarIdentity",
    "check_sidecar_identity",
    "load_sidecar",
    "validate_sidecar_schema",
]
