"""Reading, checking and regenerating the root ``index.json`` manifest.

The manifest lists every demo recording. Entries are deliberately loose so
hand-edited manifests keep working: a catalog id (``928094`` or
``"XC928094"``), a base name or filename, or an object carrying ``file`` /
``name`` / ``base`` / ``audio`` / ``sidecar`` and/or ``id`` / ``xc_id`` keys.
"""

from __future__ import annotations

import json
import re
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .logging import get_logger
from .naming import MalformedNameError, parse_base_name, split_name
from .scanner import AssetPair
from .violations import Violation, manifest_drift, unreadable_file

logger = get_logger(__name__)

_ID_RE = re.compile(r"(?:XC)?\s*(\d+)", re.IGNORECASE)
_NAME_KEYS = ("file", "name", "base", "audio", "sidecar")
_ID_KEYS = ("xc_id", "id")
_CONTAINER_KEYS = ("files", "recordings", "entries")


class ManifestFormatError(ValueError):
    """Raised when a manifest or one of its entries has an unsupported shape."""


@dataclass(frozen=True)
class ManifestEntry:
    label: str
    base_name: Optional[str] = None
    catalog_id: Optional[int] = None
    directory: Optional[str] = None

    def relative_key(self, sounds_dir: str = "sounds") -> Optional[str]:
        """Path of the entry relative to ``sounds_dir``, or ``None`` when it names no directory.

        ``sounds/uk/XC1 - …`` and ``uk/XC1 - …`` both give ``uk/XC1 - …``;
        an entry written as ``sounds/XC1 - …`` gives the bare base name.
        """

        if self.base_name is None or self.directory is None:
            return None
        parts = PurePosixPath(self.directory).parts
        prefix = PurePosixPath(sounds_dir.replace("\\", "/")).parts if sounds_dir else ()
        if prefix and parts[: len(prefix)] == prefix:
            parts = parts[len(prefix) :]
        return PurePosixPath(*parts, self.base_name).as_posix()


def _coerce_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        match = _ID_RE.fullmatch(value.strip())
        if match:
            return int(match.group(1))
    return None


def _split_entry_path(value: str) -> Tuple[Optional[str], str]:
    path = PurePosixPath(value.strip().replace("\\", "/"))
    directory = path.parent.as_posix()
    base_name, extension = split_name(path.name)
    if extension is not None and not extension.isalnum():
        base_name = path.name
    return (None if directory == "." else directory), base_name


def parse_manifest_entry(raw: Any) -> ManifestEntry:
    """Normalise one manifest entry to a base name and/or catalog id."""

    catalog_id = _coerce_id(raw)
    if catalog_id is not None:
        label = raw if isinstance(raw, str) else f"XC{catalog_id}"
        return ManifestEntry(label=label, catalog_id=catalog_id)

    if isinstance(raw, str):
        if not raw.strip():
            raise ManifestFormatError("empty manifest entry")
        directory, base_name = _split_entry_path(raw)
        return ManifestEntry(label=raw, base_name=base_name, directory=directory)

    if isinstance(raw, dict):
        label = base_name = directory = None
        for key in _NAME_KEYS:
            value = raw.get(key)
            if isinstance(value, str) and value.strip():
                label = value.strip()
                directory, base_name = _split_entry_path(value)
                break
        entry_id = None
        for key in _ID_KEYS:
            entry_id = _coerce_id(raw.get(key))
            if entry_id is not None:
                break
        if base_name is None and entry_id is None:
            raise ManifestFormatError(f"entry has none of the keys {', '.join(_NAME_KEYS + _ID_KEYS)}")
        return ManifestEntry(
            label=label or f"XC{entry_id}",
            base_name=base_name,
            catalog_id=entry_id,
            directory=directory,
        )

    raise ManifestFormatError(f"unsupported manifest entry type {type(raw).__name__}")


def manifest_items(document: Any) -> List[Any]:
    """Return the list of raw entries held by a decoded manifest document."""

    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        for key in _CONTAINER_KEYS:
            items = document.get(key)
            if isinstance(items, list):
                return items
        raise ManifestFormatError(f"manifest object has no {' / '.join(_CONTAINER_KEYS)} array")
    raise ManifestFormatError(f"manifest must be a JSON array, found {type(document).__name__}")


def parse_manifest(document: Any) -> Tuple[List[ManifestEntry], List[Violation]]:
    entries: List[ManifestEntry] = []
    violations: List[Violation] = []
    for index, raw in enumerate(manifest_items(document)):
        if isinstance(raw, ManifestEntry):
            entries.append(raw)
            continue
        try:
            entries.append(parse_manifest_entry(raw))
        except ManifestFormatError as exc:
            violations.append(manifest_drift(f"entry #{index}", f"unrecognised manifest entry: {exc}"))
    return entries, violations


def load_manifest(path: Path, subject: Optional[str] = None) -> Tuple[Optional[List[ManifestEntry]], List[Violation]]:
    """Read and normalise ``index.json``.

    Returns ``None`` with an ``UnreadableFile`` violation when the manifest is
    missing, unreadable, or not shaped like a manifest.
    """

    subject = subject or str(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            document = json.load(handle)
    except FileNotFoundError:
        return None, [unreadable_file(subject, "manifest not found")]
    except OSError as exc:
        logger.warning("manifest.unreadable", path=str(path), error=str(exc))
        return None, [unreadable_file(subject, f"unable to read manifest: {exc}")]
    except (ValueError, RecursionError) as exc:
        logger.warning("manifest.invalid_json", path=str(path), error=str(exc))
        return None, [unreadable_file(subject, f"invalid JSON: {exc}")]

    try:
        return parse_manifest(document)
    except ManifestFormatError as exc:
        return None, [unreadable_file(subject, str(exc))]


def _pair_catalog_id(pair: AssetPair) -> Optional[int]:
    try:
        return parse_base_name(pair.base_name).catalog_id
    except MalformedNameError:
        return None


def validate_manifest(manifest: Any, assets: Iterable[AssetPair], sounds_dir: str = "sounds") -> List[Violation]:
    """Check bidirectional completeness between the manifest and pairs on disk.

    ``manifest`` is either a decoded ``index.json`` document or a sequence of
    :class:`ManifestEntry`. Every entry must match a pair and every pair must
    be listed; each mismatch is reported as a separate ``ManifestDrift``.
    Entries carrying a directory match the pair at that path below
    ``sounds_dir``; bare names match every pair with that base name.
    """

    if isinstance(manifest, (list, dict)):
        entries, violations = parse_manifest(manifest)
    else:
        entries, violations = list(manifest), []

    pairs = sorted(assets, key=lambda pair: pair.key)
    by_key: Dict[str, List[AssetPair]] = defaultdict(list)
    by_base: Dict[str, List[AssetPair]] = defaultdict(list)
    by_id: Dict[int, List[AssetPair]] = defaultdict(list)
    for pair in pairs:
        by_key[pair.key].append(pair)
        by_base[pair.base_name].append(pair)
        catalog_id = _pair_catalog_id(pair)
        if catalog_id is not None:
            by_id[catalog_id].append(pair)

    listed: Set[AssetPair] = set()
    for entry in entries:
        relative_key = entry.relative_key(sounds_dir)
        if relative_key is not None:
            matches = by_key.get(relative_key, [])
        elif entry.base_name is not None:
            matches = by_base.get(entry.base_name, [])
        else:
            matches = by_id.get(entry.catalog_id, []) if entry.catalog_id is not None else []
        if matches:
            listed.update(matches)
        else:
            violations.append(manifest_drift(entry.label, "listed in manifest but missing on disk"))

    for pair in pairs:
        if pair not in listed:
            violations.append(manifest_drift(pair.key, "present on disk but not listed in manifest"))
    return violations


def build_manifest(pairs: Iterable[AssetPair], prefix: str = "sounds") -> List[Dict[str, Any]]:
    """Render manifest entries for ``pairs``, sorted by base name."""

    entries: List[Dict[str, Any]] = []
    root = PurePosixPath(prefix) if prefix else PurePosixPath()
    for pair in sorted(pairs, key=lambda item: item.key):
        entry: Dict[str, Any] = {}
        catalog_id = _pair_catalog_id(pair)
        if catalog_id is not None:
            entry["id"] = catalog_id
        entry["file"] = (root / pair.audio).as_posix()
        entry["sidecar"] = (root / pair.sidecar).as_posix()
        entries.append(entry)
    return entries


def render_manifest(entries: Sequence[Dict[str, Any]]) -> str:
    return json.dumps(list(entries), indent=2, ensure_ascii=False) + "\n"


def write_manifest(path: Path, pairs: Iterable[AssetPair], prefix: str = "sounds") -> List[Dict[str, Any]]:
    entries = build_manifest(pairs, prefix=prefix)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_manifest(entries), encoding="utf-8")
    logger.info("manifest.written", path=str(path), entries=len(entries))
    return entries


__all__ = [
    "ManifestEntry",
    "ManifestFormatError",
    "build_manifest",
    "load_manifest",
    "manifest_items",
    "parse_manifest",
    "parse_manifest_entry",
    "render_manifest",
    "validate_manifest",
    "write_manifest",
]
