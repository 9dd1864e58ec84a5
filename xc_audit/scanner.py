"""Directory scan that pairs audio files with their metadata sidecars."""

from __future__ import annotations

import os
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .config import DEFAULT_AUDIO_EXTENSIONS
from .logging import get_logger
from .naming import is_sidecar_name, split_name
from .violations import Violation, ViolationKind, orphan_audio, orphan_sidecar, unreadable_file

logger = get_logger(__name__)

AUDIO = "audio"
SIDECAR = "sidecar"


@dataclass(frozen=True)
class AssetPair:
    """An audio file and its sidecar, both relative to the scanned directory."""

    base_name: str
    audio: PurePosixPath
    sidecar: PurePosixPath

    @property
    def key(self) -> str:
        """Relative base name, e.g. ``bats/XC1 - Bat - Myotis myotis``."""
        return (self.audio.parent / self.base_name).as_posix()


@dataclass
class _Group:
    audio: List[PurePosixPath] = field(default_factory=list)
    sidecars: List[PurePosixPath] = field(default_factory=list)


def _normalise_extensions(audio_extensions: Optional[Iterable[str]]) -> Set[str]:
    return {ext.lower().lstrip(".") for ext in (audio_extensions or DEFAULT_AUDIO_EXTENSIONS)}


def iter_files(root: Path, follow_symlinks: bool = False) -> Iterable[PurePosixPath]:
    """Yield non-hidden file paths under ``root``, relative to it, in sorted order."""

    for base, dirs, files in os.walk(root, followlinks=follow_symlinks):
        dirs[:] = sorted(name for name in dirs if not name.startswith("."))
        base_path = Path(base)
        for name in sorted(files):
            if name.startswith("."):
                continue
            yield PurePosixPath((base_path / name).relative_to(root).as_posix())


def classify_file(relative: PurePosixPath, extensions: Set[str]) -> Optional[str]:
    """Return ``"sidecar"``, ``"audio"`` or ``None`` for files the audit does not track."""

    if is_sidecar_name(relative.name):
        return SIDECAR
    _, extension = split_name(relative.name)
    if extension is not None and extension.lower() in extensions:
        return AUDIO
    return None


def iter_asset_files(
    directory: Path,
    audio_extensions: Optional[Iterable[str]] = None,
    *,
    follow_symlinks: bool = False,
) -> Iterable[Tuple[PurePosixPath, str]]:
    """Yield ``(relative_path, role)`` for every audio file and sidecar under ``directory``."""

    extensions = _normalise_extensions(audio_extensions)
    for relative in iter_files(directory, follow_symlinks):
        role = classify_file(relative, extensions)
        if role is None:
            logger.debug("scan.ignored", path=relative.as_posix())
            continue
        yield relative, role


def scan_assets(
    directory: Path,
    audio_extensions: Optional[Iterable[str]] = None,
    *,
    follow_symlinks: bool = False,
) -> Tuple[Set[AssetPair], List[Violation]]:
    """Group files under ``directory`` by base name and pair audio with sidecars.

    Returns the complete pairs plus one violation for every base name that
    lacks its audio file, lacks its sidecar, or carries several audio files.
    """

    if not directory.is_dir():
        return set(), [unreadable_file(directory.as_posix(), "asset directory does not exist")]

    logger.debug("scan.start", directory=str(directory))
    groups: Dict[PurePosixPath, _Group] = defaultdict(_Group)
    for relative, role in iter_asset_files(directory, audio_extensions, follow_symlinks=follow_symlinks):
        base_name, _ = split_name(relative.name)
        key = relative.parent / base_name
        if role == SIDECAR:
            groups[key].sidecars.append(relative)
        else:
            groups[key].audio.append(relative)

    pairs: Set[AssetPair] = set()
    violations: List[Violation] = []
    for key in sorted(groups):
        group = groups[key]
        subject = key.as_posix()
        if not group.sidecars:
            violations.append(orphan_audio(subject))
            continue
        if not group.audio:
            violations.append(orphan_sidecar(subject))
            continue
        if len(group.audio) > 1:
            names = ", ".join(path.name for path in group.audio)
            violations.append(
                Violation(ViolationKind.DUPLICATE_AUDIO, subject, f"several audio files share one sidecar: {names}")
            )
        pairs.add(AssetPair(base_name=key.name, audio=group.audio[0], sidecar=group.sidecars[0]))

    logger.info(
        "scan.complete",
        directory=str(directory),
        pairs=len(pairs),
        violations=len(violations),
    )
    return pairs, violations


__all__ = ["AUDIO", "SIDECAR", "AssetPair", "classify_file", "iter_asset_files", "iter_files", "scan_assets"]
