"""Filename convention for recordings fetched from xeno-canto.

Every asset under ``sounds/`` is named::

    XC{id} - {English name} - {Genus species}.{ext}

and its metadata sidecar shares the same base name with an ``.xc.json``
suffix. The helpers here parse that convention and reproduce the naming rules
used by ``xc-fetch`` so maintenance code can predict filenames.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import List, Optional, Tuple

from .violations import Violation, malformed_name

SIDECAR_SUFFIX = ".xc.json"
SEGMENT_SEPARATOR = " - "

_CATALOG_RE = re.compile(r"XC(?P<digits>.*)")
_EXTENSION_RE = re.compile(r"[A-Za-z0-9]+")
# Characters xc-fetch replaces with "_" when building filenames.
_UNSAFE_CHARS = '<>:"/\\|?*'


class MalformedNameError(ValueError):
    """Raised when a filename does not follow the recording naming convention."""


@dataclass(frozen=True)
class RecordingName:
    catalog_id: int
    english_name: str
    binomial: str
    extension: Optional[str] = None

    @property
    def genus(self) -> str:
        return self.binomial.split()[0]

    @property
    def species(self) -> str:
        return " ".join(self.binomial.split()[1:])

    @property
    def base_name(self) -> str:
        return SEGMENT_SEPARATOR.join((f"XC{self.catalog_id}", self.english_name, self.binomial))

    @property
    def sidecar_filename(self) -> str:
        return self.base_name + SIDECAR_SUFFIX

    @property
    def audio_filename(self) -> Optional[str]:
        if self.extension is None:
            return None
        return f"{self.base_name}.{self.extension}"

    @property
    def triple(self) -> Tuple[int, str, str]:
        return self.catalog_id, self.english_name, self.binomial


def is_sidecar_name(name: str) -> bool:
    return name.lower().endswith(SIDECAR_SUFFIX)


def split_name(name: str) -> Tuple[str, Optional[str]]:
    """Split ``name`` into ``(base_name, extension)``.

    Sidecars yield ``None`` as their extension; names without a dot yield the
    whole name as the base.
    """

    name = PurePath(name).name
    if is_sidecar_name(name):
        return name[: -len(SIDECAR_SUFFIX)], None
    stem, dot, ext = name.rpartition(".")
    if not dot:
        return name, None
    return stem, ext


def parse_base_name(base_name: str, extension: Optional[str] = None) -> RecordingName:
    segments = base_name.split(SEGMENT_SEPARATOR)
    if len(segments) < 3:
        raise MalformedNameError(
            "expected 'XC{id} - {English name} - {Genus species}', "
            f"found {len(segments)} segment(s) separated by {SEGMENT_SEPARATOR!r}"
        )

    head = segments[0].strip()
    match = _CATALOG_RE.fullmatch(head)
    if match is None:
        raise MalformedNameError(f"catalog segment {head!r} does not start with 'XC'")
    digits = match.group("digits")
    if not digits.isdigit() or not digits.isascii():
        raise MalformedNameError(f"catalog id {digits!r} is not numeric")

    english_name = SEGMENT_SEPARATOR.join(segments[1:-1]).strip()
    if not english_name:
        raise MalformedNameError("English name segment is empty")

    binomial = " ".join(segments[-1].split())
    if len(binomial.split()) < 2:
        raise MalformedNameError(f"species segment {segments[-1]!r} is not a 'Genus species' binomial")

    return RecordingName(
        catalog_id=int(digits),
        english_name=english_name,
        binomial=binomial,
        extension=extension,
    )


def parse_filename(name: str) -> RecordingName:
    """Parse an audio or sidecar filename into its catalog id and species names."""

    base_name, extension = split_name(name)
    if extension is None and not is_sidecar_name(name):
        raise MalformedNameError("missing file extension")
    if extension is not None and not _EXTENSION_RE.fullmatch(extension):
        raise MalformedNameError(f"file extension {extension!r} is not alphanumeric")
    return parse_base_name(base_name, extension)


def validate_filename(name: str) -> List[Violation]:
    try:
        parse_filename(name)
    except MalformedNameError as exc:
        return [malformed_name(name, str(exc))]
    return []


def sanitize_filename(text: str) -> str:
    return "".join("_" if char in _UNSAFE_CHARS else char for char in text)


def build_base_name(catalog_id: int | str, english_name: str, genus: str, species: str) -> str:
    """Return the base name xc-fetch writes for a recording."""

    return sanitize_filename(f"XC{catalog_id} - {english_name} - {genus} {species}")


__all__ = [
    "MalformedNameError",
    "RecordingName",
    "SIDECAR_SUFFIX",
    "build_base_name",
    "is_sidecar_name",
    "parse_base_name",
    "parse_filename",
    "sanitize_filename",
    "split_name",
    "validate_filename",
]
