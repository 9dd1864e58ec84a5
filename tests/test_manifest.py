import json
import sys
from pathlib import Path

import pytest

from conftest import NOCTULE, PIPISTRELLE, make_sidecar, write_audio, write_json
from xc_audit.manifest import (
    ManifestEntry,
    ManifestFormatError,
    build_manifest,
    load_manifest,
    parse_manifest_entry,
    validate_manifest,
    write_manifest,
)
from xc_audit.scanner import scan_assets
from xc_audit.violations import ViolationKind


@pytest.mark.parametrize(
    "raw, expected",
    [
        (928094, ManifestEntry(label="XC928094", catalog_id=928094)),
        ("XC928094", ManifestEntry(label="XC928094", catalog_id=928094)),
        ("928094", ManifestEntry(label="928094", catalog_id=928094)),
        (f"{PIPISTRELLE}.wav", ManifestEntry(label=f"{PIPISTRELLE}.wav", base_name=PIPISTRELLE)),
        (
            f"sounds/{PIPISTRELLE}.xc.json",
            ManifestEntry(label=f"sounds/{PIPISTRELLE}.xc.json", base_name=PIPISTRELLE, directory="sounds"),
        ),
        (PIPISTRELLE, ManifestEntry(label=PIPISTRELLE, base_name=PIPISTRELLE)),
        ({"id": 928094}, ManifestEntry(label="XC928094", catalog_id=928094)),
        (
            {"xc_id": "928094", "file": f"sounds/uk/{PIPISTRELLE}.wav"},
            ManifestEntry(
                label=f"sounds/uk/{PIPISTRELLE}.wav",
                base_name=PIPISTRELLE,
                catalog_id=928094,
                directory="sounds/uk",
            ),
        ),
    ],
)
def test_parse_manifest_entry_shapes(raw, expected: ManifestEntry) -> None:
    assert parse_manifest_entry(raw) == expected


@pytest.mark.parametrize("raw", [None, True, 3.5, "", {"title": "bat"}])
def test_parse_manifest_entry_rejects_unknown_shapes(raw) -> None:
    with pytest.raises(ManifestFormatError):
        parse_manifest_entry(raw)


def test_manifest_in_sync_has_no_drift(repo: Path) -> None:
    pairs, _ = scan_assets(repo / "sounds")

    assert validate_manifest([f"{PIPISTRELLE}.wav", 512345], pairs) == []
    assert validate_manifest({"files": [PIPISTRELLE, {"id": "XC512345"}]}, pairs) == []


def test_manifest_id_missing_on_disk_is_drift(repo: Path) -> None:
    pairs, _ = scan_assets(repo / "sounds")

    violations = validate_manifest([f"{PIPISTRELLE}.wav", f"{NOCTULE}.mp3", 111111], pairs)

    assert len(violations) == 1
    assert violations[0].kind is ViolationKind.MANIFEST_DRIFT
    assert violations[0].subject == "XC111111"
    assert violations[0].detail == "listed in manifest but missing on disk"


def test_pair_missing_from_manifest_is_drift(repo: Path) -> None:
    pairs, _ = scan_assets(repo / "sounds")

    violations = validate_manifest([f"{PIPISTRELLE}.wav"], pairs)

    assert [(violation.kind, violation.subject) for violation in violations] == [
        (ViolationKind.MANIFEST_DRIFT, NOCTULE),
    ]
    assert "not listed" in violations[0].detail


def test_drift_is_reported_in_both_directions(repo: Path) -> None:
    pairs, _ = scan_assets(repo / "sounds")

    violations = validate_manifest(["XC1 - Bat - Myotis myotis.wav", {"colour": "red"}], pairs)

    subjects = sorted(violation.subject for violation in violations)
    assert all(violation.kind is ViolationKind.MANIFEST_DRIFT for violation in violations)
    assert subjects == sorted(["entry #1", "XC1 - Bat - Myotis myotis.wav", PIPISTRELLE, NOCTULE])


def _pipistrelle_in(sounds: Path, *regions: str) -> None:
    for region in regions:
        write_audio(sounds / region / f"{PIPISTRELLE}.wav")
        write_json(
            sounds / region / f"{PIPISTRELLE}.xc.json",
            make_sidecar(928094, "Common Pipistrelle", "Pipistrellus", "pipistrellus"),
        )


def test_entries_with_directories_match_that_directory_only(tmp_path: Path) -> None:
    sounds = tmp_path / "sounds"
    _pipistrelle_in(sounds, "uk", "fr")
    pairs, _ = scan_assets(sounds)

    violations = validate_manifest([f"sounds/uk/{PIPISTRELLE}.wav"], pairs)

    assert [(violation.kind, violation.subject) for violation in violations] == [
        (ViolationKind.MANIFEST_DRIFT, f"fr/{PIPISTRELLE}"),
    ]
    # Paths may also be written relative to the sounds directory.
    assert validate_manifest([f"uk/{PIPISTRELLE}.wav", f"fr/{PIPISTRELLE}.xc.json"], pairs) == []
    # A bare name carries no directory and covers every pair with that base name.
    assert validate_manifest([f"{PIPISTRELLE}.wav"], pairs) == []


def test_entry_in_wrong_directory_is_drift(tmp_path: Path) -> None:
    sounds = tmp_path / "audio"
    _pipistrelle_in(sounds, "uk")
    pairs, _ = scan_assets(sounds)

    violations = validate_manifest([f"audio/de/{PIPISTRELLE}.wav", f"audio/uk/{PIPISTRELLE}.wav"], pairs, "audio")

    assert [(violation.subject, violation.detail) for violation in violations] == [
        (f"audio/de/{PIPISTRELLE}.wav", "listed in manifest but missing on disk"),
    ]


def test_reindexed_subdirectories_validate_clean(tmp_path: Path) -> None:
    sounds = tmp_path / "sounds"
    _pipistrelle_in(sounds, "uk", "fr")
    pairs, _ = scan_assets(sounds)

    entries = build_manifest(pairs)

    assert [entry["file"] for entry in entries] == [
        f"sounds/fr/{PIPISTRELLE}.wav",
        f"sounds/uk/{PIPISTRELLE}.wav",
    ]
    assert validate_manifest(entries, pairs) == []
    assert len(validate_manifest(entries[:1], pairs)) == 1


def test_load_manifest_reports_unreadable(tmp_path: Path) -> None:
    entries, violations = load_manifest(tmp_path / "index.json", "index.json")
    assert entries is None
    assert violations[0].kind is ViolationKind.UNREADABLE_FILE
    assert violations[0].subject == "index.json"

    (tmp_path / "index.json").write_text("{broken", encoding="utf-8")
    entries, violations = load_manifest(tmp_path / "index.json")
    assert entries is None
    assert "invalid JSON" in violations[0].detail

    write_json(tmp_path / "index.json", {"title": "demo"})
    entries, violations = load_manifest(tmp_path / "index.json")
    assert entries is None
    assert violations[0].kind is ViolationKind.UNREADABLE_FILE


@pytest.mark.parametrize(
    "content",
    [
        "[" * 200_000 + "]" * 200_000,
        pytest.param(
            "[" + "9" * 5000 + "]",
            marks=pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="no integer digit limit"),
        ),
    ],
    ids=["deeply-nested", "oversized-integer"],
)
def test_load_manifest_reports_undecodable_json(tmp_path: Path, content: str) -> None:
    (tmp_path / "index.json").write_text(content, encoding="utf-8")

    entries, violations = load_manifest(tmp_path / "index.json", "index.json")

    assert entries is None
    assert [(violation.kind, violation.subject) for violation in violations] == [
        (ViolationKind.UNREADABLE_FILE, "index.json"),
    ]
    assert "invalid JSON" in violations[0].detail


def test_write_manifest_round_trips_through_validation(repo: Path) -> None:
    pairs, _ = scan_assets(repo / "sounds")
    path = repo / "index.json"

    written = write_manifest(path, pairs)

    assert written == build_manifest(pairs)
    assert written[0] == {
        "id": 512345,
        "file": f"sounds/{NOCTULE}.mp3",
        "sidecar": f"sounds/{NOCTULE}.xc.json",
    }
    text = path.read_text(encoding="utf-8")
    assert text.endswith("]\n")
    entries, violations = load_manifest(path)
    assert violations == []
    assert validate_manifest(entries, pairs) == []
    assert json.loads(text)[1]["id"] == 928094
