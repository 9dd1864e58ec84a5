import json
from pathlib import Path

import pytest

from xc_audit.config import Settings, get_settings

PIPISTRELLE = "XC928094 - Common Pipistrelle - Pipistrellus pipistrellus"
NOCTULE = "XC512345 - Common Noctule - Nyctalus noctula"


def make_sidecar(catalog_id: int, en: str, gen: str, sp: str, **overrides) -> dict:
    payload = {
        "source": "xeno-canto",
        "xc_id": catalog_id,
        "url": f"https://www.xeno-canto.org/{catalog_id}",
        "gen": gen,
        "sp": sp,
        "en": en,
        "rec": "Jane Recordist",
        "lic": "//creativecommons.org/licenses/by-nc-sa/4.0/",
        "attribution": f"Jane Recordist, XC{catalog_id}. Accessible at www.xeno-canto.org/{catalog_id}",
        "retrieved": "2025-01-01",
    }
    payload.update(overrides)
    return payload


def write_json(path: Path, payload) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return path


def write_audio(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"RIFF\x00\x00\x00\x00WAVE")
    return path


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for name in (
        "XC_AUDIT_ROOT",
        "XC_AUDIT_SOUNDS_DIR",
        "XC_AUDIT_MANIFEST",
        "XC_AUDIT_AUDIO_EXTENSIONS",
        "XC_AUDIT_REQUIRED_FIELDS",
        "LOG_LEVEL",
        "LOGGING_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    # Keep a stray .env in the working tree from leaking into settings.
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def repo(tmp_path: Path) -> Path:
    """A clean repository: two complete pairs listed in index.json."""

    root = tmp_path / "repo"
    sounds = root / "sounds"
    write_audio(sounds / f"{PIPISTRELLE}.wav")
    write_json(
        sounds / f"{PIPISTRELLE}.xc.json",
        make_sidecar(928094, "Common Pipistrelle", "Pipistrellus", "pipistrellus"),
    )
    write_audio(sounds / f"{NOCTULE}.mp3")
    write_json(
        sounds / f"{NOCTULE}.xc.json",
        make_sidecar(512345, "Common Noctule", "Nyctalus", "noctula"),
    )
    write_json(root / "index.json", [f"{PIPISTRELLE}.wav", f"{NOCTULE}.mp3"])
    return root


@pytest.fixture()
def settings(repo: Path) -> Settings:
    return Settings(root=repo)
