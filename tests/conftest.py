import hashlib
import json
from pathlib import Path

import pytest


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def identity_asset(key: str, digest: str | None, **extra) -> dict:
    """Manifest record with a gzip encoding followed by an identity encoding."""
    return {
        "key": key,
        "content_type": "application/javascript",
        "encodings": [
            {
                "content_encoding": "gzip",
                "sha256": ["0" * 64],
                "length": 10,
                "modified": 1700000000000000000,
            },
            {
                "content_encoding": "identity",
                "sha256": [digest] if digest is not None else [],
                "length": 42,
                "modified": 1700000000000000000,
            },
        ],
        **extra,
    }


@pytest.fixture
def dist_dir(tmp_path: Path) -> Path:
    root = tmp_path / "dist"
    root.mkdir()
    return root


@pytest.fixture
def write_assets_json(tmp_path: Path):
    def _write(records, name: str = "assets.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(records), encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # setenv first so values loaded from .env during a test are undone afterwards
    for name in ("IC_HOST", "DIST_VERIFIER_WORKERS"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
