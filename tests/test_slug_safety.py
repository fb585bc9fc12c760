from __future__ import annotations

from pathlib import Path

import pytest

from docrender.storage import artifact_path, slug_for


def test_slug_sanitization() -> None:
    assert slug_for("Estimate / Sample: 2025!") == "estimate-sample-2025"


def test_empty_name_gets_hash_slug() -> None:
    slug = slug_for("")
    assert len(slug) == 12
    assert slug == slug_for("")


def test_slug_never_escapes_directory() -> None:
    assert "/" not in slug_for("../../etc/passwd")
    assert ".." not in slug_for("../../etc/passwd")


def test_artifact_path(tmp_path: Path) -> None:
    path = artifact_path("sample", "pdf", base_dir=tmp_path)
    assert path == tmp_path / "sample" / "document.pdf"
    assert path.parent.is_dir()
    assert artifact_path("sample", "warnings", base_dir=tmp_path, include_slug=False) == tmp_path / "warnings.json"
    with pytest.raises(KeyError):
        artifact_path("sample", "bundle", base_dir=tmp_path)
