from __future__ import annotations

from pathlib import Path
import hashlib
import re

from slugify import slugify

from . import config


ARTIFACT_NAMES = {
    "pdf": "document.pdf",
    "warnings": "warnings.json",
    "preview_1": "preview_1.png",
    "preview_2": "preview_2.png",
    "preview_3": "preview_3.png",
    "error": "error.log",
}
PREVIEW_ARTIFACTS = ("preview_1", "preview_2", "preview_3")


def slug_for(name: str) -> str:
    """Filesystem-safe directory name for a template or payload."""
    slug = slugify(name or "")
    slug = re.sub(r"[^a-z0-9-]+", "-", slug.lower()).strip("-")
    if not slug:
        slug = hashlib.md5((name or "").encode("utf-8")).hexdigest()[:12]
    if ".." in slug or "/" in slug or "\\" in slug:
        raise ValueError(f"Invalid slug generated from {name!r}")
    return slug


def output_dir(slug: str, base_dir: Path | None = None, include_slug: bool = True) -> Path:
    root = base_dir or config.OUT_DIR
    path = root / slug if include_slug else root
    path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_path(
    slug: str,
    artifact_type: str,
    base_dir: Path | None = None,
    include_slug: bool = True,
) -> Path:
    filename = ARTIFACT_NAMES[artifact_type]
    return output_dir(slug, base_dir=base_dir, include_slug=include_slug) / filename
