from __future__ import annotations

from pathlib import Path
from typing import List

import fitz  # PyMuPDF

from ..storage import PREVIEW_ARTIFACTS, artifact_path


def _pick_preview_pages(page_count: int) -> List[int]:
    # first pages only; a short document yields fewer previews
    return list(range(min(len(PREVIEW_ARTIFACTS), max(0, page_count))))


def _render_page_to_png(doc: fitz.Document, page_index: int, out_path: Path, min_px: int = 1200) -> None:
    page = doc.load_page(page_index)

    # short side should come out at least min_px wide; label sheets can be tiny
    rect = page.rect
    short_side = min(rect.width, rect.height)
    zoom = max(2.0, min_px / float(short_side))
    mat = fitz.Matrix(zoom, zoom)

    pix = page.get_pixmap(matrix=mat, alpha=False)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pix.save(str(out_path))


def render_previews(
    slug: str,
    pdf_path: Path,
    base_dir: Path | None = None,
    include_slug: bool = True,
) -> List[Path]:
    previews: List[Path] = []
    with fitz.open(pdf_path) as doc:
        for index in _pick_preview_pages(doc.page_count):
            out_path = artifact_path(slug, PREVIEW_ARTIFACTS[index], base_dir=base_dir, include_slug=include_slug)
            _render_page_to_png(doc, index, out_path)
            previews.append(out_path)
    return previews
