from __future__ import annotations

import tempfile
from pathlib import Path

from docrender.engine.render import render_template_to_pdf
from docrender.engine.render_preview import render_previews


class DummyRect:
    width = 595.0
    height = 842.0


class DummyPixmap:
    def save(self, path: str) -> None:
        Path(path).write_text("preview", encoding="utf-8")


class DummyPage:
    rect = DummyRect()

    def get_pixmap(self, matrix=None, alpha=False) -> DummyPixmap:  # noqa: ARG002 - signature matches fitz
        return DummyPixmap()


class DummyDoc:
    def __init__(self, page_count: int = 3) -> None:
        self.page_count = page_count
        self.closed = False
        self.loaded = []

    def __enter__(self) -> "DummyDoc":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001 - test helper
        self.closed = True

    def load_page(self, index: int) -> DummyPage:
        self.loaded.append(index)
        return DummyPage()


def test_render_previews_closes_document(monkeypatch) -> None:
    doc = DummyDoc()

    def fake_open(path: str) -> DummyDoc:  # noqa: ARG001 - test helper
        return doc

    with tempfile.TemporaryDirectory() as temp_dir:
        monkeypatch.setattr("docrender.engine.render_preview.fitz.open", fake_open)
        previews = render_previews("sample", Path("sample.pdf"), base_dir=Path(temp_dir))
        assert doc.closed is True
        assert len(previews) == 3
        assert all(path.exists() for path in previews)


def test_short_document_gets_fewer_previews(monkeypatch, tmp_path: Path) -> None:
    doc = DummyDoc(page_count=1)
    monkeypatch.setattr("docrender.engine.render_preview.fitz.open", lambda path: doc)
    previews = render_previews("sample", Path("sample.pdf"), base_dir=tmp_path)
    assert [p.name for p in previews] == ["preview_1.png"]
    assert doc.loaded == [0]


def test_real_pdf_preview(tmp_path: Path) -> None:
    template = {
        "id": "tpl_preview",
        "elements": [{"id": "t", "type": "label", "text": "Preview", "x": 40, "y": 40}],
    }
    pdf_path = tmp_path / "document.pdf"
    pdf_path.write_bytes(render_template_to_pdf(template).pdf)

    previews = render_previews("sample", pdf_path, base_dir=tmp_path, include_slug=False)

    assert len(previews) == 1
    assert previews[0].read_bytes().startswith(b"\x89PNG")
