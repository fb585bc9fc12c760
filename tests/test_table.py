from __future__ import annotations

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth

from conftest import table_template
from docrender.engine.canvas import PagedCanvas
from docrender.engine.errors import TemplateRenderError
from docrender.engine.render import render_template_to_pdf


def _rows(count: int, amount: str = "1"):
    return [{"ItemName": f"Row{i}", "Amount": amount} for i in range(1, count + 1)]


def test_last_page_only_total(recorder) -> None:
    template = table_template(summary={"mode": "lastPageOnly", "rows": [{"op": "sum", "columnId": "amount"}]})
    data = {"Items": [{"ItemName": "A", "Amount": "100"}, {"ItemName": "B", "Amount": "200.50"}]}

    result = render_template_to_pdf(template, data, options=recorder.options())

    assert result.page_count == 1
    assert result.pdf.startswith(b"%PDF")
    assert recorder.texts(phase="summary") == ["合計", "300.5"]
    assert recorder.texts(phase="cell") == ["A", "100", "B", "200.50"]


def test_every_page_subtotal_then_total(recorder) -> None:
    summary = {
        "mode": "everyPageSubtotal+lastTotal",
        "rows": [{"op": "sum", "columnId": "amount", "labelSubtotal": "Subtotal", "labelTotal": "Total"}],
    }
    template = table_template(summary=summary)

    result = render_template_to_pdf(template, {"Items": _rows(40)}, options=recorder.options())

    assert result.page_count == 2
    assert recorder.texts(phase="summary", page=1) == ["Subtotal", "33"]
    # page 2 subtotal only counts page 2 rows
    assert recorder.texts(phase="summary", page=2) == ["Subtotal", "7", "Total", "40"]
    assert recorder.texts(phase="header", page=2) == ["Item", "Amount"]
    assert recorder.pages == [(1, 2), (2, 2)]


def test_default_summary_row_targets_amount_column(recorder) -> None:
    template = table_template(summary={"mode": "lastPageOnly"})
    render_template_to_pdf(template, {"Items": _rows(3, "1,000")}, options=recorder.options())
    assert recorder.texts(phase="summary") == ["合計", "3,000"]


def test_summary_row_without_column_warns() -> None:
    template = table_template(summary={"mode": "lastPageOnly", "rows": [{"op": "sum", "columnId": "nope"}]})
    result = render_template_to_pdf(template, {"Items": _rows(2)})
    assert any(w.startswith("[layout] summary row has no target column") for w in result.warnings)


def test_unparseable_amount_is_skipped_with_warning(recorder) -> None:
    template = table_template(summary={"mode": "lastPageOnly"})
    data = {"Items": [{"ItemName": "A", "Amount": "100"}, {"ItemName": "B", "Amount": "n/a"}]}
    result = render_template_to_pdf(template, data, options=recorder.options())
    assert recorder.texts(phase="summary") == ["合計", "100"]
    assert any(w.startswith("[data] unparseable decimal value") for w in result.warnings)


def test_computed_total_reaches_last_page_footer(recorder) -> None:
    template = table_template()
    template["elements"].append(
        {
            "id": "grand_total",
            "type": "text",
            "region": "footer",
            "footerRepeatMode": "last",
            "x": 300,
            "y": 780,
            "width": 200,
            "height": 18,
            "dataSource": {"type": "kintone", "fieldCode": "__computedTotal"},
        }
    )
    render_template_to_pdf(template, {"Items": _rows(4, "250")}, options=recorder.options())
    assert "1,000" in recorder.texts(phase="element")


def test_five_hundred_rows_terminate() -> None:
    result = render_template_to_pdf(table_template(), {"Items": _rows(500)})
    # 34 rows on page one, 37 on every following page
    assert 13 <= result.page_count <= 15


def test_wrapped_item_name_grows_row(recorder) -> None:
    template = table_template()
    data = {"Items": [{"ItemName": "Long description " * 12, "Amount": "1"}]}
    render_template_to_pdf(template, data, options=recorder.options())
    cell_lines = [c for c in recorder.calls if c["phase"] == "cell"]
    assert len(cell_lines) > 2
    assert len({round(c["y"], 2) for c in cell_lines}) > 1


def test_field_code_preview_echoes_columns(recorder) -> None:
    template = table_template(summary={"mode": "lastPageOnly"})
    result = render_template_to_pdf(template, {}, options=recorder.options(preview_mode="fieldCode"))
    assert recorder.texts(phase="cell") == ["ItemName", "Amount"]
    assert recorder.texts(phase="summary") == ["合計", "Amount"]
    assert not any(w.startswith("[data]") for w in result.warnings)


def test_missing_subtable_is_a_data_warning() -> None:
    result = render_template_to_pdf(table_template(), {"CustomerName": "Acme"})
    assert result.page_count == 1
    assert any("subtable field missing from record" in w for w in result.warnings)


def test_debug_mode_reports_table_stats() -> None:
    from docrender.engine.context import RenderOptions

    result = render_template_to_pdf(table_template(), {"Items": _rows(2)}, options=RenderOptions(debug=True))
    assert any(w.startswith("[debug] table rendered") for w in result.warnings)


def test_table_placed_low_starts_rows_on_next_page(recorder) -> None:
    template = table_template(y=770)
    result = render_template_to_pdf(template, {"Items": _rows(3)}, options=recorder.options())

    assert result.page_count == 2
    assert not any("row is taller" in w for w in result.warnings)
    assert recorder.texts(phase="header", page=1) == ["Item", "Amount"]
    assert recorder.texts(phase="cell", page=1) == []
    assert recorder.texts(phase="cell", page=2) == ["Row1", "1", "Row2", "1", "Row3", "1"]
    assert all(c["y"] >= 36 for c in recorder.calls if c["phase"] == "cell")


def _code_table(overflow: str) -> dict:
    columns = [
        {"id": "code", "title": "Code", "fieldCode": "Code", "width": 60, "overflow": overflow},
        {"id": "amount", "title": "Amount", "fieldCode": "Amount", "width": 120},
    ]
    return table_template(columns=columns)


def _cell_call(recorder, column_left: float):
    return next(c for c in recorder.calls if c["phase"] == "cell" and c["x"] < column_left + 60)


def test_ellipsis_cell_is_cut_to_column_width(recorder) -> None:
    render_template_to_pdf(_code_table("ellipsis"), {"Items": [{"Code": "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "Amount": "1"}]},
                           options=recorder.options())
    call = _cell_call(recorder, 40)
    assert call["text"].endswith("...")
    assert stringWidth(call["text"], call["font"], call["size"]) <= 52 + 0.01


def test_shrink_cell_uses_smaller_font(recorder) -> None:
    render_template_to_pdf(_code_table("shrink"), {"Items": [{"Code": "ABCDEFGHIJ", "Amount": "1"}]},
                           options=recorder.options())
    call = _cell_call(recorder, 40)
    assert call["text"] == "ABCDEFGHIJ"
    assert call["size"] < 10


def test_clip_cell_draws_full_text(recorder) -> None:
    text = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    render_template_to_pdf(_code_table("clip"), {"Items": [{"Code": text, "Amount": "1"}]}, options=recorder.options())
    call = _cell_call(recorder, 40)
    assert call["text"] == text
    assert call["size"] == 10


def test_default_alignment_numbers_right_text_left(recorder) -> None:
    render_template_to_pdf(table_template(), {"Items": [{"ItemName": "abc", "Amount": "1,234"}]},
                           options=recorder.options())
    name, amount = [c for c in recorder.calls if c["phase"] == "cell"]
    assert name["x"] == pytest.approx(44)
    # amount column spans 340..460 with 4pt padding
    right_edge = amount["x"] + stringWidth(amount["text"], amount["font"], amount["size"])
    assert right_edge == pytest.approx(456)


def test_header_draw_failure_reports_header_phase(monkeypatch) -> None:
    def broken(self, *args, **kwargs):
        raise ValueError("glyph missing")

    monkeypatch.setattr(PagedCanvas, "drawText", broken)
    with pytest.raises(TemplateRenderError) as info:
        render_template_to_pdf(table_template(), {"Items": _rows(2)})
    assert info.value.phase == "header"
    assert info.value.element_id == "items"


def test_cell_draw_failure_reports_cell_phase(monkeypatch) -> None:
    def broken(self, *args, **kwargs):
        raise ValueError("glyph missing")

    monkeypatch.setattr(PagedCanvas, "drawString", broken)
    with pytest.raises(TemplateRenderError) as info:
        render_template_to_pdf(table_template(), {"Items": _rows(2)})
    assert info.value.phase == "cell"
    assert info.value.element_id == "items"


def test_summary_draw_failure_reports_summary_phase(monkeypatch) -> None:
    original = PagedCanvas.drawString

    def picky(self, x, y, text, *args, **kwargs):
        if text == "Subtotal":
            raise ValueError("glyph missing")
        return original(self, x, y, text, *args, **kwargs)

    monkeypatch.setattr(PagedCanvas, "drawString", picky)
    summary = {"mode": "everyPageSubtotal+lastTotal", "rows": [{"op": "sum", "columnId": "amount", "labelSubtotal": "Subtotal"}]}
    with pytest.raises(TemplateRenderError) as info:
        render_template_to_pdf(table_template(summary=summary), {"Items": _rows(2)})
    assert info.value.phase == "summary"
