from __future__ import annotations

import pytest

from docrender.engine.card_list import pick_variant
from docrender.engine.render import render_template_to_pdf


def cards_template(fields, **card):
    element = {
        "id": "cards",
        "type": "cardList",
        "x": 40,
        "y": 100,
        "dataSource": {"type": "kintoneSubtable", "fieldCode": "Items"},
        "fields": fields,
    }
    element.update(card)
    return {"id": "tpl_cards", "name": "Cards", "structureType": "cards_v1", "elements": [element]}


THREE_FIELDS = [
    {"id": "title", "label": "Item", "fieldCode": "ItemName"},
    {"id": "qty", "label": "Qty", "fieldCode": "Qty"},
    {"id": "amount", "label": "Amount", "fieldCode": "Amount", "format": "currency"},
]


@pytest.mark.parametrize(
    "count, width, height, expected",
    [
        (0, 500, 80, "single"),
        (1, 500, 80, "single"),
        (2, 500, 80, "compactWide"),
        (3, 300, 80, "compactStacked"),
        (4, 500, 80, "full"),
        (6, 500, 80, "full"),
    ],
)
def test_pick_variant(count, width, height, expected) -> None:
    assert pick_variant(count, width, height) == expected


def test_compact_card_shows_labelled_secondaries(recorder) -> None:
    data = {"Items": [{"ItemName": "Widget", "Qty": 2, "Amount": "1200"}]}
    result = render_template_to_pdf(cards_template(THREE_FIELDS), data, options=recorder.options())
    texts = recorder.texts(phase="card")
    assert result.page_count == 1
    assert texts[0] == "Widget"
    assert "Qty: 2" in texts
    assert "Amount: ¥1,200" in texts


def test_cards_paginate(recorder) -> None:
    rows = [{"ItemName": f"Card {n}", "Qty": n, "Amount": "10"} for n in range(1, 13)]
    result = render_template_to_pdf(cards_template(THREE_FIELDS), {"Items": rows}, options=recorder.options())
    assert result.page_count == 2
    assert "Card 7" in recorder.texts(phase="card", page=1)
    assert "Card 8" in recorder.texts(phase="card", page=2)


def test_empty_subtable_draws_placeholder_cards(recorder) -> None:
    result = render_template_to_pdf(cards_template(THREE_FIELDS), {"Items": []}, options=recorder.options())
    texts = recorder.texts(phase="card")
    assert {"Item 1", "Item 2", "Item 3"} <= set(texts)
    assert any(w.startswith("[data] card list has no rows") for w in result.warnings)


def test_full_layout_puts_first_field_bold(recorder) -> None:
    fields = [{"id": f"f{n}", "label": f"F{n}", "fieldCode": f"F{n}"} for n in range(1, 6)]
    data = {"Items": [{f"F{n}": f"value {n}" for n in range(1, 6)}]}
    render_template_to_pdf(cards_template(fields), data, options=recorder.options())
    texts = recorder.texts(phase="card")
    assert texts == [f"value {n}" for n in range(1, 6)]


def test_single_field_card_wraps_long_text(recorder) -> None:
    fields = [{"id": "note", "fieldCode": "Note"}]
    data = {"Items": [{"Note": "word " * 60}]}
    render_template_to_pdf(cards_template(fields, width=200, cardHeight=60), data, options=recorder.options())
    lines = recorder.texts(phase="card")
    assert len(lines) >= 1
    assert lines[-1].endswith("...")


def test_field_code_preview_draws_one_echo_card(recorder) -> None:
    result = render_template_to_pdf(
        cards_template(THREE_FIELDS), {}, options=recorder.options(preview_mode="fieldCode")
    )
    texts = recorder.texts(phase="card")
    assert texts[0] == "ItemName"
    assert "Qty: Qty" in texts
    assert result.page_count == 1


def test_cards_preferred_as_body_for_card_structures() -> None:
    template = cards_template(THREE_FIELDS)
    template["elements"].append(
        {"id": "items", "type": "table", "x": 40, "y": 400, "columns": [{"id": "c", "fieldCode": "C"}]}
    )
    result = render_template_to_pdf(template, {"Items": []})
    assert any(
        w.startswith("[layout] multiple body elements") and '"used": "cards"' in w for w in result.warnings
    )
