from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from docrender.engine.context import RenderOptions


class FixedWidthFont:
    """Every character is ``ratio * size`` wide."""

    def __init__(self, ratio: float = 0.5) -> None:
        self.ratio = ratio

    def width(self, text: str, size: float) -> float:
        return len(text) * size * self.ratio


class TextRecorder:
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.pages: List[tuple] = []

    def on_text(self, call: Dict[str, Any]) -> None:
        self.calls.append(call)

    def on_page(self, page: int, total: int) -> None:
        self.pages.append((page, total))

    def options(self, **kwargs) -> RenderOptions:
        return RenderOptions(on_text=self.on_text, on_page=self.on_page, **kwargs)

    def texts(self, phase: Optional[str] = None, page: Optional[int] = None) -> List[str]:
        return [
            c["text"] for c in self.calls
            if (phase is None or c["phase"] == phase) and (page is None or c["page"] == page)
        ]


@pytest.fixture
def font() -> FixedWidthFont:
    return FixedWidthFont()


@pytest.fixture
def recorder() -> TextRecorder:
    return TextRecorder()


def table_template(rows_field: str = "Items", summary: Optional[dict] = None, **table) -> Dict[str, Any]:
    element = {
        "id": "items",
        "type": "table",
        "x": 40,
        "y": 100,
        "rowHeight": 20,
        "dataSource": {"type": "kintoneSubtable", "fieldCode": rows_field},
        "columns": [
            {"id": "item_name", "title": "Item", "fieldCode": "ItemName", "width": 300, "overflow": "wrap"},
            {"id": "amount", "title": "Amount", "fieldCode": "Amount", "width": 120},
        ],
    }
    if summary is not None:
        element["summary"] = summary
    element.update(table)
    return {"id": "tpl_table", "name": "Table", "pageSize": "A4", "elements": [element]}
