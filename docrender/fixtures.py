from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, List, Optional

from .models import TemplateDataRecord


LONG_TEXT = "X" * 200


def make_items(
    count: int,
    item_name: str,
    unit_price: str = "1234567890",
    amount: str = "9876543210",
) -> List[Dict[str, Any]]:
    return [
        {"ItemName": f"{item_name} {n}", "Qty": n, "UnitPrice": unit_price, "Amount": amount}
        for n in range(1, count + 1)
    ]


# estimate layout in authoring units (1 unit = 1pt on A4)
SAMPLE_TEMPLATE: Dict[str, Any] = {
    "id": "estimate_v1_sample",
    "name": "Sample Estimate",
    "pageSize": "A4",
    "orientation": "portrait",
    "structureType": "estimate_v1",
    "elements": [
        {
            "id": "doc_title",
            "type": "label",
            "region": "header",
            "text": "御見積書",
            "x": 40,
            "y": 40,
            "width": 515,
            "height": 28,
            "fontSize": 20,
            "fontWeight": "bold",
            "align": "center",
        },
        {
            "id": "customer_name",
            "type": "text",
            "region": "header",
            "repeatOnEveryPage": False,
            "x": 40,
            "y": 90,
            "width": 300,
            "height": 36,
            "fontSize": 12,
            "dataSource": {"type": "kintone", "fieldCode": "CustomerName"},
        },
        {
            "id": "estimate_date",
            "type": "text",
            "region": "header",
            "repeatOnEveryPage": False,
            "x": 400,
            "y": 90,
            "width": 155,
            "height": 18,
            "fontSize": 10,
            "align": "right",
            "dataSource": {"type": "kintone", "fieldCode": "EstimateDate"},
        },
        {
            "id": "logo",
            "type": "image",
            "region": "header",
            "repeatOnEveryPage": False,
            "x": 435,
            "y": 115,
            "width": 120,
            "height": 40,
            "dataSource": {"type": "kintone", "fieldCode": "LogoUrl"},
        },
        {
            "id": "items",
            "type": "table",
            "region": "body",
            "x": 40,
            "y": 170,
            "width": 515,
            "rowHeight": 20,
            "headerHeight": 22,
            "fontSize": 9,
            "dataSource": {"type": "kintoneSubtable", "fieldCode": "Items"},
            "columns": [
                {"id": "item_name", "title": "品名", "fieldCode": "ItemName", "width": 235},
                {"id": "qty", "title": "数量", "fieldCode": "Qty", "width": 60, "align": "right", "format": "number"},
                {"id": "unit_price", "title": "単価", "fieldCode": "UnitPrice", "width": 100, "align": "right",
                 "format": "currency"},
                {"id": "amount", "title": "金額", "fieldCode": "Amount", "width": 120, "align": "right",
                 "format": "currency"},
            ],
            "summary": {
                "mode": "everyPageSubtotal+lastTotal",
                "rows": [{"op": "sum", "columnId": "amount", "kind": "both"}],
            },
        },
        {
            "id": "remarks",
            "type": "text",
            "region": "footer",
            "footerRepeatMode": "last",
            "x": 40,
            "y": 760,
            "width": 515,
            "height": 40,
            "fontSize": 9,
            "borderWidth": 0.5,
            "dataSource": {"type": "kintone", "fieldCode": "Remarks"},
        },
        {
            "id": "grand_total",
            "type": "text",
            "region": "footer",
            "footerRepeatMode": "last",
            "x": 355,
            "y": 735,
            "width": 200,
            "height": 18,
            "fontSize": 11,
            "fontWeight": "bold",
            "align": "right",
            "dataSource": {"type": "kintone", "fieldCode": "__computedTotal"},
        },
    ],
}

FIXTURES: Dict[str, TemplateDataRecord] = {
    "longtext": {
        "CustomerName": LONG_TEXT,
        "EstimateDate": "2025-01-15",
        "Remarks": "X" * 240,
        "TotalAmount": "1234567890",
        "Items": make_items(10, LONG_TEXT),
    },
    "bigNumber": {
        "CustomerName": "Big Number Co.",
        "EstimateDate": "2025-01-15",
        "TotalAmount": "1234567890123456",
        "Items": make_items(3, "BigNumberItem", unit_price="1234567890123456", amount="9876543210987654"),
    },
    "badImage": {
        "CustomerName": "Bad Image Co.",
        "EstimateDate": "2025-01-15",
        "LogoUrl": "https://example.com/404.png",
        "LogoUrl404": "https://example.com/404.png",
        "LogoUrlText": "https://example.com/",
        "LogoUrlNonHttp": "file://not-allowed",
        "Items": make_items(2, "BadImageItem"),
    },
    "emptyRows": {
        "CustomerName": "Empty Rows Co.",
        "EstimateDate": "2025-01-15",
        "Items": [],
    },
    "emptyRowsUndefined": {
        "CustomerName": "Empty Rows Undefined Co.",
        "EstimateDate": "2025-01-15",
    },
    "summaryBasic": {
        "CustomerName": "Summary Basic Co.",
        "EstimateDate": "2025-01-15",
        "Items": [
            {"ItemName": "Item A", "Qty": 1, "UnitPrice": "1000", "Amount": "1000"},
            {"ItemName": "Item B", "Qty": 2, "UnitPrice": "2000", "Amount": "2000"},
            {"ItemName": "Item C", "Qty": 3, "UnitPrice": "3000", "Amount": "3000"},
        ],
    },
    "summaryPaging": {
        "CustomerName": "Summary Paging Co.",
        "EstimateDate": "2025-01-15",
        "Items": make_items(60, LONG_TEXT, unit_price="1000", amount="1000"),
    },
    "summaryPagingTight": {
        "CustomerName": "Summary Paging Tight Co.",
        "EstimateDate": "2025-01-15",
        "Items": make_items(40, LONG_TEXT, unit_price="1000", amount="1000"),
    },
}


def fixture_names() -> List[str]:
    return sorted(FIXTURES)


def get_fixture_data(name: str) -> Optional[TemplateDataRecord]:
    data = FIXTURES.get(name)
    return deepcopy(data) if data is not None else None


def sample_template() -> Dict[str, Any]:
    return deepcopy(SAMPLE_TEMPLATE)
