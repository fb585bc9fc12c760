from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Sequence, Tuple
import logging

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from qrcode.exceptions import DataOverflowError

from .. import config
from ..models import FieldSource, LabelMapping, SheetSettings, TemplateDefinition
from .context import RenderContext
from .data import resolve_data_source
from .draw import draw_box, draw_lines
from .text_fit import LINE_HEIGHT, ellipsis_to_width, fit_title_up_to_2_lines, shrink_to_fit
from .warning_sink import WarningSink


logger = logging.getLogger(__name__)

SECONDARY_SLOTS = ("code", "qty", "extra")


@dataclass(frozen=True)
class LabelGrid:
    page_width: float
    page_height: float
    cols: int
    rows: int
    label_width: float
    label_height: float
    margin: float
    gap: float
    offset_x: float
    offset_y: float

    @property
    def per_page(self) -> int:
        return self.cols * self.rows

    def origin(self, slot: int) -> Tuple[float, float]:
        """(left, top) of a slot in PDF space, filled row by row from the top."""
        col = slot % self.cols
        row = slot // self.cols
        left = self.margin + self.offset_x + col * (self.label_width + self.gap)
        top = self.page_height - self.margin - self.offset_y - row * (self.label_height + self.gap)
        return left, top


def sheet_page_size(template: TemplateDefinition) -> Tuple[float, float]:
    settings = template.sheet_settings or SheetSettings()
    width = settings.paper_width_mm * config.MM_TO_PT
    height = settings.paper_height_mm * config.MM_TO_PT
    if template.orientation == "landscape" and width < height:
        width, height = height, width
    return width, height


def sheet_grid(template: TemplateDefinition, warnings: WarningSink) -> Optional[LabelGrid]:
    settings = template.sheet_settings or SheetSettings()
    page_width, page_height = sheet_page_size(template)
    margin = settings.margin_mm * config.MM_TO_PT
    gap = settings.gap_mm * config.MM_TO_PT
    cols, rows = int(settings.cols), int(settings.rows)

    usable_w = page_width - 2 * margin - gap * (cols - 1)
    usable_h = page_height - 2 * margin - gap * (rows - 1)
    if cols < 1 or rows < 1 or usable_w <= 0 or usable_h <= 0:
        warnings.add(
            "layout", "label sheet has no usable area",
            {"cols": cols, "rows": rows, "usableWidth": round(usable_w, 2), "usableHeight": round(usable_h, 2)},
        )
        return None
    return LabelGrid(
        page_width=page_width,
        page_height=page_height,
        cols=cols,
        rows=rows,
        label_width=usable_w / cols,
        label_height=usable_h / rows,
        margin=margin,
        gap=gap,
        offset_x=settings.offset_x_mm * config.MM_TO_PT,
        offset_y=settings.offset_y_mm * config.MM_TO_PT,
    )


def resolve_copies(raw: Any, warnings: WarningSink, field_code: Optional[str] = None) -> int:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return config.MIN_COPIES
    try:
        copies = int(Decimal(str(raw).strip().replace(",", "")))
    except (InvalidOperation, ValueError, ArithmeticError):
        warnings.add("data", "copies value is not numeric; printing one copy", {"fieldCode": field_code, "value": str(raw)})
        return config.MIN_COPIES
    clamped = max(config.MIN_COPIES, min(config.MAX_COPIES, copies))
    if clamped != copies:
        warnings.add("data", "copies value clamped", {"fieldCode": field_code, "value": copies, "copies": clamped})
    return clamped


def make_qr_matrix(payload: str) -> Sequence[Sequence[bool]]:
    qr = qrcode.QRCode(border=1, box_size=1, error_correction=ERROR_CORRECT_M)
    qr.add_data(payload)
    qr.make(fit=True)
    return qr.get_matrix()


def _slot(mapping: LabelMapping, name: str) -> Optional[str]:
    value = getattr(mapping.slots, name, None)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class LabelSheetRenderer:
    def __init__(self, ctx: RenderContext, grid: LabelGrid) -> None:
        self.ctx = ctx
        self.grid = grid
        self.mapping = ctx.template.label_mapping()
        self.pad = max(2.0, min(grid.label_width, grid.label_height) * 0.06)

    def _value(self, slot: str) -> str:
        field_code = _slot(self.mapping, slot)
        if not field_code:
            return ""
        return resolve_data_source(
            FieldSource(field_code=field_code), self.ctx.record, self.ctx.preview_mode, self.ctx.warnings
        )

    def _qr_payload(self) -> str:
        field_code = _slot(self.mapping, "qr")
        if not field_code:
            return ""
        if self.ctx.preview_mode == "fieldCode":
            return field_code
        value = self.ctx.record.get(field_code)
        return "" if value is None else str(value).strip()

    def copies(self) -> int:
        field_code = self.mapping.copies_field_code
        if not field_code or self.ctx.preview_mode == "fieldCode":
            return config.MIN_COPIES
        return resolve_copies(self.ctx.record.get(field_code), self.ctx.warnings, field_code)

    def _draw_qr_placeholder(self, x: float, y: float, side: float) -> None:
        draw_box(self.ctx, x, y, side, side, stroke_gray=0.0, line_width=0.8)
        size = max(4.0, min(12.0, side * 0.3))
        draw_lines(
            self.ctx, [config.QR_PLACEHOLDER_TEXT], x, side, y + side, side, size, "center", size * LINE_HEIGHT,
            element_id="label", phase="label",
        )

    def _draw_qr(self, matrix: Optional[Sequence[Sequence[bool]]], x: float, y: float, side: float) -> None:
        if not matrix:
            self._draw_qr_placeholder(x, y, side)
            return
        modules = len(matrix)
        cell = side / modules
        canv = self.ctx.canvas
        canv.saveState()
        canv.setFillGray(0.0)
        for r, row in enumerate(matrix):
            for c, dark in enumerate(row):
                if dark:
                    canv.rect(x + c * cell, y + side - (r + 1) * cell, cell, cell, stroke=0, fill=1)
        canv.restoreState()

    def _texts(self) -> Tuple[str, List[str]]:
        title = self._value("title")
        secondary = []
        for slot in SECONDARY_SLOTS:
            value = self._value(slot)
            if slot == "qty" and value and self.ctx.preview_mode == "record":
                value = f"Qty: {value}"
            secondary.append(value)
        return title, secondary

    def draw_label(self, slot: int, title: str, secondary: List[str], matrix: Optional[Sequence[Sequence[bool]]]) -> None:
        g = self.grid
        left, top = g.origin(slot)
        draw_box(
            self.ctx, left, top - g.label_height, g.label_width, g.label_height,
            stroke_gray=float(self.ctx.style_value("label_border_gray", 0.85)), line_width=0.5,
        )
        pad = self.pad
        qr_side = max(1.0, min(g.label_height - 2 * pad, g.label_width * 0.4))
        qr_x = left + g.label_width - pad - qr_side
        qr_y = top - g.label_height / 2 - qr_side / 2
        self._draw_qr(matrix, qr_x, qr_y, qr_side)

        text_left = left + pad
        text_w = max(1.0, g.label_width - 3 * pad - qr_side)
        inner_h = g.label_height - 2 * pad
        title_h = inner_h * 0.5
        if title:
            fit = fit_title_up_to_2_lines(title, self.ctx.fonts.pick(title), text_w, title_h, 14.0, 5.0)
            draw_lines(
                self.ctx, fit.lines, text_left, text_w, top - pad, title_h, fit.font_size, "left",
                fit.font_size * LINE_HEIGHT, element_id="label", phase="label", bold=True,
            )

        band = (inner_h - title_h) / len(SECONDARY_SLOTS)
        for i, text in enumerate(secondary):
            if not text:
                continue
            font = self.ctx.fonts.pick(text)
            base = min(9.0, band / LINE_HEIGHT)
            size = shrink_to_fit(text, font, base, text_w, min(base, 5.0))
            text = ellipsis_to_width(text, font, size, text_w)
            draw_lines(
                self.ctx, [text], text_left, text_w, top - pad - title_h - i * band, band, size, "left",
                size * LINE_HEIGHT, element_id="label", phase="label",
            )

    def render(self) -> None:
        ctx = self.ctx
        copies = self.copies()
        title, secondary = self._texts()
        payload = self._qr_payload()
        matrix = None
        if payload:
            try:
                matrix = make_qr_matrix(payload)
            except (DataOverflowError, ValueError) as exc:
                ctx.warnings.add("data", "qr code could not be generated", {"error": str(exc), "length": len(payload)})

        per_page = self.grid.per_page
        for index in range(copies):
            if index and index % per_page == 0:
                ctx.new_page()
            self.draw_label(index % per_page, title, secondary, matrix)

        ctx.warnings.add(
            "debug", "label sheet rendered",
            {"copies": copies, "perPage": per_page, "pages": ctx.page_count, "qr": matrix is not None},
        )


def render_label_sheet(ctx: RenderContext) -> None:
    grid = sheet_grid(ctx.template, ctx.warnings)
    if grid is None:
        return
    LabelSheetRenderer(ctx, grid).render()
