from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging

from .. import config
from ..models import SummaryRow, SummarySpec, TableColumn, TableElement
from .context import RenderContext
from .data import ZERO, ScaledDecimal, format_scaled, format_value, looks_numeric, parse_decimal_to_scaled
from .draw import clip_to, draw_box, draw_lines
from .text_fit import LINE_HEIGHT, ellipsis_to_width, shrink_to_fit, wrap_to_lines


logger = logging.getLogger(__name__)

EVERY_PAGE = "everyPageSubtotal+lastTotal"
LAST_PAGE_ONLY = "lastPageOnly"


@dataclass
class CellLayout:
    lines: List[str]
    size: float
    align: str
    clip: bool = False


@dataclass
class SummaryLine:
    row: SummaryRow
    column_index: int
    field_code: str
    index: int


@dataclass
class SummaryPlan:
    mode: str
    spec: SummarySpec
    lines: List[SummaryLine] = field(default_factory=list)
    amount_index: Optional[int] = None
    amount_targeted: bool = False

    def rows_for(self, kind: str) -> List[SummaryLine]:
        return [line for line in self.lines if line.row.kind in (kind, "both")]


def subtable_rows(ctx: RenderContext, element_id: str, field_code: Optional[str]) -> List[Dict[str, Any]]:
    """Rows of a subtable field; anything malformed becomes a data warning."""
    if not field_code:
        ctx.warnings.add("data", "subtable element has no field code", {"elementId": element_id})
        return []
    value = ctx.record.get(field_code)
    if value is None:
        ctx.warnings.add("data", "subtable field missing from record", {"elementId": element_id, "fieldCode": field_code})
        return []
    if not isinstance(value, list):
        ctx.warnings.add("data", "subtable field is not a list", {"elementId": element_id, "fieldCode": field_code})
        return []
    rows: List[Dict[str, Any]] = []
    for index, row in enumerate(value):
        if isinstance(row, dict):
            rows.append(row)
        else:
            ctx.warnings.add("data", "subtable row is not an object", {"elementId": element_id, "row": index})
            rows.append({})
    return rows


def _is_amount_column(column: TableColumn) -> bool:
    return column.id == "amount" or column.field_code == "Amount"


def _build_summary_plan(ctx: RenderContext, table: TableElement) -> SummaryPlan:
    spec = table.summary or SummarySpec()
    plan = SummaryPlan(mode=spec.mode, spec=spec)
    plan.amount_index = next((i for i, c in enumerate(table.columns) if _is_amount_column(c)), None)
    if spec.mode == "none":
        return plan

    rows = list(spec.rows)
    if not rows and plan.amount_index is not None:
        rows = [SummaryRow(op="sum", column_id=table.columns[plan.amount_index].id, kind="both")]

    for row in rows:
        index = None
        if row.column_id:
            index = next((i for i, c in enumerate(table.columns) if c.id == row.column_id), None)
        if index is None and row.field_code:
            index = next((i for i, c in enumerate(table.columns) if c.field_code == row.field_code), None)
        if index is None:
            ctx.warnings.add(
                "layout", "summary row has no target column",
                {"elementId": table.id, "columnId": row.column_id, "fieldCode": row.field_code},
            )
            continue
        field_code = row.field_code or table.columns[index].field_code
        plan.lines.append(SummaryLine(row=row, column_index=index, field_code=field_code, index=len(plan.lines)))
        if row.op == "sum" and index == plan.amount_index:
            plan.amount_targeted = True
    return plan


class TableRenderer:
    """
    header row -> body rows -> (subtotal break | page break)* -> trailing summary.
    """

    def __init__(self, ctx: RenderContext, table: TableElement) -> None:
        self.ctx = ctx
        self.table = table
        t = ctx.transform
        self.left = t.x(table.x)
        self.col_widths = [t.w(c.width) for c in table.columns]
        self.width = sum(self.col_widths)
        self.font_size = t.font(table.font_size)
        self.line_height = self.font_size * float(ctx.style_value("line_height", LINE_HEIGHT))
        self.pad = float(ctx.style_value("cell_padding", 4))
        self.v_pad = float(ctx.style_value("cell_vertical_padding", 6))
        self.grid_width = float(ctx.style_value("grid_line_width", 0.5))
        self.min_row_height = t.h(table.row_height)
        self.header_height = t.h(table.header_height or table.row_height)
        self.summary_row_height = max(self.min_row_height, self.line_height + self.v_pad)
        self.echo = ctx.preview_mode == "fieldCode"

        self.plan = _build_summary_plan(ctx, table)
        self.page_sums: Dict[int, ScaledDecimal] = {}
        self.grand_sums: Dict[int, ScaledDecimal] = {}
        self.fallback_total = ZERO
        self.pages = 1

    # ---------- cells ----------
    def _cell_text(self, row: Dict[str, Any], column: TableColumn, row_index: int) -> str:
        if self.echo:
            return column.field_code
        try:
            return format_value(row.get(column.field_code), column.format, self.ctx.warnings)
        except (TypeError, ValueError, ArithmeticError) as exc:
            self.ctx.warnings.add(
                "data", "cell value could not be formatted",
                {"elementId": self.table.id, "row": row_index, "columnId": column.id, "error": str(exc)},
            )
            return ""

    def _layout_cell(self, text: str, column: TableColumn, col_w: float) -> CellLayout:
        font = self.ctx.fonts.pick(text)
        inner_w = max(1.0, col_w - 2 * self.pad)
        overflow = column.overflow or ("wrap" if column.id == "item_name" else "shrink")
        align = column.align or ("right" if looks_numeric(text) else "left")
        size = self.font_size
        min_size = min(size, column.min_font_size)

        if overflow == "wrap":
            return CellLayout(wrap_to_lines(text, font, size, inner_w), size, align)
        if overflow == "ellipsis":
            return CellLayout([ellipsis_to_width(text, font, size, inner_w)], size, align)
        if overflow == "clip":
            return CellLayout([text], size, align, clip=True)
        size = shrink_to_fit(text, font, size, inner_w, min_size)
        return CellLayout([ellipsis_to_width(text, font, size, inner_w)], size, align)

    def _layout_row(self, row: Dict[str, Any], row_index: int) -> Tuple[List[CellLayout], float]:
        cells = [
            self._layout_cell(self._cell_text(row, column, row_index), column, col_w)
            for column, col_w in zip(self.table.columns, self.col_widths)
        ]
        most_lines = max((len(c.lines) for c in cells), default=1)
        height = max(self.min_row_height, self.line_height * most_lines + self.v_pad)
        return cells, height

    # ---------- drawing ----------
    def _grid(self, top: float, height: float, stroke_gray: float, fill_gray: Optional[float] = None) -> None:
        if fill_gray is not None:
            draw_box(self.ctx, self.left, top - height, self.width, height, fill_gray=fill_gray)
        if not self.table.show_grid:
            return
        x = self.left
        for col_w in self.col_widths:
            draw_box(self.ctx, x, top - height, col_w, height, stroke_gray=stroke_gray, line_width=self.grid_width)
            x += col_w

    def draw_header(self, top: float) -> float:
        height = self.header_height
        self._grid(top, height, self.table.border_color_gray, self.table.header_fill_gray)
        x = self.left
        for column, col_w in zip(self.table.columns, self.col_widths):
            title = column.title or ""
            font = self.ctx.fonts.pick(title)
            inner_w = max(1.0, col_w - 2 * self.pad)
            size = shrink_to_fit(title, font, self.font_size, inner_w, min(self.font_size, column.min_font_size))
            title = ellipsis_to_width(title, font, size, inner_w)
            draw_lines(
                self.ctx, [title], x + self.pad, inner_w, top, height, size, "center", self.line_height,
                element_id=self.table.id, phase="header", bold=True,
            )
            x += col_w
        return top - height

    def draw_row(self, top: float, cells: List[CellLayout], height: float) -> float:
        self._grid(top, height, self.table.border_color_gray)
        x = self.left
        for cell, col_w in zip(cells, self.col_widths):
            inner_w = max(1.0, col_w - 2 * self.pad)
            if cell.clip:
                self.ctx.canvas.saveState()
                clip_to(self.ctx, x, top - height, col_w, height)
            draw_lines(
                self.ctx, cell.lines, x + self.pad, inner_w, top, height, cell.size, cell.align,
                cell.size * LINE_HEIGHT, element_id=self.table.id, phase="cell",
            )
            if cell.clip:
                self.ctx.canvas.restoreState()
            x += col_w
        return top - height

    def _summary_value(self, line: SummaryLine, sums: Dict[int, ScaledDecimal]) -> str:
        if line.row.op == "static":
            return line.row.value or ""
        if self.echo:
            return line.field_code
        column = self.table.columns[line.column_index]
        return format_scaled(sums.get(line.index, ZERO), column.format)

    def draw_summary_block(self, top: float, kind: str, sums: Dict[int, ScaledDecimal]) -> float:
        style = self.plan.spec.style
        is_total = kind == "total"
        height = self.summary_row_height
        for line in self.plan.rows_for(kind):
            fill = style.total_fill_gray if is_total else style.subtotal_fill_gray
            self._grid(top, height, style.border_color_gray, fill)
            if is_total and style.total_top_border_width > 0:
                canv = self.ctx.canvas
                canv.saveState()
                canv.setStrokeGray(0.0)
                canv.setLineWidth(style.total_top_border_width)
                canv.line(self.left, top, self.left + self.width, top)
                canv.restoreState()

            if is_total:
                label = line.row.label_total or line.row.label or config.TOTAL_LABEL
            else:
                label = line.row.label_subtotal or line.row.label or config.SUBTOTAL_LABEL
            first_w = max(1.0, self.col_widths[0] - 2 * self.pad)
            label = ellipsis_to_width(label, self.ctx.fonts.pick(label), self.font_size, first_w)
            draw_lines(
                self.ctx, [label], self.left + self.pad, first_w, top, height, self.font_size, "left",
                self.line_height, element_id=self.table.id, phase="summary", bold=is_total,
            )

            value = self._summary_value(line, sums)
            value_left = self.left + sum(self.col_widths[: line.column_index]) + self.pad
            value_w = max(1.0, self.col_widths[line.column_index] - 2 * self.pad)
            font = self.ctx.fonts.pick(value)
            size = shrink_to_fit(value, font, self.font_size, value_w, min(self.font_size, 6.0))
            draw_lines(
                self.ctx, [value], value_left, value_w, top, height, size, "right",
                self.line_height, element_id=self.table.id, phase="summary", bold=is_total,
            )
            top -= height
        return top

    def _block_height(self, kind: str) -> float:
        if self.plan.mode == "none":
            return 0.0
        return self.summary_row_height * len(self.plan.rows_for(kind))

    # ---------- accumulation ----------
    def _accumulate(self, row: Dict[str, Any], row_index: int) -> None:
        if self.echo:
            return
        for line in self.plan.lines:
            if line.row.op != "sum":
                continue
            value = row.get(line.field_code)
            if value is None or value == "":
                continue
            parsed = parse_decimal_to_scaled(
                value, self.ctx.warnings,
                {"elementId": self.table.id, "row": row_index, "fieldCode": line.field_code},
            )
            if parsed is None:
                continue
            self.page_sums[line.index] = self.page_sums.get(line.index, ZERO) + parsed
            self.grand_sums[line.index] = self.grand_sums.get(line.index, ZERO) + parsed

        if self.plan.amount_index is not None and not self.plan.amount_targeted:
            column = self.table.columns[self.plan.amount_index]
            value = row.get(column.field_code)
            if value is not None and value != "":
                parsed = parse_decimal_to_scaled(
                    value, self.ctx.warnings,
                    {"elementId": self.table.id, "row": row_index, "fieldCode": column.field_code},
                )
                if parsed is not None:
                    self.fallback_total = self.fallback_total + parsed

    def grand_amount_total(self) -> Optional[ScaledDecimal]:
        if self.plan.amount_index is None or self.echo:
            return None
        if self.plan.amount_targeted:
            line = next(
                candidate for candidate in self.plan.lines
                if candidate.row.op == "sum" and candidate.column_index == self.plan.amount_index
            )
            return self.grand_sums.get(line.index, ZERO)
        return self.fallback_total

    # ---------- pagination ----------
    def _break_page(self) -> float:
        self.ctx.new_page()
        self.pages += 1
        return self.draw_header(self.ctx.content_top)

    def render(self) -> None:
        ctx = self.ctx
        bottom = ctx.bottom_limit
        if self.echo:
            rows: List[Dict[str, Any]] = [{}]
        else:
            rows = subtable_rows(ctx, self.table.id, getattr(self.table.data_source, "field_code", None))
        if not self.table.columns:
            ctx.warnings.add("layout", "table has no columns", {"elementId": self.table.id})
            return

        every_page = self.plan.mode == EVERY_PAGE
        sub_h = self._block_height("subtotal") if every_page else 0.0
        total_h = self._block_height("total")

        start_top = ctx.transform.y_top(self.table.y)
        y = self.draw_header(start_top)
        # an empty page may only be left when a fresh one offers more room
        can_leave_empty = start_top < ctx.content_top
        rows_on_page = 0
        for index, row in enumerate(rows):
            cells, height = self._layout_row(row, index)
            is_last = index == len(rows) - 1
            reserve = sub_h + (total_h if is_last else 0.0) if every_page else 0.0
            if (rows_on_page or can_leave_empty) and y - height - reserve < bottom:
                if every_page and rows_on_page:
                    y = self.draw_summary_block(y, "subtotal", self.page_sums)
                    self.page_sums = {}
                y = self._break_page()
                rows_on_page = 0
                can_leave_empty = False
            y = self.draw_row(y, cells, height)
            rows_on_page += 1
            if y < bottom:
                ctx.warnings.add(
                    "layout", "row is taller than the available body height",
                    {"elementId": self.table.id, "row": index},
                )
            self._accumulate(row, index)

        if every_page:
            y = self._draw_trailer(y, [("subtotal", self.page_sums), ("total", self.grand_sums)])
            self.page_sums = {}
        elif self.plan.mode == LAST_PAGE_ONLY:
            y = self._draw_trailer(y, [("total", self.grand_sums)])

        total = self.grand_amount_total()
        if total is not None:
            ctx.record[config.COMPUTED_TOTAL_KEY] = total.to_string(grouping=True)
        ctx.warnings.add(
            "debug", "table rendered",
            {"elementId": self.table.id, "rows": len(rows), "pages": self.pages, "mode": self.plan.mode},
        )
        logger.debug("table %s: %s rows over %s pages", self.table.id, len(rows), self.pages)

    def _draw_trailer(self, y: float, blocks: List[Tuple[str, Dict[int, ScaledDecimal]]]) -> float:
        for kind, sums in blocks:
            height = self._block_height(kind)
            if not height:
                continue
            if y - height < self.ctx.bottom_limit:
                y = self._break_page()
                if y - height < self.ctx.bottom_limit:
                    self.ctx.warnings.add(
                        "layout", "summary rows do not fit even after a page break",
                        {"elementId": self.table.id, "kind": kind},
                    )
            y = self.draw_summary_block(y, kind, sums)
        return y


def render_table(ctx: RenderContext, table: TableElement) -> None:
    TableRenderer(ctx, table).render()
