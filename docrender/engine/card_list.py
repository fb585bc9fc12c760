from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

from ..models import CardField, CardListElement
from .context import RenderContext
from .data import format_value
from .draw import draw_box, draw_lines
from .table import subtable_rows
from .text_fit import LINE_HEIGHT, ellipsis_to_width, fit_title_up_to_2_lines, shrink_to_fit, wrap_to_lines


logger = logging.getLogger(__name__)

PLACEHOLDER_ROWS = 3
WIDE_ASPECT_RATIO = 5.0
MIN_CARD_FONT = 7.0
# full layout: fields A..F over three bands, 2/3 | 1/3
FULL_SLOTS = [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0), (2, 1)]


def pick_variant(active_count: int, card_width: float, card_height: float) -> str:
    if active_count <= 1:
        return "single"
    if active_count <= 3:
        if card_height > 0 and card_width / card_height >= WIDE_ASPECT_RATIO:
            return "compactWide"
        return "compactStacked"
    return "full"


def _placeholder_rows(fields: List[CardField]) -> List[Dict[str, Any]]:
    rows = []
    for n in range(1, PLACEHOLDER_ROWS + 1):
        rows.append({f.field_code: f"{f.label or f.field_code} {n}" for f in fields if f.field_code})
    return rows


class CardListRenderer:
    def __init__(self, ctx: RenderContext, element: CardListElement) -> None:
        self.ctx = ctx
        self.element = element
        t = ctx.transform
        self.left = t.x(element.x)
        width = element.width if element.width else (t.page_width / t.scale_x) - 2 * element.x
        self.width = t.w(width)
        self.card_height = t.h(element.card_height)
        self.gap = t.h(element.gap_y)
        self.pad = t.font(element.padding)
        self.font_size = t.font(element.font_size)
        self.active = [f for f in element.fields if f.field_code]
        self.variant = pick_variant(len(self.active), self.width, self.card_height)
        self.placeholder = False

    def _text(self, row: Dict[str, Any], f: Optional[CardField]) -> str:
        if f is None or not f.field_code:
            return ""
        if self.ctx.preview_mode == "fieldCode":
            return f.field_code
        return format_value(row.get(f.field_code), f.format, self.ctx.warnings)

    @property
    def text_gray(self) -> float:
        if self.placeholder:
            return float(self.ctx.style_value("placeholder_text_gray", 0.55))
        return float(self.ctx.style_value("text_gray", 0.0))

    def _line(self, text: str, left: float, width: float, top: float, height: float, align: str,
              size: Optional[float] = None, bold: bool = False) -> None:
        if not text:
            return
        font = self.ctx.fonts.pick(text)
        base = size or self.font_size
        base = min(base, height / LINE_HEIGHT) if height > 0 else base
        fitted = shrink_to_fit(text, font, base, width, min(base, MIN_CARD_FONT))
        text = ellipsis_to_width(text, font, fitted, width)
        draw_lines(
            self.ctx, [text], left, width, top, height, fitted, align, fitted * LINE_HEIGHT,
            element_id=self.element.id, phase="card", bold=bold, gray=self.text_gray,
        )

    def _title(self, text: str, left: float, width: float, top: float, height: float, align: str = "left") -> None:
        if not text:
            return
        font = self.ctx.fonts.pick(text)
        fit = fit_title_up_to_2_lines(text, font, width, height, self.font_size * 1.2, MIN_CARD_FONT)
        draw_lines(
            self.ctx, fit.lines, left, width, top, height, fit.font_size, align, fit.font_size * LINE_HEIGHT,
            element_id=self.element.id, phase="card", bold=True, gray=self.text_gray,
        )

    # ---------- variants ----------
    def _draw_single(self, row: Dict[str, Any], left: float, top: float, width: float, height: float) -> None:
        f = self.active[0] if self.active else None
        text = self._text(row, f)
        if not text:
            return
        font = self.ctx.fonts.pick(text)
        size = self.font_size * float(self.ctx.style_value("card_single_scale", 1.6))
        lines = wrap_to_lines(text, font, size, width)
        while size > MIN_CARD_FONT and len(lines) * size * LINE_HEIGHT > height:
            size -= 0.5
            lines = wrap_to_lines(text, font, size, width)
        max_lines = max(1, int(height // (size * LINE_HEIGHT)))
        if len(lines) > max_lines:
            overflow = lines[max_lines]
            lines = lines[:max_lines]
            lines[-1] = ellipsis_to_width(lines[-1] + overflow, font, size, width)
        draw_lines(
            self.ctx, lines, left, width, top, height, size, (f.align if f else None) or "center",
            size * LINE_HEIGHT, element_id=self.element.id, phase="card", gray=self.text_gray,
        )

    def _secondary_text(self, row: Dict[str, Any], f: CardField) -> str:
        value = self._text(row, f)
        if value and f.label and not self.placeholder:
            return f"{f.label}: {value}"
        return value

    def _draw_compact_wide(self, row: Dict[str, Any], left: float, top: float, width: float, height: float) -> None:
        title_w = width * 0.6
        self._title(self._text(row, self.active[0]), left, title_w - self.pad / 2, top, height)
        secondaries = self.active[1:3]
        band = height / max(1, len(secondaries))
        right_left = left + title_w + self.pad / 2
        right_w = width - title_w - self.pad / 2
        for i, f in enumerate(secondaries):
            self._line(self._secondary_text(row, f), right_left, right_w, top - i * band, band, f.align or "right")

    def _draw_compact_stacked(self, row: Dict[str, Any], left: float, top: float, width: float, height: float) -> None:
        title_h = height * 0.55
        self._title(self._text(row, self.active[0]), left, width, top, title_h)
        secondaries = self.active[1:3]
        band = (height - title_h) / max(1, len(secondaries))
        for i, f in enumerate(secondaries):
            self._line(self._secondary_text(row, f), left, width, top - title_h - i * band, band, f.align or "left")

    def _draw_full(self, row: Dict[str, Any], left: float, top: float, width: float, height: float) -> None:
        band = height / 3
        widths = [width * 2 / 3 - self.pad / 2, width / 3 - self.pad / 2]
        lefts = [left, left + width * 2 / 3 + self.pad / 2]
        for slot, f in enumerate(self.element.fields[: len(FULL_SLOTS)]):
            band_index, column = FULL_SLOTS[slot]
            align = f.align or ("right" if column == 1 else "left")
            size = self.font_size * float(self.ctx.style_value("card_title_scale", 1.2)) if slot == 0 else None
            self._line(
                self._text(row, f), lefts[column], widths[column], top - band_index * band, band, align,
                size=size, bold=slot == 0,
            )

    def draw_card(self, row: Dict[str, Any], top: float) -> None:
        e = self.element
        fill = e.fill_gray
        if self.placeholder:
            fill = fill + (1.0 - fill) / 2
        draw_box(
            self.ctx, self.left, top - self.card_height, self.width, self.card_height,
            stroke_gray=e.border_color_gray if e.border_width > 0 else None,
            fill_gray=fill, line_width=e.border_width, radius=e.corner_radius,
        )
        inner_left = self.left + self.pad
        inner_top = top - self.pad
        inner_w = max(1.0, self.width - 2 * self.pad)
        inner_h = max(1.0, self.card_height - 2 * self.pad)
        if not self.active:
            return
        if self.variant == "single":
            self._draw_single(row, inner_left, inner_top, inner_w, inner_h)
        elif self.variant == "compactWide":
            self._draw_compact_wide(row, inner_left, inner_top, inner_w, inner_h)
        elif self.variant == "compactStacked":
            self._draw_compact_stacked(row, inner_left, inner_top, inner_w, inner_h)
        elif self.variant == "full":
            self._draw_full(row, inner_left, inner_top, inner_w, inner_h)
        else:
            raise ValueError(f"unknown card variant {self.variant}")

    def render(self) -> None:
        ctx = self.ctx
        e = self.element
        if not self.active:
            ctx.warnings.add("layout", "card list has no bound fields", {"elementId": e.id})

        if ctx.preview_mode == "fieldCode":
            rows: List[Dict[str, Any]] = [{}]
        else:
            rows = subtable_rows(ctx, e.id, getattr(e.data_source, "field_code", None))
            if not rows:
                self.placeholder = True
                rows = _placeholder_rows(self.active)
                ctx.warnings.add("data", "card list has no rows; drawing placeholder cards", {"elementId": e.id})

        top = ctx.transform.y_top(e.y)
        on_page = 0
        for row in rows:
            if on_page and top - self.card_height < ctx.bottom_limit:
                ctx.new_page()
                top = ctx.content_top
                on_page = 0
            self.draw_card(row, top)
            on_page += 1
            top -= self.card_height + self.gap

        ctx.warnings.add(
            "debug", "card list rendered",
            {"elementId": e.id, "cards": len(rows), "variant": self.variant, "placeholder": self.placeholder},
        )


def render_card_list(ctx: RenderContext, element: CardListElement) -> None:
    CardListRenderer(ctx, element).render()
