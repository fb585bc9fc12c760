from __future__ import annotations

from typing import List, Optional

from .context import RenderContext
from .errors import TemplateRenderError
from .fonts import PdfFont


def draw_text(
    ctx: RenderContext,
    text: str,
    x: float,
    y: float,
    size: float,
    *,
    element_id: Optional[str],
    phase: str,
    bold: bool = False,
    gray: float = 0.0,
    font: Optional[PdfFont] = None,
) -> None:
    """Draw one line with its baseline at (x, y). Any failure here is fatal."""
    if not text:
        return
    canv = ctx.canvas
    font = font or ctx.fonts.pick(text)
    try:
        canv.saveState()
        try:
            canv.setFillGray(gray)
            if bold:
                # fill + stroke gives a faux bold with a single font file
                canv.setStrokeGray(gray)
                canv.setLineWidth(max(0.2, size * 0.03))
                obj = canv.beginText()
                obj.setTextRenderMode(2)
                obj.setFont(font.name, size)
                obj.setTextOrigin(x, y)
                obj.textOut(text)
                canv.drawText(obj)
            else:
                canv.setFont(font.name, size)
                canv.drawString(x, y, text)
        finally:
            canv.restoreState()
    except Exception as exc:
        raise TemplateRenderError(
            f"failed to draw text: {exc}",
            template_id=ctx.template.id,
            element_id=element_id,
            phase=phase,
        ) from exc

    if ctx.options.on_text is not None:
        ctx.options.on_text(
            {
                "elementId": element_id,
                "phase": phase,
                "text": text,
                "x": x,
                "y": y,
                "size": size,
                "font": font.name,
                "page": ctx.canvas.page_index + 1,
            }
        )


def draw_aligned(
    ctx: RenderContext,
    text: str,
    left: float,
    width: float,
    y: float,
    size: float,
    align: str = "left",
    **kwargs,
) -> None:
    font = kwargs.pop("font", None) or ctx.fonts.pick(text)
    text_w = font.width(text, size)
    if align == "right":
        x = left + width - text_w
    elif align == "center":
        x = left + (width - text_w) / 2
    else:
        x = left
    draw_text(ctx, text, x, y, size, font=font, **kwargs)


def baseline_in_band(top: float, band_height: float, size: float) -> float:
    """Baseline that visually centres a glyph line inside [top - band_height, top]."""
    return top - band_height / 2 - size * 0.35


def draw_lines(
    ctx: RenderContext,
    lines: List[str],
    left: float,
    width: float,
    top: float,
    height: float,
    size: float,
    align: str,
    line_height: float,
    **kwargs,
) -> None:
    """Vertically centred block of lines inside a box."""
    block = line_height * len(lines)
    block_top = top - max(0.0, (height - block) / 2)
    for i, line in enumerate(lines):
        y = baseline_in_band(block_top - i * line_height, line_height, size)
        draw_aligned(ctx, line, left, width, y, size, align, **kwargs)


def draw_box(
    ctx: RenderContext,
    x: float,
    y: float,
    w: float,
    h: float,
    *,
    stroke_gray: Optional[float] = None,
    fill_gray: Optional[float] = None,
    line_width: float = 0.5,
    radius: float = 0.0,
) -> None:
    """Rectangle with its bottom-left at (x, y); None skips stroke or fill."""
    if stroke_gray is None and fill_gray is None:
        return
    canv = ctx.canvas
    canv.saveState()
    if stroke_gray is not None:
        canv.setStrokeGray(stroke_gray)
        canv.setLineWidth(line_width)
    if fill_gray is not None:
        canv.setFillGray(fill_gray)
    stroke = 1 if stroke_gray is not None and line_width > 0 else 0
    fill = 1 if fill_gray is not None else 0
    if radius > 0:
        canv.roundRect(x, y, w, h, radius=radius, stroke=stroke, fill=fill)
    else:
        canv.rect(x, y, w, h, stroke=stroke, fill=fill)
    canv.restoreState()


def clip_to(ctx: RenderContext, x: float, y: float, w: float, h: float) -> None:
    """Clip subsequent drawing to a rectangle. Caller owns saveState/restoreState."""
    path = ctx.canvas.beginPath()
    path.rect(x, y, w, h)
    ctx.canvas.clipPath(path, stroke=0, fill=0)
