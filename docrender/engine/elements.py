from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
import logging

from .. import config
from ..models import ImageElement, LabelElement, StaticSource, TextElement
from .context import RenderContext
from .data import resolve_data_source
from .draw import draw_box, draw_lines, draw_text
from .text_fit import LINE_HEIGHT, ellipsis_to_width, wrap_to_lines
from .warning_sink import WarningSink


logger = logging.getLogger(__name__)

OverlayElement = Union[TextElement, LabelElement, ImageElement]

DEFAULT_IMAGE_WIDTH = 120.0
DEFAULT_IMAGE_HEIGHT = 80.0


def element_height(element: OverlayElement) -> float:
    """Authoring-space height, estimated from the font size when undeclared."""
    if element.height:
        return float(element.height)
    if isinstance(element, ImageElement):
        return DEFAULT_IMAGE_HEIGHT
    return float(element.font_size) * LINE_HEIGHT


def image_url(element: ImageElement, record: Dict[str, Any], preview_mode: str, warnings: WarningSink) -> str:
    if preview_mode == "fieldCode" and not isinstance(element.data_source, StaticSource):
        return ""
    return resolve_data_source(element.data_source, record, "record", warnings).strip()


def _element_text(ctx: RenderContext, element: Union[TextElement, LabelElement]) -> str:
    if isinstance(element, TextElement):
        resolved = resolve_data_source(element.data_source, ctx.record, ctx.preview_mode, ctx.warnings)
        return resolved or element.text or ""
    return element.text or ""


def _fit_lines(ctx: RenderContext, text: str, size: float, width: Optional[float], height: Optional[float]) -> List[str]:
    font = ctx.fonts.pick(text)
    if width is None:
        return text.split("\n")
    if height is None:
        return [ellipsis_to_width(text.replace("\n", " "), font, size, width)]

    lines = wrap_to_lines(text, font, size, width)
    max_lines = max(1, int(height // (size * LINE_HEIGHT)))
    if len(lines) > max_lines:
        kept = lines[:max_lines]
        kept[-1] = ellipsis_to_width(kept[-1] + lines[max_lines], font, size, width)
        lines = kept
    return lines


def draw_text_element(ctx: RenderContext, element: Union[TextElement, LabelElement]) -> None:
    t = ctx.transform
    text = _element_text(ctx, element)
    size = t.font(element.font_size)
    x = t.x(element.x)
    top = t.y_top(element.y)
    width = t.w(element.width) if element.width else None
    height = t.h(element.height) if element.height else None

    if element.border_width > 0 and width and height:
        draw_box(
            ctx, x, top - height, width, height,
            stroke_gray=0.0, line_width=element.border_width, radius=element.corner_radius,
        )

    if not text:
        return

    pad = 2.0 if element.border_width > 0 else 0.0
    inner_w = (width - 2 * pad) if width else None
    lines = _fit_lines(ctx, text, size, inner_w, height)
    line_h = size * LINE_HEIGHT
    align = element.align or "left"
    bold = element.font_weight == "bold"

    if width is None:
        for i, line in enumerate(lines):
            draw_text(ctx, line, x, top - size - i * line_h, size, element_id=element.id, phase="element", bold=bold)
        return

    draw_lines(
        ctx, lines, x + pad, inner_w, top, height or line_h * len(lines), size, align, line_h,
        element_id=element.id, phase="element", bold=bold,
    )


def draw_image_placeholder(ctx: RenderContext, element_id: str, x: float, y: float, w: float, h: float) -> None:
    draw_box(ctx, x, y, w, h, stroke_gray=float(ctx.style_value("image_border_gray", 0.5)), line_width=1)
    draw_text(
        ctx, config.IMAGE_PLACEHOLDER_TEXT, x + 8, y + h / 2 - 6, 10,
        element_id=element_id, phase="element", gray=float(ctx.style_value("muted_gray", 0.4)),
    )


def draw_image_element(ctx: RenderContext, element: ImageElement) -> None:
    t = ctx.transform
    width = element.width or DEFAULT_IMAGE_WIDTH
    height = element.height or DEFAULT_IMAGE_HEIGHT
    x, y = t.x(element.x), t.y_box(element.y, height)
    w, h = t.w(width), t.h(height)

    url = image_url(element, ctx.record, ctx.preview_mode, ctx.warnings)
    image = ctx.images.get(url) if url else None
    if image is None:
        draw_image_placeholder(ctx, element.id, x, y, w, h)
        return
    try:
        ctx.canvas.drawImage(image.reader, x, y, w, h, preserveAspectRatio=True, anchor="c", mask="auto")
    except (OSError, ValueError) as exc:
        ctx.warnings.add("image", "image could not be embedded", {"url": url, "error": str(exc)})
        draw_image_placeholder(ctx, element.id, x, y, w, h)


def draw_overlay_element(ctx: RenderContext, element: OverlayElement) -> None:
    if isinstance(element, (TextElement, LabelElement)):
        draw_text_element(ctx, element)
    elif isinstance(element, ImageElement):
        draw_image_element(ctx, element)
    else:
        raise TypeError(f"unsupported overlay element: {type(element).__name__}")


def draw_overlay_elements(ctx: RenderContext, elements: List[OverlayElement]) -> None:
    for element in elements:
        draw_overlay_element(ctx, element)
