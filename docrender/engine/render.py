from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

from .. import config
from ..models import (
    CardListElement,
    ImageElement,
    LabelElement,
    TableElement,
    TemplateDataRecord,
    TemplateDefinition,
    TextElement,
)
from .canvas import PagedCanvas
from .card_list import render_card_list
from .context import RenderContext, RenderOptions
from .draw import draw_aligned
from .elements import OverlayElement, draw_overlay_elements, element_height, image_url
from .fonts import FontPair, prepare_fonts
from .images import prefetch_images
from .label_sheet import render_label_sheet, sheet_page_size
from .table import render_table
from .transform import PageTransform, page_size_for
from .warning_sink import WarningSink


logger = logging.getLogger(__name__)

BodyElement = Union[TableElement, CardListElement]


@dataclass
class RenderResult:
    pdf: bytes
    warnings: List[str]
    page_count: int


@dataclass
class ElementGroups:
    header_every_page: List[OverlayElement] = field(default_factory=list)
    header_first_page: List[OverlayElement] = field(default_factory=list)
    footer_every_page: List[OverlayElement] = field(default_factory=list)
    footer_last_page: List[OverlayElement] = field(default_factory=list)
    body: Optional[BodyElement] = None


def classify_elements(template: TemplateDefinition, warnings: WarningSink) -> ElementGroups:
    groups = ElementGroups()
    tables: List[TableElement] = []
    cards: List[CardListElement] = []

    for element in template.elements:
        if isinstance(element, TableElement):
            tables.append(element)
        elif isinstance(element, CardListElement):
            cards.append(element)
        elif isinstance(element, (TextElement, LabelElement, ImageElement)):
            if element.region == "footer":
                if element.footer_repeat_mode == "last":
                    groups.footer_last_page.append(element)
                else:
                    groups.footer_every_page.append(element)
            elif element.region == "header":
                if element.repeat_on_every_page is False:
                    groups.header_first_page.append(element)
                else:
                    groups.header_every_page.append(element)
            elif element.repeat_on_every_page:
                groups.header_every_page.append(element)
            else:
                groups.header_first_page.append(element)
        else:
            raise TypeError(f"unsupported element: {type(element).__name__}")

    prefer_cards = (template.structure_type or "").startswith("cards")
    table = next((t for t in tables if t.id == "items"), tables[0] if tables else None)
    card_list = next((c for c in cards if c.id == "cards"), cards[0] if cards else None)
    if prefer_cards:
        groups.body = card_list or table
    else:
        groups.body = table or card_list

    candidates = len(tables) + len(cards)
    if candidates > 1 and groups.body is not None:
        ignored = [e.id for e in (*tables, *cards) if e is not groups.body]
        warnings.add("layout", "multiple body elements; only one is rendered", {"used": groups.body.id, "ignored": ignored})
    return groups


def _bottom_limit(template: TemplateDefinition, transform: PageTransform, groups: ElementGroups) -> float:
    bounds = template.region_bounds
    if bounds and bounds.body and bounds.body.y_bottom is not None:
        return transform.y_top(bounds.body.y_bottom)
    bottom = config.PAGE_MARGIN
    if template.footer_reserve_height:
        bottom = max(bottom, transform.h(template.footer_reserve_height))
    for element in groups.footer_every_page + groups.footer_last_page:
        bottom = max(bottom, transform.y_top(element.y) + config.HEADER_GAP)
    return bottom


def _content_top(template: TemplateDefinition, transform: PageTransform, groups: ElementGroups) -> float:
    """Where the body continues on pages after the first."""
    bounds = template.region_bounds
    if bounds and bounds.body and bounds.body.y_top is not None:
        return transform.y_top(bounds.body.y_top)
    top = transform.page_height - config.PAGE_MARGIN
    for element in groups.header_every_page:
        top = min(top, transform.y_box(element.y, element_height(element)) - config.HEADER_GAP)
    return top


def _page_size(template: TemplateDefinition) -> Tuple[float, float]:
    if template.is_label_sheet:
        return sheet_page_size(template)
    return page_size_for(template)


def _image_urls(template: TemplateDefinition, record: Dict[str, Any], options: RenderOptions, warnings: WarningSink) -> List[str]:
    urls = []
    for element in template.elements:
        if isinstance(element, ImageElement):
            url = image_url(element, record, options.preview_mode, warnings)
            if url:
                urls.append(url)
    return urls


def render_template_to_pdf(
    template: Union[TemplateDefinition, Dict[str, Any]],
    data: Optional[TemplateDataRecord] = None,
    fonts: Optional[FontPair] = None,
    options: Optional[RenderOptions] = None,
) -> RenderResult:
    options = options or RenderOptions()
    if not isinstance(template, TemplateDefinition):
        template = TemplateDefinition.model_validate(template)

    warnings = WarningSink(debug=options.debug)
    record: Dict[str, Any] = dict(data or {})
    logger.info("render start request=%s template=%s", options.request_id or "-", template.id)

    page_w, page_h = _page_size(template)
    if template.is_label_sheet:
        transform = PageTransform.build(page_w, page_h)
    else:
        transform = PageTransform.build(page_w, page_h, template.canvas_width, template.canvas_height)
    font_set = prepare_fonts(fonts, warnings)
    style = config.load_style_preset()

    buffer = BytesIO()
    canv = PagedCanvas(buffer, pagesize=(page_w, page_h), invariant=1)
    canv.setTitle(template.name or template.id)

    if template.is_label_sheet:
        groups = ElementGroups()
        images = {}
    else:
        groups = classify_elements(template, warnings)
        images = prefetch_images(_image_urls(template, record, options, warnings), warnings)

    ctx = RenderContext(
        template=template,
        record=record,
        canvas=canv,
        transform=transform,
        fonts=font_set,
        warnings=warnings,
        options=options,
        style=style,
        images=images,
        content_top=_content_top(template, transform, groups),
        bottom_limit=_bottom_limit(template, transform, groups),
        redraw_headers=lambda: draw_overlay_elements(ctx, groups.header_every_page),
    )

    if template.is_label_sheet:
        render_label_sheet(ctx)
    else:
        draw_overlay_elements(ctx, groups.header_every_page + groups.header_first_page)
        body = groups.body
        if isinstance(body, TableElement):
            render_table(ctx, body)
        elif isinstance(body, CardListElement):
            render_card_list(ctx, body)
        elif body is not None:
            raise TypeError(f"unsupported body element: {type(body).__name__}")
        warnings.add("debug", "body element", {"elementId": body.id if body else None})

    def stamp(index: int, total: int) -> None:
        # label sheets are cut into labels; a page number would print onto stock
        if not template.is_label_sheet:
            draw_overlay_elements(ctx, groups.footer_every_page)
            if index == total - 1:
                draw_overlay_elements(ctx, groups.footer_last_page)
            size = float(ctx.style_value("page_number_size", 9))
            draw_aligned(
                ctx, f"{index + 1} / {total}", 0, page_w, float(ctx.style_value("page_number_y", 20)), size,
                "center", element_id=None, phase="footer", gray=float(ctx.style_value("page_number_gray", 0.4)),
            )
        if options.on_page is not None:
            options.on_page(index + 1, total)

    page_count = canv.finish(stamp)
    result = RenderResult(pdf=buffer.getvalue(), warnings=warnings.to_list(), page_count=page_count)
    logger.info(
        "render done request=%s template=%s pages=%s warnings=%s bytes=%s",
        options.request_id or "-", template.id, page_count, len(result.warnings), len(result.pdf),
    )
    return result
