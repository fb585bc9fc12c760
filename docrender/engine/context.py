from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .. import config
from ..models import PreviewMode, TemplateDefinition
from .canvas import PagedCanvas
from .errors import PageLimitError
from .fonts import FontSet
from .images import ImageCache
from .transform import PageTransform
from .warning_sink import WarningSink


@dataclass
class RenderOptions:
    debug: bool = False
    preview_mode: PreviewMode = "record"
    request_id: Optional[str] = None
    # called with a dict describing every drawn string
    on_text: Optional[Callable[[Dict[str, Any]], None]] = None
    # called with (page_number, total) while footers are stamped
    on_page: Optional[Callable[[int, int], None]] = None


@dataclass
class RenderContext:
    """Everything a body renderer needs for one render call."""

    template: TemplateDefinition
    record: Dict[str, Any]
    canvas: PagedCanvas
    transform: PageTransform
    fonts: FontSet
    warnings: WarningSink
    options: RenderOptions
    style: Dict[str, Any]
    images: ImageCache = field(default_factory=dict)
    content_top: float = 0.0
    bottom_limit: float = config.PAGE_MARGIN
    redraw_headers: Optional[Callable[[], None]] = None

    @property
    def preview_mode(self) -> PreviewMode:
        return self.options.preview_mode

    @property
    def page_count(self) -> int:
        return self.canvas.page_count

    def new_page(self) -> None:
        if self.canvas.page_count >= config.MAX_PAGES:
            raise PageLimitError(
                f"page limit of {config.MAX_PAGES} exceeded",
                template_id=self.template.id,
                phase="paginate",
            )
        self.canvas.showPage()
        if self.redraw_headers is not None:
            self.redraw_headers()

    def style_value(self, key: str, default: Any) -> Any:
        return self.style.get(key, default)