from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
import math

from .. import config
from ..models import TemplateDefinition


def safe_scale(page_length: float, canvas_length: Optional[float]) -> float:
    if canvas_length is None:
        return 1.0
    try:
        page = float(page_length)
        declared = float(canvas_length)
    except (TypeError, ValueError):
        return 1.0
    if not math.isfinite(page) or not math.isfinite(declared) or page <= 0 or declared <= 0:
        return 1.0
    return page / declared


def page_size_for(template: TemplateDefinition) -> Tuple[float, float]:
    width, height = config.PAGE_DIMENSIONS.get(
        template.page_size, config.PAGE_DIMENSIONS[config.DEFAULT_PAGE_SIZE]
    )
    if template.orientation == "landscape":
        return height, width
    return width, height


@dataclass(frozen=True)
class PageTransform:
    """
    Authoring space (top-left origin) -> PDF space (bottom-left origin, points).
    Every renderer goes through this; nothing else multiplies by the scale factors.
    """

    page_width: float
    page_height: float
    scale_x: float = 1.0
    scale_y: float = 1.0

    @classmethod
    def build(
        cls,
        page_width: float,
        page_height: float,
        canvas_width: Optional[float] = None,
        canvas_height: Optional[float] = None,
    ) -> "PageTransform":
        return cls(
            page_width=float(page_width),
            page_height=float(page_height),
            scale_x=safe_scale(page_width, canvas_width),
            scale_y=safe_scale(page_height, canvas_height),
        )

    def x(self, value: float) -> float:
        return float(value) * self.scale_x

    def w(self, value: float) -> float:
        return float(value) * self.scale_x

    def h(self, value: float) -> float:
        return float(value) * self.scale_y

    def font(self, size: float) -> float:
        return float(size) * min(self.scale_x, self.scale_y)

    def y_top(self, y: float) -> float:
        """PDF y of the top edge of a box whose authoring top is ``y``."""
        return self.page_height - float(y) * self.scale_y

    def y_box(self, y: float, height: float) -> float:
        """PDF y of the bottom edge of a box (what canvas.rect expects)."""
        return self.page_height - float(y) * self.scale_y - float(height) * self.scale_y
