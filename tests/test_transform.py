from __future__ import annotations

import math

import pytest

from docrender.engine.transform import PageTransform, page_size_for, safe_scale
from docrender.models import TemplateDefinition


@pytest.mark.parametrize("canvas_length", [None, 0, -10, float("nan"), float("inf"), "abc"])
def test_safe_scale_falls_back_to_one(canvas_length) -> None:
    assert safe_scale(595.28, canvas_length) == 1.0


def test_safe_scale_ratio() -> None:
    assert math.isclose(safe_scale(600, 1200), 0.5)


def test_transform_flips_y_and_scales() -> None:
    t = PageTransform.build(600, 800, 1200, 1600)
    assert t.x(100) == 50
    assert t.w(100) == 50
    assert t.h(100) == 50
    assert t.font(12) == 6
    assert t.y_top(0) == 800
    assert t.y_top(100) == 750
    assert t.y_box(100, 40) == 730


def test_font_uses_smaller_axis() -> None:
    t = PageTransform.build(600, 800, 600, 1600)
    assert t.font(10) == 5


def test_page_size_landscape_swaps_dimensions() -> None:
    portrait = TemplateDefinition.model_validate({"id": "t", "pageSize": "Letter"})
    landscape = TemplateDefinition.model_validate({"id": "t", "pageSize": "Letter", "orientation": "landscape"})
    assert page_size_for(portrait) == (612.0, 792.0)
    assert page_size_for(landscape) == (792.0, 612.0)
