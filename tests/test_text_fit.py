from __future__ import annotations

from docrender.engine.text_fit import (
    LINE_HEIGHT,
    ellipsis_to_width,
    fit_title_up_to_2_lines,
    shrink_to_fit,
    wrap_to_lines,
)


def test_wrap_breaks_on_width(font) -> None:
    # 10pt at 0.5 ratio -> 5pt per character, 4 characters per 20pt line
    assert wrap_to_lines("abcdefghij", font, 10, 20) == ["abcd", "efgh", "ij"]


def test_wrap_keeps_explicit_newlines(font) -> None:
    assert wrap_to_lines("ab\ncd", font, 10, 100) == ["ab", "cd"]


def test_wrap_drops_space_at_line_start(font) -> None:
    assert wrap_to_lines("abcd efgh", font, 10, 20) == ["abcd", "efgh"]


def test_wrap_is_idempotent(font) -> None:
    text = "The quick brown fox jumps over the lazy dog " * 3
    lines = wrap_to_lines(text, font, 9, 61)
    again = wrap_to_lines("\n".join(lines), font, 9, 61)
    assert len(again) == len(lines)


def test_wrap_empty_text(font) -> None:
    assert wrap_to_lines("", font, 10, 20) == [""]


def test_ellipsis_bounded_and_identity(font) -> None:
    text = "Quarterly maintenance contract"
    natural = font.width(text, 10)
    for max_width in (20, 47.5, 80, natural - 1):
        result = ellipsis_to_width(text, font, 10, max_width)
        assert font.width(result, 10) <= max_width
        assert result.endswith("...")
    assert ellipsis_to_width(text, font, 10, natural) == text
    assert ellipsis_to_width(text, font, 10, natural + 50) == text


def test_ellipsis_narrower_than_marker(font) -> None:
    assert ellipsis_to_width("abcdef", font, 10, 5) == ""


def test_shrink_to_fit(font) -> None:
    assert shrink_to_fit("abcdefgh", font, 10, 40, 6) == 10
    # natural 40pt in a 30pt box -> floor(10 * 30 / 40) = 7
    assert shrink_to_fit("abcdefgh", font, 10, 30, 6) == 7
    assert shrink_to_fit("abcdefghijklmnop", font, 10, 30, 6) == 6


def test_title_fits_single_line(font) -> None:
    fit = fit_title_up_to_2_lines("Widget", font, 200, 20, 12, 6)
    assert fit.lines == ["Widget"]
    assert fit.font_size == min(12, 20 / LINE_HEIGHT)


def test_title_splits_near_middle(font) -> None:
    fit = fit_title_up_to_2_lines("Stainless bolt M8 x 40", font, 70, 40, 12, 4)
    assert len(fit.lines) == 2
    assert fit.lines == ["Stainless", "bolt M8 x 40"]
    assert fit.font_size == 11.5
    assert all(font.width(line, fit.font_size) <= 70 for line in fit.lines)
    assert fit.font_size * 2 == int(fit.font_size * 2)


def test_title_at_min_size_gets_ellipsis(font) -> None:
    fit = fit_title_up_to_2_lines("A" * 80, font, 30, 20, 12, 6)
    assert fit.font_size == 6
    assert all(font.width(line, 6) <= 30 for line in fit.lines)
    assert fit.lines[-1].endswith("...")
