from __future__ import annotations

from typing import List, NamedTuple, Protocol
import math

from .. import config


LINE_HEIGHT = 1.2
SPLIT_CHARS = set(" \t　、。，．,./・-_()（）[]「」:：;；")


class FontMetrics(Protocol):
    def width(self, text: str, size: float) -> float: ...


class TitleFit(NamedTuple):
    lines: List[str]
    font_size: float


def wrap_to_lines(text: str, font: FontMetrics, size: float, max_width: float) -> List[str]:
    """
    Greedy per-character wrap. Explicit newlines always break; a space that
    would open a wrapped line is dropped.
    """
    if not text:
        return [""]

    lines: List[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for ch in paragraph:
            candidate = current + ch
            if current and font.width(candidate, size) > max_width:
                lines.append(current)
                current = "" if ch == " " else ch
            else:
                current = candidate
        lines.append(current)
    return lines


def ellipsis_to_width(
    text: str,
    font: FontMetrics,
    size: float,
    max_width: float,
    marker: str = config.ELLIPSIS,
) -> str:
    if font.width(text, size) <= max_width:
        return text
    if font.width(marker, size) > max_width:
        return ""

    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if font.width(text[:mid] + marker, size) <= max_width:
            lo = mid
        else:
            hi = mid - 1
    return text[:lo] + marker


def shrink_to_fit(
    text: str,
    font: FontMetrics,
    base_size: float,
    max_width: float,
    min_size: float,
) -> float:
    width = font.width(text, base_size)
    if width <= max_width or width <= 0:
        return base_size
    size = math.floor(base_size * max_width / width)
    return float(max(min_size, min(base_size, size)))


def _split_candidates(text: str) -> List[int]:
    mid = len(text) / 2
    points = [i for i, ch in enumerate(text) if ch in SPLIT_CHARS and 0 < i < len(text) - 1]
    points.sort(key=lambda i: (abs(i - mid), i))
    return points[: config.MAX_TITLE_SPLIT_CANDIDATES]


def _split_at(text: str, index: int) -> List[str]:
    ch = text[index]
    if ch.isspace():
        head, tail = text[:index], text[index + 1 :]
    else:
        # punctuation stays on the first line
        head, tail = text[: index + 1], text[index + 1 :]
    return [head.strip(), tail.strip()]


def _size_for(lines: List[str], font: FontMetrics, max_width: float, max_height: float, max_size: float) -> float:
    by_height = max_height / (LINE_HEIGHT * len(lines))
    widest = max(font.width(line, 1.0) for line in lines)
    by_width = max_width / widest if widest > 0 else max_size
    return min(max_size, by_height, by_width)


def fit_title_up_to_2_lines(
    text: str,
    font: FontMetrics,
    max_width: float,
    max_height: float,
    max_size: float,
    min_size: float,
) -> TitleFit:
    """
    Pick a one- or two-line arrangement of ``text`` with the largest font size
    that satisfies both the width and the height of the box.
    """
    text = (text or "").strip()
    one_line_size = min(max_size, max_height / LINE_HEIGHT)
    if not text:
        return TitleFit([""], max(min_size, one_line_size))
    if font.width(text, one_line_size) <= max_width:
        return TitleFit([text], max(min_size, one_line_size))

    options: List[List[str]] = [[text]]
    for index in _split_candidates(text):
        parts = _split_at(text, index)
        if all(parts):
            options.append(parts)
    if len(options) == 1 and len(text) > 1:
        mid = len(text) // 2
        options.append([text[:mid], text[mid:]])

    best_lines, best_size = options[0], -1.0
    for lines in options:
        size = _size_for(lines, font, max_width, max_height, max_size)
        if size > best_size:
            best_lines, best_size = lines, size

    size = math.floor(best_size * 2) / 2
    if size < min_size:
        size = min_size
        best_lines = [ellipsis_to_width(line, font, size, max_width) for line in best_lines]
    return TitleFit(best_lines, size)
