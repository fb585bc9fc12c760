from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
import json
import math
import re
import unicodedata

from .. import config
from ..models import DataSource, PreviewMode, StaticSource, TemplateDataRecord
from .warning_sink import WarningSink


_DECIMAL_RE = re.compile(r"(\d+)(?:\.(\d*))?|\.(\d+)")
_SCIENTIFIC_RE = re.compile(r"[\d.]+[eE][+-]?\d+")
_NUMERIC_LOOKING_RE = re.compile(r"^[(\-+]?[¥$￥]?\s*-?[\d,]+(\.\d+)?\)?(円|-)?$")
_CURRENCY_PREFIXES = ("¥", "￥", "$")
_DISPLAY_QUANTUM = Decimal("0.001")


@dataclass(frozen=True)
class ScaledDecimal:
    """Exact fixed-point value: ``magnitude / 10**scale``."""

    magnitude: int = 0
    scale: int = 0

    def rescaled(self, scale: int) -> "ScaledDecimal":
        if scale <= self.scale:
            return self
        return ScaledDecimal(self.magnitude * 10 ** (scale - self.scale), scale)

    def __add__(self, other: "ScaledDecimal") -> "ScaledDecimal":
        scale = max(self.scale, other.scale)
        return ScaledDecimal(self.rescaled(scale).magnitude + other.rescaled(scale).magnitude, scale)

    def to_string(self, grouping: bool = False) -> str:
        sign = "-" if self.magnitude < 0 else ""
        digits = str(abs(self.magnitude)).rjust(self.scale + 1, "0")
        if self.scale:
            int_part, frac = digits[: -self.scale], digits[-self.scale :].rstrip("0")
        else:
            int_part, frac = digits, ""
        if grouping:
            int_part = f"{int(int_part):,}"
        return sign + int_part + (f".{frac}" if frac else "")

    def __str__(self) -> str:
        return self.to_string()


ZERO = ScaledDecimal()


def _warn(warnings: Optional[WarningSink], category: str, message: str, context: Optional[Dict[str, Any]]) -> None:
    if warnings is not None:
        warnings.add(category, message, context)  # type: ignore[arg-type]


def parse_decimal_to_scaled(
    value: Any,
    warnings: Optional[WarningSink] = None,
    context: Optional[Dict[str, Any]] = None,
) -> Optional[ScaledDecimal]:
    """
    Numbers or currency-like strings -> ScaledDecimal.
    Accepts "(1,200)", "-¥1,200", "$3.50", "1,200円", "¥37,000-", full-width digits.
    Returns None for empty or unparseable input; scientific notation is rejected.
    """
    if value is None or isinstance(value, bool):
        if isinstance(value, bool):
            _warn(warnings, "data", "boolean is not a decimal value", {**(context or {}), "value": value})
        return None
    if isinstance(value, int):
        return ScaledDecimal(value, 0)
    if isinstance(value, float):
        if not math.isfinite(value):
            _warn(warnings, "data", "non-finite number cannot be summed", {**(context or {}), "value": repr(value)})
            return None
        text = format(Decimal(repr(value)), "f")
    elif isinstance(value, Decimal):
        if not value.is_finite():
            _warn(warnings, "data", "non-finite number cannot be summed", {**(context or {}), "value": str(value)})
            return None
        text = format(value, "f")
    else:
        text = str(value)

    raw = text
    text = unicodedata.normalize("NFKC", text).strip()
    if not text:
        return None

    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1].strip()
    for _ in range(2):
        if text.startswith("-"):
            if negative:
                _warn(warnings, "data", "conflicting sign markers", {**(context or {}), "value": raw})
                return None
            negative = True
            text = text[1:].strip()
        elif text.startswith("+") and not negative:
            text = text[1:].strip()
        for prefix in _CURRENCY_PREFIXES:
            if text.startswith(prefix):
                text = text[len(prefix) :].strip()
                break
    text = text.removesuffix("円").removesuffix("-").strip()
    text = text.replace(",", "")

    match = _DECIMAL_RE.fullmatch(text)
    if match is None:
        reason = "scientific notation is not supported" if _SCIENTIFIC_RE.fullmatch(text) else "unparseable decimal value"
        _warn(warnings, "data", reason, {**(context or {}), "value": raw})
        return None

    int_part = match.group(1) or ""
    frac = match.group(2) or match.group(3) or ""
    magnitude = int((int_part + frac) or "0")
    return ScaledDecimal(-magnitude if negative else magnitude, len(frac))


def format_scaled(value: ScaledDecimal, fmt: Optional[str] = None) -> str:
    if fmt == "text":
        return value.to_string()
    if fmt == "currency":
        text = value.to_string(grouping=True)
        return f"-¥{text[1:]}" if text.startswith("-") else f"¥{text}"
    return value.to_string(grouping=True)


def looks_numeric(text: str) -> bool:
    return bool(text) and bool(_NUMERIC_LOOKING_RE.match(text.strip()))


def _format_float(value: float) -> str:
    if value.is_integer() and abs(value) <= config.MAX_SAFE_INTEGER:
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def stringify_value(
    value: Any,
    warnings: Optional[WarningSink] = None,
    field_code: Optional[str] = None,
) -> str:
    context = {"fieldCode": field_code} if field_code else {}
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        if abs(value) > config.MAX_SAFE_INTEGER:
            _warn(warnings, "number", "integer exceeds safe range; printed without grouping", {**context, "value": str(value)})
            return str(value)
        return f"{value:,}"
    if isinstance(value, float):
        if not math.isfinite(value):
            _warn(warnings, "number", "non-finite number", {**context, "value": repr(value)})
            return ""
        return _format_float(value)
    if isinstance(value, Decimal):
        parsed = parse_decimal_to_scaled(value, warnings, context)
        return parsed.to_string(grouping=True) if parsed is not None else ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        parts = []
        for item in value:
            if isinstance(item, (dict, list, tuple)):
                parts.append(_json_or_str(item, warnings, context))
            else:
                parts.append(stringify_value(item, warnings, field_code))
        joined = ", ".join(parts)
        if len(joined) > config.MAX_JOINED_LENGTH:
            _warn(warnings, "data", "joined list value truncated", {**context, "length": len(joined)})
            joined = joined[: config.MAX_JOINED_LENGTH]
        return joined
    return _json_or_str(value, warnings, context)


def _json_or_str(value: Any, warnings: Optional[WarningSink], context: Dict[str, Any]) -> str:
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        _warn(warnings, "data", "value is not serialisable", {**context, "type": type(value).__name__})
        return str(value)


def resolve_data_source(
    source: Optional[DataSource],
    record: Optional[TemplateDataRecord],
    preview_mode: PreviewMode = "record",
    warnings: Optional[WarningSink] = None,
) -> str:
    if source is None:
        return ""
    if isinstance(source, StaticSource):
        return "" if source.value is None else str(source.value)

    field_code = source.field_code
    if preview_mode == "fieldCode":
        return field_code
    if not record or not field_code:
        return ""
    if field_code not in record:
        _warn(warnings, "data", "field code not found in record", {"fieldCode": field_code})
        return ""
    return stringify_value(record[field_code], warnings, field_code)


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value.strip()) >= 10:
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _display_float(value: float) -> Any:
    """Floats are shown with at most 3 fraction digits, like ``_format_float``."""
    if not math.isfinite(value):
        return value
    try:
        return Decimal(repr(value)).quantize(_DISPLAY_QUANTUM)
    except InvalidOperation:
        # beyond the decimal context precision; no fraction left to trim
        return value


def format_value(value: Any, fmt: Optional[str] = None, warnings: Optional[WarningSink] = None) -> str:
    """Column / card-field formatter: text | number | currency | date."""
    if value is None or value == "":
        return ""
    if fmt in ("number", "currency"):
        parsed = parse_decimal_to_scaled(_display_float(value) if isinstance(value, float) else value)
        if parsed is None:
            return stringify_value(value, warnings)
        return format_scaled(parsed, fmt)
    if fmt == "date":
        parsed_date = _parse_date(value)
        if parsed_date is None:
            return stringify_value(value, warnings)
        return f"{parsed_date.year}/{parsed_date.month:02d}/{parsed_date.day:02d}"
    return stringify_value(value, warnings)
