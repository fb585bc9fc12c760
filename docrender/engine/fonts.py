from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Optional
import hashlib
import logging

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from .. import config
from .warning_sink import WarningSink


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FontPair:
    """Raw font bytes handed over by the caller."""

    latin: Optional[bytes] = None
    ideographic: Optional[bytes] = None


@dataclass(frozen=True)
class PdfFont:
    name: str

    def width(self, text: str, size: float) -> float:
        return pdfmetrics.stringWidth(text, self.name, size)


@dataclass(frozen=True)
class FontSet:
    latin: PdfFont
    ideographic: PdfFont

    def pick(self, text: str) -> PdfFont:
        # any non-ASCII character switches the whole string to the ideographic face
        if any(ord(ch) > 127 for ch in text or ""):
            return self.ideographic
        return self.latin


def _register_ttf(data: bytes, prefix: str) -> str:
    name = f"{prefix}-{hashlib.sha1(data).hexdigest()[:12]}"
    if name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(name, BytesIO(data)))
    return name


def _register_cid_fallback() -> str:
    name = config.FALLBACK_CID_FONT
    if name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(UnicodeCIDFont(name))
    return name


def prepare_fonts(fonts: Optional[FontPair], warnings: WarningSink) -> FontSet:
    fonts = fonts or FontPair()

    latin = config.FALLBACK_LATIN_FONT
    if fonts.latin:
        try:
            latin = _register_ttf(fonts.latin, "DocLatin")
        except (TTFError, OSError, ValueError) as exc:
            warnings.add("layout", "latin font could not be embedded; using builtin", {"error": str(exc)})

    ideographic = None
    if fonts.ideographic:
        try:
            ideographic = _register_ttf(fonts.ideographic, "DocIdeo")
        except (TTFError, OSError, ValueError) as exc:
            warnings.add("layout", "ideographic font could not be embedded; using builtin", {"error": str(exc)})
    if ideographic is None:
        ideographic = _register_cid_fallback()

    logger.debug("fonts ready latin=%s ideographic=%s", latin, ideographic)
    return FontSet(latin=PdfFont(latin), ideographic=PdfFont(ideographic))
