from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple
import json


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = BASE_DIR / "out"
STYLE_PRESET_PATH = Path(__file__).resolve().parent / "assets" / "render_style.json"

# portrait width/height in points
PAGE_DIMENSIONS: Dict[str, Tuple[float, float]] = {
    "A4": (595.28, 841.89),
    "Letter": (612.0, 792.0),
}
DEFAULT_PAGE_SIZE = "A4"

MM_TO_PT = 72.0 / 25.4
PAGE_MARGIN = 36.0
HEADER_GAP = 8.0

MAX_PAGES = 500
MIN_COPIES = 1
MAX_COPIES = 1000
MAX_JOINED_LENGTH = 500
MAX_SAFE_INTEGER = 2**53 - 1
MAX_TITLE_SPLIT_CANDIDATES = 12

IMAGE_FETCH_TIMEOUT = 5.0

COMPUTED_TOTAL_KEY = "__computedTotal"
ELLIPSIS = "..."
IMAGE_PLACEHOLDER_TEXT = "IMAGE"
QR_PLACEHOLDER_TEXT = "QR"
SUBTOTAL_LABEL = "小計"
TOTAL_LABEL = "合計"

# used when no ideographic font bytes are supplied
FALLBACK_CID_FONT = "HeiseiKakuGo-W5"
FALLBACK_LATIN_FONT = "Helvetica"


def load_style_preset() -> dict:
    with STYLE_PRESET_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def set_out_dir(path: Path) -> None:
    global OUT_DIR
    OUT_DIR = path
