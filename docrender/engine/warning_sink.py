from __future__ import annotations

from typing import Any, Dict, Iterator, List, Literal, Optional
import json
import logging


WarningCategory = Literal["debug", "data", "layout", "image", "number"]
logger = logging.getLogger(__name__)


def format_warning(category: str, message: str, context: Optional[Dict[str, Any]] = None) -> str:
    text = f"[{category}] {message}"
    if context:
        text += " " + json.dumps(context, ensure_ascii=False, sort_keys=True, default=str)
    return text


class WarningSink:
    """
    Append-only warning collector for one render call.
    Entries are deduplicated by their final string and keep insertion order.
    """

    def __init__(self, debug: bool = False) -> None:
        self.debug = debug
        self._entries: Dict[str, None] = {}

    def add(self, category: WarningCategory, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        if category == "debug" and not self.debug:
            return
        text = format_warning(category, message, context)
        if text in self._entries:
            return
        self._entries[text] = None
        logger.debug("render warning %s", text)

    def has(self, category: WarningCategory) -> bool:
        prefix = f"[{category}]"
        return any(entry.startswith(prefix) for entry in self._entries)

    def to_list(self) -> List[str]:
        return list(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
