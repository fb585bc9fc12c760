from __future__ import annotations

from typing import Callable, List, Optional

from reportlab.pdfgen import canvas


class PagedCanvas(canvas.Canvas):
    """
    Canvas that keeps every page open until ``finish``.
    Footers and "n / total" stamps need the final page count, which is only
    known once the body renderer has appended its last page.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._pending_pages: List[dict] = []
        self._stamping: Optional[int] = None

    @property
    def page_count(self) -> int:
        return len(self._pending_pages) + 1

    @property
    def page_index(self) -> int:
        if self._stamping is not None:
            return self._stamping
        return len(self._pending_pages)

    def showPage(self) -> None:  # noqa: N802 - reportlab API
        self._pending_pages.append(dict(self.__dict__))
        self._startPage()

    def finish(self, stamp: Optional[Callable[[int, int], None]] = None) -> int:
        pages = self._pending_pages + [dict(self.__dict__)]
        total = len(pages)
        for index, state in enumerate(pages):
            self.__dict__.update(state)
            self._stamping = index
            if stamp is not None:
                stamp(index, total)
            canvas.Canvas.showPage(self)
        self._stamping = None
        canvas.Canvas.save(self)
        return total
