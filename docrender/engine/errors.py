from __future__ import annotations

from typing import Optional


class TemplateRenderError(RuntimeError):
    """Fatal render failure. Carries enough context for the caller to correlate."""

    def __init__(
        self,
        message: str,
        template_id: str,
        element_id: Optional[str] = None,
        phase: Optional[str] = None,
    ) -> None:
        self.template_id = template_id
        self.element_id = element_id
        self.phase = phase
        super().__init__(f"{message} (template={template_id} element={element_id or '-'} phase={phase or '-'})")


class PageLimitError(TemplateRenderError):
    pass
