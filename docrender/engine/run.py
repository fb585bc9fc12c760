from __future__ import annotations

from pathlib import Path
import json
import logging
import shutil
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .. import config
from ..models import TemplateDataRecord
from ..storage import artifact_path, slug_for
from .context import RenderOptions
from .fonts import FontPair
from .render import RenderResult, render_template_to_pdf
from .render_preview import render_previews


logger = logging.getLogger(__name__)


def load_payload(path: Path) -> Tuple[Dict[str, Any], TemplateDataRecord]:
    """Either {"template": ..., "data": ...} or a bare template object."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path.name}: payload must be a JSON object")
    if "template" in raw:
        template = raw["template"]
        data = raw.get("data") or {}
    else:
        template, data = raw, {}
    if not isinstance(template, dict):
        raise ValueError(f"{path.name}: template must be a JSON object")
    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: data must be a JSON object")
    return template, data


def payload_slug(template: Dict[str, Any], fallback: str) -> str:
    return slug_for(str(template.get("name") or template.get("id") or fallback))


def _write_error(slug: str, message: str, base_dir: Path | None = None) -> Path:
    error_path = artifact_path(slug, "error", base_dir=base_dir or config.OUT_DIR)
    error_path.write_text(message, encoding="utf-8")
    return error_path


def _prepare_temp_dir(slug: str) -> Path:
    temp_dir = config.OUT_DIR / f"{slug}.tmp"
    if temp_dir.exists():
        shutil.rmtree(temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


def _finalize_artifacts(temp_dir: Path, final_dir: Path, artifacts: List[Tuple[str, Path]]) -> List[Tuple[str, Path]]:
    if final_dir.exists():
        shutil.rmtree(final_dir)
    temp_dir.replace(final_dir)
    return [(kind, final_dir / path.relative_to(temp_dir)) for kind, path in artifacts]


def render_to_dir(
    slug: str,
    template: Dict[str, Any],
    data: Optional[TemplateDataRecord],
    fonts: Optional[FontPair] = None,
    options: Optional[RenderOptions] = None,
    previews: bool = False,
) -> Tuple[RenderResult, List[Tuple[str, Path]]]:
    """Render into <OUT_DIR>/<slug>/; the directory only appears once every artifact is written."""
    temp_dir = _prepare_temp_dir(slug)
    try:
        result = render_template_to_pdf(template, data, fonts, options)

        artifacts: List[Tuple[str, Path]] = []
        pdf_path = artifact_path(slug, "pdf", base_dir=temp_dir, include_slug=False)
        pdf_path.write_bytes(result.pdf)
        artifacts.append(("pdf", pdf_path))

        warnings_path = artifact_path(slug, "warnings", base_dir=temp_dir, include_slug=False)
        warnings_path.write_text(
            json.dumps({"pageCount": result.page_count, "warnings": result.warnings}, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        artifacts.append(("warnings", warnings_path))

        if previews:
            for index, path in enumerate(render_previews(slug, pdf_path, base_dir=temp_dir, include_slug=False), 1):
                artifacts.append((f"preview_{index}", path))
    except Exception:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise

    final_dir = config.OUT_DIR / slug
    return result, _finalize_artifacts(temp_dir, final_dir, artifacts)


def run_batch(
    paths: Iterable[Path],
    fonts: Optional[FontPair] = None,
    options: Optional[RenderOptions] = None,
    previews: bool = False,
) -> Dict[str, List[str]]:
    results: Dict[str, List[str]] = {"READY": [], "FAILED": []}
    for path in paths:
        slug = slug_for(path.stem)
        try:
            template, data = load_payload(path)
            slug = payload_slug(template, path.stem)
            result, _ = render_to_dir(slug, template, data, fonts, options, previews)
        except Exception as exc:
            logger.exception("Render error for %s", path.name)
            _write_error(slug, f"{type(exc).__name__}: {exc}")
            results["FAILED"].append(slug)
            continue
        logger.info("Rendered %s (%s pages, %s warnings)", slug, result.page_count, len(result.warnings))
        results["READY"].append(slug)
    return results
