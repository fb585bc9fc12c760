from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from docrender.engine.context import RenderOptions
from docrender.engine.errors import TemplateRenderError
from docrender.engine.fonts import FontPair
from docrender.engine.render import render_template_to_pdf
from docrender.fixtures import fixture_names, get_fixture_data, sample_template


def main() -> None:
    """
    샘플 견적 템플릿을 fixture 데이터로 한 번 렌더링해서
    bytes / pages / warnings 를 출력한다. 렌더 회귀를 빠르게 재현하는 용도.
    """
    parser = argparse.ArgumentParser()
    parser.add_argument("--fixture", type=str, default="summaryBasic", choices=fixture_names(), help="Data fixture")
    parser.add_argument("--template", type=str, default=None, help="Template JSON (defaults to the sample estimate)")
    parser.add_argument("--latin-font", type=str, default=None, help="Latin TTF path")
    parser.add_argument("--ideographic-font", type=str, default=None, help="CJK TTF path")
    parser.add_argument("--out", type=str, default=None, help="Write the PDF here")
    args = parser.parse_args()

    template = sample_template()
    if args.template:
        payload = json.loads(Path(args.template).read_text(encoding="utf-8"))
        template = payload.get("template", payload)

    fonts = FontPair(
        latin=Path(args.latin_font).read_bytes() if args.latin_font else None,
        ideographic=Path(args.ideographic_font).read_bytes() if args.ideographic_font else None,
    )
    options = RenderOptions(debug=True, request_id=f"repro_{args.fixture}")

    try:
        result = render_template_to_pdf(template, get_fixture_data(args.fixture), fonts, options)
    except TemplateRenderError as exc:
        print(f"[repro_render] failed: {exc}", file=sys.stderr)
        sys.exit(1)

    if not result.pdf:
        print("[repro_render] failed: empty pdf", file=sys.stderr)
        sys.exit(1)
    if args.out:
        Path(args.out).write_bytes(result.pdf)

    print(f"[repro_render] ok bytes={len(result.pdf)} pages={result.page_count} warnings={len(result.warnings)}")
    for warning in result.warnings:
        print(f"  {warning}")


if __name__ == "__main__":
    main()
