"""Jinja2 rendering for the themed Next.js template app.

Templates live in ``foundry/scaffolder/templates/`` and are plain ``.j2``
files. Autoescaping is off because the output is TypeScript/TSX, not HTML;
values that end up inside JSX text or JS string literals go through the
``jsx_text`` and ``js_string`` filters instead.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from foundry.utils import slugify, title_case


_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

_JSX_ESCAPES = {
    "{": "&#123;",
    "}": "&#125;",
    "<": "&lt;",
    ">": "&gt;",
    "'": "&#39;",
    "\"": "&quot;",
}


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders the ``.j2`` templates used by :class:`AppGenerator`."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = slugify
        self.env.filters["title_case"] = title_case
        self.env.filters["js_string"] = _js_string_filter
        self.env.filters["jsx_text"] = _jsx_text_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"app/dashboard.tsx.j2"``).
            context: Variables available inside the template.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _js_string_filter(value: str) -> str:
    """Quote *value* as a JavaScript string literal."""
    return json.dumps(str(value), ensure_ascii=False)


def _jsx_text_filter(value: str) -> str:
    """Escape characters JSX would read as markup or expressions."""
    return "".join(_JSX_ESCAPES.get(ch, ch) for ch in str(value))
