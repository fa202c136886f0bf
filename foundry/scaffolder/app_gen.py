"""Themed Next.js template app generator.

Produces the documentation set for a spec (spec dump, UI map, one Markdown
file per page, one schema file per entity) and a dark-themed Next.js App
Router template under ``app/template/``: seven section pages, the shared
records/entities/workflows/integrations API routes, a layout, global CSS,
a README, and a list route, detail route and page for every entity.

The whole output is computed up front by :func:`plan_app_files`, which does
no I/O; :class:`AppGenerator` then creates the directories and writes the
plan in order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from foundry.planner.models import DEFAULT_PAGES, AppSpec, Page
from foundry.scaffolder.templates import TemplateRenderer
from foundry.utils import dump_json, title_case, unique_slugs, write_text


TEMPLATE_ROOT = "app/template"

# (slug, nav label) of the fixed section pages, in render order.
SECTIONS: tuple[tuple[str, str], ...] = (
    ("dashboard", "Dashboard"),
    ("records", "Records"),
    ("entities", "Entities"),
    ("workflows", "Workflows"),
    ("integrations", "Integrations"),
    ("auth", "Access"),
    ("settings", "Settings"),
)

# API segments owned by the fixed routes; entity slugs must not reuse them.
RESERVED_API_SLUGS = frozenset({"records", "entities", "workflows", "integrations"})

ROLES: tuple[tuple[str, str], ...] = (
    ("Admin", "full access"),
    ("Manager", "workflow + approvals"),
    ("Contributor", "data updates"),
    ("Viewer", "read only"),
)

ENV_VARS: tuple[str, ...] = ("DATABASE_URL", "AUTH_PROVIDER", "NOTIFICATION_WEBHOOK")


@dataclass(frozen=True)
class PlannedFile:
    """One file of the generated app, relative to the workspace.

    ``returned`` is ``False`` for files that are written but not reported
    back to the caller (the ``app/README.md`` overview).
    """

    path: str
    content: str
    template: str | None = None
    returned: bool = True


def pages_or_default(spec: AppSpec) -> list[Page]:
    """The spec's pages, or the default Dashboard/Items pair when it has none."""
    return list(spec.pages) if spec.pages else list(DEFAULT_PAGES)


def build_overview_markdown(spec: AppSpec, pages: list[Page]) -> str:
    """Render the overview used for both ``app/README.md`` and ``app/ui-map.md``."""
    page_lines = "\n".join(f"- {page.name}: {page.purpose}" for page in pages)
    entity_blocks = "\n\n".join(
        f"### {entity.name}\n"
        + "\n".join(f"- {field.name} ({field.type})" for field in entity.fields)
        for entity in spec.entities
    )
    return f"# {spec.name}\n\n## Pages\n{page_lines}\n\n## Entities\n{entity_blocks}\n"


def _component_name(name: str) -> str:
    """A valid TSX component prefix for an entity name."""
    base = title_case(name)
    if not base or base[0].isdigit():
        return f"Entity{base}"
    return base


def _entity_contexts(spec: AppSpec) -> list[dict[str, Any]]:
    slugs = unique_slugs([e.name for e in spec.entities], reserved=RESERVED_API_SLUGS)
    contexts = []
    for entity, slug in zip(spec.entities, slugs):
        contexts.append({
            "name": entity.name,
            "slug": slug,
            "title": title_case(entity.name),
            "component": _component_name(entity.name),
            "sample_name": f"{entity.name} Sample",
            "fields_json": dump_json([f.model_dump(mode="json") for f in entity.fields]),
        })
    return contexts


def _template_context(spec: AppSpec, entities: list[dict[str, Any]]) -> dict[str, Any]:
    dumped = spec.to_json_dict()
    return {
        "project_name": spec.name,
        "sections": [{"slug": slug, "label": label} for slug, label in SECTIONS],
        "entities": entities,
        "entities_json": dump_json(dumped["entities"]),
        "workflows_json": dump_json(dumped["workflows"]),
        "integrations_json": dump_json(dumped["integrations"]),
        "roles": [{"name": name, "access": access} for name, access in ROLES],
        "env_vars": list(ENV_VARS),
    }


def _fixed_templates(context: dict[str, Any]) -> list[tuple[str, str, dict[str, Any]]]:
    """(template, output path under app/template/, extra context) per fixed file."""
    pages = [
        (f"app/{slug}.tsx.j2", f"app/{slug}/page.tsx", {})
        for slug, _label in SECTIONS
    ]
    return pages + [
        ("api/records_list.ts.j2", "app/api/records/route.ts", {}),
        ("api/records_detail.ts.j2", "app/api/records/[id]/route.ts", {}),
        ("api/collection.ts.j2", "app/api/entities/route.ts",
         {"key": "entities", "data_json": context["entities_json"]}),
        ("api/collection.ts.j2", "app/api/workflows/route.ts",
         {"key": "workflows", "data_json": context["workflows_json"]}),
        ("api/collection.ts.j2", "app/api/integrations/route.ts",
         {"key": "integrations", "data_json": context["integrations_json"]}),
        ("app/layout.tsx.j2", "app/layout.tsx", {}),
        ("globals.css.j2", "globals.css", {}),
        ("README.md.j2", "README.md", {}),
    ]


def plan_app_files(spec: AppSpec, renderer: TemplateRenderer | None = None) -> list[PlannedFile]:
    """Compute every file of the template app, in write order.

    Documentation files come first, then the fixed template files, then the
    three files of each entity in spec order. Equal specs give equal plans.
    """
    renderer = renderer or TemplateRenderer()
    pages = pages_or_default(spec)
    overview = build_overview_markdown(spec, pages)

    planned: list[PlannedFile] = [
        PlannedFile("app/README.md", overview, returned=False),
        PlannedFile("app/spec.json", dump_json(spec.to_json_dict())),
        PlannedFile("app/ui-map.md", overview),
    ]

    for page, slug in zip(pages, unique_slugs([p.name for p in pages])):
        planned.append(
            PlannedFile(f"app/pages/{slug}.md", f"# {page.name}\n\nPurpose: {page.purpose}\n")
        )

    entities = _entity_contexts(spec)
    for entity, ctx in zip(spec.entities, entities):
        schema = {
            "name": entity.name,
            "title": ctx["title"],
            "fields": [f.model_dump(mode="json") for f in entity.fields],
        }
        planned.append(PlannedFile(f"backend/{ctx['slug']}.schema.json", dump_json(schema)))

    context = _template_context(spec, entities)
    for template, out, extra in _fixed_templates(context):
        planned.append(PlannedFile(
            f"{TEMPLATE_ROOT}/{out}",
            renderer.render(template, {**context, **extra}),
            template=template,
        ))

    for ctx in entities:
        slug = ctx["slug"]
        for template, out in (
            ("entity/list_route.ts.j2", f"app/api/{slug}/route.ts"),
            ("entity/detail_route.ts.j2", f"app/api/{slug}/[id]/route.ts"),
            ("entity/page.tsx.j2", f"app/entities/{slug}/page.tsx"),
        ):
            planned.append(PlannedFile(
                f"{TEMPLATE_ROOT}/{out}",
                renderer.render(template, {**context, "entity": ctx}),
                template=template,
            ))

    return planned


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class AppGenerator:
    """Writes the planned template app into a workspace."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    async def generate(self, workspace: str | Path, spec: AppSpec) -> list[Path]:
        """Write the docs and template app; return the reported paths in order.

        Files are fully overwritten, so regenerating the same spec into the
        same workspace yields byte-identical output.
        """
        root = Path(workspace).resolve()
        planned = plan_app_files(spec, self.renderer)

        await self._create_directories(root)

        written: list[Path] = []
        for item in planned:
            path = await write_text(root / item.path, item.content)
            if item.returned:
                written.append(path)
        return written

    async def _create_directories(self, root: Path) -> None:
        template_app = root / TEMPLATE_ROOT / "app"
        dirs = [root / "app" / "pages", root / "backend", template_app]
        dirs += [template_app / slug for slug, _label in SECTIONS]
        dirs += [
            template_app / "api" / "records" / "[id]",
            template_app / "api" / "entities",
            template_app / "api" / "workflows",
            template_app / "api" / "integrations",
        ]
        await asyncio.gather(*[
            asyncio.to_thread(d.mkdir, parents=True, exist_ok=True) for d in dirs
        ])
