"""Static (non-templated) scaffold files.

Writes the machine-readable summary of a spec into a workspace: the backend
data schema, a Markdown UI map, integration/workflow dumps and a metadata
file. Every write is a full overwrite, so re-running is idempotent.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from foundry.planner.models import AppSpec
from foundry.scaffolder.schema import build_schema
from foundry.utils import save_json, slugify, title_case, write_text


def build_ui_markdown(spec: AppSpec) -> str:
    """Render the ``app/ui-map.md`` overview of pages and entities."""
    pages = "\n".join(f"- {page.name}: {page.purpose}" for page in spec.pages)
    entities = "\n".join(
        f"- {entity.name}: "
        + ", ".join(f"{field.name} ({field.type})" for field in entity.fields)
        for entity in spec.entities
    )
    return f"# {spec.name}\n\n## Pages\n{pages}\n\n## Entities\n{entities}\n"


def build_meta(spec: AppSpec) -> dict:
    """Return the ``meta.json`` payload."""
    return {
        "name": spec.name,
        "domain": spec.domain,
        "slug": slugify(spec.name),
        "entities": [title_case(entity.name) for entity in spec.entities],
    }


async def generate_scaffold(workspace: str | Path, spec: AppSpec) -> list[Path]:
    """Write the static scaffold and return the written paths, in order."""
    root = Path(workspace).resolve()
    await asyncio.gather(*[
        asyncio.to_thread(d.mkdir, parents=True, exist_ok=True)
        for d in (root / "app", root / "backend", root / "infra")
    ])

    dumped = spec.to_json_dict()
    return [
        await save_json(build_schema(spec), root / "backend" / "data-schema.json"),
        await write_text(root / "app" / "ui-map.md", build_ui_markdown(spec)),
        await save_json(dumped["integrations"], root / "infra" / "integrations.json"),
        await save_json(dumped["workflows"], root / "backend" / "workflows.json"),
        await save_json(build_meta(spec), root / "meta.json"),
    ]
