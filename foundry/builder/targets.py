"""Catalog of files the model is asked to write for the full app."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from foundry.planner.models import AppSpec
from foundry.scaffolder.app_gen import RESERVED_API_SLUGS
from foundry.utils import unique_slugs

TargetKind = Literal["page", "layout", "api", "config"]


@dataclass(frozen=True)
class CodegenTarget:
    """A single file to generate: relative path, instructions and kind."""

    path: str
    description: str
    kind: TargetKind


_FIXED_TARGETS: tuple[CodegenTarget, ...] = (
    CodegenTarget(
        "app/layout.tsx",
        "Root layout with basic shell and navigation links for dashboard, records, "
        "entities, workflows, integrations, auth, settings.",
        "layout",
    ),
    CodegenTarget(
        "app/page.tsx",
        "Landing page for the generated app with summary and links to sections.",
        "page",
    ),
    CodegenTarget("app/dashboard/page.tsx", "Dashboard page", "page"),
    CodegenTarget("app/records/page.tsx", "Records page", "page"),
    CodegenTarget("app/entities/page.tsx", "Entities page", "page"),
    CodegenTarget("app/workflows/page.tsx", "Workflows page", "page"),
    CodegenTarget("app/integrations/page.tsx", "Integrations page", "page"),
    CodegenTarget("app/auth/page.tsx", "Auth + RBAC page", "page"),
    CodegenTarget("app/settings/page.tsx", "Settings page", "page"),
    CodegenTarget("app/api/entities/route.ts", "Returns entities from spec.", "api"),
    CodegenTarget("app/api/workflows/route.ts", "Returns workflows from spec.", "api"),
    CodegenTarget("app/api/integrations/route.ts", "Returns integrations from spec.", "api"),
)


def codegen_targets(spec: AppSpec) -> list[CodegenTarget]:
    """Fixed targets followed by list API, detail API and page per entity."""
    targets = list(_FIXED_TARGETS)
    slugs = unique_slugs([e.name for e in spec.entities], reserved=RESERVED_API_SLUGS)
    for entity, slug in zip(spec.entities, slugs):
        targets += [
            CodegenTarget(f"app/api/{slug}/route.ts", f"List endpoint for {entity.name}.", "api"),
            CodegenTarget(
                f"app/api/{slug}/[id]/route.ts", f"Detail endpoint for {entity.name}.", "api"
            ),
            CodegenTarget(
                f"app/entities/{slug}/page.tsx", f"Entity list page for {entity.name}.", "page"
            ),
        ]
    return targets
