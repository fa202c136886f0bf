"""Genie Foundry scaffolder -- deterministic, model-free file generation.

Writes the static summary of an app spec (data schema, UI map, workflow and
integration dumps, metadata) and renders the themed Next.js template app
from Jinja2 templates shipped with the package.

Quick usage::

    from foundry.scaffolder import AppGenerator, generate_scaffold

    static_paths = await generate_scaffold(workspace, spec)
    app_paths = await AppGenerator().generate(workspace, spec)
"""

from foundry.scaffolder.app_gen import AppGenerator, PlannedFile, pages_or_default, plan_app_files
from foundry.scaffolder.schema import build_schema, json_type
from foundry.scaffolder.static_gen import generate_scaffold
from foundry.scaffolder.templates import TemplateRenderer

__all__ = [
    "AppGenerator",
    "PlannedFile",
    "TemplateRenderer",
    "build_schema",
    "generate_scaffold",
    "json_type",
    "pages_or_default",
    "plan_app_files",
]
