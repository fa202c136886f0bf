"""Genie Foundry planner.

Turns a natural-language problem statement into a build plan and a
structured app specification using two JSON-schema constrained model calls.

Usage::

    from foundry.planner import Planner

    result = await Planner(client).plan("Track vendor audits and approvals")
    print(result.summary, result.plan)
    print(result.spec.entities)
"""

from foundry.planner.models import (
    AppSpec,
    Entity,
    EntityField,
    ExpandedSpec,
    FieldType,
    Integration,
    Page,
    PlanResult,
    SpecPayload,
    Workflow,
)
from foundry.planner.planner import Planner, PlannerError

__all__ = [
    "Planner",
    "PlannerError",
    "AppSpec",
    "Entity",
    "EntityField",
    "ExpandedSpec",
    "FieldType",
    "Integration",
    "Page",
    "PlanResult",
    "SpecPayload",
    "Workflow",
]
