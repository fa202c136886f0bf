"""Problem statement -> build plan and app specification.

Two structured model calls: one for the plan (summary, stack, steps,
deliverables), one for the data/UI spec. Model output is untrusted; every
unusable response falls back to a fixed placeholder so planning itself only
fails on invalid input.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from foundry.llm_client import LLMClient, parse_json_object
from foundry.planner.models import (
    Entity,
    EntityField,
    Integration,
    Page,
    PlanResult,
    SpecPayload,
    Workflow,
)
from foundry.utils import console, print_warning

MIN_PROBLEM_LENGTH = 10
MAX_SUMMARY_LENGTH = 140

DEFAULT_STACK = ["Next.js", "Postgres", "Auth.js", "Prisma", "Vercel"]

PLAN_SYSTEM_PROMPT = """You are Genie Foundry, an autonomous internal tools planner.
Return ONLY valid JSON with the following shape:
{
  "summary": string,
  "domain": "internal-tools",
  "stack": string[],
  "plan": string[],
  "deliverables": string[]
}
Rules:
- Keep summary under 140 characters.
- Stack must include: Next.js, Postgres, Auth.js, Prisma, Vercel.
- Plan should be 4-6 concrete steps.
- Deliverables should be 3-5 bullet items.
- No markdown, no extra keys, no commentary. JSON only."""

SPEC_SYSTEM_PROMPT = """You are Genie Foundry, a systems analyst.
Return ONLY valid JSON with the following shape:
{
  "entities": [{ "name": string, "fields": [{ "name": string, "type": string, "required": boolean }] }],
  "workflows": [{ "name": string, "steps": string[] }],
  "integrations": [{ "name": string, "purpose": string }],
  "pages": [{ "name": string, "purpose": string }]
}
Rules:
- Keep entity and field names short.
- Use simple field types: string, number, boolean, date, enum, text.
- If unsure, provide a minimal but plausible spec.
- No markdown, no extra keys, no commentary. JSON only."""


def _strict_object(properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": properties,
        "required": list(properties),
    }


_STRING_LIST = {"type": "array", "items": {"type": "string"}}
_NAME_PURPOSE = _strict_object({"name": {"type": "string"}, "purpose": {"type": "string"}})

PLAN_SCHEMA: dict[str, Any] = {
    "name": "genie_plan",
    "strict": True,
    "schema": _strict_object({
        "summary": {"type": "string"},
        "domain": {"type": "string"},
        "stack": _STRING_LIST,
        "plan": _STRING_LIST,
        "deliverables": _STRING_LIST,
    }),
}

SPEC_SCHEMA: dict[str, Any] = {
    "name": "genie_spec",
    "strict": True,
    "schema": _strict_object({
        "entities": {
            "type": "array",
            "items": _strict_object({
                "name": {"type": "string"},
                "fields": {
                    "type": "array",
                    "items": _strict_object({
                        "name": {"type": "string"},
                        "type": {"type": "string"},
                        "required": {"type": "boolean"},
                    }),
                },
            }),
        },
        "workflows": {
            "type": "array",
            "items": _strict_object({"name": {"type": "string"}, "steps": _STRING_LIST}),
        },
        "integrations": {"type": "array", "items": _NAME_PURPOSE},
        "pages": {"type": "array", "items": _NAME_PURPOSE},
    }),
}


class PlannerError(Exception):
    """Raised when a problem statement cannot be planned at all."""


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------


def placeholder_plan(problem: str) -> dict[str, Any]:
    """The plan used when the model response is missing or unparsable."""
    clipped = problem.strip()[:MAX_SUMMARY_LENGTH]
    return {
        "summary": clipped or "Define the problem first.",
        "domain": "internal-tools",
        "stack": list(DEFAULT_STACK),
        "plan": [
            "Extract requirements and success metrics",
            "Draft data model and access control matrix",
            "Generate UI layout, API routes, and validations",
            "Write tests, seed data, and CI checks",
            "Deploy preview and run smoke checks",
        ],
        "deliverables": [
            "Working web app with auth and role-based access",
            "Admin dashboard + CRUD modules",
            "Deployment preview URL + setup guide",
        ],
    }


def fallback_spec() -> SpecPayload:
    """The spec used when the model response is missing or unparsable."""
    return SpecPayload(
        entities=[
            Entity(
                name="Item",
                fields=[
                    EntityField(name="name", type="string", required=True),
                    EntityField(name="status", type="enum", required=True),
                    EntityField(name="notes", type="text", required=False),
                ],
            ),
        ],
        workflows=[Workflow(name="Intake", steps=["Create item", "Assign owner", "Track status"])],
        integrations=[Integration(name="Email", purpose="Send notifications on status change.")],
        pages=[
            Page(name="Dashboard", purpose="Overview of KPIs and status."),
            Page(name="Items", purpose="Manage items and details."),
        ],
    )


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------


class Planner:
    """Turns a problem statement into a :class:`PlanResult`."""

    def __init__(self, client: LLMClient) -> None:
        self.client = client

    async def plan(self, problem: str) -> PlanResult:
        """Ask the model for a plan and a spec, falling back where needed.

        Raises:
            PlannerError: If the problem statement is too short to plan.
        """
        if len(problem.strip()) < MIN_PROBLEM_LENGTH:
            raise PlannerError("Problem statement is too short.")

        plan_fields = await self._request_plan(problem)
        spec = await self._request_spec(problem)
        return PlanResult(**plan_fields, spec=spec)

    async def _request_plan(self, problem: str) -> dict[str, Any]:
        placeholder = placeholder_plan(problem)
        payload = await self._request(PLAN_SYSTEM_PROMPT, problem, PLAN_SCHEMA, "plan")
        if payload is None:
            return placeholder

        # Missing or mistyped keys take the placeholder value.
        merged: dict[str, Any] = {}
        for key, default in placeholder.items():
            value = payload.get(key)
            if isinstance(default, list):
                ok = isinstance(value, list) and all(isinstance(v, str) for v in value)
            else:
                ok = isinstance(value, str) and bool(value.strip())
            merged[key] = value if ok else default
        merged["summary"] = merged["summary"][:MAX_SUMMARY_LENGTH]
        return merged

    async def _request_spec(self, problem: str) -> SpecPayload:
        payload = await self._request(SPEC_SYSTEM_PROMPT, problem, SPEC_SCHEMA, "spec")
        if payload is None:
            return fallback_spec()
        try:
            return SpecPayload.model_validate(payload)
        except ValidationError as exc:
            print_warning(f"  Spec response did not validate ({exc.error_count()} error(s)); using fallback spec.")
            return fallback_spec()

    async def _request(
        self, system: str, problem: str, schema: dict[str, Any], label: str
    ) -> dict[str, Any] | None:
        response = await self.client.complete(system, f"Problem:\n{problem}", schema)
        if not response.success:
            print_warning(f"  Model call for {label} failed: {response.error}")
            return None
        payload = parse_json_object(response.text)
        if payload is None:
            print_warning(f"  Model returned unparsable {label}; using fallback.")
        else:
            console.print(f"  [green]+[/green] {label.capitalize()} received from {response.model}")
        return payload
