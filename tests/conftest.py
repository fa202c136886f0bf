"""Shared pytest fixtures for the Genie Foundry test suite.

Provides reusable fixtures for:
- A sample app spec and plan result
- A scripted stand-in for the model client
- Configuration rooted in a temporary directory
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from foundry.config import Config
from foundry.llm_client import LLMResponse
from foundry.planner.models import (
    AppSpec,
    Entity,
    EntityField,
    Integration,
    Page,
    PlanResult,
    SpecPayload,
    Workflow,
)


# ---------------------------------------------------------------------------
# Model client double
# ---------------------------------------------------------------------------


class ScriptedLLMClient:
    """Returns queued responses in order, repeating the last one.

    Every call is recorded in ``calls`` as ``(system, prompt, json_schema)``.
    """

    def __init__(self, *responses: LLMResponse | str | dict[str, Any]) -> None:
        self.responses = [self._coerce(r) for r in responses] or [LLMResponse(text="{}")]
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []

    @staticmethod
    def _coerce(value: LLMResponse | str | dict[str, Any]) -> LLMResponse:
        if isinstance(value, LLMResponse):
            return value
        if isinstance(value, dict):
            value = json.dumps(value)
        return LLMResponse(text=value, model="test-model")

    async def complete(
        self, system: str, prompt: str, json_schema: dict[str, Any] | None = None
    ) -> LLMResponse:
        self.calls.append((system, prompt, json_schema))
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        return self.responses[index]


@pytest.fixture
def scripted_client():
    """Factory for :class:`ScriptedLLMClient` instances."""
    return ScriptedLLMClient


# ---------------------------------------------------------------------------
# Specs & plans
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_spec() -> AppSpec:
    """A two-entity vendor audit spec."""
    return AppSpec(
        name="Vendor audit tracker",
        domain="internal-tools",
        entities=[
            Entity(
                name="Vendor",
                fields=[
                    EntityField(name="name", type="string", required=True),
                    EntityField(name="risk score", type="number", required=False),
                    EntityField(name="active", type="boolean", required=True),
                ],
            ),
            Entity(
                name="Audit Finding",
                fields=[
                    EntityField(name="title", type="string", required=True),
                    EntityField(name="due", type="date", required=False),
                ],
            ),
        ],
        workflows=[Workflow(name="Quarterly review", steps=["Collect", "Score", "Approve"])],
        integrations=[Integration(name="Slack", purpose="Notify owners.")],
        pages=[
            Page(name="Overview", purpose="Audit KPIs."),
            Page(name="Vendors", purpose="Vendor list."),
            Page(name="Findings", purpose="Open findings."),
        ],
    )


@pytest.fixture
def sample_plan(sample_spec: AppSpec) -> PlanResult:
    """A plan result with a three-step plan wrapping ``sample_spec``."""
    return PlanResult(
        summary="Vendor audit tracker",
        domain="internal-tools",
        stack=["Next.js", "Postgres", "Auth.js", "Prisma", "Vercel"],
        plan=["a", "b", "c"],
        deliverables=["Working app"],
        spec=SpecPayload(
            entities=sample_spec.entities,
            workflows=sample_spec.workflows,
            integrations=sample_spec.integrations,
            pages=sample_spec.pages,
        ),
    )


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_config(tmp_path: Path) -> Config:
    """A Config whose output directory is a fresh temporary directory."""
    return Config(output_dir=tmp_path)
