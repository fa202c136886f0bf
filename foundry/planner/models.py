"""Pydantic v2 models for generation requests.

Defines the specification a scaffold is generated from (entities, workflows,
integrations, pages), the expanded variant written to ``app-spec.json``, and
the plan returned by the planner for a problem statement.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class FieldType(str, Enum):
    """Field types the planner is asked to use.

    Model output is not forced into this set: unknown strings are kept on
    the field and treated as ``string`` by the schema builder.
    """
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    TEXT = "text"
    ENUM = "enum"


# ---------------------------------------------------------------------------
# Specification
# ---------------------------------------------------------------------------

class EntityField(BaseModel):
    """A single typed field of an entity."""
    name: str = Field(..., description="Field name")
    type: str = Field(default=FieldType.STRING.value, description="One of FieldType, ideally")
    required: bool = Field(default=False, description="Whether the field is required")


class Entity(BaseModel):
    """A data entity; names are expected to be unique within a spec."""
    name: str = Field(..., description="Entity name, e.g. 'Vendor'")
    fields: list[EntityField] = Field(default_factory=list)


class Workflow(BaseModel):
    """A named, ordered sequence of steps."""
    name: str
    steps: list[str] = Field(default_factory=list)


class Integration(BaseModel):
    """An external system the app talks to."""
    name: str
    purpose: str = ""


class Page(BaseModel):
    """A UI page the app should expose."""
    name: str
    purpose: str = ""


DEFAULT_PAGES: tuple[Page, ...] = (
    Page(name="Dashboard", purpose="Overview and KPIs."),
    Page(name="Items", purpose="Manage records."),
)


class AppSpec(BaseModel):
    """Immutable input to every generator.

    Ordering of entities, workflows, integrations and pages is preserved in
    all generated output.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Project name")
    domain: str = Field(default="internal-tools")
    entities: list[Entity] = Field(default_factory=list)
    workflows: list[Workflow] = Field(default_factory=list)
    integrations: list[Integration] = Field(default_factory=list)
    pages: list[Page] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        """JSON-ready dict using the public (camelCase) key names."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Expanded specification (app-spec.json)
# ---------------------------------------------------------------------------

class Constraints(BaseModel):
    """Fixed deployment/auth/database constraints of generated apps."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    data_residency: str = Field(default="local", alias="dataResidency")
    auth: str = Field(default="Auth.js")
    database: str = Field(default="Postgres (target) / SQLite (dev)")
    deployment: str = Field(default="Vercel")


ACCEPTANCE_CRITERIA: tuple[str, ...] = (
    "Users can authenticate and access role-appropriate views.",
    "Core data flows are validated and persisted.",
    "The app passes lint, typecheck, and smoke tests.",
)


class ExpandedSpec(AppSpec):
    """An ``AppSpec`` plus constraint metadata and acceptance criteria."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    constraints: Constraints = Field(default_factory=Constraints)
    acceptance_criteria: list[str] = Field(
        default_factory=lambda: list(ACCEPTANCE_CRITERIA), alias="acceptanceCriteria"
    )


# ---------------------------------------------------------------------------
# Planner output
# ---------------------------------------------------------------------------

class SpecPayload(BaseModel):
    """The spec part of a planner response, before it is named."""
    entities: list[Entity] = Field(default_factory=list)
    workflows: list[Workflow] = Field(default_factory=list)
    integrations: list[Integration] = Field(default_factory=list)
    pages: list[Page] = Field(default_factory=list)


class PlanResult(BaseModel):
    """Everything the orchestrator needs to run one build."""
    summary: str = Field(..., description="One-line summary, at most 140 characters")
    domain: str = Field(default="internal-tools")
    stack: list[str] = Field(default_factory=list)
    plan: list[str] = Field(default_factory=list, description="Ordered plan steps")
    deliverables: list[str] = Field(default_factory=list)
    spec: SpecPayload = Field(default_factory=SpecPayload)

    def expanded_spec(self) -> ExpandedSpec:
        """Name the spec after the summary and attach the fixed metadata."""
        return ExpandedSpec(
            name=self.summary,
            domain=self.domain,
            entities=self.spec.entities,
            workflows=self.spec.workflows,
            integrations=self.spec.integrations,
            pages=self.spec.pages,
        )
