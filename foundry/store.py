"""Persistence for builds, runs, steps and artifacts.

A *build* is created once per planned problem statement and owns any number
of *runs*. Each run owns a fixed, ordered list of *steps* (one per plan
entry) and an append-only collection of *artifacts* (files it produced).

Two implementations share the :class:`BuildStore` interface:
``MemoryStore`` for tests and one-off runs, and ``JsonStore`` which writes
the whole state to a JSON file after every mutation.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from foundry.utils import load_json, save_json


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class RunStatus(str, Enum):
    RUNNING = "running"
    READY = "ready"
    FAILED = "failed"


class StepStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ArtifactType(str, Enum):
    MANIFEST = "manifest"
    SPEC = "spec"
    README = "readme"
    GENERATED = "generated"
    APP = "app"


# Every step of a run follows its run into a terminal state.
STEP_STATUS_FOR_RUN: dict[RunStatus, StepStatus] = {
    RunStatus.READY: StepStatus.COMPLETED,
    RunStatus.FAILED: StepStatus.FAILED,
}


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class Build(BaseModel):
    """A planned problem statement."""
    id: str = Field(default_factory=_new_id)
    problem: str
    summary: str = ""
    domain: str = "internal-tools"
    stack: list[str] = Field(default_factory=list)
    plan: list[str] = Field(default_factory=list)
    deliverables: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Run(BaseModel):
    """One orchestration attempt for a build."""
    id: str = Field(default_factory=_new_id)
    build_id: str
    status: RunStatus = RunStatus.RUNNING
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Step(BaseModel):
    """A plan entry tracked on a run; ``name`` never changes after creation."""
    id: str = Field(default_factory=_new_id)
    run_id: str
    name: str
    status: StepStatus = StepStatus.PENDING
    detail: str | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Artifact(BaseModel):
    """A file produced by a run, recorded by absolute path."""
    id: str = Field(default_factory=_new_id)
    run_id: str
    type: ArtifactType
    path: str
    created_at: datetime = Field(default_factory=_now)


class StoreState(BaseModel):
    builds: dict[str, Build] = Field(default_factory=dict)
    runs: dict[str, Run] = Field(default_factory=dict)
    steps: list[Step] = Field(default_factory=list)
    artifacts: list[Artifact] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------

class BuildStore(ABC):
    """Storage interface used by the orchestrator and the CLI.

    Lookups of unknown ids raise ``KeyError``.
    """

    @abstractmethod
    async def create_build(
        self,
        problem: str,
        summary: str,
        domain: str,
        stack: list[str],
        plan: list[str],
        deliverables: list[str],
    ) -> Build: ...

    @abstractmethod
    async def create_run(self, build_id: str, step_names: list[str]) -> Run:
        """Create a ``running`` run with one ``pending`` step per name."""

    @abstractmethod
    async def update_run_status(
        self, run_id: str, status: RunStatus, step_status: StepStatus | None = None
    ) -> Run:
        """Set the run status and, if given, bulk-set every step's status."""

    @abstractmethod
    async def add_artifacts(
        self, run_id: str, artifact_type: ArtifactType, paths: list[str | Path]
    ) -> list[Artifact]: ...

    @abstractmethod
    async def get_build(self, build_id: str) -> Build: ...

    @abstractmethod
    async def get_run(self, run_id: str) -> Run: ...

    @abstractmethod
    async def list_runs(self, build_id: str) -> list[Run]: ...

    @abstractmethod
    async def list_steps(self, run_id: str) -> list[Step]: ...

    @abstractmethod
    async def list_artifacts(self, run_id: str) -> list[Artifact]: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class MemoryStore(BuildStore):
    """Keeps every record in process memory."""

    def __init__(self) -> None:
        self.state = StoreState()

    async def _persist(self) -> None:
        """Hook called after every mutation; a no-op in memory."""

    async def create_build(
        self,
        problem: str,
        summary: str,
        domain: str,
        stack: list[str],
        plan: list[str],
        deliverables: list[str],
    ) -> Build:
        build = Build(
            problem=problem,
            summary=summary,
            domain=domain,
            stack=list(stack),
            plan=list(plan),
            deliverables=list(deliverables),
        )
        self.state.builds[build.id] = build
        await self._persist()
        return build

    async def create_run(self, build_id: str, step_names: list[str]) -> Run:
        if build_id not in self.state.builds:
            raise KeyError(f"Unknown build: {build_id}")
        run = Run(build_id=build_id)
        self.state.runs[run.id] = run
        self.state.steps.extend(Step(run_id=run.id, name=name) for name in step_names)
        await self._persist()
        return run

    async def update_run_status(
        self, run_id: str, status: RunStatus, step_status: StepStatus | None = None
    ) -> Run:
        run = self.state.runs[run_id]
        now = _now()
        run.status = status
        run.updated_at = now
        if step_status is not None:
            for step in self.state.steps:
                if step.run_id == run_id:
                    step.status = step_status
                    step.updated_at = now
        await self._persist()
        return run

    async def add_artifacts(
        self, run_id: str, artifact_type: ArtifactType, paths: list[str | Path]
    ) -> list[Artifact]:
        if run_id not in self.state.runs:
            raise KeyError(f"Unknown run: {run_id}")
        created = [Artifact(run_id=run_id, type=artifact_type, path=str(p)) for p in paths]
        self.state.artifacts.extend(created)
        await self._persist()
        return created

    async def get_build(self, build_id: str) -> Build:
        return self.state.builds[build_id]

    async def get_run(self, run_id: str) -> Run:
        return self.state.runs[run_id]

    async def list_runs(self, build_id: str) -> list[Run]:
        runs = [r for r in self.state.runs.values() if r.build_id == build_id]
        return sorted(runs, key=lambda r: r.created_at, reverse=True)

    async def list_steps(self, run_id: str) -> list[Step]:
        return [s for s in self.state.steps if s.run_id == run_id]

    async def list_artifacts(self, run_id: str) -> list[Artifact]:
        return [a for a in self.state.artifacts if a.run_id == run_id]


# ---------------------------------------------------------------------------
# JSON file implementation
# ---------------------------------------------------------------------------

class JsonStore(MemoryStore):
    """A :class:`MemoryStore` mirrored to a single JSON file.

    The file is read once on construction (if it exists) and rewritten
    whole after each mutation.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self.state = StoreState.model_validate(load_json(self.path))

    async def _persist(self) -> None:
        await save_json(self.state.model_dump(mode="json"), self.path)
