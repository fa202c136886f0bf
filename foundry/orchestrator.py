"""Run orchestration: one planned build -> one generated workspace.

Sequence for a run:

1. Create the run (``running``) with one ``pending`` step per plan entry.
2. Create the workspace (``app/``, ``backend/``, ``infra/``) under a folder
   named after the summary slug, or the build id when that is empty.
3. Write ``manifest.json``, ``app-spec.json`` and ``README.md``.
4. Static scaffold, template app and (optionally) model codegen.
5. Check that every recorded artifact exists.
6. Run the external verification command.

Success marks the run ``ready`` and every step ``completed``; any failure in
2-6 marks the run and every step ``failed`` and re-raises.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Awaitable, Callable

from pydantic import BaseModel

from foundry.builder.codegen import CodegenEngine
from foundry.config import Config
from foundry.planner.models import ExpandedSpec, PlanResult
from foundry.scaffolder.app_gen import AppGenerator
from foundry.scaffolder.static_gen import generate_scaffold
from foundry.store import (
    ArtifactType,
    BuildStore,
    RunStatus,
    STEP_STATUS_FOR_RUN,
)
from foundry.utils import (
    console,
    print_error,
    print_stage_header,
    print_success,
    run_command,
    save_json,
    slugify,
    write_text,
)

Verifier = Callable[[Path], Awaitable[tuple[int, str]]]

CAPABILITIES: tuple[dict[str, str], ...] = (
    {
        "id": "crud",
        "label": "CRUD data management",
        "description": "Create/read/update/delete records with audit history.",
    },
    {
        "id": "workflow",
        "label": "Workflow automation",
        "description": "Multi-step approvals, states, and notifications.",
    },
    {
        "id": "dashboard",
        "label": "Analytics dashboard",
        "description": "KPIs, charts, and operational insights.",
    },
    {
        "id": "integrations",
        "label": "Integrations",
        "description": "Connectors for email, Slack, Jira, and webhooks.",
    },
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class OrchestratorError(Exception):
    """Base class for failures raised by the orchestrator itself."""


class MissingArtifactsError(OrchestratorError):
    """Raised when recorded artifacts are not on disk."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing generated artifacts: {', '.join(missing)}")


class VerificationError(OrchestratorError):
    """Raised when the verification command exits non-zero."""

    def __init__(self, returncode: int, output: str = "") -> None:
        self.returncode = returncode
        self.output = output
        super().__init__(f"Verification failed with exit code {returncode}: {output[:500]}")


class OrchestratorOutput(BaseModel):
    build_id: str
    run_id: str
    manifest_path: Path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def render_readme(summary: str) -> str:
    return (
        f"# Generated App\n\nSummary: {summary}\n\n"
        "## Next steps\n"
        "- Replace placeholders in app-spec.json\n"
        "- Generate UI scaffolds\n"
        "- Generate API scaffolds\n"
        "- Run tests\n"
    )


async def find_missing(paths: list[Path]) -> list[str]:
    """Stat every path concurrently; return those that do not exist, in order."""
    exists = await asyncio.gather(*[asyncio.to_thread(p.exists) for p in paths])
    return [str(p) for p, ok in zip(paths, exists) if not ok]


def command_verifier(config: Config) -> Verifier:
    """Build a verifier that runs the configured command against a workspace.

    Without a configured command, the built-in ``foundry.verify`` checker
    runs in a subprocess of the current interpreter.
    """

    async def _verify(workspace: Path) -> tuple[int, str]:
        cmd = config.resolve_verify_command(workspace) or [
            sys.executable, "-m", "foundry.verify", str(workspace),
        ]
        returncode, stdout, stderr = await run_command(cmd, timeout=config.verify_timeout)
        return returncode, "\n".join(part for part in (stdout, stderr) if part)

    return _verify


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class RunOrchestrator:
    """Drives a single generation run and records it in a :class:`BuildStore`.

    Attributes:
        store: Build/run persistence.
        config: Paths and verification settings.
        verifier: Async callable returning ``(returncode, output)`` for a
            workspace.
        codegen: Optional model-backed engine; when set, the full app is
            generated under ``app/full/`` as part of the run.
    """

    def __init__(
        self,
        store: BuildStore,
        config: Config,
        verifier: Verifier | None = None,
        codegen: CodegenEngine | None = None,
    ) -> None:
        self.store = store
        self.config = config
        self.verifier = verifier or command_verifier(config)
        self.codegen = codegen
        self.app_generator = AppGenerator()

    def workspace_for(self, build_id: str, summary: str) -> Path:
        return (self.config.generated_dir / (slugify(summary) or build_id)).resolve()

    async def run(self, build_id: str, problem: str, result: PlanResult) -> OrchestratorOutput:
        """Generate the workspace for *result* and return the run identifiers.

        Raises:
            MissingArtifactsError: If a recorded artifact is not on disk.
            VerificationError: If the verification command fails.
            CodegenError: If codegen is enabled and a model call fails.
        """
        run = await self.store.create_run(build_id, result.plan)
        workspace = self.workspace_for(build_id, result.summary)
        console.print(f"Run [bold]{run.id}[/bold] -> {workspace}")

        try:
            manifest_path = await self._execute(build_id, run.id, problem, result, workspace)
        except Exception as exc:
            print_error(f"Run {run.id} failed: {exc}")
            try:
                await self._finish(run.id, RunStatus.FAILED)
            except Exception as finish_exc:
                print_error(f"Could not mark run {run.id} failed: {finish_exc}")
            raise

        await self._finish(run.id, RunStatus.READY)
        print_success(f"Run {run.id} ready.")
        return OrchestratorOutput(build_id=build_id, run_id=run.id, manifest_path=manifest_path)

    async def _finish(self, run_id: str, status: RunStatus) -> None:
        await self.store.update_run_status(run_id, status, STEP_STATUS_FOR_RUN[status])

    async def _execute(
        self,
        build_id: str,
        run_id: str,
        problem: str,
        result: PlanResult,
        workspace: Path,
    ) -> Path:
        await asyncio.gather(*[
            asyncio.to_thread(d.mkdir, parents=True, exist_ok=True)
            for d in (workspace / "app", workspace / "backend", workspace / "infra")
        ])

        print_stage_header("Manifest")
        manifest = {
            "buildId": build_id,
            "runId": run_id,
            "problem": problem,
            "summary": result.summary,
            "domain": result.domain,
            "stack": result.stack,
            "plan": result.plan,
            "deliverables": result.deliverables,
            "capabilities": list(CAPABILITIES),
            "spec": result.spec.model_dump(mode="json"),
        }
        manifest_path = await save_json(manifest, workspace / "manifest.json")
        await self.store.add_artifacts(run_id, ArtifactType.MANIFEST, [manifest_path])

        spec: ExpandedSpec = result.expanded_spec()
        spec_path = await save_json(spec.to_json_dict(), workspace / "app-spec.json")
        readme_path = await write_text(workspace / "README.md", render_readme(result.summary))
        await self.store.add_artifacts(run_id, ArtifactType.SPEC, [spec_path])
        await self.store.add_artifacts(run_id, ArtifactType.README, [readme_path])

        print_stage_header("Scaffold")
        generated = await generate_scaffold(workspace, spec)
        await self.store.add_artifacts(run_id, ArtifactType.GENERATED, generated)
        console.print(f"  [green]+[/green] {len(generated)} scaffold file(s)")

        app_files = await self.app_generator.generate(workspace, spec)
        await self.store.add_artifacts(run_id, ArtifactType.APP, app_files)
        console.print(f"  [green]+[/green] {len(app_files)} template app file(s)")

        if self.codegen is not None:
            print_stage_header("Codegen")
            full_app = await self.codegen.generate_app(workspace, spec)
            await self.store.add_artifacts(run_id, ArtifactType.APP, full_app)
            app_files = app_files + full_app

        print_stage_header("Verify")
        recorded = [manifest_path, spec_path, readme_path, *generated, *app_files]
        missing = await find_missing(recorded)
        if missing:
            raise MissingArtifactsError(missing)

        returncode, output = await self.verifier(workspace)
        if returncode != 0:
            raise VerificationError(returncode, output)
        console.print(f"  [green]+[/green] {len(recorded)} artifact(s) verified")

        return manifest_path
