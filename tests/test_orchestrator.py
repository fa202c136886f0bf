"""Unit tests for the run orchestrator (foundry.orchestrator).

Tests cover:
- Successful run lifecycle (ready / completed) and recorded artifacts
- Manifest, app-spec and README contents
- Workspace naming, including the build-id fallback
- Failures: verification, missing artifacts, codegen -> failed / failed
- command_verifier and find_missing helpers
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from foundry.builder.codegen import CodegenEngine, CodegenError
from foundry.config import Config
from foundry.llm_client import LLMResponse
from foundry.orchestrator import (
    CAPABILITIES,
    MissingArtifactsError,
    RunOrchestrator,
    VerificationError,
    command_verifier,
    find_missing,
)
from foundry.planner.models import PlanResult
from foundry.store import ArtifactType, MemoryStore, RunStatus, StepStatus

pytestmark = pytest.mark.unit


async def _passing_verifier(workspace: Path) -> tuple[int, str]:
    return 0, "ok"


async def _failing_verifier(workspace: Path) -> tuple[int, str]:
    return 1, "Missing generated artifacts"


async def _setup(store: MemoryStore, plan: PlanResult):
    build = await store.create_build(
        problem="Track vendor audits",
        summary=plan.summary,
        domain=plan.domain,
        stack=plan.stack,
        plan=plan.plan,
        deliverables=plan.deliverables,
    )
    return build


class _GhostAppGenerator:
    """Reports files it never writes."""

    def __init__(self, root: Path) -> None:
        self.root = root

    async def generate(self, workspace, spec):
        return [self.root / "ghost-1.tsx", self.root / "ghost-2.tsx"]


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestSuccessfulRun:
    @pytest.mark.asyncio
    async def test_lifecycle(self, tmp_config: Config, sample_plan: PlanResult):
        store = MemoryStore()
        build = await _setup(store, sample_plan)
        orchestrator = RunOrchestrator(store, tmp_config, verifier=_passing_verifier)

        output = await orchestrator.run(build.id, "Track vendor audits", sample_plan)

        run = await store.get_run(output.run_id)
        steps = await store.list_steps(output.run_id)
        assert run.status is RunStatus.READY
        assert [s.name for s in steps] == ["a", "b", "c"]
        assert {s.status for s in steps} == {StepStatus.COMPLETED}
        assert output.build_id == build.id

    @pytest.mark.asyncio
    async def test_workspace_and_manifest(self, tmp_config: Config, sample_plan: PlanResult):
        store = MemoryStore()
        build = await _setup(store, sample_plan)
        output = await RunOrchestrator(store, tmp_config, verifier=_passing_verifier).run(
            build.id, "Track vendor audits", sample_plan
        )

        workspace = (tmp_config.generated_dir / "vendor-audit-tracker").resolve()
        assert output.manifest_path == workspace / "manifest.json"
        for sub in ("app", "backend", "infra"):
            assert (workspace / sub).is_dir()

        manifest = json.loads(output.manifest_path.read_text(encoding="utf-8"))
        assert manifest["buildId"] == build.id
        assert manifest["runId"] == output.run_id
        assert manifest["problem"] == "Track vendor audits"
        assert manifest["plan"] == ["a", "b", "c"]
        assert manifest["capabilities"] == list(CAPABILITIES)
        assert [e["name"] for e in manifest["spec"]["entities"]] == ["Vendor", "Audit Finding"]

        app_spec = json.loads((workspace / "app-spec.json").read_text(encoding="utf-8"))
        assert app_spec["name"] == "Vendor audit tracker"
        assert app_spec["constraints"]["dataResidency"] == "local"
        assert len(app_spec["acceptanceCriteria"]) == 3

        readme = (workspace / "README.md").read_text(encoding="utf-8")
        assert readme.startswith("# Generated App\n\nSummary: Vendor audit tracker\n")

    @pytest.mark.asyncio
    async def test_artifacts_recorded_and_present(self, tmp_config: Config, sample_plan: PlanResult):
        store = MemoryStore()
        build = await _setup(store, sample_plan)
        output = await RunOrchestrator(store, tmp_config, verifier=_passing_verifier).run(
            build.id, "Track vendor audits", sample_plan
        )

        artifacts = await store.list_artifacts(output.run_id)
        by_type: dict[ArtifactType, int] = {}
        for artifact in artifacts:
            by_type[artifact.type] = by_type.get(artifact.type, 0) + 1
            assert Path(artifact.path).is_file()
        assert by_type == {
            ArtifactType.MANIFEST: 1,
            ArtifactType.SPEC: 1,
            ArtifactType.README: 1,
            ArtifactType.GENERATED: 5,
            ArtifactType.APP: 7 + 21,
        }

    @pytest.mark.asyncio
    async def test_empty_summary_uses_build_id(self, tmp_config: Config, sample_plan: PlanResult):
        plan = sample_plan.model_copy(update={"summary": "!!!"})
        store = MemoryStore()
        build = await _setup(store, plan)
        output = await RunOrchestrator(store, tmp_config, verifier=_passing_verifier).run(
            build.id, "Track vendor audits", plan
        )
        assert output.manifest_path.parent.name == build.id

    @pytest.mark.asyncio
    async def test_verifier_receives_workspace(self, tmp_config: Config, sample_plan: PlanResult):
        seen: list[Path] = []

        async def verifier(workspace: Path) -> tuple[int, str]:
            seen.append(workspace)
            return 0, ""

        store = MemoryStore()
        build = await _setup(store, sample_plan)
        await RunOrchestrator(store, tmp_config, verifier=verifier).run(build.id, "p", sample_plan)
        assert seen == [(tmp_config.generated_dir / "vendor-audit-tracker").resolve()]

    @pytest.mark.asyncio
    async def test_codegen_files_recorded(
        self, tmp_config: Config, sample_plan: PlanResult, scripted_client
    ):
        client = scripted_client({"path": "x", "content": "export default function P() { return null; }"})
        store = MemoryStore()
        build = await _setup(store, sample_plan)
        output = await RunOrchestrator(
            store, tmp_config, verifier=_passing_verifier, codegen=CodegenEngine(client)
        ).run(build.id, "p", sample_plan)

        app_paths = [a.path for a in await store.list_artifacts(output.run_id) if a.type is ArtifactType.APP]
        full_root = output.manifest_path.parent / "app" / "full"
        assert str(full_root / "package.json") in app_paths
        assert str(full_root / "app" / "layout.tsx") in app_paths
        assert (await store.get_run(output.run_id)).status is RunStatus.READY


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailedRun:
    @pytest.mark.asyncio
    async def test_verification_failure(self, tmp_config: Config, sample_plan: PlanResult):
        store = MemoryStore()
        build = await _setup(store, sample_plan)
        orchestrator = RunOrchestrator(store, tmp_config, verifier=_failing_verifier)

        with pytest.raises(VerificationError) as exc_info:
            await orchestrator.run(build.id, "p", sample_plan)

        assert exc_info.value.returncode == 1
        runs = await store.list_runs(build.id)
        assert len(runs) == 1
        assert runs[0].status is RunStatus.FAILED
        steps = await store.list_steps(runs[0].id)
        assert [s.name for s in steps] == ["a", "b", "c"]
        assert {s.status for s in steps} == {StepStatus.FAILED}

    @pytest.mark.asyncio
    async def test_missing_artifacts_all_reported(self, tmp_config: Config, sample_plan: PlanResult, tmp_path: Path):
        store = MemoryStore()
        build = await _setup(store, sample_plan)
        verifier_calls: list[Path] = []

        async def verifier(workspace: Path) -> tuple[int, str]:
            verifier_calls.append(workspace)
            return 0, ""

        orchestrator = RunOrchestrator(store, tmp_config, verifier=verifier)
        orchestrator.app_generator = _GhostAppGenerator(tmp_path / "ghosts")

        with pytest.raises(MissingArtifactsError) as exc_info:
            await orchestrator.run(build.id, "p", sample_plan)

        missing = exc_info.value.missing
        assert missing == [str(tmp_path / "ghosts" / "ghost-1.tsx"), str(tmp_path / "ghosts" / "ghost-2.tsx")]
        assert str(exc_info.value).startswith("Missing generated artifacts: ")
        assert verifier_calls == []
        run = (await store.list_runs(build.id))[0]
        assert run.status is RunStatus.FAILED

    @pytest.mark.asyncio
    async def test_codegen_failure(self, tmp_config: Config, sample_plan: PlanResult, scripted_client):
        client = scripted_client(LLMResponse(success=False, error="quota exceeded"))
        store = MemoryStore()
        build = await _setup(store, sample_plan)
        orchestrator = RunOrchestrator(
            store, tmp_config, verifier=_passing_verifier, codegen=CodegenEngine(client)
        )

        with pytest.raises(CodegenError):
            await orchestrator.run(build.id, "p", sample_plan)

        run = (await store.list_runs(build.id))[0]
        assert run.status is RunStatus.FAILED
        assert {s.status for s in await store.list_steps(run.id)} == {StepStatus.FAILED}

    @pytest.mark.asyncio
    async def test_store_failure_keeps_original_error(self, tmp_config: Config, sample_plan: PlanResult):
        class _BrokenStatusStore(MemoryStore):
            async def update_run_status(self, run_id, status, step_status=None):
                raise RuntimeError("store unavailable")

        store = _BrokenStatusStore()
        build = await _setup(store, sample_plan)
        orchestrator = RunOrchestrator(store, tmp_config, verifier=_failing_verifier)

        with pytest.raises(VerificationError) as exc_info:
            await orchestrator.run(build.id, "p", sample_plan)
        assert exc_info.value.returncode == 1

    @pytest.mark.asyncio
    async def test_unknown_build(self, tmp_config: Config, sample_plan: PlanResult):
        with pytest.raises(KeyError):
            await RunOrchestrator(MemoryStore(), tmp_config, verifier=_passing_verifier).run(
                "missing", "p", sample_plan
            )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    @pytest.mark.asyncio
    async def test_find_missing(self, tmp_path: Path):
        present = tmp_path / "a.txt"
        present.write_text("x", encoding="utf-8")
        absent = [tmp_path / "b.txt", tmp_path / "c.txt"]
        assert await find_missing([present, *absent]) == [str(p) for p in absent]

    @pytest.mark.asyncio
    async def test_command_verifier_configured_command(self, tmp_path: Path):
        config = Config(
            output_dir=tmp_path,
            verify_command=[
                sys.executable, "-c",
                "import sys; print(sys.argv[1]); sys.exit(2)",
                "{workspace}",
            ],
        )
        returncode, output = await command_verifier(config)(tmp_path / "ws")
        assert returncode == 2
        assert str(tmp_path / "ws") in output
