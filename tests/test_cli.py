"""Unit tests for the command-line entry point (foundry.cli)."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from foundry import cli
from foundry.config import Config
from foundry.store import JsonStore, RunStatus

pytestmark = pytest.mark.unit

PLAN = {
    "summary": "Onboarding tracker",
    "domain": "internal-tools",
    "stack": ["Next.js"],
    "plan": ["Model", "Build"],
    "deliverables": ["App"],
}
SPEC = {
    "entities": [{"name": "Hire", "fields": [{"name": "name", "type": "string", "required": True}]}],
    "workflows": [],
    "integrations": [],
    "pages": [],
}


class TestGenerate:
    @pytest.mark.asyncio
    async def test_generate_records_build_and_run(self, tmp_path: Path, scripted_client):
        client = scripted_client(PLAN, SPEC)
        config = Config(output_dir=tmp_path)

        with patch("foundry.cli.LLMClient", return_value=client):
            output = await cli.generate(
                "Track onboarding tasks for new hires", config, skip_verify=True
            )

        store = JsonStore(config.store_path)
        build = await store.get_build(output.build_id)
        assert build.summary == "Onboarding tracker"
        assert (await store.get_run(output.run_id)).status is RunStatus.READY
        assert output.manifest_path == (tmp_path / "generated" / "onboarding-tracker" / "manifest.json").resolve()


class TestMain:
    def test_short_problem_exits_1(self, tmp_path: Path):
        with patch.dict("os.environ", {"FOUNDRY_OUTPUT_DIR": str(tmp_path)}, clear=True):
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["short"])
        assert exc_info.value.code == 1

    def test_success(self, tmp_path: Path, scripted_client):
        client = scripted_client(PLAN, SPEC)
        with patch.dict("os.environ", {}, clear=True), patch(
            "foundry.cli.LLMClient", return_value=client
        ):
            cli.main([
                "Track onboarding tasks for new hires",
                "--output", str(tmp_path),
                "--store", "builds.json",
                "--skip-verify",
            ])

        state = json.loads((tmp_path / "builds.json").read_text(encoding="utf-8"))
        assert len(state["builds"]) == 1
        assert (tmp_path / "generated" / "onboarding-tracker" / "app-spec.json").is_file()

    def test_config_file_and_save(self, tmp_path: Path, scripted_client):
        config_path = Config(output_dir=tmp_path / "from-file", store_filename="saved.json").save(
            tmp_path / "settings.json"
        )
        client = scripted_client(PLAN, SPEC)
        with patch.dict("os.environ", {"OPENAI_API_KEY": "sk-env"}, clear=True), patch(
            "foundry.cli.LLMClient", return_value=client
        ) as client_cls:
            cli.main([
                "Track onboarding tasks for new hires",
                "--config", str(config_path),
                "--save-config",
                "--skip-verify",
            ])

        out = tmp_path / "from-file"
        assert (out / "saved.json").is_file()
        assert (out / "generated" / "onboarding-tracker" / "manifest.json").is_file()
        assert client_cls.call_args.args[0].api_key == "sk-env"
        saved = json.loads((out / "foundry-config.json").read_text(encoding="utf-8"))
        assert saved["store_filename"] == "saved.json"
        assert "api_key" not in saved["llm"]
