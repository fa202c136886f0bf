"""Command-line entry point.

Usage::

    python -m foundry "Track vendor audits and approvals across teams"
    python -m foundry "..." --output ./out --codegen
    python -m foundry "..." --store ./foundry-store.json --skip-verify
    python -m foundry "..." --config ./foundry-config.json --save-config
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

from rich.panel import Panel

from foundry.builder.codegen import CodegenEngine, CodegenError
from foundry.config import Config
from foundry.llm_client import LLMClient
from foundry.orchestrator import OrchestratorError, OrchestratorOutput, RunOrchestrator
from foundry.planner.planner import Planner, PlannerError
from foundry.store import JsonStore
from foundry.utils import console, print_error, print_summary_table


async def _skip_verification(workspace: Path) -> tuple[int, str]:
    return 0, ""


async def generate(
    problem: str,
    config: Config,
    *,
    codegen: bool = False,
    skip_verify: bool = False,
) -> OrchestratorOutput:
    """Plan *problem*, record a build and run the orchestrator once."""
    config.ensure_directories()
    client = LLMClient(config.llm)
    store = JsonStore(config.store_path)

    console.print(
        Panel(
            f"[bold bright_cyan]Genie Foundry[/bold bright_cyan]\n"
            f"Problem : {problem[:120]}\n"
            f"Output  : {config.generated_dir.resolve()}\n"
            f"Model   : {config.llm.model}",
            title="[bold]Generate[/bold]",
            border_style="bright_cyan",
        )
    )

    result = await Planner(client).plan(problem)
    build = await store.create_build(
        problem=problem,
        summary=result.summary,
        domain=result.domain,
        stack=result.stack,
        plan=result.plan,
        deliverables=result.deliverables,
    )

    orchestrator = RunOrchestrator(
        store,
        config,
        verifier=_skip_verification if skip_verify else None,
        codegen=CodegenEngine(client) if codegen else None,
    )
    output = await orchestrator.run(build.id, problem, result)

    artifacts = await store.list_artifacts(output.run_id)
    print_summary_table(
        {
            "Build": output.build_id,
            "Run": output.run_id,
            "Summary": result.summary,
            "Entities": ", ".join(e.name for e in result.spec.entities) or "-",
            "Artifacts": str(len(artifacts)),
            "Manifest": str(output.manifest_path),
        },
        title="Generation Summary",
    )
    return output


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m foundry``."""
    parser = argparse.ArgumentParser(
        prog="foundry",
        description="Genie Foundry -- turn a problem statement into an app scaffold",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  python -m foundry "Track vendor audits and approvals"\n'
            '  python -m foundry "Manage onboarding tasks" -o ./out --codegen\n'
        ),
    )
    parser.add_argument("problem", help="Problem statement (at least 10 characters)")
    parser.add_argument(
        "--config",
        default=None,
        help="Load settings from a saved JSON config instead of the environment",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output directory (default: $FOUNDRY_OUTPUT_DIR or .)",
    )
    parser.add_argument(
        "--store",
        default=None,
        help="Build store JSON file name inside the output directory",
    )
    parser.add_argument(
        "--codegen",
        action="store_true",
        help="Also generate the full app under app/full/ with the model",
    )
    parser.add_argument(
        "--skip-verify",
        action="store_true",
        help="Skip the external verification command",
    )
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Write the effective settings to <output>/foundry-config.json",
    )

    args = parser.parse_args(argv)

    config = Config.load(Path(args.config)) if args.config else Config.from_env()
    if not config.llm.api_key:
        config.llm.api_key = os.environ.get("OPENAI_API_KEY", "")
    if args.output:
        config.output_dir = Path(args.output)
    if args.store:
        config.store_filename = args.store
    if args.save_config:
        console.print(f"Config saved to {config.save()}")

    try:
        asyncio.run(
            generate(args.problem, config, codegen=args.codegen, skip_verify=args.skip_verify)
        )
    except (PlannerError, CodegenError, OrchestratorError) as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    console.print("[bold green]Generation completed successfully![/bold green]")


if __name__ == "__main__":
    main()
