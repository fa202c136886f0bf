"""Check that a generated workspace contains the expected files.

Usage::

    python -m foundry.verify generated/vendor-audit-tracker
    python -m foundry.verify            # latest workspace under ./generated

Exits with status 1 and lists every missing file when the check fails.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from foundry.config import Config
from foundry.utils import console, print_error, print_success

_TEMPLATE_APP = ("app", "template", "app")

EXPECTED_FILES: tuple[str, ...] = (
    "manifest.json",
    "app-spec.json",
    *(
        "/".join((*_TEMPLATE_APP, section, "page.tsx"))
        for section in (
            "dashboard", "records", "entities", "workflows",
            "integrations", "auth", "settings",
        )
    ),
    "/".join((*_TEMPLATE_APP, "api", "records", "route.ts")),
    "/".join((*_TEMPLATE_APP, "api", "records", "[id]", "route.ts")),
    "/".join((*_TEMPLATE_APP, "api", "entities", "route.ts")),
    "/".join((*_TEMPLATE_APP, "api", "workflows", "route.ts")),
    "/".join((*_TEMPLATE_APP, "api", "integrations", "route.ts")),
)


def missing_files(workspace: str | Path) -> list[str]:
    """Return the entries of :data:`EXPECTED_FILES` absent from *workspace*."""
    root = Path(workspace)
    return [rel for rel in EXPECTED_FILES if not (root / rel).is_file()]


def latest_workspace(generated_dir: str | Path) -> Path | None:
    """The last workspace directory under *generated_dir*, by name."""
    root = Path(generated_dir)
    if not root.is_dir():
        return None
    runs = sorted(p for p in root.iterdir() if p.is_dir())
    return runs[-1] if runs else None


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``python -m foundry.verify``."""
    parser = argparse.ArgumentParser(
        prog="foundry.verify",
        description="Check a generated workspace for the expected artifacts",
    )
    parser.add_argument(
        "workspace",
        nargs="?",
        default=None,
        help="Workspace directory (default: last workspace under the generated dir, by name)",
    )
    args = parser.parse_args(argv)

    if args.workspace:
        workspace: Path | None = Path(args.workspace)
    else:
        generated_dir = Config.from_env().generated_dir
        workspace = latest_workspace(generated_dir)
        if workspace is None:
            print_error(f"No generated runs found under {generated_dir}.")
            return 1

    if not workspace.is_dir():
        print_error(f"Workspace not found: {workspace}")
        return 1

    missing = missing_files(workspace)
    if missing:
        print_error("Missing generated artifacts:")
        for rel in missing:
            console.print(f"- {rel}")
        return 1

    print_success("Generated artifacts look good.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
