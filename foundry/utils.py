"""Shared utility functions for Genie Foundry.

Provides async command execution, JSON/text I/O, the naming helpers used to
derive every generated path and symbol, and Rich-based console reporting.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously and capture its output.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple. A timeout is reported as
        return code ``-1``.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    if isinstance(cmd, list):
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )
    else:
        process = await asyncio.create_subprocess_shell(
            cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (
            -1,
            "",
            f"Command timed out after {timeout}s: {cmd if isinstance(cmd, str) else ' '.join(cmd)}",
        )

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------


def slugify(name: str) -> str:
    """Convert a free-form name to a path/route-safe slug.

    Lowercases, collapses every run of non-alphanumeric characters into a
    single hyphen, and strips leading/trailing hyphens.

    Examples::

        slugify("Vendor Audit & Review!") -> "vendor-audit-review"
        slugify("") -> ""
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")


def title_case(name: str) -> str:
    """Convert a free-form name to a symbol-safe ``TitleCase`` identifier.

    Only the first letter of each token is touched, so ``"API key"`` becomes
    ``"APIKey"`` rather than ``"ApiKey"``.
    """
    tokens = re.split(r"[^a-zA-Z0-9]+", name)
    return "".join(token[:1].upper() + token[1:] for token in tokens if token)


def unique_slugs(
    names: list[str],
    fallback: str = "item",
    reserved: set[str] | frozenset[str] = frozenset(),
) -> list[str]:
    """Slugify *names* in order, suffixing ``-2``, ``-3``... on collisions.

    Names that slugify to nothing use *fallback* instead, so every result is
    a non-empty path segment and no two results are equal. Slugs listed in
    *reserved* count as already taken.
    """
    seen: set[str] = set(reserved)
    result: list[str] = []
    for name in names:
        base = slugify(name) or fallback
        slug = base
        counter = 2
        while slug in seen:
            slug = f"{base}-{counter}"
            counter += 1
        seen.add(slug)
        result.append(slug)
    return result


# ---------------------------------------------------------------------------
# JSON / text I/O
# ---------------------------------------------------------------------------


def dump_json(data: Any) -> str:
    """Serialise *data* the way every generated JSON file is written."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def load_json(path: str | Path) -> Any:
    """Load and parse a JSON file."""
    return json.loads(Path(path).read_text(encoding="utf-8"))


async def write_text(path: str | Path, content: str) -> Path:
    """Write *content* to *path*, replacing any previous file.

    Parent directories are created automatically and the write runs in a
    worker thread so it never blocks the event loop.
    """
    file_path = Path(path)

    def _write() -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")

    await asyncio.to_thread(_write)
    return file_path


async def save_json(data: Any, path: str | Path) -> Path:
    """Save data as pretty-printed JSON (see :func:`dump_json`)."""
    return await write_text(path, dump_json(data))


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Returns:
        The resolved ``Path`` object.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path.resolve()


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_stage_header(name: str, color: str = "bright_cyan") -> None:
    """Print a full-width rule announcing a pipeline stage."""
    console.print()
    console.print(Rule(f"[bold {color}] {name.upper()} [/bold {color}]", style=color))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
