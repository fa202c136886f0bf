"""Model-backed generation of the full Next.js app.

Each catalog target is requested from the model as a strict ``{path,
content}`` JSON object, checked with :func:`validate_content`, and retried
once with the validation message appended. Whatever the last attempt
produced is written, so every target path exists after a run. A failed
model call is fatal and raises :class:`CodegenError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from foundry.builder.targets import CodegenTarget, codegen_targets
from foundry.builder.validator import validate_content
from foundry.llm_client import LLMClient, parse_json_object
from foundry.planner.models import AppSpec
from foundry.utils import console, dump_json, print_warning, slugify, write_text

MAX_ATTEMPTS = 2

FULL_APP_DIR = "app/full"

CODEGEN_SYSTEM_PROMPT = """You are a senior Next.js engineer.
Follow these rules strictly:
- Use Next.js App Router (app/ directory). No pages/ directory.
- Use TypeScript and React 18+.
- For client components, include "use client" at top.
- Return ONLY JSON with keys: "path", "content".
- Content must be valid TypeScript/TSX or JSON depending on file.
- No markdown, no extra commentary."""

CODEGEN_SCHEMA: dict[str, Any] = {
    "name": "codegen_file",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "path": {"type": "string"},
            "content": {"type": "string"},
        },
        "required": ["path", "content"],
    },
}

NEXT_VERSION = "16.1.6"
REACT_VERSION = "19.2.3"


class CodegenError(Exception):
    """Raised when the model cannot be reached while generating a file."""

    def __init__(self, message: str, target: CodegenTarget | None = None):
        self.target = target
        super().__init__(message)


@dataclass
class GeneratedFile:
    """Outcome of generating one target.

    ``validation_error`` is the message from the last attempt when the
    written content still failed validation, otherwise ``None``.
    """

    path: Path
    target: CodegenTarget
    attempts: int
    validation_error: str | None = None

    @property
    def valid(self) -> bool:
        return self.validation_error is None


def build_prompt(spec: AppSpec, target: CodegenTarget, error: str | None = None) -> str:
    """Assemble the user prompt for *target*, optionally asking for a fix."""
    lines = [
        f"Project: {spec.name}",
        f"Domain: {spec.domain}",
        f"Entities: {', '.join(e.name for e in spec.entities)}",
        f"Workflows: {', '.join(w.name for w in spec.workflows)}",
        f"Integrations: {', '.join(i.name for i in spec.integrations)}",
        f"Task: Generate {target.kind} file at {target.path}",
        f"Description: {target.description}",
        f"Spec (JSON): {dump_json(spec.to_json_dict())}",
    ]
    if error:
        lines.append(f"Fix validation error: {error}")
    return "\n".join(lines)


def base_files(spec: AppSpec) -> dict[str, str]:
    """Project files of the full app that are written without a model call."""
    package = {
        "name": slugify(spec.name) or "generated-app",
        "private": True,
        "scripts": {
            "dev": "next dev",
            "build": "next build",
            "start": "next start",
            "lint": "next lint",
        },
        "dependencies": {
            "next": NEXT_VERSION,
            "react": REACT_VERSION,
            "react-dom": REACT_VERSION,
        },
        "devDependencies": {
            "typescript": "^5",
            "eslint": "^9",
            "eslint-config-next": NEXT_VERSION,
        },
    }
    tsconfig = {
        "compilerOptions": {
            "target": "ES2020",
            "lib": ["dom", "dom.iterable", "esnext"],
            "allowJs": True,
            "skipLibCheck": True,
            "strict": True,
            "noEmit": True,
            "module": "esnext",
            "moduleResolution": "bundler",
            "resolveJsonModule": True,
            "isolatedModules": True,
            "jsx": "preserve",
        },
        "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx"],
        "exclude": ["node_modules"],
    }
    return {
        "package.json": dump_json(package),
        "tsconfig.json": dump_json(tsconfig),
        "next-env.d.ts": (
            '/// <reference types="next" />\n'
            '/// <reference types="next/image-types/global" />\n'
        ),
    }


class CodegenEngine:
    """Generates app files one target at a time through an :class:`LLMClient`."""

    def __init__(self, client: LLMClient) -> None:
        self.client = client

    async def generate_file(
        self,
        spec: AppSpec,
        target: CodegenTarget,
        output_root: str | Path,
    ) -> GeneratedFile:
        """Generate, validate and write a single target.

        Raises:
            CodegenError: If a model call fails.
        """
        ext = Path(target.path).suffix
        content = ""
        error: str | None = None
        attempts = 0

        while attempts < MAX_ATTEMPTS:
            attempts += 1
            response = await self.client.complete(
                CODEGEN_SYSTEM_PROMPT, build_prompt(spec, target, error), CODEGEN_SCHEMA
            )
            if not response.success:
                raise CodegenError(
                    f"Model call failed for {target.path}: {response.error}", target
                )
            payload = parse_json_object(response.text) or {}
            content = payload.get("content")
            if not isinstance(content, str):
                content = ""
            error = validate_content(content, ext)
            if error is None:
                break

        path = await write_text(Path(output_root) / target.path, content)
        if error is not None:
            print_warning(f"  {target.path} written with validation error: {error}")
        return GeneratedFile(path=path, target=target, attempts=attempts, validation_error=error)

    async def generate_app(self, workspace: str | Path, spec: AppSpec) -> list[Path]:
        """Write the base project files and every catalog target, in order.

        Targets are generated sequentially; the first model failure aborts
        the whole stage.
        """
        output_root = Path(workspace).resolve() / FULL_APP_DIR

        written: list[Path] = []
        for rel, content in base_files(spec).items():
            written.append(await write_text(output_root / rel, content))

        for target in codegen_targets(spec):
            result = await self.generate_file(spec, target, output_root)
            console.print(f"  [green]+[/green] {target.path} ({result.attempts} attempt(s))")
            written.append(result.path)
        return written
