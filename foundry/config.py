"""Genie Foundry configuration.

Centralised, typed configuration for the generator. All settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON or environment variables without boiler-plate.

The configuration is resolved once (usually via :meth:`Config.from_env`) and
then passed explicitly into the model client and the run orchestrator, so
nothing in the pipeline reads the process environment on its own.
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """Connection settings for the OpenAI-compatible model endpoint."""

    api_key: str = Field(default="", description="Bearer token sent to the model endpoint")
    base_url: str = Field(default="https://api.openai.com/v1")
    model: str = Field(default="gpt-4o-mini")
    timeout: int = Field(default=120, ge=10, description="Per-request timeout in seconds")


class DemoConfig(BaseModel):
    """Settings for the public demo surface (allowed origin and access key)."""

    origin: str = Field(default="*")
    key: str = Field(default="")

    def cors_headers(self) -> dict[str, str]:
        """CORS headers for demo routes that accept cross-origin POSTs."""
        return {
            "Access-Control-Allow-Origin": self.origin,
            "Access-Control-Allow-Methods": "POST,OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, x-demo-key",
        }

    def accepts_key(self, provided: str | None) -> bool:
        """Return ``True`` if *provided* matches the configured key (or none is set)."""
        return not self.key or provided == self.key


class Config(BaseModel):
    """Global Genie Foundry configuration.

    Holds every tuneable parameter and derived path used by the generator.
    Instances are typically created once by the CLI entry point and then
    passed through the rest of the system.
    """

    output_dir: Path = Field(default=Path("."))
    generated_dirname: str = Field(default="generated")
    store_filename: str = Field(default="foundry-store.json")
    llm: LLMConfig = Field(default_factory=LLMConfig)
    demo: DemoConfig = Field(default_factory=DemoConfig)

    # Command run against a finished workspace. ``{workspace}`` is replaced
    # with the workspace path; an empty list means the built-in checker.
    verify_command: list[str] = Field(default_factory=list)
    verify_timeout: int = Field(default=120, ge=1)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def generated_dir(self) -> Path:
        """Root under which one workspace per build is created."""
        return self.output_dir / self.generated_dirname

    @property
    def store_path(self) -> Path:
        """Path of the JSON file backing the build/run store."""
        return self.output_dir / self.store_filename

    def resolve_verify_command(self, workspace: Path) -> list[str]:
        """Return the verification command with ``{workspace}`` substituted."""
        return [part.replace("{workspace}", str(workspace)) for part in self.verify_command]

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        The model API key is left out; it is read from the environment.

        Args:
            path: Destination file. Defaults to ``<output_dir>/foundry-config.json``.

        Returns:
            The resolved path where the file was written.
        """
        target = path or (self.output_dir / "foundry-config.json")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            self.model_dump_json(indent=2, exclude={"llm": {"api_key"}}), encoding="utf-8"
        )
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            OPENAI_API_KEY, FOUNDRY_BASE_URL, FOUNDRY_MODEL, FOUNDRY_TIMEOUT,
            DEMO_ORIGIN, DEMO_KEY, FOUNDRY_OUTPUT_DIR, FOUNDRY_STORE_FILE,
            FOUNDRY_VERIFY_COMMAND.
        """
        llm_kwargs: dict[str, Any] = {}
        if os.environ.get("OPENAI_API_KEY"):
            llm_kwargs["api_key"] = os.environ["OPENAI_API_KEY"]
        if os.environ.get("FOUNDRY_BASE_URL"):
            llm_kwargs["base_url"] = os.environ["FOUNDRY_BASE_URL"]
        if os.environ.get("FOUNDRY_MODEL"):
            llm_kwargs["model"] = os.environ["FOUNDRY_MODEL"]
        if os.environ.get("FOUNDRY_TIMEOUT"):
            llm_kwargs["timeout"] = int(os.environ["FOUNDRY_TIMEOUT"])

        demo_kwargs: dict[str, Any] = {}
        if os.environ.get("DEMO_ORIGIN"):
            demo_kwargs["origin"] = os.environ["DEMO_ORIGIN"]
        if os.environ.get("DEMO_KEY"):
            demo_kwargs["key"] = os.environ["DEMO_KEY"]

        kwargs: dict[str, Any] = {}
        if os.environ.get("FOUNDRY_STORE_FILE"):
            kwargs["store_filename"] = os.environ["FOUNDRY_STORE_FILE"]
        if os.environ.get("FOUNDRY_VERIFY_COMMAND"):
            kwargs["verify_command"] = shlex.split(os.environ["FOUNDRY_VERIFY_COMMAND"])

        return cls(
            output_dir=Path(os.environ.get("FOUNDRY_OUTPUT_DIR", ".")),
            llm=LLMConfig(**llm_kwargs),
            demo=DemoConfig(**demo_kwargs),
            **kwargs,
        )

    def ensure_directories(self) -> None:
        """Create the directories that must exist before a run starts."""
        self.generated_dir.mkdir(parents=True, exist_ok=True)
