"""Async client for an OpenAI-compatible chat completions endpoint.

Wraps ``POST /chat/completions`` with JSON-schema constrained output, proper
timeout handling and structured responses. Failures never raise: they come
back as ``LLMResponse(success=False, error=...)`` so each caller decides
whether a failed call is fatal (code generation) or recoverable (planning).

Typical usage::

    client = LLMClient(config.llm)
    resp = await client.complete(SYSTEM, "Problem: ...", PLAN_SCHEMA)
    payload = parse_json_object(resp.text) if resp.success else None
"""

from __future__ import annotations

import json
import re
import time
from typing import Any

import httpx
from pydantic import BaseModel, Field

from foundry.config import LLMConfig


class LLMResponse(BaseModel):
    """Structured response from a completion call."""

    text: str = Field(default="", description="Raw text returned by the model")
    model: str = Field(default="", description="Model that produced the response")
    duration_ms: float = Field(default=0.0, description="Client-side round trip in ms")
    success: bool = Field(default=True, description="Whether the request succeeded")
    error: str | None = Field(default=None, description="Error message on failure")


_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")


def parse_json_object(text: str) -> dict[str, Any] | None:
    """Parse untrusted model output into a JSON object.

    Tries a direct parse first, then the first ``{...}`` span in the text
    (models sometimes wrap the object in prose or code fences). Returns
    ``None`` when neither yields an object.
    """
    candidates = [text]
    match = _OBJECT_SPAN.search(text or "")
    if match:
        candidates.append(match.group(0))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(data, dict):
            return data
    return None


class LLMClient:
    """Async client for OpenAI-style ``/chat/completions`` APIs.

    Uses ``httpx.AsyncClient`` for non-blocking HTTP. Works against the
    hosted OpenAI API as well as local servers exposing the same route.
    """

    def __init__(self, config: LLMConfig | None = None) -> None:
        config = config or LLMConfig()
        self.base_url = config.base_url.rstrip("/")
        self.api_key = config.api_key
        self.model = config.model
        self.timeout = config.timeout

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    @staticmethod
    def _extract_text(data: dict) -> str:
        """Pull the message content out of a chat completions response."""
        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return message.get("content") or ""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def complete(
        self,
        system: str,
        prompt: str,
        json_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Run one completion and return the raw text.

        Args:
            system: System instruction.
            prompt: User prompt.
            json_schema: Optional ``{"name", "strict", "schema"}`` block
                forwarded as a ``json_schema`` response format.

        Returns:
            An ``LLMResponse`` with the generated text or an error.
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        }
        if json_schema is not None:
            payload["response_format"] = {"type": "json_schema", "json_schema": json_schema}

        start = time.monotonic()
        try:
            async with self._client() as client:
                response = await client.post("/chat/completions", json=payload)
                response.raise_for_status()
                data = response.json()
                return LLMResponse(
                    text=self._extract_text(data),
                    model=data.get("model", self.model),
                    duration_ms=(time.monotonic() - start) * 1000.0,
                    success=True,
                )
        except httpx.ConnectError:
            return LLMResponse(
                model=self.model,
                success=False,
                error=f"Cannot connect to model endpoint at {self.base_url}.",
            )
        except httpx.TimeoutException:
            return LLMResponse(
                model=self.model,
                success=False,
                error=f"Model request timed out after {self.timeout}s.",
            )
        except httpx.HTTPStatusError as exc:
            return LLMResponse(
                model=self.model,
                success=False,
                error=f"Model endpoint returned HTTP {exc.response.status_code}: {exc.response.text[:500]}",
            )
        except Exception as exc:  # noqa: BLE001
            return LLMResponse(
                model=self.model,
                success=False,
                error=f"Unexpected error during completion: {exc}",
            )
