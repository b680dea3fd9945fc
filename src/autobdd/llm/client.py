"""
Scenario generation through an Ollama-compatible LLM endpoint.

The generator sends the instruction text together with a trimmed DOM snapshot
to ``/api/generate`` and returns the model's Gherkin text. The pipeline only
relies on the response being text.

Transport failures (connection refused, timeouts, HTTP 5xx/408/429) are retried
a bounded number of times with a fixed delay before the run is aborted.
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx
import structlog

from autobdd.config import LLMConfig
from autobdd.errors import GenerationError
from autobdd.retry import transport_error_from, with_retries

logger = structlog.get_logger(__name__)

# Snapshots are truncated before being embedded in the prompt.
MAX_SNAPSHOT_CHARS = 12000

_PROMPT_TEMPLATE = """\
You write Gherkin feature files for UI tests.

Instructions:
{instructions}

Page HTML (truncated):
{snapshot}

Reply with a single Gherkin Feature and nothing else.
"""


class ScenarioGenerator(Protocol):
    """Anything that turns instructions plus a DOM snapshot into scenario text."""

    async def generate(self, instruction_text: str, snapshot: str) -> str: ...


def build_prompt(instruction_text: str, snapshot: str) -> str:
    """Render the generation prompt."""
    return _PROMPT_TEMPLATE.format(
        instructions=instruction_text.strip(),
        snapshot=snapshot[:MAX_SNAPSHOT_CHARS],
    )


class OllamaScenarioGenerator:
    """ScenarioGenerator backed by the Ollama ``/api/generate`` endpoint."""

    def __init__(self, config: LLMConfig | None = None, client: httpx.AsyncClient | None = None) -> None:
        self._config = config or LLMConfig()
        self._client = client
        self._log = logger.bind(component="scenario_generator", model=self._config.model)

    @property
    def endpoint(self) -> str:
        return f"{self._config.base_url}/api/generate"

    async def generate(self, instruction_text: str, snapshot: str) -> str:
        """
        Generate scenario text.

        Args:
            instruction_text: Natural-language instructions
            snapshot: HTML of the page under test

        Returns:
            Generated Gherkin text

        Raises:
            GenerationError: On exhausted retries or an unusable response
        """
        payload: dict[str, Any] = {
            "model": self._config.model,
            "prompt": build_prompt(instruction_text, snapshot),
            "stream": False,
            "options": {"temperature": self._config.temperature},
        }
        self._log.info("Requesting scenario generation", prompt_chars=len(payload["prompt"]))

        body = await with_retries(
            lambda: self._post(payload),
            description=f"Scenario generation via {self.endpoint}",
            max_retries=self._config.max_retries,
            retry_delay_ms=self._config.retry_delay_ms,
        )

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Scenario generator returned an empty response")
        self._log.info("Scenario generated", response_chars=len(text))
        return text.strip()

    async def _post(self, payload: dict[str, Any]) -> Any:
        timeout = self._config.timeout_ms / 1000
        try:
            if self._client is not None:
                response = await self._client.post(self.endpoint, json=payload, timeout=timeout)
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(self.endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise transport_error_from(e, self.endpoint) from e

        try:
            return response.json()
        except ValueError as e:
            raise GenerationError(f"Scenario generator returned invalid JSON: {e}") from e
