"""LLM-backed scenario generation."""

from autobdd.llm.client import OllamaScenarioGenerator, ScenarioGenerator, build_prompt

__all__ = ["OllamaScenarioGenerator", "ScenarioGenerator", "build_prompt"]
