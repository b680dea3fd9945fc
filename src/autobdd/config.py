"""
Configuration for autobdd.

Settings are pydantic models with sensible defaults. ``AutoBDDConfig.from_env``
loads a ``.env`` file (if present) and overrides defaults from environment
variables.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_CACHE_DIR = Path(".cache") / "autobdd"


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if not value:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class LLMConfig(BaseModel):
    """Scenario-generation endpoint settings."""

    base_url: str = Field(default="http://localhost:11434", description="Ollama-compatible base URL")
    model: str = Field(default="llama3", description="Model name sent with each request")
    timeout_ms: int = Field(default=30000, gt=0, description="Request timeout")
    max_retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    retry_delay_ms: int = Field(default=1000, ge=0, description="Fixed delay between attempts")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure URL has a valid scheme."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("LLM base URL must start with http:// or https://")
        return v.rstrip("/")


class CacheConfig(BaseModel):
    """DOM cache settings."""

    enabled: bool = True
    directory: Path = DEFAULT_CACHE_DIR
    ttl_ms: int = Field(default=3_600_000, gt=0, description="Entry lifetime since insertion")
    memory_capacity: int = Field(default=50, ge=1, description="In-memory companion cache size")


class ResolverConfig(BaseModel):
    """Runtime selector resolution settings."""

    timeout_per_candidate_ms: int = Field(default=5000, gt=0)
    display_check_timeout_ms: int = Field(default=2000, gt=0)


class GenerationConfig(BaseModel):
    """Artifact output settings."""

    output_dir: Path = Path("generated")
    overwrite: bool = False
    fetch_timeout_ms: int = Field(default=15000, gt=0)
    fetch_retries: int = Field(default=2, ge=0)
    fetch_retry_delay_ms: int = Field(default=500, ge=0)


class AutoBDDConfig(BaseModel):
    """Top-level configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> AutoBDDConfig:
        """Build a configuration from environment variables and an optional .env file."""
        load_dotenv(dotenv_path)
        defaults = cls()
        return cls(
            llm=LLMConfig(
                base_url=os.environ.get("OLLAMA_BASE_URL", defaults.llm.base_url),
                model=os.environ.get("OLLAMA_MODEL", defaults.llm.model),
                timeout_ms=_env_int("OLLAMA_TIMEOUT", defaults.llm.timeout_ms),
                max_retries=_env_int("OLLAMA_MAX_RETRIES", defaults.llm.max_retries),
                retry_delay_ms=_env_int("OLLAMA_RETRY_DELAY_MS", defaults.llm.retry_delay_ms),
            ),
            cache=CacheConfig(
                enabled=_env_bool("AUTOBDD_CACHE_ENABLED", defaults.cache.enabled),
                directory=Path(os.environ.get("AUTOBDD_CACHE_DIR", str(defaults.cache.directory))),
                ttl_ms=_env_int("AUTOBDD_CACHE_TTL_MS", defaults.cache.ttl_ms),
                memory_capacity=_env_int("AUTOBDD_CACHE_CAPACITY", defaults.cache.memory_capacity),
            ),
            resolver=ResolverConfig(
                timeout_per_candidate_ms=_env_int(
                    "AUTOBDD_SELECTOR_TIMEOUT_MS", defaults.resolver.timeout_per_candidate_ms
                ),
            ),
            generation=GenerationConfig(
                output_dir=Path(os.environ.get("AUTOBDD_OUTPUT_DIR", str(defaults.generation.output_dir))),
                overwrite=_env_bool("AUTOBDD_OVERWRITE", defaults.generation.overwrite),
            ),
        )

    def validate_config(self) -> list[str]:
        """Return a list of human-readable configuration problems."""
        errors: list[str] = []
        if not self.llm.model:
            errors.append("OLLAMA_MODEL is required")
        if self.generation.output_dir.exists() and not self.generation.output_dir.is_dir():
            errors.append(f"Output path {self.generation.output_dir} is not a directory")
        if self.resolver.display_check_timeout_ms > self.resolver.timeout_per_candidate_ms:
            errors.append("display_check_timeout_ms must not exceed timeout_per_candidate_ms")
        return errors
