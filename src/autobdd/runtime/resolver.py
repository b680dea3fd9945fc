"""
Selector resolution with bounded self-healing.

Resolution walks an ElementSpec's candidate selectors in order. When every
candidate fails, exactly one healing pass runs: a fresh DOM snapshot is taken
from the driver, the DomAnalyzer regenerates role-scoped candidates for the
element's logical name, and the whole regenerated list is tried once against
the live page. A selector that missed before healing may match now.

    RESOLVING -> EXHAUSTED -> HEALING -> RESOLVED | FAILED

A successful heal promotes the working selector to the front of the spec's
candidate list. Every healing pass is reported to the healing sink.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import structlog

from autobdd.config import ResolverConfig
from autobdd.dom.analyzer import DomAnalyzer
from autobdd.errors import ActionError, SelectorResolutionError
from autobdd.models import ElementSpec, HealingEvent, HealingOutcome
from autobdd.runtime.driver import Driver

logger = structlog.get_logger(__name__)

HealingSink = Callable[[HealingEvent], None]


class ResolutionState(StrEnum):
    """States of one resolve() call."""

    RESOLVING = "resolving"
    EXHAUSTED = "exhausted"
    HEALING = "healing"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class Resolution:
    """A live element handle and the selector that found it."""

    handle: Any
    selector_used: str
    healed: bool = False


def log_healing_event(event: HealingEvent) -> None:
    """Default healing sink: one structured log line per event."""
    log = logger.bind(component="healing")
    if event.outcome == HealingOutcome.HEALED:
        log.info("Selector healed", **event.to_dict())
    else:
        log.warning("Selector healing failed", **event.to_dict())


@dataclass
class CollectingHealingSink:
    """Healing sink that keeps every event in memory."""

    events: list[HealingEvent] = field(default_factory=list)

    def __call__(self, event: HealingEvent) -> None:
        self.events.append(event)

    @property
    def healed(self) -> list[HealingEvent]:
        return [e for e in self.events if e.outcome == HealingOutcome.HEALED]

    @property
    def failed(self) -> list[HealingEvent]:
        return [e for e in self.events if e.outcome == HealingOutcome.FAILED]


class SelectorResolver:
    """
    Resolves ElementSpecs against a live driver and wraps common actions.

    A resolver belongs to one scenario execution: ``state`` reports the most
    recent resolve() call, so concurrent scenarios each create their own.
    """

    def __init__(
        self,
        driver: Driver,
        analyzer: DomAnalyzer | None = None,
        healing_sink: HealingSink | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        self._driver = driver
        self._analyzer = analyzer or DomAnalyzer()
        self._sink = healing_sink or log_healing_event
        self._config = config or ResolverConfig()
        self._state = ResolutionState.RESOLVING
        self._log = logger.bind(component="selector_resolver")

    @property
    def state(self) -> ResolutionState:
        """State reached by the most recent resolve() call."""
        return self._state

    async def resolve(
        self,
        spec: ElementSpec,
        timeout_per_candidate_ms: int | None = None,
        step_name: str | None = None,
    ) -> Resolution:
        """
        Resolve ``spec`` to a live element handle.

        Args:
            spec: Element to resolve
            timeout_per_candidate_ms: Wait per selector; defaults to config
            step_name: Step being executed, carried by errors and events

        Returns:
            Resolution

        Raises:
            SelectorResolutionError: When original and regenerated candidates are exhausted
        """
        timeout = (
            self._config.timeout_per_candidate_ms if timeout_per_candidate_ms is None else timeout_per_candidate_ms
        )
        self._state = ResolutionState.RESOLVING

        attempted: list[str] = []
        found = await self._try_candidates(spec.selectors, timeout, attempted)
        if found is not None:
            self._state = ResolutionState.RESOLVED
            return Resolution(handle=found[1], selector_used=found[0])

        self._state = ResolutionState.EXHAUSTED
        self._log.info("Selector candidates exhausted", element=spec.name, step=step_name, tried=len(attempted))

        self._state = ResolutionState.HEALING
        exhausted = list(attempted)
        regenerated = await self._regenerate(spec)
        found = await self._try_candidates(regenerated, timeout, attempted)

        event = HealingEvent(
            step_name=step_name,
            element_name=spec.name,
            exhausted_selectors=exhausted,
            regenerated_selectors=list(regenerated),
        )

        if found is not None:
            selector, handle = found
            spec.promote_selector(selector, regenerated)
            event.outcome = HealingOutcome.HEALED
            event.healed_selector = selector
            self._sink(event)
            self._state = ResolutionState.RESOLVED
            return Resolution(handle=handle, selector_used=selector, healed=True)

        event.outcome = HealingOutcome.FAILED
        self._sink(event)
        self._state = ResolutionState.FAILED
        raise SelectorResolutionError(spec.name, attempted, step_name=step_name)

    async def _try_candidates(
        self,
        selectors: Sequence[str],
        timeout_ms: int,
        attempted: list[str],
    ) -> tuple[str, Any] | None:
        for selector in selectors:
            if selector not in attempted:
                attempted.append(selector)
            try:
                if timeout_ms > 0:
                    handle = await asyncio.wait_for(
                        self._driver.wait_for_selector(selector, timeout_ms),
                        timeout=timeout_ms / 1000,
                    )
                else:
                    # Zero means a single check without waiting.
                    handle = await self._driver.wait_for_selector(selector, 0)
            except TimeoutError:
                handle = None
            except Exception as e:
                self._log.debug("Selector lookup failed", selector=selector, error=str(e))
                handle = None
            if handle is not None:
                return selector, handle
        return None

    async def _regenerate(self, spec: ElementSpec) -> tuple[str, ...]:
        try:
            snapshot = await self._driver.page_source()
        except Exception as e:
            self._log.warning("Could not capture DOM for healing", element=spec.name, error=str(e))
            return ()
        return self._analyzer.candidates_for(spec.name, spec.role, snapshot)

    # ------------------------------------------------------------------
    # Safe actions
    # ------------------------------------------------------------------

    async def safe_click(self, spec: ElementSpec, step_name: str | None = None) -> Resolution:
        """Resolve and click."""
        resolution = await self.resolve(spec, step_name=step_name)
        try:
            await self._driver.click(resolution.handle)
        except Exception as e:
            raise ActionError("click", resolution.selector_used, e, step_name=step_name) from e
        return resolution

    async def safe_set_value(self, spec: ElementSpec, value: str, step_name: str | None = None) -> Resolution:
        """Resolve and type ``value``."""
        resolution = await self.resolve(spec, step_name=step_name)
        try:
            await self._driver.set_value(resolution.handle, value)
        except Exception as e:
            raise ActionError("set_value", resolution.selector_used, e, step_name=step_name) from e
        return resolution

    async def safe_get_text(self, spec: ElementSpec, step_name: str | None = None) -> str:
        """Resolve and read the element's text."""
        resolution = await self.resolve(spec, step_name=step_name)
        try:
            return await self._driver.get_text(resolution.handle)
        except Exception as e:
            raise ActionError("get_text", resolution.selector_used, e, step_name=step_name) from e

    async def safe_is_displayed(self, spec: ElementSpec, step_name: str | None = None) -> bool:
        """True if the element resolves and is displayed. Never raises."""
        try:
            resolution = await self.resolve(
                spec,
                timeout_per_candidate_ms=self._config.display_check_timeout_ms,
                step_name=step_name,
            )
        except Exception as e:
            self._log.debug("Element not displayed", element=spec.name, step=step_name, error=str(e))
            return False
        try:
            return bool(await self._driver.is_displayed(resolution.handle))
        except Exception as e:
            self._log.debug("Display check failed", element=spec.name, step=step_name, error=str(e))
            return False
