"""
Core data model shared by the generation pipeline and the runtime.

Generation produces PageInfo, ElementSpec and PageObject instances, collects
them in a PageRegistry, and hands the registry to the runtime where a
PageContextManager and a SelectorResolver consume it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from autobdd.runtime.context import PageContextManager

GENERIC_PAGE = "generic"


class ElementRole(StrEnum):
    """Role guess for a logical UI element."""

    INPUT = "input"
    BUTTON = "button"
    TEXT = "text"
    LINK = "link"


class Provenance(StrEnum):
    """Where an ElementSpec came from."""

    EXPLICIT = "explicit"
    INFERRED = "inferred"


class HealingOutcome(StrEnum):
    """Final outcome of a healing pass."""

    HEALED = "healed"
    FAILED = "failed"


def merge_selectors(existing: Iterable[str], extra: Iterable[str]) -> tuple[str, ...]:
    """Append ``extra`` to ``existing`` keeping order and dropping repeats."""
    merged: list[str] = []
    for selector in (*existing, *extra):
        if selector and selector not in merged:
            merged.append(selector)
    return tuple(merged)


@dataclass(frozen=True)
class Step:
    """One free-text instruction step."""

    text: str
    page: str | None = None
    test_case: str | None = None
    index: int = 0


@dataclass(frozen=True)
class ElementSpec:
    """
    A logical UI element and its ordered selector candidates.

    Instances are frozen. The only mutation allowed after assembly is
    ``promote_selector``, used by the healing layer to move a working selector
    to the front of the candidate list.
    """

    name: str
    role: ElementRole
    selectors: tuple[str, ...] = ()
    provenance: Provenance = Provenance.INFERRED
    description: str = ""

    def with_extra_selectors(self, extra: Iterable[str]) -> ElementSpec:
        """Return a copy with ``extra`` appended to the candidate list."""
        return ElementSpec(
            name=self.name,
            role=self.role,
            selectors=merge_selectors(self.selectors, extra),
            provenance=self.provenance,
            description=self.description,
        )

    def promote_selector(self, selector: str, candidates: Iterable[str] = ()) -> None:
        """Rewrite the candidate list in place with ``selector`` first."""
        rewritten = merge_selectors((selector,), (*candidates, *self.selectors))
        object.__setattr__(self, "selectors", rewritten)


@dataclass(frozen=True)
class ElementCandidate:
    """An element found by DOM analysis."""

    name: str
    role: ElementRole
    selectors: tuple[str, ...]
    description: str = ""


@dataclass(frozen=True)
class PageInfo:
    """A page declaration: name, keywords, and optional explicit elements."""

    name: str
    keywords: tuple[str, ...] = ()
    url: str = ""
    description: str = ""
    elements: tuple[ElementSpec, ...] | None = None

    @property
    def is_explicit(self) -> bool:
        """True when the page carries its own element list."""
        return self.elements is not None


@dataclass(frozen=True)
class PageObject:
    """An assembled page: a read-only mapping of logical names to ElementSpecs."""

    name: str
    elements: Mapping[str, ElementSpec]
    url: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", MappingProxyType(dict(self.elements)))

    def __getitem__(self, name: str) -> ElementSpec:
        return self.elements[name]

    def __contains__(self, name: object) -> bool:
        return name in self.elements

    def __iter__(self) -> Iterator[ElementSpec]:
        return iter(self.elements.values())

    def __len__(self) -> int:
        return len(self.elements)

    @property
    def element_names(self) -> list[str]:
        return list(self.elements)


class PageRegistry:
    """Page name to PageObject mapping for one generation run."""

    def __init__(self, pages: Iterable[PageObject] = ()) -> None:
        self._pages: dict[str, PageObject] = {}
        for page in pages:
            self.add(page)

    def add(self, page: PageObject) -> None:
        if page.name in self._pages:
            raise ValueError(f"Page {page.name!r} is already registered")
        self._pages[page.name] = page

    def get(self, name: str) -> PageObject | None:
        return self._pages.get(name)

    def __getitem__(self, name: str) -> PageObject:
        return self._pages[name]

    def __contains__(self, name: object) -> bool:
        return name in self._pages

    def __iter__(self) -> Iterator[PageObject]:
        return iter(self._pages.values())

    def __len__(self) -> int:
        return len(self._pages)

    @property
    def names(self) -> list[str]:
        return list(self._pages)

    def new_context(self) -> PageContextManager:
        """Create a fresh PageContextManager for one scenario execution."""
        from autobdd.runtime.context import PageContextManager

        return PageContextManager(self)


@dataclass
class HealingEvent:
    """Structured record emitted whenever a selector healing pass runs."""

    step_name: str | None
    element_name: str
    exhausted_selectors: list[str]
    regenerated_selectors: list[str] = field(default_factory=list)
    outcome: HealingOutcome = HealingOutcome.FAILED
    healed_selector: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "step_name": self.step_name,
            "element_name": self.element_name,
            "exhausted_selectors": list(self.exhausted_selectors),
            "regenerated_selectors": list(self.regenerated_selectors),
            "outcome": str(self.outcome),
            "healed_selector": self.healed_selector,
        }
