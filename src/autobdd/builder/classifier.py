"""
Page classification for instruction steps.

Steps are assigned to pages by an ordered rule table of ``{name, keywords}``.
Each step is checked against every rule in declaration order with
case-insensitive substring matching; the first matching rule is the step's
primary page and every matching rule receives the step. A step with an
explicit page tag goes to that page only. Steps that match nothing land on the
implicit ``generic`` page with a warning.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import structlog

from autobdd.errors import InstructionError
from autobdd.models import GENERIC_PAGE, PageInfo, Step
from autobdd.utils import strip_quoted

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PageRule:
    """One row of the classification table."""

    name: str
    keywords: tuple[str, ...]

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(keyword.lower() in lowered for keyword in self.keywords if keyword)


DEFAULT_TAXONOMY: tuple[PageRule, ...] = (
    PageRule("login", ("login", "sign in", "username", "password")),
    PageRule("dashboard", ("logged in", "dashboard", "success", "welcome")),
    PageRule("error", ("error", "invalid", "fail", "incorrect")),
)


@dataclass
class ClassificationResult:
    """Pages in declaration order and the steps assigned to each."""

    pages: dict[str, PageInfo] = field(default_factory=dict)
    assignments: dict[str, list[Step]] = field(default_factory=dict)
    step_pages: list[tuple[Step, tuple[str, ...]]] = field(default_factory=list)

    def steps_for(self, page_name: str) -> list[Step]:
        return list(self.assignments.get(page_name, []))

    def pages_for(self, step: Step) -> tuple[str, ...]:
        for candidate, pages in self.step_pages:
            if candidate == step:
                return pages
        return ()

    def primary_page(self, step: Step) -> str:
        """The first page a step was assigned to."""
        pages = self.pages_for(step)
        return pages[0] if pages else GENERIC_PAGE

    @property
    def unclassified(self) -> list[Step]:
        return self.steps_for(GENERIC_PAGE)


class PageClassifier:
    """Assigns steps to pages with an ordered keyword rule table."""

    def __init__(self, default_rules: Sequence[PageRule] = DEFAULT_TAXONOMY) -> None:
        self._default_rules = tuple(default_rules)
        self._log = logger.bind(component="page_classifier")

    def rules_for(self, pages: Sequence[PageInfo]) -> tuple[PageRule, ...]:
        """Rule table for declared pages; a page without keywords matches its own name."""
        return tuple(PageRule(page.name, page.keywords or (page.name,)) for page in pages)

    def classify(self, steps: Iterable[Step], pages: Sequence[PageInfo] = ()) -> ClassificationResult:
        """
        Classify steps into pages.

        Args:
            steps: Steps in instruction order
            pages: Declared pages; the default taxonomy is used when empty

        Returns:
            ClassificationResult with declared pages first, then any page that
            only came into existence by receiving steps

        Raises:
            InstructionError: If a step carries a page tag that was not declared
        """
        result = ClassificationResult()
        declared = bool(pages)

        if declared:
            rules = self.rules_for(pages)
            for page in pages:
                result.pages[page.name] = page
                result.assignments[page.name] = []
        else:
            rules = self._default_rules
        known = {rule.name for rule in rules}

        for step in steps:
            if step.page is not None:
                if step.page not in known:
                    raise InstructionError(
                        f"Step is tagged with undeclared page {step.page!r} (declared: {', '.join(sorted(known))})",
                        step_name=step.text,
                    )
                matched: tuple[str, ...] = (step.page,)
            else:
                text = strip_quoted(step.text)
                matched = tuple(rule.name for rule in rules if rule.matches(text))

            if not matched:
                self._log.warning(
                    "Step matched no page, routing to generic",
                    step=step.text,
                    test_case=step.test_case,
                )
                matched = (GENERIC_PAGE,)

            for name in matched:
                if name not in result.pages:
                    result.pages[name] = self._implicit_page(name, rules)
                    result.assignments[name] = []
                result.assignments[name].append(step)
            result.step_pages.append((step, matched))

        self._log.debug(
            "Classified steps",
            pages={name: len(assigned) for name, assigned in result.assignments.items()},
        )
        return result

    @staticmethod
    def _implicit_page(name: str, rules: Sequence[PageRule]) -> PageInfo:
        for rule in rules:
            if rule.name == name:
                return PageInfo(name=name, keywords=rule.keywords)
        return PageInfo(name=name, description="Steps that matched no page")
