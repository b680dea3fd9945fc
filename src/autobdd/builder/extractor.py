"""
Element extraction from step text.

Each step is split into clauses. The first action verb of a clause picks the
element role from a rule table; a clause without a verb continues the previous
clause's action ("enter username and password"). The logical element name is
derived per role and selector candidates come from the DomAnalyzer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from autobdd.dom.analyzer import SUBMIT_ALIASES, DomAnalyzer
from autobdd.models import ElementRole, ElementSpec, Provenance
from autobdd.utils import strip_quoted, to_identifier

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ActionRule:
    """Maps action verbs to the role of the element they act on."""

    role: ElementRole
    verbs: frozenset[str]


ACTION_RULES: tuple[ActionRule, ...] = (
    ActionRule(
        ElementRole.INPUT,
        frozenset({"enter", "enters", "fill", "fills", "type", "types", "input", "inputs", "provide", "provides"}),
    ),
    ActionRule(
        ElementRole.BUTTON,
        frozenset({"click", "clicks", "press", "presses", "tap", "taps", "submit", "submits"}),
    ),
    ActionRule(ElementRole.TEXT, frozenset({"see", "sees", "verify", "verifies"})),
)

SUBMIT_PHRASES: tuple[str, ...] = ("log in", "sign in", "login", "signin", "submit", "continue")
TEXT_NOUNS: tuple[str, ...] = ("message", "heading", "title", "alert", "banner", "label")

# Words skipped when reading a field or control name.
FILLER_WORDS = frozenset({
    "a", "an", "the", "in", "into", "on", "onto", "my", "your", "their", "his", "her",
    "valid", "invalid", "correct", "incorrect", "wrong", "new", "user", "users",
    "value", "values", "some", "any", "should", "is", "are", "be", "displayed", "shown",
    "visible", "that", "there", "i", "we", "he", "she", "they", "it",
})
# Words ending a field name.
FIELD_TERMINATORS = frozenset({"field", "box", "textbox", "input", "with", "as", "to", "for", "from", "of"})

_CLAUSE_SPLIT = re.compile(r"\s*(?:,|;|\band\b|\bthen\b)\s*", re.IGNORECASE)
_WORD = re.compile(r"[a-z0-9]+")
MAX_NAME_WORDS = 3


def guess_role_from_name(name: str) -> ElementRole:
    """Role for an element known only by its logical name."""
    ident = to_identifier(name)
    parts = set(ident.split("_"))
    if ident in SUBMIT_ALIASES or parts & {"button", "btn"}:
        return ElementRole.BUTTON
    if "link" in parts:
        return ElementRole.LINK
    if parts & {*TEXT_NOUNS, "text", "error", "notice", "toast"}:
        return ElementRole.TEXT
    return ElementRole.INPUT


def _words(text: str) -> list[str]:
    return _WORD.findall(text.lower())


def _name_from(words: list[str]) -> str | None:
    meaningful = [w for w in words if w not in FILLER_WORDS]
    if not meaningful:
        return None
    return to_identifier("_".join(meaningful[:MAX_NAME_WORDS]))


class ElementExtractor:
    """Derives ElementSpec stubs from step text."""

    def __init__(self, analyzer: DomAnalyzer | None = None) -> None:
        self._analyzer = analyzer or DomAnalyzer()
        self._log = logger.bind(component="element_extractor")

    @property
    def analyzer(self) -> DomAnalyzer:
        return self._analyzer

    def extract(self, step_text: str, snapshot: str | None = None) -> list[ElementSpec]:
        """
        Extract element stubs from one step.

        Args:
            step_text: Free-text step
            snapshot: Optional DOM snapshot used for selector candidates

        Returns:
            ElementSpecs in clause order, unique by logical name
        """
        specs: list[ElementSpec] = []
        seen: set[str] = set()
        for role, name in self.element_refs(step_text):
            if name in seen:
                continue
            seen.add(name)
            specs.append(
                ElementSpec(
                    name=name,
                    role=role,
                    selectors=self._analyzer.candidates_for(name, role, snapshot),
                    provenance=Provenance.INFERRED,
                    description=step_text.strip(),
                )
            )
        if not specs:
            self._log.debug("No element referenced by step", step=step_text)
        return specs

    def element_refs(self, step_text: str) -> list[tuple[ElementRole, str]]:
        """(role, logical name) pairs referenced by a step, without selectors."""
        refs: list[tuple[ElementRole, str]] = []
        current: ElementRole | None = None

        for clause in _CLAUSE_SPLIT.split(strip_quoted(step_text)):
            words = _words(clause)
            if not words:
                continue
            role, rest = self._find_action(words)
            if role is None:
                if current is None:
                    continue
                role, rest = current, words
            current = role

            ref = self._element_ref(role, rest)
            if ref is not None:
                refs.append(ref)
        return refs

    @staticmethod
    def _find_action(words: list[str]) -> tuple[ElementRole | None, list[str]]:
        for index, word in enumerate(words):
            for rule in ACTION_RULES:
                if word in rule.verbs:
                    rest = words[index + 1:]
                    # "submit" is both the verb and the control
                    if word in {"submit", "submits"}:
                        rest = ["submit", *rest]
                    return rule.role, rest
        return None, words

    def _element_ref(self, role: ElementRole, words: list[str]) -> tuple[ElementRole, str] | None:
        match role:
            case ElementRole.INPUT:
                name = self._field_name(words)
            case ElementRole.BUTTON:
                return self._control_ref(words)
            case _:
                name = self._text_name(words)
        return (role, name) if name else None

    @staticmethod
    def _field_name(words: list[str]) -> str | None:
        collected: list[str] = []
        for word in words:
            if word in FIELD_TERMINATORS:
                if collected:
                    break
                continue
            collected.append(word)
        return _name_from(collected)

    @staticmethod
    def _control_ref(words: list[str]) -> tuple[ElementRole, str] | None:
        if "link" in words:
            before = words[:words.index("link")]
            name = _name_from(before) or _name_from(words[words.index("link") + 1:])
            return (ElementRole.LINK, name) if name else None

        phrase = " ".join(words)
        if any(re.search(rf"\b{re.escape(p)}\b", phrase) for p in SUBMIT_PHRASES):
            return ElementRole.BUTTON, "submit"

        for marker in ("button", "btn"):
            if marker in words:
                name = _name_from(words[:words.index(marker)])
                return (ElementRole.BUTTON, name) if name else None

        name = _name_from(words)
        return (ElementRole.BUTTON, name) if name else None

    @staticmethod
    def _text_name(words: list[str]) -> str | None:
        for noun in TEXT_NOUNS:
            if noun in words:
                return noun
        meaningful = [w for w in words if w not in FILLER_WORDS]
        return meaningful[-1] if meaningful else None
