"""
DOM analysis for selector candidate generation.

Parses an HTML snapshot with BeautifulSoup and turns interactive and
message-like elements into ElementCandidates. Selector candidates are always
ordered from most to least specific:

    id  >  name  >  placeholder substring  >  generic tag/type

The same ordering is used when candidates are requested for a single logical
element, which is what the extractor and the healing pass call.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import structlog
from bs4 import BeautifulSoup, Tag

from autobdd.models import ElementCandidate, ElementRole
from autobdd.utils import css_attr_value, css_id_selector, dedupe, to_identifier

logger = structlog.get_logger(__name__)

BUTTON_INPUT_TYPES = frozenset({"submit", "button", "reset", "image"})
SKIPPED_INPUT_TYPES = frozenset({"hidden"})
HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
TEXT_ROLES = frozenset({"alert", "status", "heading"})
TEXT_HINT_PATTERN = re.compile(r"message|alert|error|success|notice|title|heading|banner|toast", re.I)

# Form-submitting actions collapse onto a single logical "submit" element.
SUBMIT_ALIASES = frozenset({"submit", "login", "log_in", "signin", "sign_in", "continue"})


@dataclass
class _Node:
    """Flattened view of one DOM element."""

    tag: str
    role: ElementRole
    attrs: dict[str, str] = field(default_factory=dict)
    text: str = ""
    classes: list[str] = field(default_factory=list)


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value).strip()


def _role_of(tag: Tag) -> ElementRole | None:
    name = tag.name
    aria_role = _attr(tag, "role").lower()
    input_type = _attr(tag, "type").lower()

    if name == "input":
        if input_type in SKIPPED_INPUT_TYPES:
            return None
        if input_type in BUTTON_INPUT_TYPES:
            return ElementRole.BUTTON
        return ElementRole.INPUT
    if name in {"textarea", "select"}:
        return ElementRole.INPUT
    if name == "button" or aria_role == "button":
        return ElementRole.BUTTON
    if (name == "a" and tag.has_attr("href")) or aria_role == "link":
        return ElementRole.LINK
    if name in HEADING_TAGS or aria_role in TEXT_ROLES:
        return ElementRole.TEXT
    hint = f"{_attr(tag, 'id')} {_attr(tag, 'class')}"
    if name in {"div", "p", "span", "section", "strong"} and TEXT_HINT_PATTERN.search(hint):
        return ElementRole.TEXT
    return None


class DomAnalyzer:
    """Extracts element candidates and ranked selectors from HTML snapshots."""

    def __init__(self) -> None:
        self._log = logger.bind(component="dom_analyzer")

    def analyze(self, snapshot: str) -> list[ElementCandidate]:
        """
        Extract every recognizable element from a DOM snapshot.

        Args:
            snapshot: HTML content

        Returns:
            ElementCandidates in document order with unique names
        """
        candidates: list[ElementCandidate] = []
        used_names: set[str] = set()

        for node in self._nodes(snapshot):
            base = self._logical_name(node)
            name = base
            counter = 1
            while name in used_names:
                name = f"{base}_{counter}"
                counter += 1
            used_names.add(name)
            candidates.append(
                ElementCandidate(
                    name=name,
                    role=node.role,
                    selectors=tuple(self._selectors_for_node(node)),
                    description=node.text[:60] or f"{node.tag} element",
                )
            )

        self._log.debug("Analyzed DOM snapshot", elements=len(candidates))
        return candidates

    def candidates_for(self, name: str, role: ElementRole, snapshot: str | None = None) -> tuple[str, ...]:
        """
        Ranked selector candidates for one logical element.

        With a snapshot, only elements of the requested role that match the
        logical name contribute, grouped by match strength. Without one, a
        deterministic fallback list is returned.
        """
        if not snapshot:
            return self.fallback_selectors(name, role)

        by_id: list[str] = []
        by_name: list[str] = []
        by_placeholder: list[str] = []
        by_generic: list[str] = []
        tokens = self._name_tokens(name)

        for node in self._nodes(snapshot):
            if node.role != role:
                continue
            element_id = node.attrs.get("id", "")
            element_name = node.attrs.get("name", "")
            placeholder = node.attrs.get("placeholder", "")

            if element_id and self._matches(tokens, element_id):
                by_id.append(css_id_selector(element_id))
            if element_name and self._matches(tokens, element_name):
                by_name.append(f'{node.tag}[name="{css_attr_value(element_name)}"]')
            if placeholder and self._matches(tokens, placeholder):
                by_placeholder.append(
                    f'{node.tag}[placeholder*="{css_attr_value(self._placeholder_fragment(tokens, placeholder))}"]'
                )
            generic = self._generic_match(node, tokens)
            if generic:
                by_generic.append(generic)

        ranked = dedupe(by_id + by_name + by_placeholder + by_generic)
        if not ranked:
            return self.fallback_selectors(name, role)
        return tuple(ranked)

    def fallback_selectors(self, name: str, role: ElementRole) -> tuple[str, ...]:
        """Deterministic candidates used when no snapshot is available."""
        ident = to_identifier(name)
        value = css_attr_value(ident)
        match role:
            case ElementRole.INPUT:
                selectors = [
                    css_id_selector(ident),
                    f'[name="{value}"]',
                    f'input[placeholder*="{value}"]',
                ]
                if ident in {"password", "email", "search", "tel", "url", "number"}:
                    selectors.append(f'input[type="{value}"]')
                selectors.append("input")
            case ElementRole.BUTTON:
                selectors = [css_id_selector(ident), f'[name="{value}"]']
                if ident in SUBMIT_ALIASES:
                    selectors.append('button[type="submit"]')
                    selectors.append('input[type="submit"]')
                selectors.append("button")
            case ElementRole.LINK:
                selectors = [css_id_selector(ident), f'a[href*="{value}"]', "a"]
            case ElementRole.TEXT:
                selectors = [
                    css_id_selector(ident),
                    f'[class*="{value}"]',
                    f'[id*="{value}"]',
                    '[role="alert"]',
                    "h1",
                ]
        return tuple(dedupe(selectors))

    def _nodes(self, snapshot: str) -> list[_Node]:
        soup = BeautifulSoup(snapshot, "html.parser")
        nodes: list[_Node] = []
        for tag in soup.find_all(True):
            role = _role_of(tag)
            if role is None:
                continue
            attrs = {
                key: _attr(tag, key)
                for key in ("id", "name", "type", "placeholder", "aria-label", "href", "role", "value")
                if tag.has_attr(key)
            }
            nodes.append(
                _Node(
                    tag=tag.name,
                    role=role,
                    attrs=attrs,
                    text=" ".join(tag.get_text(" ", strip=True).split()),
                    classes=list(tag.get("class") or []),
                )
            )
        return nodes

    def _logical_name(self, node: _Node) -> str:
        for source in (
            node.attrs.get("id"),
            node.attrs.get("name"),
            node.attrs.get("aria-label"),
            node.attrs.get("placeholder"),
            node.text,
            node.attrs.get("value"),
        ):
            if source:
                return to_identifier(source[:40], fallback=node.tag)
        return to_identifier(f"{node.tag}_{node.role}")

    def _selectors_for_node(self, node: _Node) -> list[str]:
        selectors: list[str] = []
        if node.attrs.get("id"):
            selectors.append(css_id_selector(node.attrs["id"]))
        if node.attrs.get("name"):
            selectors.append(f'{node.tag}[name="{css_attr_value(node.attrs["name"])}"]')
        if node.attrs.get("placeholder"):
            selectors.append(f'{node.tag}[placeholder*="{css_attr_value(node.attrs["placeholder"])}"]')
        for cls in node.classes:
            if node.role == ElementRole.TEXT and TEXT_HINT_PATTERN.search(cls):
                selectors.append(f".{cls}")
        selectors.append(self._generic_selector(node))
        return dedupe(selectors)

    @staticmethod
    def _generic_selector(node: _Node) -> str:
        input_type = node.attrs.get("type")
        if input_type:
            return f'{node.tag}[type="{css_attr_value(input_type)}"]'
        return node.tag

    def _generic_match(self, node: _Node, tokens: list[str]) -> str | None:
        """Generic tag/type selector when the element loosely matches the name."""
        input_type = node.attrs.get("type", "").lower()
        if input_type and input_type in tokens:
            return self._generic_selector(node)
        if node.role == ElementRole.BUTTON and input_type == "submit" and SUBMIT_ALIASES.intersection(tokens):
            return self._generic_selector(node)
        if node.role == ElementRole.BUTTON and SUBMIT_ALIASES.intersection(tokens) and node.tag == "button":
            return 'button[type="submit"]' if input_type == "submit" else "button"
        for cls in node.classes:
            if self._matches(tokens, cls):
                return f".{cls}"
        if node.text and self._matches(tokens, node.text):
            return self._generic_selector(node)
        return None

    @staticmethod
    def _placeholder_fragment(tokens: list[str], placeholder: str) -> str:
        """The part of ``placeholder`` matching a token, with its original casing."""
        lowered = placeholder.lower()
        for token in tokens:
            index = lowered.find(token)
            if index >= 0:
                return placeholder[index:index + len(token)]
        return placeholder

    @staticmethod
    def _name_tokens(name: str) -> list[str]:
        ident = to_identifier(name)
        tokens = [ident, *(part for part in ident.split("_") if len(part) >= 3)]
        if ident in SUBMIT_ALIASES:
            tokens.extend(sorted(SUBMIT_ALIASES))
        return dedupe(tokens)

    @staticmethod
    def _matches(tokens: list[str], value: str) -> bool:
        normalized = to_identifier(value, fallback="")
        if not normalized:
            return False
        compact = normalized.replace("_", "")
        return any(token and token.replace("_", "") in compact for token in tokens)
