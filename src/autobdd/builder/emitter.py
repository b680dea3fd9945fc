"""
Artifact emission.

Turns an instruction set, its classification and the assembled PageRegistry
into source text:

- ``features/<project>.feature``: one Gherkin feature, one scenario per test case
- ``steps/test_<project>_steps.py``: pytest-bdd step definitions, one per
  distinct step pattern
- ``pages/<page>_page.py``: one page-object module per page
- ``pages/registry.py``: the PageRegistry assembled from those modules

Output is deterministic: identical inputs produce byte-identical artifacts.
"""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass, replace

import structlog

from autobdd.builder.classifier import ClassificationResult
from autobdd.builder.extractor import ElementExtractor
from autobdd.dsl.models import InstructionSet, ScenarioDeclaration
from autobdd.models import ElementRole, ElementSpec, PageObject, PageRegistry
from autobdd.utils import QUOTED_LITERAL, strip_quoted, to_identifier

logger = structlog.get_logger(__name__)

GHERKIN_KEYWORDS = ("given", "when", "then", "and", "but")
THEN_VERBS = frozenset({"see", "sees", "verify", "verifies", "should", "expect", "expects"})
STEP_TYPES = ("given", "when", "then")


@dataclass(frozen=True)
class StepDefinition:
    """One generated pytest-bdd step function, registered once per step type it is used as."""

    keywords: tuple[str, ...]
    pattern: str
    function_name: str
    page: str
    params: tuple[str, ...]
    actions: tuple[tuple[ElementRole, str], ...]


def _strip_keyword(text: str) -> str:
    words = text.strip().split(maxsplit=1)
    if len(words) == 2 and words[0].lower() in GHERKIN_KEYWORDS:
        return words[1]
    return text.strip()


def _step_keyword(text: str, index: int) -> str:
    first = text.strip().split(maxsplit=1)[0].lower() if text.strip() else ""
    if first in {"given", "when", "then"}:
        return first.capitalize()
    words = set(re.findall(r"[a-z]+", text.lower()))
    if words & THEN_VERBS:
        return "Then"
    return "Given" if index == 0 else "When"


def step_pattern(text: str) -> tuple[str, tuple[str, ...]]:
    """
    Regex pattern for a step, with quoted literals turned into named groups.

    ``enter username 'john'`` -> ``^enter username '(?P<value>[^']*)'$``
    """
    body = _strip_keyword(text)
    literals = list(QUOTED_LITERAL.finditer(body))
    names = ["value"] if len(literals) == 1 else [f"value_{i + 1}" for i in range(len(literals))]

    parts: list[str] = []
    cursor = 0
    for name, literal in zip(names, literals):
        quote = literal.group(1)
        parts.append(re.escape(body[cursor:literal.start()]))
        parts.append(f"{quote}(?P<{name}>[^{quote}]*){quote}")
        cursor = literal.end()
    parts.append(re.escape(body[cursor:]))
    return "^" + "".join(parts) + "$", tuple(names)


class ArtifactEmitter:
    """Renders feature, step-definition and page-object sources."""

    def __init__(self, extractor: ElementExtractor | None = None) -> None:
        self._extractor = extractor or ElementExtractor()
        self._log = logger.bind(component="artifact_emitter")

    def emit(
        self,
        instructions: InstructionSet,
        classification: ClassificationResult,
        registry: PageRegistry,
        generated_feature: str | None = None,
    ) -> dict[str, str]:
        """
        Render every artifact.

        Args:
            instructions: Source instruction set
            classification: Step-to-page assignment
            registry: Assembled page objects
            generated_feature: Optional scenario text from a ScenarioGenerator

        Returns:
            Relative artifact path to file content, in a stable order
        """
        slug = to_identifier(instructions.project, fallback="project")
        artifacts: dict[str, str] = {
            f"features/{slug}.feature": self.render_feature(instructions),
        }
        if generated_feature:
            artifacts[f"features/{slug}_generated.feature"] = generated_feature.rstrip() + "\n"
        artifacts[f"steps/test_{slug}_steps.py"] = self.render_steps(instructions, classification, slug)
        artifacts["pages/__init__.py"] = f'"""Page objects for {instructions.project}."""\n'
        for page in registry:
            artifacts[f"pages/{self.module_name(page.name)}.py"] = self.render_page(page)
        artifacts["pages/registry.py"] = self.render_registry(registry)

        self._log.info("Rendered artifacts", project=instructions.project, files=len(artifacts))
        return artifacts

    @staticmethod
    def module_name(page_name: str) -> str:
        return f"{to_identifier(page_name, fallback='page')}_page"

    @staticmethod
    def constant_name(page_name: str) -> str:
        return f"{to_identifier(page_name, fallback='page').upper()}_PAGE"

    # ------------------------------------------------------------------
    # Feature
    # ------------------------------------------------------------------

    def render_feature(self, instructions: InstructionSet) -> str:
        lines = [f"Feature: {instructions.project}"]
        if instructions.description:
            lines.extend(f"  {line}".rstrip() for line in instructions.description.strip().splitlines())
        for case in instructions.test_cases:
            lines.append("")
            lines.extend(self._render_scenario(case))
        return "\n".join(lines) + "\n"

    @staticmethod
    def _render_scenario(case: ScenarioDeclaration) -> list[str]:
        lines: list[str] = []
        if case.tags:
            lines.append("  " + " ".join(f"@{to_identifier(tag, fallback='tag')}" for tag in case.tags))
        lines.append(f"  Scenario: {case.name}")
        if case.description:
            lines.append(f"    {case.description.strip()}")

        previous = ""
        for step in case.to_steps():
            kind = _step_keyword(step.text, step.index)
            shown = "And" if kind == previous else kind
            previous = kind
            lines.append(f"    {shown} {_strip_keyword(step.text)}")
        return lines

    # ------------------------------------------------------------------
    # Step definitions
    # ------------------------------------------------------------------

    def step_definitions(
        self,
        instructions: InstructionSet,
        classification: ClassificationResult,
    ) -> list[StepDefinition]:
        """
        Distinct step definitions, deduplicated by pattern, in first-use order.

        A pattern used under several step types (``Given`` in one scenario,
        ``When`` in another) gets one decorator per type.
        """
        definitions: list[StepDefinition] = []
        by_pattern: dict[str, int] = {}
        used_names: set[str] = set()

        for case in instructions.test_cases:
            for step in case.to_steps():
                pattern, params = step_pattern(step.text)
                kind = _step_keyword(step.text, step.index).lower()
                if pattern in by_pattern:
                    index = by_pattern[pattern]
                    existing = definitions[index]
                    if kind not in existing.keywords:
                        kinds = tuple(k for k in STEP_TYPES if k in {*existing.keywords, kind})
                        definitions[index] = replace(existing, keywords=kinds)
                    continue
                by_pattern[pattern] = len(definitions)

                base = to_identifier(strip_quoted(_strip_keyword(step.text)), fallback="step")
                if keyword.iskeyword(base):
                    base = f"{base}_step"
                name = base
                counter = 2
                while name in used_names:
                    name = f"{base}_{counter}"
                    counter += 1
                used_names.add(name)

                definitions.append(
                    StepDefinition(
                        keywords=(kind,),
                        pattern=pattern,
                        function_name=name,
                        page=classification.primary_page(step),
                        params=params,
                        actions=tuple(self._extractor.element_refs(step.text)),
                    )
                )
        return definitions

    def render_steps(
        self,
        instructions: InstructionSet,
        classification: ClassificationResult,
        slug: str,
    ) -> str:
        definitions = self.step_definitions(instructions, classification)
        keywords = sorted({k for d in definitions for k in d.keywords})

        lines = [
            '"""',
            f"Step definitions for {instructions.project}.",
            "",
            "Expects ``page_context`` (a PageContextManager) and ``resolver``",
            "(a SelectorResolver) fixtures from the surrounding conftest.",
            '"""',
            "",
            "import asyncio",
            "",
            f"from pytest_bdd import {', '.join([*keywords, 'parsers', 'scenarios'])}",
            "",
            f'scenarios("../features/{slug}.feature")',
            "",
            "_RUNNER = asyncio.Runner()",
        ]
        for definition in definitions:
            lines.append("")
            lines.append("")
            lines.extend(self._render_step_function(definition))
        return "\n".join(lines) + "\n"

    @staticmethod
    def _render_step_function(definition: StepDefinition) -> list[str]:
        args = ", ".join(["page_context", "resolver", *definition.params])
        step_label = definition.function_name.replace("_", " ")
        lines = [f"@{kind}(parsers.re({definition.pattern!r}))" for kind in definition.keywords]
        lines += [
            f"def {definition.function_name}({args}):",
            f"    page_context.set_current_page({definition.page!r})",
        ]
        if definition.actions:
            lines.append("    page = page_context.get_current_page()")

        value_params = list(definition.params)
        for role, element in definition.actions:
            target = f"page[{element!r}]"
            match role:
                case ElementRole.INPUT:
                    value = value_params.pop(0) if value_params else '""'
                    lines.append(
                        f"    _RUNNER.run(resolver.safe_set_value({target}, {value}, step_name={step_label!r}))"
                    )
                case ElementRole.TEXT:
                    lines.append(
                        f"    assert _RUNNER.run(resolver.safe_is_displayed({target}, step_name={step_label!r}))"
                    )
                case _:
                    lines.append(f"    _RUNNER.run(resolver.safe_click({target}, step_name={step_label!r}))")
        return lines

    # ------------------------------------------------------------------
    # Page objects
    # ------------------------------------------------------------------

    def render_page(self, page: PageObject) -> str:
        lines = [
            f'"""Page object for the {page.name} page."""',
            "",
            "from autobdd.models import ElementRole, ElementSpec, PageObject, Provenance",
            "",
            f"{self.constant_name(page.name)} = PageObject(",
            f"    name={page.name!r},",
        ]
        if page.url:
            lines.append(f"    url={page.url!r},")
        if page.description:
            lines.append(f"    description={page.description!r},")
        if len(page):
            lines.append("    elements={")
            for spec in page:
                lines.extend(self._render_element(spec))
            lines.append("    },")
        else:
            lines.append("    elements={},")
        lines.append(")")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _render_element(spec: ElementSpec) -> list[str]:
        lines = [
            f"        {spec.name!r}: ElementSpec(",
            f"            name={spec.name!r},",
            f"            role=ElementRole.{spec.role.name},",
            "            selectors=(",
        ]
        lines.extend(f"                {selector!r}," for selector in spec.selectors)
        lines.append("            ),")
        lines.append(f"            provenance=Provenance.{spec.provenance.name},")
        if spec.description:
            lines.append(f"            description={spec.description!r},")
        lines.append("        ),")
        return lines

    def render_registry(self, registry: PageRegistry) -> str:
        lines = [
            '"""Page registry for the generated page objects."""',
            "",
            "from autobdd.models import PageRegistry",
        ]
        lines.extend(
            f"from pages.{self.module_name(page.name)} import {self.constant_name(page.name)}"
            for page in registry
        )
        constants = ", ".join(self.constant_name(page.name) for page in registry)
        lines.extend(["", f"REGISTRY = PageRegistry([{constants}])"])
        return "\n".join(lines) + "\n"
