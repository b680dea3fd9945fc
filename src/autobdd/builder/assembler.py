"""
Page object assembly.

Pages with explicit elements are taken verbatim. For every other page the
element stubs of all its steps are merged by logical name: the first stub
establishes the ElementSpec and later stubs only append selector candidates.
"""

from __future__ import annotations

from collections.abc import Mapping

import structlog

from autobdd.builder.classifier import ClassificationResult
from autobdd.builder.extractor import ElementExtractor
from autobdd.errors import GenerationError
from autobdd.models import ElementSpec, PageInfo, PageObject, PageRegistry, Step

logger = structlog.get_logger(__name__)


class PageObjectAssembler:
    """Builds one immutable PageObject per classified page."""

    def __init__(self, extractor: ElementExtractor | None = None) -> None:
        self._extractor = extractor or ElementExtractor()
        self._log = logger.bind(component="page_object_assembler")

    def assemble(
        self,
        classification: ClassificationResult,
        snapshots: Mapping[str, str] | None = None,
    ) -> PageRegistry:
        """
        Assemble a PageRegistry from a classification.

        Args:
            classification: Output of PageClassifier.classify
            snapshots: Optional DOM snapshot per page name

        Returns:
            PageRegistry in classification page order
        """
        snapshots = snapshots or {}
        registry = PageRegistry()

        for name, info in classification.pages.items():
            if info.is_explicit:
                page = self.explicit_page(info)
            else:
                page = self.inferred_page(info, classification.steps_for(name), snapshots.get(name))
            registry.add(page)
            self._log.debug(
                "Assembled page object",
                page=name,
                explicit=info.is_explicit,
                elements=page.element_names,
            )

        return registry

    @staticmethod
    def explicit_page(info: PageInfo) -> PageObject:
        elements: dict[str, ElementSpec] = {}
        for spec in info.elements or ():
            if spec.name in elements:
                raise GenerationError(f"Page {info.name!r} declares element {spec.name!r} twice")
            elements[spec.name] = spec
        return PageObject(name=info.name, elements=elements, url=info.url, description=info.description)

    def inferred_page(self, info: PageInfo, steps: list[Step], snapshot: str | None = None) -> PageObject:
        elements: dict[str, ElementSpec] = {}
        for step in steps:
            for stub in self._extractor.extract(step.text, snapshot):
                existing = elements.get(stub.name)
                if existing is None:
                    elements[stub.name] = stub
                else:
                    elements[stub.name] = existing.with_extra_selectors(stub.selectors)
        return PageObject(name=info.name, elements=elements, url=info.url, description=info.description)


def validate_registry(
    registry: PageRegistry,
    classification: ClassificationResult,
    extractor: ElementExtractor | None = None,
) -> None:
    """
    Check structural consistency of an assembled registry.

    Every classified page must be registered, element names must match their
    mapping keys, and every element referenced by a step of an inferred page
    must be present on that page.

    Raises:
        GenerationError: On the first violation found
    """
    extractor = extractor or ElementExtractor()

    for name, info in classification.pages.items():
        page = registry.get(name)
        if page is None:
            raise GenerationError(f"Classified page {name!r} is missing from the registry")

        for key, spec in page.elements.items():
            if key != spec.name:
                raise GenerationError(f"Page {name!r} stores element {spec.name!r} under {key!r}")
            if not spec.selectors:
                raise GenerationError(f"Element {name}.{spec.name} has no selector candidates")

        if info.is_explicit:
            continue
        for step in classification.steps_for(name):
            for _, element_name in extractor.element_refs(step.text):
                if element_name not in page:
                    raise GenerationError(
                        f"Element {element_name!r} referenced on page {name!r} was not assembled",
                        step_name=step.text,
                    )
