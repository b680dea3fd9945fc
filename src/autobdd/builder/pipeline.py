"""
Generation pipeline.

Runs one generation end to end:

    InstructionSet -> PageClassifier -> (DomFetcher) -> ElementExtractor
        -> PageObjectAssembler -> validate_registry -> ArtifactEmitter
        -> (ArtifactWriter)

Any failure aborts the run before artifacts are written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urljoin

import structlog

from autobdd.builder.assembler import PageObjectAssembler, validate_registry
from autobdd.builder.classifier import ClassificationResult, PageClassifier
from autobdd.builder.emitter import ArtifactEmitter
from autobdd.builder.extractor import ElementExtractor, guess_role_from_name
from autobdd.builder.writer import ArtifactWriter
from autobdd.config import AutoBDDConfig
from autobdd.dom.analyzer import DomAnalyzer
from autobdd.dom.fetcher import DomFetcher
from autobdd.dsl.models import InstructionSet, PageDeclaration
from autobdd.errors import InstructionError
from autobdd.llm.client import ScenarioGenerator
from autobdd.models import ElementSpec, PageInfo, PageRegistry, Provenance
from autobdd.utils import to_identifier

logger = structlog.get_logger(__name__)


def page_info_from(declaration: PageDeclaration, analyzer: DomAnalyzer) -> PageInfo:
    """
    Convert a page declaration into a PageInfo.

    Explicit elements keep their declared selectors; an element declared by
    name only gets a guessed role and the analyzer's fallback selectors.

    Raises:
        InstructionError: If the page declares the same element twice
    """
    elements: tuple[ElementSpec, ...] | None = None
    declared = declaration.element_declarations()
    if declared is not None:
        specs: list[ElementSpec] = []
        seen: set[str] = set()
        for entry in declared:
            name = to_identifier(entry.name)
            if name in seen:
                raise InstructionError(f"Page {declaration.name!r} declares element {name!r} twice")
            seen.add(name)
            role = entry.role or guess_role_from_name(name)
            specs.append(
                ElementSpec(
                    name=name,
                    role=role,
                    selectors=tuple(entry.selectors) or analyzer.fallback_selectors(name, role),
                    provenance=Provenance.EXPLICIT,
                    description=entry.description,
                )
            )
        elements = tuple(specs)

    return PageInfo(
        name=declaration.name,
        keywords=tuple(k.strip() for k in declaration.keywords if k.strip()),
        url=declaration.url,
        description=declaration.description,
        elements=elements,
    )


def render_instructions(instructions: InstructionSet) -> str:
    """Plain-text form of an instruction set, used as generator input."""
    lines = [f"Project: {instructions.project}", f"URL: {instructions.url}"]
    if instructions.description:
        lines.append(instructions.description)
    for case in instructions.test_cases:
        lines.append("")
        lines.append(f"Test case: {case.name}")
        lines.extend(f"- {step.text}" for step in case.to_steps())
    return "\n".join(lines)


@dataclass
class GenerationResult:
    """Everything one generation run produced."""

    instructions: InstructionSet
    classification: ClassificationResult
    registry: PageRegistry
    artifacts: dict[str, str]
    written: list[Path] = field(default_factory=list)


class GenerationPipeline:
    """Owns one generation run from instructions to artifacts."""

    def __init__(
        self,
        config: AutoBDDConfig | None = None,
        fetcher: DomFetcher | None = None,
        generator: ScenarioGenerator | None = None,
        analyzer: DomAnalyzer | None = None,
        classifier: PageClassifier | None = None,
    ) -> None:
        self._config = config or AutoBDDConfig()
        self._fetcher = fetcher
        self._generator = generator
        self._analyzer = analyzer or DomAnalyzer()
        self._classifier = classifier or PageClassifier()
        self._extractor = ElementExtractor(self._analyzer)
        self._assembler = PageObjectAssembler(self._extractor)
        self._emitter = ArtifactEmitter(self._extractor)
        self._log = logger.bind(component="generation_pipeline")

    def classify(self, instructions: InstructionSet) -> ClassificationResult:
        pages = [page_info_from(declaration, self._analyzer) for declaration in instructions.pages]
        return self._classifier.classify(instructions.all_steps(), pages)

    def build_registry(
        self,
        instructions: InstructionSet,
        snapshots: dict[str, str] | None = None,
    ) -> tuple[ClassificationResult, PageRegistry]:
        """Classify, assemble and validate without touching the network."""
        classification = self.classify(instructions)
        registry = self._assembler.assemble(classification, snapshots)
        validate_registry(registry, classification, self._extractor)
        return classification, registry

    async def collect_snapshots(
        self,
        instructions: InstructionSet,
        classification: ClassificationResult,
        use_cache: bool = True,
    ) -> dict[str, str]:
        """
        Fetch one DOM snapshot per inferred page that has steps.

        Pages without their own URL use the instruction set's base URL. Each
        distinct URL is fetched once.
        """
        if self._fetcher is None:
            return {}

        by_url: dict[str, str] = {}
        snapshots: dict[str, str] = {}
        for name, info in classification.pages.items():
            if info.is_explicit or not classification.steps_for(name):
                continue
            url = urljoin(instructions.url, info.url) if info.url else instructions.url
            if url not in by_url:
                by_url[url] = await self._fetcher.fetch(url, use_cache=use_cache)
            snapshots[name] = by_url[url]
        return snapshots

    async def run(
        self,
        instructions: InstructionSet,
        write: bool = False,
        use_cache: bool = True,
    ) -> GenerationResult:
        """
        Run the pipeline.

        Args:
            instructions: Validated instruction set
            write: Write artifacts to the configured output directory
            use_cache: Allow cached DOM snapshots

        Returns:
            GenerationResult

        Raises:
            InstructionError: If steps reference undeclared pages
            GenerationError: If a collaborator fails or the registry is inconsistent
        """
        self._log.info("Starting generation", project=instructions.project, url=instructions.url)

        classification = self.classify(instructions)
        snapshots = await self.collect_snapshots(instructions, classification, use_cache=use_cache)
        registry = self._assembler.assemble(classification, snapshots)
        validate_registry(registry, classification, self._extractor)

        generated_feature: str | None = None
        if self._generator is not None:
            base_snapshot = next(iter(snapshots.values()), "")
            generated_feature = await self._generator.generate(render_instructions(instructions), base_snapshot)

        artifacts = self._emitter.emit(instructions, classification, registry, generated_feature)
        result = GenerationResult(
            instructions=instructions,
            classification=classification,
            registry=registry,
            artifacts=artifacts,
        )

        if write:
            writer = ArtifactWriter(self._config.generation.output_dir, overwrite=self._config.generation.overwrite)
            result.written = writer.write(artifacts)

        self._log.info(
            "Generation complete",
            project=instructions.project,
            pages=registry.names,
            artifacts=len(artifacts),
            written=len(result.written),
        )
        return result
