"""
Generation-time components: classification, extraction, assembly and emission.
"""

from autobdd.builder.assembler import PageObjectAssembler, validate_registry
from autobdd.builder.classifier import DEFAULT_TAXONOMY, ClassificationResult, PageClassifier, PageRule
from autobdd.builder.emitter import ArtifactEmitter, step_pattern
from autobdd.builder.extractor import ElementExtractor, guess_role_from_name
from autobdd.builder.pipeline import GenerationPipeline, GenerationResult, page_info_from
from autobdd.builder.writer import ArtifactWriter

__all__ = [
    "DEFAULT_TAXONOMY",
    "ArtifactEmitter",
    "ArtifactWriter",
    "ClassificationResult",
    "ElementExtractor",
    "GenerationPipeline",
    "GenerationResult",
    "PageClassifier",
    "PageObjectAssembler",
    "PageRule",
    "guess_role_from_name",
    "page_info_from",
    "step_pattern",
    "validate_registry",
]
