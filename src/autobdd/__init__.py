"""
autobdd - BDD test artifact generation with self-healing selectors.

Turns plain-language test instructions and a live DOM into Gherkin features,
pytest-bdd step definitions and page objects, then keeps those page objects
usable as the DOM drifts through bounded runtime selector healing.
"""

__version__ = "1.0.0"
__author__ = "Olib AI"

from autobdd.builder.pipeline import GenerationPipeline, GenerationResult
from autobdd.config import AutoBDDConfig
from autobdd.dsl.parser import InstructionParser
from autobdd.errors import (
    ActionError,
    AutoBDDError,
    GenerationError,
    InstructionError,
    NoActivePageError,
    SelectorResolutionError,
    TransportError,
    UnknownPageError,
)
from autobdd.models import ElementRole, ElementSpec, PageInfo, PageObject, PageRegistry
from autobdd.runtime.context import PageContextManager
from autobdd.runtime.resolver import SelectorResolver

__all__ = [
    "ActionError",
    "AutoBDDConfig",
    "AutoBDDError",
    "ElementRole",
    "ElementSpec",
    "GenerationError",
    "GenerationPipeline",
    "GenerationResult",
    "InstructionError",
    "InstructionParser",
    "NoActivePageError",
    "PageContextManager",
    "PageInfo",
    "PageObject",
    "PageRegistry",
    "SelectorResolutionError",
    "SelectorResolver",
    "TransportError",
    "UnknownPageError",
]
