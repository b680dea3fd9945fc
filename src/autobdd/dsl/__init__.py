"""Instruction-set models and loader."""

from autobdd.dsl.models import (
    ElementDeclaration,
    InstructionSet,
    PageDeclaration,
    ScenarioDeclaration,
    StepDeclaration,
)
from autobdd.dsl.parser import InstructionParser

__all__ = [
    "ElementDeclaration",
    "InstructionParser",
    "InstructionSet",
    "PageDeclaration",
    "ScenarioDeclaration",
    "StepDeclaration",
]
