"""
Loader for instruction-set documents.

Accepts JSON or YAML, from a file or a string, and validates the result
against ``InstructionSet``. Every failure is reported as ``InstructionError``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from autobdd.dsl.models import InstructionSet
from autobdd.errors import InstructionError

logger = structlog.get_logger(__name__)

YAML_SUFFIXES = frozenset({".yaml", ".yml"})


class InstructionParser:
    """Parses and validates instruction sets."""

    def __init__(self) -> None:
        self._log = logger.bind(component="instruction_parser")

    def parse_file(self, path: str | Path) -> InstructionSet:
        """
        Load an instruction set from disk.

        Args:
            path: Path to a ``.json``, ``.yaml`` or ``.yml`` file

        Returns:
            Validated InstructionSet

        Raises:
            InstructionError: If the file is missing, unreadable or invalid
        """
        path = Path(path)
        if not path.is_file():
            raise InstructionError(f"Instruction file not found: {path}")

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise InstructionError(f"Cannot read instruction file {path}: {e}") from e

        fmt = "yaml" if path.suffix.lower() in YAML_SUFFIXES else "json"
        instructions = self.parse_string(content, fmt=fmt)
        self._log.info(
            "Loaded instructions",
            path=str(path),
            project=instructions.project,
            test_cases=len(instructions.test_cases),
            pages=len(instructions.pages),
        )
        return instructions

    def parse_string(self, content: str, fmt: str = "json") -> InstructionSet:
        """Parse instruction-set text in ``json`` or ``yaml`` format."""
        try:
            if fmt == "yaml":
                data = yaml.safe_load(content)
            elif fmt == "json":
                data = json.loads(content)
            else:
                raise InstructionError(f"Unsupported instruction format: {fmt!r}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise InstructionError(f"Malformed {fmt} instruction document: {e}") from e

        return self.parse_dict(data)

    def parse_dict(self, data: Any) -> InstructionSet:
        """Validate an already-decoded document."""
        if not isinstance(data, dict):
            raise InstructionError("Instruction document must be a mapping at the top level")
        try:
            return InstructionSet.model_validate(data)
        except ValidationError as e:
            raise InstructionError(f"Invalid instruction document: {e}") from e
