"""
Artifact writer.

Artifacts are staged in a temporary directory next to the output directory and
only moved into place once every file has been written, so a failed run never
leaves a partial artifact set behind.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path, PurePosixPath

import structlog

from autobdd.errors import GenerationError

logger = structlog.get_logger(__name__)


class ArtifactWriter:
    """Writes a rendered artifact set to disk."""

    def __init__(self, output_dir: str | Path, overwrite: bool = False) -> None:
        self._output_dir = Path(output_dir)
        self._overwrite = overwrite
        self._log = logger.bind(component="artifact_writer")

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def write(self, artifacts: Mapping[str, str]) -> list[Path]:
        """
        Write every artifact under the output directory.

        Args:
            artifacts: Relative POSIX path to file content

        Returns:
            Absolute paths written, in artifact order

        Raises:
            GenerationError: On an unsafe path, an existing file without
                overwrite, or an I/O failure
        """
        relative = [self._safe_relative(name) for name in artifacts]
        targets = [self._output_dir / rel for rel in relative]

        if not self._overwrite:
            existing = [str(t) for t in targets if t.exists()]
            if existing:
                raise GenerationError(f"Refusing to overwrite existing artifacts: {', '.join(existing)}")

        try:
            self._output_dir.parent.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=".autobdd-", dir=self._output_dir.parent))
        except OSError as e:
            raise GenerationError(f"Cannot prepare output directory {self._output_dir}: {e}") from e

        try:
            for rel, content in zip(relative, artifacts.values()):
                staged = staging / rel
                staged.parent.mkdir(parents=True, exist_ok=True)
                staged.write_text(content, encoding="utf-8")

            for rel, target in zip(relative, targets):
                target.parent.mkdir(parents=True, exist_ok=True)
                os.replace(staging / rel, target)
        except OSError as e:
            raise GenerationError(f"Failed to write artifacts to {self._output_dir}: {e}") from e
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        written = [t.resolve() for t in targets]
        self._log.info("Artifacts written", output_dir=str(self._output_dir), files=len(written))
        return written

    @staticmethod
    def _safe_relative(name: str) -> Path:
        path = PurePosixPath(name)
        if not name or path.is_absolute() or ".." in path.parts:
            raise GenerationError(f"Artifact path escapes the output directory: {name!r}")
        return Path(*path.parts)
