"""Declaration source loading.

The parsing collaborator hands over declarations as JSON:
    - a single file holding a list of declaration objects, or an object with a
      ``declarations`` list
    - a directory searched recursively for ``*.json`` files of that shape

Directory files are read in parallel. Each worker returns its own batch and
nothing shared is touched until the batches are merged in sorted path order,
so the result never depends on completion order.

Usage:
    batches, warnings = load_declarations(Path("build/declarations"))
"""

from __future__ import annotations

import json
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from ..exceptions import FatalExtractionError, PartialParseWarning, WarningCode
from ..logging_config import get_logger

logger = get_logger(__name__)

# Default worker count: use CPU count, capped at 8 to avoid overwhelming I/O
_DEFAULT_WORKERS = min(os.cpu_count() or 4, 8)


@dataclass(frozen=True)
class DeclarationBatch:
    """Raw declaration objects read from one source file."""

    source: str
    items: tuple[Any, ...] = field(default_factory=tuple)


class _SourceError(Exception):
    """A single source file could not be read or decoded."""


def load_declarations(
    path: Path, max_workers: Optional[int] = None
) -> tuple[list[DeclarationBatch], list[PartialParseWarning]]:
    """Read every declaration batch under ``path``.

    Args:
        path: A JSON declaration file or a directory of them
        max_workers: Parallel readers for directory sources

    Returns:
        (batches sorted by source path, source-level warnings)

    Raises:
        FatalExtractionError: If the source as a whole is unreadable
    """
    if not path.exists():
        raise FatalExtractionError(path, "path does not exist")

    if path.is_file():
        try:
            return [_read_batch(path, path.parent)], []
        except _SourceError as e:
            raise FatalExtractionError(path, str(e))

    if not path.is_dir():
        raise FatalExtractionError(path, "not a regular file or directory")

    files = sorted(p for p in path.rglob("*.json") if p.is_file())
    if not files:
        raise FatalExtractionError(path, "no *.json declaration files found")

    workers = max_workers or _DEFAULT_WORKERS
    with ThreadPoolExecutor(max_workers=workers) as executor:
        outcomes = list(executor.map(lambda fp: _read_outcome(fp, path), files))

    batches: list[DeclarationBatch] = []
    warnings: list[PartialParseWarning] = []
    for outcome in outcomes:
        if isinstance(outcome, DeclarationBatch):
            batches.append(outcome)
        else:
            warnings.append(outcome)
            logger.warning(f"Skipping {outcome.source}: {outcome.reason}")

    if not batches:
        raise FatalExtractionError(path, f"none of {len(files)} declaration files could be read")

    logger.debug(f"Read {len(batches)} declaration file(s) from {path}")
    return batches, warnings


def batch_from_items(items: list[Any], source: str = "<memory>") -> DeclarationBatch:
    """Wrap in-memory declarations (library callers) as a batch."""
    return DeclarationBatch(source=source, items=tuple(items))


def _read_outcome(file_path: Path, root: Path) -> Union[DeclarationBatch, PartialParseWarning]:
    try:
        return _read_batch(file_path, root)
    except _SourceError as e:
        return PartialParseWarning(
            code=WarningCode.UNREADABLE_FILE,
            source=_relative(file_path, root),
            reason=str(e),
        )


def _read_batch(file_path: Path, root: Path) -> DeclarationBatch:
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise _SourceError(f"cannot read file: {e}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise _SourceError(f"invalid JSON: {e}")

    if isinstance(data, dict):
        data = data.get("declarations")
    if not isinstance(data, list):
        raise _SourceError("expected a list of declarations or an object with a 'declarations' list")

    return DeclarationBatch(source=_relative(file_path, root), items=tuple(data))


def _relative(file_path: Path, root: Path) -> str:
    try:
        return file_path.relative_to(root).as_posix()
    except ValueError:
        return file_path.as_posix()
