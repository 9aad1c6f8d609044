"""Line-streaming primitives shared by the source readers.

``iter_json_lines`` is a lazy, single-pass sequence over a JSONL file.  A
malformed line does not end the sequence: it yields a :class:`Skip` so the
caller can record it and move on.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from insightful.errors import PipelineReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Skip:
    """Signal for a line that could not be decoded into a JSON object."""

    line_number: int
    reason: str


def iter_json_lines(path: Path) -> Iterator[tuple[int, dict[str, Any] | Skip]]:
    """Yield ``(line_number, dict or Skip)`` for each non-blank line of ``path``.

    Line numbers are physical, 1-based, and count blank lines.

    Lines that are not valid JSON, or decode to something other than an
    object, yield ``Skip``.  An unreadable file raises ``OSError`` from the
    first ``next()``; callers decide whether that is fatal.
    """
    with path.open("r", encoding="utf-8", errors="replace") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as exc:
                yield line_number, Skip(line_number, f"invalid JSON: {exc.msg}")
                continue
            if not isinstance(data, dict):
                yield line_number, Skip(line_number, f"expected object, got {type(data).__name__}")
                continue
            yield line_number, data


def read_json_file(
    path: Path,
    *,
    stage: str,
    report: PipelineReport | None = None,
) -> dict[str, Any] | None:
    """Load a single JSON object file.

    Returns None when the file is missing, unreadable, not JSON or not an
    object.  Everything except a missing file is recorded on ``report``.
    """
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.debug("Skipping unreadable %s: %s", path, exc)
        if report is not None:
            report.add_warning(stage, str(exc), source=str(path), error_type="malformed_file")
        return None
    if not isinstance(data, dict):
        if report is not None:
            report.add_warning(
                stage,
                f"expected object, got {type(data).__name__}",
                source=str(path),
                error_type="malformed_file",
            )
        return None
    return data


def record_skip(report: PipelineReport | None, stage: str, path: Path, skip: Skip) -> None:
    """Log and record one skipped line."""
    logger.debug("%s:%d skipped (%s)", path, skip.line_number, skip.reason)
    if report is not None:
        report.add_warning(
            stage,
            f"line {skip.line_number}: {skip.reason}",
            source=str(path),
            error_type="malformed_line",
        )


def clip(text: object, limit: int) -> str | None:
    """Return the first ``limit`` characters of a non-empty string, else None."""
    if not isinstance(text, str) or not text:
        return None
    return text[:limit]


def first_string(*values: object) -> str | None:
    """The first argument that is a non-empty string."""
    for value in values:
        if isinstance(value, str) and value:
            return value
    return None
