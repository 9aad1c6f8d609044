"""Reader for the append-only prompt history log (history.jsonl)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from insightful.errors import PipelineReport
from insightful.parsers.base import Skip, clip, iter_json_lines, record_skip
from insightful.parsers.models import HistoryRecord

logger = logging.getLogger(__name__)

STAGE = "history"


@dataclass
class _HistoryAccumulator:
    session_id: str
    project_path: str | None = None
    prompts: list[str] = field(default_factory=list)
    prompt_count: int = 0
    first_ms: int | None = None
    last_ms: int | None = None

    def add(self, entry: dict, *, prompt_limit: int, prompt_chars: int) -> None:
        ts = entry.get("timestamp")
        if isinstance(ts, (int, float)) and not isinstance(ts, bool) and ts:
            ts = int(ts)
            if self.first_ms is None or ts < self.first_ms:
                self.first_ms = ts
            if self.last_ms is None or ts > self.last_ms:
                self.last_ms = ts
        self.prompt_count += 1

        excerpt = clip(entry.get("display"), prompt_chars)
        if excerpt and len(self.prompts) < prompt_limit:
            self.prompts.append(excerpt)

        project = entry.get("project")
        if not self.project_path and isinstance(project, str) and project:
            self.project_path = project

    def freeze(self) -> HistoryRecord:
        return HistoryRecord(
            session_id=self.session_id,
            project_path=self.project_path,
            prompts=list(self.prompts),
            prompt_count=self.prompt_count,
            first_timestamp_ms=self.first_ms,
            last_timestamp_ms=self.last_ms,
        )


def read_history(
    path: Path,
    *,
    prompt_limit: int = 3,
    prompt_chars: int = 200,
    report: PipelineReport | None = None,
) -> dict[str, HistoryRecord]:
    """Fold history.jsonl into one record per session id.

    Every line counts as one prompt.  Only the first ``prompt_limit``
    non-empty prompts are retained, each clipped to ``prompt_chars``.

    Args:
        path: Location of history.jsonl.
        prompt_limit: Maximum number of prompt excerpts kept per session.
        prompt_chars: Maximum length of each excerpt.
        report: Optional run report for skipped lines.

    Returns:
        Mapping of session id to HistoryRecord; empty if the file is absent.
    """
    if not path.is_file():
        logger.warning("history.jsonl not found at %s; session discovery will be limited", path)
        return {}

    sessions: dict[str, _HistoryAccumulator] = {}
    lines = 0
    try:
        for line_number, entry in iter_json_lines(path):
            lines += 1
            if isinstance(entry, Skip):
                record_skip(report, STAGE, path, entry)
                continue
            session_id = entry.get("sessionId")
            if not isinstance(session_id, str) or not session_id:
                record_skip(report, STAGE, path, Skip(line_number, "missing sessionId"))
                continue
            acc = sessions.get(session_id)
            if acc is None:
                acc = sessions[session_id] = _HistoryAccumulator(session_id)
            acc.add(entry, prompt_limit=prompt_limit, prompt_chars=prompt_chars)
    except OSError as exc:
        logger.warning("Error reading %s: %s", path, exc)
        if report is not None:
            report.add_error(STAGE, str(exc), source=str(path), error_type="read_error")

    logger.info("history.jsonl: %d lines, %d sessions", lines, len(sessions))
    return {sid: acc.freeze() for sid, acc in sessions.items()}
