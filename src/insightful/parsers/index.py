"""Reader for per-project sessions-index.json files."""

from __future__ import annotations

import logging
from pathlib import Path

from insightful.counts import as_int
from insightful.errors import PipelineReport
from insightful.parsers.base import first_string, read_json_file
from insightful.parsers.models import NO_PROMPT_PLACEHOLDER, IndexRecord
from insightful.timestamps import normalize_timestamp

logger = logging.getLogger(__name__)

STAGE = "index"
INDEX_FILENAME = "sessions-index.json"


def list_project_dirs(projects_dir: Path) -> list[Path]:
    """Sorted project directories under ``projects_dir`` (empty if absent)."""
    if not projects_dir.is_dir():
        return []
    try:
        return sorted(p for p in projects_dir.iterdir() if p.is_dir())
    except OSError as exc:
        logger.warning("Cannot list %s: %s", projects_dir, exc)
        return []


def _parse_entry(entry: dict, project_dir: str) -> IndexRecord | None:
    session_id = entry.get("sessionId")
    if not isinstance(session_id, str) or not session_id:
        return None
    first_prompt = first_string(entry.get("firstPrompt"))
    if first_prompt == NO_PROMPT_PLACEHOLDER:
        first_prompt = None
    return IndexRecord(
        session_id=session_id,
        project_path=first_string(entry.get("projectPath")),
        project_dir=project_dir,
        created=normalize_timestamp(entry.get("created")),
        modified=normalize_timestamp(entry.get("modified")),
        message_count=max(as_int(entry.get("messageCount")), 0),
        first_prompt=first_prompt,
        git_branch=first_string(entry.get("gitBranch")),
        summary=first_string(entry.get("summary")),
    )


def read_index(
    projects_dir: Path,
    *,
    report: PipelineReport | None = None,
) -> dict[str, IndexRecord]:
    """Collect every sessions-index.json entry under ``projects_dir``.

    Directories are visited in name order; a session listed twice keeps the
    last entry seen.  Entries without a ``sessionId`` are skipped.
    """
    sessions: dict[str, IndexRecord] = {}
    for project_dir in list_project_dirs(projects_dir):
        index_path = project_dir / INDEX_FILENAME
        data = read_json_file(index_path, stage=STAGE, report=report)
        if data is None:
            continue
        entries = data.get("entries")
        if not isinstance(entries, list):
            continue
        for position, entry in enumerate(entries):
            record = _parse_entry(entry, project_dir.name) if isinstance(entry, dict) else None
            if record is None:
                if report is not None:
                    report.add_warning(
                        STAGE,
                        f"entry {position}: missing sessionId",
                        source=str(index_path),
                        error_type="malformed_line",
                    )
                continue
            sessions[record.session_id] = record

    logger.info("Indexed sessions: %d", len(sessions))
    return sessions
