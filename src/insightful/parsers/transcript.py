"""Reader for full per-session transcripts (projects/<dir>/<session>.jsonl).

Each transcript is scanned in a single forward pass into a
:class:`TranscriptRecord`.  Transcripts share no state, so
:func:`read_transcripts` fans the scans out to a bounded thread pool and
merges finished records in the calling thread.
"""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path
from typing import Any

from insightful.counts import as_int
from insightful.errors import PipelineReport
from insightful.parsers.base import Skip, first_string, iter_json_lines, record_skip
from insightful.parsers.index import list_project_dirs
from insightful.parsers.models import TranscriptRecord
from insightful.timestamps import format_timestamp, minutes_between, parse_timestamp

logger = logging.getLogger(__name__)

STAGE = "transcript"
IGNORED_ENTRY_TYPES = frozenset({"file-history-snapshot"})
SHELL_TOOL_NAMES = frozenset({"bash"})

GIT_COMMIT_RE = re.compile(r"git\s+commit\b", re.IGNORECASE)
AMEND_RE = re.compile(r"--amend", re.IGNORECASE)


def is_git_commit(command: object) -> bool:
    """True for a ``git commit`` invocation that is not an ``--amend``."""
    if not isinstance(command, str):
        return False
    return bool(GIT_COMMIT_RE.search(command)) and not AMEND_RE.search(command)


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False, separators=(",", ":"))


class _TranscriptScan:
    """Mutable state for one transcript pass."""

    def __init__(self, session_id: str, path: Path, prompt_chars: int) -> None:
        self.session_id = session_id
        self.path = path
        self.prompt_chars = prompt_chars
        self.first_ts: datetime | None = None
        self.last_ts: datetime | None = None
        self.user_count = 0
        self.assistant_count = 0
        self.first_prompt: str | None = None
        self.tools: Counter[str] = Counter()
        self.models: list[str] = []
        self.output_tokens = 0
        self.input_tokens = 0
        self.git_commits = 0
        self.cwd: str | None = None
        self.meta: dict[str, str | None] = {
            "version": None,
            "gitBranch": None,
            "permissionMode": None,
            "slug": None,
        }

    def feed(self, entry: dict[str, Any]) -> None:
        entry_type = entry.get("type")
        if entry_type in IGNORED_ENTRY_TYPES:
            return

        ts = parse_timestamp(entry.get("timestamp"))
        if ts is not None:
            if self.first_ts is None or ts < self.first_ts:
                self.first_ts = ts
            if self.last_ts is None or ts > self.last_ts:
                self.last_ts = ts

        if self.cwd is None:
            self.cwd = first_string(entry.get("cwd"))

        if entry_type == "user":
            self._feed_user(entry)
        elif entry_type == "assistant":
            self._feed_assistant(entry)

    def _feed_user(self, entry: dict[str, Any]) -> None:
        self.user_count += 1
        message = entry.get("message")
        if self.first_prompt is None and isinstance(message, dict) and message.get("content"):
            self.first_prompt = _content_text(message["content"])[: self.prompt_chars]
        for key, current in self.meta.items():
            if current is None:
                self.meta[key] = first_string(entry.get(key))

    def _feed_assistant(self, entry: dict[str, Any]) -> None:
        self.assistant_count += 1
        message = entry.get("message")
        if not isinstance(message, dict):
            return

        model = first_string(message.get("model"))
        if model and model not in self.models:
            self.models.append(model)

        usage = message.get("usage")
        if isinstance(usage, dict):
            self.output_tokens += as_int(usage.get("output_tokens"))
            self.input_tokens += as_int(usage.get("input_tokens"))

        content = message.get("content")
        if not isinstance(content, list):
            return
        for block in content:
            if not isinstance(block, dict) or block.get("type") != "tool_use":
                continue
            name = first_string(block.get("name"))
            if not name:
                continue
            self.tools[name] += 1
            if name.lower() in SHELL_TOOL_NAMES:
                tool_input = block.get("input")
                if isinstance(tool_input, dict):
                    command = first_string(tool_input.get("command"), tool_input.get("cmd"))
                    if is_git_commit(command):
                        self.git_commits += 1

    def freeze(self) -> TranscriptRecord:
        return TranscriptRecord(
            session_id=self.session_id,
            path=str(self.path),
            project_path=self.cwd,
            first_timestamp=format_timestamp(self.first_ts) if self.first_ts else None,
            last_timestamp=format_timestamp(self.last_ts) if self.last_ts else None,
            duration_minutes=minutes_between(self.first_ts, self.last_ts),
            user_message_count=self.user_count,
            assistant_message_count=self.assistant_count,
            first_prompt=self.first_prompt,
            tools_used=dict(self.tools),
            models=list(self.models),
            total_output_tokens=self.output_tokens,
            total_input_tokens=self.input_tokens,
            git_commits=self.git_commits,
            version=self.meta["version"],
            git_branch=self.meta["gitBranch"],
            permission_mode=self.meta["permissionMode"],
            slug=self.meta["slug"],
        )


def scan_transcript(
    path: Path,
    session_id: str | None = None,
    *,
    prompt_chars: int = 300,
    report: PipelineReport | None = None,
) -> TranscriptRecord:
    """Scan one transcript file into a TranscriptRecord.

    Malformed lines are skipped.  If the file becomes unreadable part way
    through, the record holds whatever was counted up to that point.

    Args:
        path: Transcript JSONL file.
        session_id: Session id; defaults to the file stem.
        prompt_chars: Maximum length of the retained first prompt.
        report: Optional run report for skipped lines.
    """
    scan = _TranscriptScan(session_id or path.stem, path, prompt_chars)
    try:
        for _, entry in iter_json_lines(path):
            if isinstance(entry, Skip):
                record_skip(report, STAGE, path, entry)
                continue
            scan.feed(entry)
    except OSError as exc:
        logger.warning("Error reading transcript %s: %s", path, exc)
        if report is not None:
            report.add_error(STAGE, str(exc), source=str(path), error_type="read_error")
    return scan.freeze()


def discover_transcripts(projects_dir: Path) -> dict[str, Path]:
    """Map session id (file stem) to transcript path for every project dir.

    A session id found in more than one project directory keeps the path
    from the directory that sorts last.
    """
    found: dict[str, Path] = {}
    for project_dir in list_project_dirs(projects_dir):
        try:
            files = sorted(project_dir.glob("*.jsonl"))
        except OSError as exc:
            logger.warning("Cannot list %s: %s", project_dir, exc)
            continue
        for file in files:
            if file.is_file():
                found[file.stem] = file
    return found


def read_transcripts(
    projects_dir: Path,
    *,
    max_workers: int = 8,
    prompt_chars: int = 300,
    report: PipelineReport | None = None,
) -> dict[str, TranscriptRecord]:
    """Scan every transcript under ``projects_dir`` concurrently.

    Args:
        projects_dir: The projects directory holding one folder per project.
        max_workers: Upper bound on concurrent transcript scans.
        prompt_chars: Maximum length of each retained first prompt.
        report: Optional run report.

    Returns:
        Mapping of session id to TranscriptRecord, including empty ones.
    """
    paths = discover_transcripts(projects_dir)
    logger.info("Transcript files found: %d", len(paths))
    if not paths:
        return {}

    records: dict[str, TranscriptRecord] = {}
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        futures = {
            executor.submit(
                scan_transcript, path, session_id, prompt_chars=prompt_chars, report=report
            ): session_id
            for session_id, path in paths.items()
        }
        for done, future in enumerate(as_completed(futures), start=1):
            session_id = futures[future]
            records[session_id] = future.result()
            if done % 50 == 0:
                logger.debug("Scanned %d/%d transcripts", done, len(paths))

    return {sid: records[sid] for sid in sorted(records)}
