"""Partial session records, one model per data source.

Each reader produces a mapping of session id to one of these.  They are
frozen: the reconciler only reads them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from insightful.counts import as_int

NO_PROMPT_PLACEHOLDER = "No prompt"


class HistoryRecord(BaseModel):
    """Per-session accumulation of the append-only prompt history log."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    project_path: str | None = None
    prompts: list[str] = Field(default_factory=list)
    prompt_count: int = 0
    first_timestamp_ms: int | None = None
    last_timestamp_ms: int | None = None


class IndexRecord(BaseModel):
    """One entry of a project's sessions-index.json."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    project_path: str | None = None
    project_dir: str | None = None
    created: str | None = None
    modified: str | None = None
    message_count: int = 0
    first_prompt: str | None = None
    git_branch: str | None = None
    summary: str | None = None


class TranscriptRecord(BaseModel):
    """Summary of one full session transcript scan."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    path: str = ""
    project_path: str | None = None
    first_timestamp: str | None = None
    last_timestamp: str | None = None
    duration_minutes: int | None = None
    user_message_count: int = 0
    assistant_message_count: int = 0
    first_prompt: str | None = None
    tools_used: dict[str, int] = Field(default_factory=dict)
    models: list[str] = Field(default_factory=list)
    total_output_tokens: int = 0
    total_input_tokens: int = 0
    git_commits: int = 0
    version: str | None = None
    git_branch: str | None = None
    permission_mode: str | None = None
    slug: str | None = None

    @property
    def is_empty(self) -> bool:
        """True when the file held no user or assistant turns."""
        return self.user_message_count == 0 and self.assistant_message_count == 0


class FacetRecord(BaseModel):
    """A qualitative annotation for one session, kept as its raw mapping."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    data: dict[str, Any] = Field(default_factory=dict)


class StatsRecord(BaseModel):
    """Aggregate totals from stats-cache.json.

    ``payload`` keeps the mapping exactly as it appeared on disk so the
    report can echo it unchanged.
    """

    model_config = ConfigDict(frozen=True)

    total_sessions: int = 0
    total_messages: int = 0
    first_session_date: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> StatsRecord:
        """Build from the raw mapping, treating wrongly-typed totals as zero."""
        first_date = data.get("firstSessionDate")
        return cls(
            total_sessions=as_int(data.get("totalSessions")),
            total_messages=as_int(data.get("totalMessages")),
            first_session_date=first_date if isinstance(first_date, str) and first_date else None,
            payload=data,
        )
