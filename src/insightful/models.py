"""Unified session model produced by reconciliation."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SourceKind(str, Enum):
    """Which partial record supplied a session's primary skeleton."""

    TRANSCRIPT = "transcript"
    INDEX = "index"
    HISTORY = "history"
    FACET_ONLY = "facet-only"


class UnifiedSession(BaseModel):
    """One reconciled session.

    Every field either comes from exactly one source or is null.  ``source``
    names the source of the skeleton; back-filled fields do not change it.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    source: SourceKind
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
    index_summary: str | None = None
    history_prompts: list[str] | None = None
    history_prompt_count: int | None = None
    has_facet: bool = False
    facet: dict[str, Any] | None = None

    @property
    def message_count(self) -> int:
        return self.user_message_count + self.assistant_message_count

    @property
    def prompt_count(self) -> int:
        """History-reported prompts when known, else user messages."""
        return self.history_prompt_count or self.user_message_count
