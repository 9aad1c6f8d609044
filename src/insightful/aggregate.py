"""Per-project and global rollups over reconciled sessions.

Every counter on :class:`ProjectAggregate` is a computed field over its
session list, so it cannot drift from the sessions it summarizes and
repeated evaluation always gives the same numbers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from insightful.counts import sum_counts
from insightful.models import SourceKind, UnifiedSession
from insightful.parsers.models import StatsRecord
from insightful.timestamps import parse_timestamp

logger = logging.getLogger(__name__)

# Sessions at or beyond a day are idle/long-lived and excluded from hours.
MAX_SESSION_MINUTES = 1440


def countable_minutes(duration_minutes: int | None) -> int:
    """Duration contributed to hour totals: 0 for missing or outlier values."""
    if duration_minutes is None or duration_minutes <= 0 or duration_minutes >= MAX_SESSION_MINUTES:
        return 0
    return duration_minutes


def minutes_to_hours(minutes: int | float) -> float:
    """Convert to hours rounded half up to one decimal place."""
    hours = Decimal(str(minutes)) / Decimal(60)
    return float(hours.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class ProjectAggregate(BaseModel):
    """Sessions for one project label, oldest first, with derived totals."""

    model_config = ConfigDict(frozen=True)

    name: str
    full_path: str = ""
    sessions: list[UnifiedSession] = Field(default_factory=list)

    @computed_field
    @property
    def session_count(self) -> int:
        return len(self.sessions)

    @computed_field
    @property
    def first_session(self) -> str | None:
        return self.sessions[0].first_timestamp if self.sessions else None

    @computed_field
    @property
    def last_session(self) -> str | None:
        return self.sessions[-1].last_timestamp if self.sessions else None

    @computed_field
    @property
    def total_messages(self) -> int:
        return sum(s.message_count for s in self.sessions)

    @computed_field
    @property
    def total_output_tokens(self) -> int:
        return sum(s.total_output_tokens for s in self.sessions)

    @computed_field
    @property
    def total_prompts(self) -> int:
        return sum(s.prompt_count for s in self.sessions)

    @computed_field
    @property
    def total_git_commits(self) -> int:
        return sum(s.git_commits for s in self.sessions)

    @computed_field
    @property
    def total_duration_minutes(self) -> int:
        return sum(countable_minutes(s.duration_minutes) for s in self.sessions)

    @computed_field
    @property
    def total_hours(self) -> float:
        return minutes_to_hours(self.total_duration_minutes)

    @computed_field
    @property
    def tool_totals(self) -> dict[str, int | float]:
        return sum_counts(s.tools_used for s in self.sessions)


class GlobalAggregate(BaseModel):
    """Totals across every project plus the stats-cache comparison."""

    model_config = ConfigDict(frozen=True)

    total_sessions: int = 0
    total_projects: int = 0
    total_git_commits: int = 0
    total_duration_minutes: int = 0
    total_hours: float = 0.0
    total_prompts: int = 0
    tool_totals: dict[str, int | float] = Field(default_factory=dict)
    transcript_sessions: int = 0
    transcript_messages: int = 0
    pre_tracking_sessions: int = 0
    pre_tracking_prompts: int = 0
    tracked_period_start: str | None = None
    tracked_sessions: int = 0
    tracked_messages: int = 0
    sessions_with_facets: int = 0
    sessions_without_facets: int = 0


def aggregate_global(
    projects: Mapping[str, ProjectAggregate] | Iterable[ProjectAggregate],
    stats: StatsRecord | None = None,
) -> GlobalAggregate:
    """Fold all project aggregates into the global totals.

    Args:
        projects: Project aggregates, as the grouper's mapping or any iterable.
        stats: The stats cache; without it pre-tracking figures stay zero.

    Returns:
        The GlobalAggregate.
    """
    project_list = list(projects.values()) if isinstance(projects, Mapping) else list(projects)
    sessions = [s for p in project_list for s in p.sessions]

    cutoff = parse_timestamp(stats.first_session_date) if stats is not None else None
    if stats is not None and stats.first_session_date and cutoff is None:
        logger.warning("Unparseable firstSessionDate %r; pre-tracking counts omitted",
                       stats.first_session_date)

    transcript_sessions = 0
    transcript_messages = 0
    pre_sessions = 0
    pre_prompts = 0
    for session in sessions:
        if session.source is SourceKind.TRANSCRIPT:
            transcript_sessions += 1
            transcript_messages += session.message_count
        if cutoff is not None and session.first_timestamp:
            started = parse_timestamp(session.first_timestamp)
            if started is not None and started < cutoff:
                pre_sessions += 1
                pre_prompts += session.prompt_count

    total_minutes = sum(p.total_duration_minutes for p in project_list)
    with_facets = sum(1 for s in sessions if s.has_facet)

    return GlobalAggregate(
        total_sessions=len(sessions),
        total_projects=len(project_list),
        total_git_commits=sum(p.total_git_commits for p in project_list),
        total_duration_minutes=total_minutes,
        total_hours=minutes_to_hours(total_minutes),
        total_prompts=sum(s.prompt_count for s in sessions),
        tool_totals=sum_counts(p.tool_totals for p in project_list),
        transcript_sessions=transcript_sessions,
        transcript_messages=transcript_messages,
        pre_tracking_sessions=pre_sessions,
        pre_tracking_prompts=pre_prompts,
        tracked_period_start=stats.first_session_date if stats is not None else None,
        tracked_sessions=stats.total_sessions if stats is not None else 0,
        tracked_messages=stats.total_messages if stats is not None else 0,
        sessions_with_facets=with_facets,
        sessions_without_facets=len(sessions) - with_facets,
    )
