"""Collection pipeline: read sources, reconcile, aggregate, write the report."""

from __future__ import annotations

import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from insightful.aggregate import GlobalAggregate, ProjectAggregate, aggregate_global
from insightful.config import InsightfulConfig
from insightful.errors import PipelineReport, ReportWriteError
from insightful.facet_summary import FacetTally, summarize_facets
from insightful.models import UnifiedSession
from insightful.parsers import (
    FacetRecord,
    HistoryRecord,
    IndexRecord,
    StatsRecord,
    TranscriptRecord,
    read_facets,
    read_history,
    read_index,
    read_stats,
    read_transcripts,
)
from insightful.projects import group_by_project
from insightful.reconcile import reconcile
from insightful.timestamps import format_timestamp

logger = logging.getLogger(__name__)


class SourceBundle(BaseModel):
    """Every source, fully read.  Built once per run, before reconciliation."""

    history: dict[str, HistoryRecord] = Field(default_factory=dict)
    index: dict[str, IndexRecord] = Field(default_factory=dict)
    transcripts: dict[str, TranscriptRecord] = Field(default_factory=dict)
    facets: dict[str, FacetRecord] = Field(default_factory=dict)
    stats: StatsRecord | None = None


class MessageAccounting(BaseModel):
    """Tracked, pre-tracking and transcript-verified counts, kept apart."""

    tracked_messages: int = 0
    tracked_sessions: int = 0
    tracked_period_start: str | None = None
    pre_tracking_sessions: int = 0
    pre_tracking_prompts: int = 0
    pre_tracking_messages_unavailable: bool = True
    transcript_verified_messages: int = 0
    transcript_verified_sessions: int = 0
    total_user_prompts: int = 0


class DataSources(BaseModel):
    """How many records each source contributed."""

    history_sessions: int = 0
    indexed_sessions: int = 0
    transcript_files: int = 0
    facet_files: int = 0
    has_stats_cache: bool = False
    skipped_lines: dict[str, int] = Field(default_factory=dict)


class InsightsReport(BaseModel):
    """The output document."""

    generated_at: str
    stats_cache: dict[str, Any] | None = None
    projects: dict[str, ProjectAggregate] = Field(default_factory=dict)
    facets_summary: FacetTally = Field(default_factory=FacetTally)
    all_facets: list[dict[str, Any]] = Field(default_factory=list)
    global_tool_totals: dict[str, int | float] = Field(default_factory=dict)
    total_sessions_found: int = 0
    total_sessions_from_stats: int = 0
    total_messages_from_stats: int = 0
    total_projects: int = 0
    total_git_commits: int = 0
    total_hours: float = 0.0
    sessions_with_facets: int = 0
    sessions_without_facets: int = 0
    message_accounting: MessageAccounting = Field(default_factory=MessageAccounting)
    data_sources: DataSources = Field(default_factory=DataSources)


def collect_sources(
    config: InsightfulConfig,
    report: PipelineReport | None = None,
) -> SourceBundle:
    """Run every source reader concurrently and wait for all of them.

    A missing or unreadable source contributes an empty mapping.

    Args:
        config: Run configuration (paths and limits).
        report: Optional run report collecting skipped lines and read errors.

    Returns:
        SourceBundle holding each source's complete mapping.
    """
    paths = config.paths
    collect = config.collect
    logger.info("Claude dir: %s", paths.claude_path)

    with ThreadPoolExecutor(max_workers=5) as executor:
        history = executor.submit(
            read_history,
            paths.history_path,
            prompt_limit=collect.history_prompt_limit,
            prompt_chars=collect.history_prompt_chars,
            report=report,
        )
        index = executor.submit(read_index, paths.projects_path, report=report)
        transcripts = executor.submit(
            read_transcripts,
            paths.projects_path,
            max_workers=collect.max_workers,
            prompt_chars=collect.transcript_prompt_chars,
            report=report,
        )
        facets = executor.submit(read_facets, paths.facets_path, report=report)
        stats = executor.submit(read_stats, paths.stats_path, report=report)

        return SourceBundle(
            history=history.result(),
            index=index.result(),
            transcripts=transcripts.result(),
            facets=facets.result(),
            stats=stats.result(),
        )


def build_report(
    sources: SourceBundle,
    *,
    home: str | Path | None = None,
    report: PipelineReport | None = None,
    generated_at: datetime | None = None,
) -> InsightsReport:
    """Reconcile, group and aggregate a fully-read SourceBundle.

    Args:
        sources: Output of :func:`collect_sources`.
        home: Home directory for the ``home`` project label.
        report: Run report; its skip counts land in ``data_sources``.
        generated_at: Override for the report timestamp (tests).

    Returns:
        The assembled InsightsReport.
    """
    sessions: list[UnifiedSession] = reconcile(
        sources.history, sources.index, sources.transcripts, sources.facets
    )
    projects = group_by_project(sessions, home)

    all_facets = [record.data for record in sources.facets.values()]
    totals: GlobalAggregate = aggregate_global(projects, sources.stats)
    stats = sources.stats

    return InsightsReport(
        generated_at=format_timestamp(generated_at or datetime.now(tz=UTC)),
        stats_cache=stats.payload if stats is not None else None,
        projects=projects,
        facets_summary=summarize_facets(all_facets),
        all_facets=all_facets,
        global_tool_totals=totals.tool_totals,
        total_sessions_found=totals.total_sessions,
        total_sessions_from_stats=totals.tracked_sessions,
        total_messages_from_stats=totals.tracked_messages,
        total_projects=totals.total_projects,
        total_git_commits=totals.total_git_commits,
        total_hours=totals.total_hours,
        sessions_with_facets=totals.sessions_with_facets,
        sessions_without_facets=totals.sessions_without_facets,
        message_accounting=MessageAccounting(
            tracked_messages=totals.tracked_messages,
            tracked_sessions=totals.tracked_sessions,
            tracked_period_start=totals.tracked_period_start,
            pre_tracking_sessions=totals.pre_tracking_sessions,
            pre_tracking_prompts=totals.pre_tracking_prompts,
            transcript_verified_messages=totals.transcript_messages,
            transcript_verified_sessions=totals.transcript_sessions,
            total_user_prompts=totals.total_prompts,
        ),
        data_sources=DataSources(
            history_sessions=len(sources.history),
            indexed_sessions=len(sources.index),
            transcript_files=len(sources.transcripts),
            facet_files=len(all_facets),
            has_stats_cache=stats is not None,
            skipped_lines=report.skipped_by_stage() if report is not None else {},
        ),
    )


def _atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` via a temp file and rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_report(insights: InsightsReport, path: Path) -> Path:
    """Serialize the report as indented JSON and write it atomically.

    Raises:
        ReportWriteError: If serialization or the write fails.  No partial
            file is left behind.
    """
    try:
        content = insights.model_dump_json(indent=2)
    except (ValueError, TypeError) as exc:
        raise ReportWriteError(f"Cannot serialize report: {exc}") from exc
    try:
        _atomic_write(path, content)
    except OSError as exc:
        raise ReportWriteError(f"Cannot write report to {path}: {exc}") from exc
    return path


def run_collection(
    config: InsightfulConfig,
    report: PipelineReport | None = None,
) -> tuple[InsightsReport, Path]:
    """Full run: collect every source, build the report, write it.

    Returns:
        The report and the path it was written to.
    """
    report = report if report is not None else PipelineReport()
    sources = collect_sources(config, report)
    try:
        insights = build_report(sources, home=config.paths.home_path, report=report)
    except ValidationError as exc:
        raise ReportWriteError(f"Cannot assemble report: {exc}") from exc
    output = write_report(insights, config.paths.output_path)
    logger.info(
        "%d sessions across %d projects written to %s",
        insights.total_sessions_found,
        insights.total_projects,
        output,
    )
    return insights, output
