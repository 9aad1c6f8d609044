"""Merge partial per-source records into one UnifiedSession per session id.

The primary skeleton is chosen by :data:`PRECEDENCE`, an ordered rule table:
the first rule whose predicate holds builds the skeleton (or drops the
session by returning None).  Lower-priority sources then back-fill fields
the skeleton left null; they never overwrite a value.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from insightful.models import SourceKind, UnifiedSession
from insightful.parsers.models import (
    FacetRecord,
    HistoryRecord,
    IndexRecord,
    TranscriptRecord,
)
from insightful.timestamps import minutes_between, normalize_timestamp

logger = logging.getLogger(__name__)

Skeleton = dict[str, Any]


@dataclass(frozen=True)
class SessionSources:
    """Everything known about one session id, one slot per source."""

    session_id: str
    history: HistoryRecord | None = None
    index: IndexRecord | None = None
    transcript: TranscriptRecord | None = None
    facet: FacetRecord | None = None


@dataclass(frozen=True)
class PrecedenceRule:
    kind: SourceKind
    applies: Callable[[SessionSources], bool]
    build: Callable[[SessionSources], Skeleton | None]


# -- skeleton constructors ---------------------------------------------------


def _from_transcript(t: TranscriptRecord) -> Skeleton:
    return {
        "source": SourceKind.TRANSCRIPT,
        "first_timestamp": t.first_timestamp,
        "last_timestamp": t.last_timestamp,
        "duration_minutes": t.duration_minutes,
        "user_message_count": t.user_message_count,
        "assistant_message_count": t.assistant_message_count,
        "first_prompt": t.first_prompt,
        "tools_used": dict(t.tools_used),
        "models": list(t.models),
        "total_output_tokens": t.total_output_tokens,
        "total_input_tokens": t.total_input_tokens,
        "git_commits": t.git_commits,
        "version": t.version,
        "git_branch": t.git_branch,
        "permission_mode": t.permission_mode,
        "slug": t.slug,
    }


def _from_index(idx: IndexRecord) -> Skeleton:
    total = idx.message_count
    return {
        "source": SourceKind.INDEX,
        "first_timestamp": idx.created,
        "last_timestamp": idx.modified,
        "duration_minutes": minutes_between(idx.created, idx.modified),
        "user_message_count": total // 2,
        "assistant_message_count": total - total // 2,
        "first_prompt": idx.first_prompt,
        "git_branch": idx.git_branch,
        "index_summary": idx.summary,
    }


def _from_history(hist: HistoryRecord) -> Skeleton:
    return {
        "source": SourceKind.HISTORY,
        "first_timestamp": normalize_timestamp(hist.first_timestamp_ms),
        "last_timestamp": normalize_timestamp(hist.last_timestamp_ms),
        "duration_minutes": minutes_between(hist.first_timestamp_ms, hist.last_timestamp_ms),
        # history records prompts only; assistant turns are unknowable here
        "user_message_count": hist.prompt_count,
        "assistant_message_count": 0,
        "first_prompt": hist.prompts[0] if hist.prompts else None,
    }


def _from_history_or_drop(src: SessionSources) -> Skeleton | None:
    if src.history is not None and src.history.prompt_count > 0:
        return _from_history(src.history)
    return None


def _has_transcript_turns(src: SessionSources) -> bool:
    return src.transcript is not None and not src.transcript.is_empty


def _has_empty_transcript(src: SessionSources) -> bool:
    return src.transcript is not None and src.transcript.is_empty


PRECEDENCE: tuple[PrecedenceRule, ...] = (
    PrecedenceRule(
        SourceKind.TRANSCRIPT,
        _has_transcript_turns,
        lambda s: _from_transcript(s.transcript),
    ),
    # an empty transcript falls back to history alone, or the session is dropped
    PrecedenceRule(SourceKind.HISTORY, _has_empty_transcript, _from_history_or_drop),
    PrecedenceRule(
        SourceKind.INDEX,
        lambda s: s.index is not None,
        lambda s: _from_index(s.index),
    ),
    PrecedenceRule(
        SourceKind.HISTORY,
        lambda s: s.history is not None,
        lambda s: _from_history(s.history),
    ),
    PrecedenceRule(SourceKind.FACET_ONLY, lambda s: True, lambda s: {"source": SourceKind.FACET_ONLY}),
)


def select_rule(src: SessionSources) -> PrecedenceRule:
    """The first rule in :data:`PRECEDENCE` that applies to ``src``."""
    for rule in PRECEDENCE:
        if rule.applies(src):
            return rule
    raise AssertionError("PRECEDENCE must end with a catch-all rule")


# -- back-fill ---------------------------------------------------------------


def _fill(skeleton: Skeleton, key: str, value: Any) -> None:
    if skeleton.get(key) is None and value is not None:
        skeleton[key] = value


def _backfill_history(skeleton: Skeleton, hist: HistoryRecord) -> None:
    _fill(skeleton, "first_prompt", hist.prompts[0] if hist.prompts else None)
    skeleton["history_prompts"] = list(hist.prompts)
    skeleton["history_prompt_count"] = hist.prompt_count
    _fill(skeleton, "first_timestamp", normalize_timestamp(hist.first_timestamp_ms))
    _fill(skeleton, "last_timestamp", normalize_timestamp(hist.last_timestamp_ms))


def _backfill_index(skeleton: Skeleton, idx: IndexRecord) -> None:
    _fill(skeleton, "index_summary", idx.summary)
    _fill(skeleton, "first_prompt", idx.first_prompt)


def _project_path(src: SessionSources) -> str | None:
    for candidate in (src.transcript, src.index, src.history):
        if candidate is not None and candidate.project_path:
            return candidate.project_path
    return None


def reconcile_session(src: SessionSources) -> UnifiedSession | None:
    """Build the UnifiedSession for one id, or None if it is dropped."""
    rule = select_rule(src)
    skeleton = rule.build(src)
    if skeleton is None:
        logger.debug("Dropping %s: empty transcript and no history prompts", src.session_id)
        return None

    if src.history is not None:
        _backfill_history(skeleton, src.history)
    if src.index is not None and skeleton["source"] is not SourceKind.INDEX:
        _backfill_index(skeleton, src.index)

    skeleton["project_path"] = _project_path(src)
    skeleton["has_facet"] = src.facet is not None
    skeleton["facet"] = dict(src.facet.data) if src.facet is not None else None

    return UnifiedSession(session_id=src.session_id, **skeleton)


def reconcile(
    history: Mapping[str, HistoryRecord],
    index: Mapping[str, IndexRecord],
    transcripts: Mapping[str, TranscriptRecord],
    facets: Mapping[str, FacetRecord],
) -> list[UnifiedSession]:
    """Reconcile the union of all session ids across the four keyed sources.

    Returns:
        One UnifiedSession per surviving id, ordered by session id.
    """
    session_ids = set(history) | set(index) | set(transcripts) | set(facets)
    logger.info("Total unique session ids: %d", len(session_ids))

    sessions: list[UnifiedSession] = []
    for session_id in sorted(session_ids):
        unified = reconcile_session(
            SessionSources(
                session_id=session_id,
                history=history.get(session_id),
                index=index.get(session_id),
                transcript=transcripts.get(session_id),
                facet=facets.get(session_id),
            )
        )
        if unified is not None:
            sessions.append(unified)
    return sessions
