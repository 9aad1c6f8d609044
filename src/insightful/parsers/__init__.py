"""Source readers for local coding-assistant session data."""

from .base import Skip, iter_json_lines, read_json_file
from .facets import read_facets
from .history import read_history
from .index import read_index
from .models import (
    NO_PROMPT_PLACEHOLDER,
    FacetRecord,
    HistoryRecord,
    IndexRecord,
    StatsRecord,
    TranscriptRecord,
)
from .stats import read_stats
from .transcript import discover_transcripts, is_git_commit, read_transcripts, scan_transcript

__all__ = [
    "NO_PROMPT_PLACEHOLDER",
    "FacetRecord",
    "HistoryRecord",
    "IndexRecord",
    "Skip",
    "StatsRecord",
    "TranscriptRecord",
    "discover_transcripts",
    "is_git_commit",
    "iter_json_lines",
    "read_facets",
    "read_history",
    "read_index",
    "read_json_file",
    "read_stats",
    "read_transcripts",
    "scan_transcript",
]
