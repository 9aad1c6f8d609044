"""Reader for the aggregate stats cache (stats-cache.json)."""

from __future__ import annotations

import logging
from pathlib import Path

from insightful.errors import PipelineReport
from insightful.parsers.base import read_json_file
from insightful.parsers.models import StatsRecord

logger = logging.getLogger(__name__)

STAGE = "stats"


def read_stats(path: Path, *, report: PipelineReport | None = None) -> StatsRecord | None:
    """Load the stats cache, or None when it is absent or unreadable."""
    data = read_json_file(path, stage=STAGE, report=report)
    logger.info("Stats cache: %s", "loaded" if data is not None else "not found")
    return StatsRecord.from_payload(data) if data is not None else None
