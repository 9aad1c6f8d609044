"""Reader for per-session facet annotations (usage-data/facets/*.json)."""

from __future__ import annotations

import logging
from pathlib import Path

from insightful.errors import PipelineReport
from insightful.parsers.base import first_string, read_json_file
from insightful.parsers.models import FacetRecord

logger = logging.getLogger(__name__)

STAGE = "facets"


def read_facets(
    facets_dir: Path,
    *,
    report: PipelineReport | None = None,
) -> dict[str, FacetRecord]:
    """Load every facet file, keyed by its ``session_id`` or the file stem.

    Files are read in name order.  Two files naming the same session keep
    the later one.
    """
    if not facets_dir.is_dir():
        logger.info("No facets directory at %s", facets_dir)
        return {}

    facets: dict[str, FacetRecord] = {}
    try:
        files = sorted(facets_dir.glob("*.json"))
    except OSError as exc:
        logger.warning("Cannot list %s: %s", facets_dir, exc)
        return {}

    for file in files:
        data = read_json_file(file, stage=STAGE, report=report)
        if data is None:
            continue
        session_id = first_string(data.get("session_id")) or file.stem
        facets[session_id] = FacetRecord(session_id=session_id, data=data)

    logger.info("Facets loaded: %d", len(facets))
    return facets
