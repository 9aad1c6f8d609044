"""Tally categorical and histogram fields across all facet records."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field

from insightful.counts import Counts, merge_counts, tally

# FacetTally field -> facet key, for single-valued categorical fields
CATEGORICAL_FIELDS: dict[str, str] = {
    "outcomes": "outcome",
    "session_types": "session_type",
    "helpfulness_counts": "claude_helpfulness",
    "primary_successes": "primary_success",
}

# FacetTally field -> facet key, for fields that are themselves histograms
HISTOGRAM_FIELDS: dict[str, str] = {
    "friction_counts": "friction_counts",
    "satisfaction_counts": "user_satisfaction_counts",
    "goal_categories": "goal_categories",
}


class FacetTally(BaseModel):
    total: int = 0
    outcomes: Counts = Field(default_factory=dict)
    session_types: Counts = Field(default_factory=dict)
    friction_counts: Counts = Field(default_factory=dict)
    satisfaction_counts: Counts = Field(default_factory=dict)
    helpfulness_counts: Counts = Field(default_factory=dict)
    goal_categories: Counts = Field(default_factory=dict)
    primary_successes: Counts = Field(default_factory=dict)


def summarize_facets(facets: Iterable[Mapping[str, Any]]) -> FacetTally:
    """Count categorical values and sum histogram sub-keys over ``facets``.

    A record missing a field, or holding the wrong type for it, simply does
    not contribute to that field.
    """
    summary = FacetTally()
    for facet in facets:
        summary.total += 1
        for target, key in CATEGORICAL_FIELDS.items():
            tally(getattr(summary, target), facet.get(key))
        for target, key in HISTOGRAM_FIELDS.items():
            histogram = facet.get(key)
            if isinstance(histogram, Mapping):
                merge_counts(getattr(summary, target), histogram)
    return summary
