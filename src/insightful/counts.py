"""Helpers for string-keyed count histograms (tool usage, facet tallies)."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping

Counts = dict[str, int | float]


def is_number(value: object) -> bool:
    """True for ints and floats, False for bools and everything else."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def as_int(value: object) -> int:
    """Coerce a numeric JSON value to int; anything else counts as zero."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    return 0


def merge_counts(target: Counts, source: Mapping[str, object] | None) -> Counts:
    """Add every numeric value of ``source`` into ``target`` key-wise.

    Keys keep first-seen order.  Non-numeric values are ignored.  Returns
    ``target`` for chaining.
    """
    if not source:
        return target
    for key, value in source.items():
        if is_number(value):
            target[key] = target.get(key, 0) + value
    return target


def sum_counts(histograms: Iterable[Mapping[str, object] | None]) -> Counts:
    """Key-wise sum of many histograms into a fresh dict."""
    total: Counts = {}
    for histogram in histograms:
        merge_counts(total, histogram)
    return total


def tally(target: Counts, value: object) -> None:
    """Count one occurrence of a categorical ``value`` (falsy values skipped)."""
    if not value or not isinstance(value, (str, int, float)) or isinstance(value, bool):
        return
    key = str(value)
    target[key] = target.get(key, 0) + 1
