"""Insightful - reconcile coding-assistant session records into usage rollups.

Reads the local history log, per-project session indexes, full transcripts,
facet annotations and the stats cache, merges them into one record per
session, and reports per-project and global totals.
"""

__version__ = "0.3.0"
