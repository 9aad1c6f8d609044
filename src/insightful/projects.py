"""Group reconciled sessions into projects by a friendly label."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from insightful.aggregate import ProjectAggregate
from insightful.models import UnifiedSession

UNKNOWN_PROJECT = "unknown"
HOME_PROJECT = "home"

# When the last segment is one of these, the parent is kept for context.
GENERIC_DIR_NAMES = frozenset({"code", "projects", "src", "dev", "repos"})


def _normalize(path: str) -> str:
    return path.replace("\\", "/").rstrip("/")


def friendly_name(path: str | None, home: str | Path | None = None) -> str:
    """Derive a short project label from a full project path.

    >>> friendly_name("/home/user/projects/my-app", "/home/user")
    'my-app'
    >>> friendly_name("/home/user/code", "/home/user")
    'user/code'
    >>> friendly_name("/home/user", "/home/user")
    'home'
    """
    if not path:
        return UNKNOWN_PROJECT
    norm = _normalize(path)
    if home is not None and norm == _normalize(str(home)):
        return HOME_PROJECT
    parts = [p for p in norm.split("/") if p]
    if not parts:
        return UNKNOWN_PROJECT
    if parts[-1].lower() in GENERIC_DIR_NAMES:
        return "/".join(parts[-2:])
    return parts[-1]


def _chronological_key(session: UnifiedSession) -> str:
    return session.first_timestamp or ""


def group_by_project(
    sessions: Iterable[UnifiedSession],
    home: str | Path | None = None,
) -> dict[str, ProjectAggregate]:
    """Partition sessions by project label.

    Sessions within a project are sorted by first timestamp (missing
    timestamps first, ties keep input order).  Projects are ordered by
    descending session count, then label.

    Args:
        sessions: Reconciled sessions; each lands in exactly one project.
        home: The actor's home directory, labelled ``home``.

    Returns:
        Ordered mapping of label to ProjectAggregate.
    """
    buckets: dict[str, list[UnifiedSession]] = {}
    full_paths: dict[str, str] = {}
    for session in sessions:
        label = friendly_name(session.project_path, home)
        buckets.setdefault(label, []).append(session)
        if session.project_path and not full_paths.get(label):
            full_paths[label] = session.project_path

    projects = [
        ProjectAggregate(
            name=label,
            full_path=full_paths.get(label, ""),
            sessions=sorted(bucket, key=_chronological_key),
        )
        for label, bucket in buckets.items()
    ]
    projects.sort(key=lambda p: (-p.session_count, p.name))
    return {p.name: p for p in projects}
