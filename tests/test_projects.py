"""Tests for project labelling and grouping."""

import pytest

from insightful.models import SourceKind, UnifiedSession
from insightful.projects import HOME_PROJECT, UNKNOWN_PROJECT, friendly_name, group_by_project

HOME = "/home/user"


def _session(session_id: str, path: str | None, first: str | None = None) -> UnifiedSession:
    return UnifiedSession(
        session_id=session_id,
        source=SourceKind.HISTORY,
        project_path=path,
        first_timestamp=first,
        user_message_count=1,
    )


class TestFriendlyName:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/home/user/projects/my-app", "my-app"),
            ("/home/user/projects/my-app/", "my-app"),
            ("/home/user/code", "user/code"),
            ("/srv/Repos", "srv/Repos"),
            ("C:\\Users\\user\\code\\exosome", "exosome"),
            ("C:\\Users\\user\\code", "user/code"),
        ],
    )
    def test_labels(self, path: str, expected: str) -> None:
        assert friendly_name(path, HOME) == expected

    def test_home_directory(self) -> None:
        assert friendly_name("/home/user", HOME) == HOME_PROJECT
        assert friendly_name("/home/user/", HOME) == HOME_PROJECT

    def test_windows_home_directory(self) -> None:
        assert friendly_name("C:\\Users\\me", "C:\\Users\\me") == HOME_PROJECT

    @pytest.mark.parametrize("path", [None, "", "/"])
    def test_unknown(self, path: str | None) -> None:
        assert friendly_name(path, HOME) == UNKNOWN_PROJECT

    def test_without_home(self) -> None:
        assert friendly_name("/home/user", None) == "user"


class TestGroupByProject:
    def test_partitions_by_label(self) -> None:
        projects = group_by_project(
            [
                _session("a", "/work/alpha"),
                _session("b", "/work/beta"),
                _session("c", "/work/alpha"),
                _session("d", None),
                _session("e", HOME),
            ],
            HOME,
        )
        assert {name: [s.session_id for s in p.sessions] for name, p in projects.items()} == {
            "alpha": ["a", "c"],
            "beta": ["b"],
            UNKNOWN_PROJECT: ["d"],
            HOME_PROJECT: ["e"],
        }

    def test_sorted_by_session_count_descending(self) -> None:
        projects = group_by_project(
            [
                _session("a", "/w/zeta"),
                _session("b", "/w/beta"),
                _session("c", "/w/beta"),
                _session("d", "/w/alpha"),
            ]
        )
        assert list(projects) == ["beta", "alpha", "zeta"]

    def test_sessions_chronological_with_nulls_first(self) -> None:
        project = group_by_project(
            [
                _session("late", "/w/p", "2024-02-01T00:00:00.000Z"),
                _session("none", "/w/p", None),
                _session("early", "/w/p", "2024-01-01T00:00:00.000Z"),
            ]
        )["p"]
        assert [s.session_id for s in project.sessions] == ["none", "early", "late"]

    def test_ties_keep_input_order(self) -> None:
        ts = "2024-01-01T00:00:00.000Z"
        project = group_by_project(
            [_session("x", "/w/p", ts), _session("y", "/w/p", ts)]
        )["p"]
        assert [s.session_id for s in project.sessions] == ["x", "y"]

    def test_full_path_recorded(self) -> None:
        projects = group_by_project([_session("a", "/work/code/alpha")])
        assert projects["alpha"].full_path == "/work/code/alpha"
        assert group_by_project([_session("b", None)])[UNKNOWN_PROJECT].full_path == ""

    def test_empty(self) -> None:
        assert group_by_project([]) == {}
