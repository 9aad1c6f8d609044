"""Tests for facet tallying."""

from insightful.facet_summary import FacetTally, summarize_facets


class TestSummarizeFacets:
    def test_categorical_fields_counted(self) -> None:
        summary = summarize_facets(
            [
                {"outcome": "achieved", "session_type": "single_task", "claude_helpfulness": "very"},
                {"outcome": "achieved", "session_type": "iterative", "primary_success": "debugging"},
                {"outcome": "partial"},
            ]
        )
        assert summary.total == 3
        assert summary.outcomes == {"achieved": 2, "partial": 1}
        assert summary.session_types == {"single_task": 1, "iterative": 1}
        assert summary.helpfulness_counts == {"very": 1}
        assert summary.primary_successes == {"debugging": 1}

    def test_histogram_fields_summed(self) -> None:
        summary = summarize_facets(
            [
                {"friction_counts": {"slow": 1, "wrong_approach": 2}},
                {"friction_counts": {"slow": 3}, "goal_categories": {"bugfix": 1}},
                {"user_satisfaction_counts": {"happy": 2}},
            ]
        )
        assert summary.friction_counts == {"slow": 4, "wrong_approach": 2}
        assert summary.goal_categories == {"bugfix": 1}
        assert summary.satisfaction_counts == {"happy": 2}

    def test_wrongly_typed_fields_ignored(self) -> None:
        summary = summarize_facets(
            [
                {"outcome": ["achieved"], "friction_counts": "lots"},
                {"outcome": None, "friction_counts": {"slow": "two", "loop": 1}},
                {"outcome": "", "session_type": True},
            ]
        )
        assert summary.total == 3
        assert summary.outcomes == {}
        assert summary.session_types == {}
        assert summary.friction_counts == {"loop": 1}

    def test_empty(self) -> None:
        assert summarize_facets([]) == FacetTally()

    def test_serialized_keys(self) -> None:
        dumped = summarize_facets([{"outcome": "achieved"}]).model_dump()
        assert set(dumped) == {
            "total",
            "outcomes",
            "session_types",
            "friction_counts",
            "satisfaction_counts",
            "helpfulness_counts",
            "goal_categories",
            "primary_successes",
        }
