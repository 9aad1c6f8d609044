"""Tests for the pipeline issue report."""

from insightful.errors import InsightfulError, PipelineReport, ReportWriteError


class TestPipelineReport:
    def test_empty(self) -> None:
        report = PipelineReport()
        assert report.error_count == 0
        assert report.warning_count == 0
        assert not report.has_errors
        assert report.summary() == "no issues"
        assert report.skipped_by_stage() == {}

    def test_counts_by_severity(self) -> None:
        report = PipelineReport()
        report.add_error("transcript", "unreadable", source="a.jsonl", error_type="read_error")
        report.add_warning("history", "bad line", error_type="malformed_line")
        report.add_warning("history", "bad line", error_type="malformed_line")

        assert report.error_count == 1
        assert report.warning_count == 2
        assert report.has_errors
        assert report.summary() == "1 error, 2 warnings"
        assert report.issues[0].source == "a.jsonl"
        assert report.issues[0].severity == "error"

    def test_skipped_by_stage_counts_only_malformed(self) -> None:
        report = PipelineReport()
        report.add_warning("transcript", "x", error_type="malformed_line")
        report.add_warning("facets", "x", error_type="malformed_file")
        report.add_warning("facets", "x", error_type="malformed_file")
        report.add_error("transcript", "x", error_type="read_error")
        report.add_warning("stats", "x")

        assert report.skipped_by_stage() == {"facets": 2, "transcript": 1}

    def test_summary_singular_and_plural(self) -> None:
        report = PipelineReport()
        report.add_warning("index", "x")
        assert report.summary() == "1 warning"
        report.add_error("index", "y")
        report.add_error("index", "z")
        assert report.summary() == "2 errors, 1 warning"


def test_write_error_is_insightful_error() -> None:
    assert issubclass(ReportWriteError, InsightfulError)
