"""Error types and the per-run pipeline report.

Per-line and per-file failures in the source readers are never fatal: they
are recorded on a :class:`PipelineReport` and the scan continues.  Only a
failure to assemble or write the final report raises.
"""

from __future__ import annotations

from collections import Counter

from pydantic import BaseModel, Field


class InsightfulError(Exception):
    """Base class for fatal insightful errors."""


class ConfigError(InsightfulError):
    """Configuration values failed validation."""


class ReportWriteError(InsightfulError):
    """The final report could not be serialized or written."""


class PipelineIssue(BaseModel):
    """One recorded problem from a pipeline stage."""

    stage: str
    message: str
    source: str = ""
    error_type: str = "error"
    severity: str = "error"  # "error" or "warning"


class PipelineReport(BaseModel):
    """Accumulates issues across a single collection run."""

    issues: list[PipelineIssue] = Field(default_factory=list)

    def add_error(
        self,
        stage: str,
        message: str,
        *,
        source: str = "",
        error_type: str = "error",
    ) -> None:
        self.issues.append(
            PipelineIssue(
                stage=stage,
                message=message,
                source=source,
                error_type=error_type,
                severity="error",
            )
        )

    def add_warning(
        self,
        stage: str,
        message: str,
        *,
        source: str = "",
        error_type: str = "warning",
    ) -> None:
        self.issues.append(
            PipelineIssue(
                stage=stage,
                message=message,
                source=source,
                error_type=error_type,
                severity="warning",
            )
        )

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == "warning")

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def skipped_by_stage(self) -> dict[str, int]:
        """Count skipped lines/files per stage."""
        counts: Counter[str] = Counter(
            i.stage for i in self.issues if i.error_type in ("malformed_line", "malformed_file")
        )
        return dict(sorted(counts.items()))

    def summary(self) -> str:
        """One-line human summary, e.g. ``2 errors, 5 warnings``."""
        if not self.issues:
            return "no issues"
        parts: list[str] = []
        if self.error_count:
            parts.append(f"{self.error_count} error{'s' if self.error_count != 1 else ''}")
        if self.warning_count:
            parts.append(f"{self.warning_count} warning{'s' if self.warning_count != 1 else ''}")
        return ", ".join(parts)
