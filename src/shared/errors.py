"""Exception hierarchy and pipeline error reporting.

Library code raises the ``HugoshipError`` subclasses below and chains the
underlying cause. ``PipelineReport`` collects errors per stage so the CLI
can print a summary after a run.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class HugoshipError(Exception):
    """Base error for everything hugoship raises on purpose."""


class ContentError(HugoshipError):
    """The content tree could not be read or written."""


class FrontMatterError(ContentError):
    """A post's front-matter block is malformed or fails validation."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ValidationFailed(HugoshipError):
    """Content validation found errors; publishing was not attempted."""

    def __init__(self, message: str, *, issues: list | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []


class BuildError(HugoshipError):
    """The static site generator failed."""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class VerificationError(HugoshipError):
    """Generated output failed a post-build check."""


class DeployError(HugoshipError):
    """Uploading to the deploy target failed."""


class InvalidationError(HugoshipError):
    """The CDN rejected or failed a cache invalidation request."""


class PipelineError(BaseModel):
    """One error recorded during a pipeline run."""

    stage: str
    message: str
    source: str = ""
    error_type: str = ""
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))


class PipelineReport(BaseModel):
    """Errors collected across pipeline stages."""

    errors: list[PipelineError] = Field(default_factory=list)
    completed_stages: list[str] = Field(default_factory=list)

    def add_error(
        self,
        stage: str,
        message: str,
        *,
        source: str = "",
        error_type: str = "",
    ) -> None:
        self.errors.append(
            PipelineError(
                stage=stage,
                message=message,
                source=source,
                error_type=error_type,
            )
        )

    def mark_completed(self, stage: str) -> None:
        if stage not in self.completed_stages:
            self.completed_stages.append(stage)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def errors_for(self, stage: str) -> list[PipelineError]:
        return [e for e in self.errors if e.stage == stage]
