"""Tests for the exception hierarchy and PipelineReport."""

from hugoship.shared.errors import (
    BuildError,
    ContentError,
    DeployError,
    FrontMatterError,
    HugoshipError,
    InvalidationError,
    PipelineReport,
    ValidationFailed,
    VerificationError,
)


class TestHierarchy:
    def test_all_derive_from_base(self):
        for cls in (
            ContentError,
            FrontMatterError,
            ValidationFailed,
            BuildError,
            VerificationError,
            DeployError,
            InvalidationError,
        ):
            assert issubclass(cls, HugoshipError)

    def test_front_matter_error_is_content_error(self):
        exc = FrontMatterError("bad weight", field="weight")
        assert isinstance(exc, ContentError)
        assert exc.field == "weight"

    def test_build_error_keeps_stderr(self):
        exc = BuildError("Hugo failed (exit 1)", stderr="ERROR template")
        assert str(exc) == "Hugo failed (exit 1)"
        assert exc.stderr == "ERROR template"

    def test_validation_failed_defaults_to_no_issues(self):
        assert ValidationFailed("x").issues == []


class TestPipelineReport:
    def test_empty(self):
        report = PipelineReport()
        assert report.has_errors is False
        assert report.completed_stages == []

    def test_add_error(self):
        report = PipelineReport()
        report.add_error("sync", "access denied", source="s3", error_type="DeployError")
        assert report.has_errors is True
        [error] = report.errors_for("sync")
        assert error.message == "access denied"
        assert error.error_type == "DeployError"
        assert error.recorded_at.tzinfo is not None
        assert report.errors_for("build") == []

    def test_mark_completed_once(self):
        report = PipelineReport()
        report.mark_completed("build")
        report.mark_completed("build")
        report.mark_completed("verify")
        assert report.completed_stages == ["build", "verify"]
