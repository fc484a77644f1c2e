"""Tests for content models: front-matter coercion, permalinks, publishing."""

from datetime import UTC, date, datetime, timedelta, timezone
from pathlib import PurePosixPath

import pytest
from pydantic import ValidationError

from hugoship.content import (
    ContentIssue,
    FrontMatter,
    Post,
    Severity,
    ValidationReport,
    slugify,
    urlize,
)


def _post(path: str, **fm) -> Post:
    return Post(path=PurePosixPath(path), front_matter=FrontMatter.model_validate(fm))


class TestFrontMatter:
    def test_defaults(self):
        fm = FrontMatter()
        assert fm.title == ""
        assert fm.date is None
        assert fm.draft is False
        assert fm.tags == []
        assert fm.series == []
        assert fm.weight is None

    def test_date_from_date(self):
        fm = FrontMatter.model_validate({"date": date(2024, 5, 1)})
        assert fm.date == datetime(2024, 5, 1, tzinfo=UTC)

    def test_naive_datetime_is_utc(self):
        fm = FrontMatter.model_validate({"date": datetime(2024, 5, 1, 10, 30)})
        assert fm.date == datetime(2024, 5, 1, 10, 30, tzinfo=UTC)

    def test_offset_string_normalized_to_utc(self):
        fm = FrontMatter.model_validate({"date": "2024-05-01T10:00:00+02:00"})
        assert fm.date == datetime(2024, 5, 1, 8, 0, tzinfo=UTC)

    def test_zulu_string(self):
        fm = FrontMatter.model_validate({"date": "2024-05-01T10:00:00Z"})
        assert fm.date.tzinfo is not None
        assert fm.date.hour == 10

    def test_aware_datetime_converted(self):
        tz = timezone(timedelta(hours=-5))
        fm = FrontMatter.model_validate({"date": datetime(2024, 5, 1, 7, 0, tzinfo=tz)})
        assert fm.date == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def test_invalid_date_rejected(self):
        with pytest.raises(ValidationError, match="ISO-8601"):
            FrontMatter.model_validate({"date": "next tuesday"})

    def test_empty_date_is_none(self):
        assert FrontMatter.model_validate({"date": ""}).date is None

    @pytest.mark.parametrize("weight", ["3", 2.5, True, [1]])
    def test_non_integer_weight_rejected(self, weight):
        with pytest.raises(ValidationError, match="weight must be an integer"):
            FrontMatter.model_validate({"weight": weight})

    def test_integer_weight_accepted(self):
        assert FrontMatter.model_validate({"weight": 4}).weight == 4

    def test_series_string_becomes_list(self):
        fm = FrontMatter.model_validate({"series": "Building HR Helper", "tags": "aws"})
        assert fm.series == ["Building HR Helper"]
        assert fm.tags == ["aws"]

    def test_theme_aliases(self):
        fm = FrontMatter.model_validate({"ShowToc": True, "TocOpen": True, "publishDate": "2024-06-01"})
        assert fm.show_toc is True
        assert fm.toc_open is True
        assert fm.publish_date == datetime(2024, 6, 1, tzinfo=UTC)

    def test_extra_keys_kept(self):
        fm = FrontMatter.model_validate({"title": "T", "cover": {"image": "x.png"}})
        assert fm.model_extra == {"cover": {"image": "x.png"}}

    def test_null_title_is_empty(self):
        assert FrontMatter.model_validate({"title": None}).title == ""


class TestPermalink:
    def test_plain_file(self):
        assert _post("posts/my-first-post.md").permalink == "/posts/my-first-post/"

    def test_bundle_uses_directory_name(self):
        assert _post("posts/cv-matching/index.md").permalink == "/posts/cv-matching/"

    def test_slug_overrides_file_name(self):
        assert _post("posts/draft-name.md", slug="final").permalink == "/posts/final/"

    def test_url_overrides_everything(self):
        assert _post("posts/x.md", url="/about/team").permalink == "/about/team/"
        assert _post("posts/x.md", url="/feed.xml").permalink == "/feed.xml"

    def test_root_level_page(self):
        post = _post("about.md")
        assert post.section == ""
        assert post.permalink == "/about/"

    def test_urlized_segments(self):
        assert _post("Posts/My Post.md").permalink == "/posts/my-post/"

    def test_nested_sections(self):
        post = _post("posts/2024/aws-setup.md")
        assert post.section == "posts"
        assert post.permalink == "/posts/2024/aws-setup/"


class TestIsPublished:
    NOW = datetime(2024, 6, 1, tzinfo=UTC)

    def test_draft_never_published(self):
        assert not _post("posts/a.md", draft=True, date="2024-01-01").is_published(self.NOW)
        assert not _post("posts/a.md", draft=True).is_published(self.NOW, build_future=True)

    def test_past_post_published(self):
        assert _post("posts/a.md", date="2024-01-01").is_published(self.NOW)

    def test_future_post_held_back(self):
        post = _post("posts/a.md", date="2024-07-01")
        assert not post.is_published(self.NOW)
        assert post.is_published(self.NOW, build_future=True)

    def test_publish_date_wins(self):
        post = _post("posts/a.md", date="2024-01-01", publishDate="2024-12-01")
        assert not post.is_published(self.NOW)

    def test_undated_post_published(self):
        assert _post("posts/a.md").is_published(self.NOW)


class TestHelpers:
    def test_urlize(self):
        assert urlize("Hello World") == "hello-world"
        assert urlize("a  --  b") == "a-b"
        assert urlize("what?") == "what"

    def test_slugify(self):
        assert slugify("From CV to Match: Part 2!") == "from-cv-to-match-part-2"
        assert slugify("Café déjà vu") == "cafe-deja-vu"
        assert slugify("???") == "untitled"


class TestValidationReport:
    def test_ok_without_errors(self):
        report = ValidationReport(
            issues=[ContentIssue(path="a.md", code="x", message="m", severity=Severity.WARNING)]
        )
        assert report.ok
        assert len(report.warnings) == 1
        assert report.errors == []

    def test_not_ok_with_error(self):
        report = ValidationReport(issues=[ContentIssue(path="a.md", code="x", message="m")])
        assert not report.ok
