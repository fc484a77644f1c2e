"""Pure data models for the blog content tree.

All Pydantic models and enums live here. No I/O. Services import from
this module; this module only imports from stdlib and third-party packages.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import UTC, date, datetime
from enum import StrEnum
from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FrontMatterFormat(StrEnum):
    """Front-matter block formats Hugo understands."""

    YAML = "yaml"
    TOML = "toml"
    JSON = "json"


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

_URLIZE_DROP_RE = re.compile(r"[^\w\-./~]", re.UNICODE)
_DASH_RUN_RE = re.compile(r"-{2,}")


def urlize(text: str) -> str:
    """Turn a path segment into the form Hugo uses in URLs.

    Lowercases, replaces whitespace with hyphens and drops characters
    that are not allowed in a path segment.
    """
    text = unicodedata.normalize("NFC", text).strip().lower()
    text = re.sub(r"\s+", "-", text)
    text = _URLIZE_DROP_RE.sub("", text)
    return _DASH_RUN_RE.sub("-", text)


def slugify(title: str) -> str:
    """Slug for a new post file name, ASCII only."""
    ascii_title = (
        unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    )
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_title.lower()).strip("-")
    return slug or "untitled"


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ---------------------------------------------------------------------------
# Front-matter
# ---------------------------------------------------------------------------


class FrontMatter(BaseModel):
    """Metadata block at the top of a post.

    Unknown keys (theme params, cover images, ...) are kept as extras.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str = ""
    date: datetime | None = None
    publish_date: datetime | None = Field(default=None, alias="publishDate")
    draft: bool = False
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    series: list[str] = Field(default_factory=list)
    weight: int | None = None
    slug: str = ""
    url: str = ""
    show_toc: bool = Field(default=False, alias="ShowToc")
    toc_open: bool = Field(default=False, alias="TocOpen")

    @field_validator("date", "publish_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return _to_utc(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day, tzinfo=UTC)
        if isinstance(value, str):
            try:
                return _to_utc(datetime.fromisoformat(value.strip()))
            except ValueError as exc:
                raise ValueError(f"not an ISO-8601 date: {value!r}") from exc
        raise ValueError(f"unsupported date value: {value!r}")

    @field_validator("weight", mode="before")
    @classmethod
    def _strict_weight(cls, value: Any) -> Any:
        # YAML/TOML give real ints; "3", 3.0 and true are authoring mistakes
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"weight must be an integer, got {value!r}")
        return value

    @field_validator("tags", "series", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value

    @field_validator("title", "description", "slug", "url", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


# ---------------------------------------------------------------------------
# Posts and series
# ---------------------------------------------------------------------------


class Post(BaseModel):
    """A markdown document from the content tree."""

    path: PurePosixPath
    front_matter: FrontMatter = Field(default_factory=FrontMatter)
    body: str = ""
    format: FrontMatterFormat = FrontMatterFormat.YAML

    @property
    def section(self) -> str:
        """Top-level content directory, or "" for files at the content root."""
        return self.path.parts[0] if len(self.path.parts) > 1 else ""

    @property
    def title(self) -> str:
        return self.front_matter.title

    @property
    def draft(self) -> bool:
        return self.front_matter.draft

    @property
    def weight(self) -> int | None:
        return self.front_matter.weight

    @property
    def series(self) -> list[str]:
        return self.front_matter.series

    @property
    def effective_date(self) -> datetime | None:
        return self.front_matter.publish_date or self.front_matter.date

    @property
    def is_bundle(self) -> bool:
        return self.path.name == "index.md"

    @property
    def slug(self) -> str:
        if self.front_matter.slug:
            return self.front_matter.slug
        if self.is_bundle:
            return self.path.parent.name
        return self.path.stem

    @property
    def permalink(self) -> str:
        """URL path Hugo publishes this post at (default permalink config)."""
        if self.front_matter.url:
            url = "/" + self.front_matter.url.strip("/")
            return url if url == "/" or "." in url.rsplit("/", 1)[-1] else url + "/"
        parent = self.path.parent.parent if self.is_bundle else self.path.parent
        segments = [urlize(p) for p in parent.parts if p not in ("", ".")]
        segments.append(urlize(self.slug))
        return "/" + "/".join(s for s in segments if s) + "/"

    def is_published(self, now: datetime | None = None, *, build_future: bool = False) -> bool:
        """Whether a production build would render this post."""
        if self.draft:
            return False
        if build_future:
            return True
        when = self.effective_date
        if when is None:
            return True
        now = now or datetime.now(tz=UTC)
        return when <= _to_utc(now)

    def sort_key(self) -> tuple:
        weight = self.weight if self.weight is not None else float("inf")
        when = self.effective_date or datetime.max.replace(tzinfo=UTC)
        return (weight, when, str(self.path))


class Series(BaseModel):
    """Posts sharing a series name, in reading order."""

    name: str
    posts: list[Post] = Field(default_factory=list)

    @property
    def weights(self) -> list[int | None]:
        return [p.weight for p in self.posts]


# ---------------------------------------------------------------------------
# Validation results
# ---------------------------------------------------------------------------


class ContentIssue(BaseModel):
    """One finding from a content or output check."""

    path: str
    code: str
    message: str
    severity: Severity = Severity.ERROR
    field: str | None = None


class ValidationReport(BaseModel):
    issues: list[ContentIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[ContentIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ContentIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors


class ContentIndex(BaseModel):
    """Every post that loaded, plus issues for the files that did not."""

    posts: list[Post] = Field(default_factory=list)
    load_issues: list[ContentIssue] = Field(default_factory=list)

    @property
    def drafts(self) -> list[Post]:
        return [p for p in self.posts if p.draft]

    def get(self, path: str) -> Post | None:
        for post in self.posts:
            if str(post.path) == path:
                return post
        return None
