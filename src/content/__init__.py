"""Content tree: markdown posts with front-matter, series and checks."""

from hugoship.content.models import (
    ContentIndex,
    ContentIssue,
    FrontMatter,
    FrontMatterFormat,
    Post,
    Series,
    Severity,
    ValidationReport,
    slugify,
    urlize,
)
from hugoship.content.services import (
    build_series_index,
    load_content,
    load_post,
    new_post,
    next_series_weight,
    render_front_matter,
    split_front_matter,
)
from hugoship.content.validation import validate_content

__all__ = [
    "ContentIndex",
    "ContentIssue",
    "FrontMatter",
    "FrontMatterFormat",
    "Post",
    "Series",
    "Severity",
    "ValidationReport",
    "build_series_index",
    "load_content",
    "load_post",
    "new_post",
    "next_series_weight",
    "render_front_matter",
    "slugify",
    "split_front_matter",
    "urlize",
    "validate_content",
]
