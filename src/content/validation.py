"""Integrity checks over the content tree.

Rules enforced before a build:

- every post has a title and a parseable date
- weight, when present, is an integer (checked while loading)
- published posts have unique permalinks
- within a series, published posts carry unique weights so the series
  has a total order
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import UTC, datetime

from hugoship.content.models import (
    ContentIndex,
    ContentIssue,
    Post,
    Severity,
    ValidationReport,
    _to_utc,
)
from hugoship.content.services import build_series_index

logger = logging.getLogger(__name__)


def _issue(post: Post, code: str, message: str, *, severity=Severity.ERROR, field=None):
    return ContentIssue(
        path=str(post.path),
        code=code,
        message=message,
        severity=severity,
        field=field,
    )


def _check_post(post: Post, now: datetime, build_future: bool) -> list[ContentIssue]:
    issues: list[ContentIssue] = []
    fm = post.front_matter

    if not fm.title.strip():
        issues.append(_issue(post, "missing-title", "post has no title", field="title"))
    if fm.date is None:
        issues.append(_issue(post, "missing-date", "post has no date", field="date"))

    if not post.draft:
        when = post.effective_date
        if not build_future and when is not None and when > now:
            issues.append(
                _issue(
                    post,
                    "future-date",
                    f"dated {when.date().isoformat()}; it will not be published until then",
                    severity=Severity.WARNING,
                    field="date",
                )
            )
        if not post.body.strip():
            issues.append(
                _issue(post, "empty-body", "post has no body text", severity=Severity.WARNING)
            )
    return issues


def _check_permalinks(posts: list[Post]) -> list[ContentIssue]:
    by_url: dict[str, list[Post]] = defaultdict(list)
    for post in posts:
        by_url[post.permalink].append(post)

    issues: list[ContentIssue] = []
    for url, members in sorted(by_url.items()):
        if len(members) < 2:
            continue
        others = ", ".join(str(p.path) for p in members)
        for post in members:
            issues.append(
                _issue(post, "duplicate-permalink", f"{url} is also produced by: {others}")
            )
    return issues


def _check_series(published: list[Post], drafts: list[Post]) -> list[ContentIssue]:
    issues: list[ContentIssue] = []

    for name, series in build_series_index(published).items():
        by_weight: dict[int, list[Post]] = defaultdict(list)
        for post in series.posts:
            if post.weight is None:
                issues.append(
                    _issue(
                        post,
                        "missing-series-weight",
                        f"post in series {name!r} has no weight",
                        field="weight",
                    )
                )
            else:
                by_weight[post.weight].append(post)

        for weight, members in by_weight.items():
            if len(members) < 2:
                continue
            others = ", ".join(str(p.path) for p in members)
            for post in members:
                issues.append(
                    _issue(
                        post,
                        "duplicate-series-weight",
                        f"weight {weight} in series {name!r} is shared by: {others}",
                        field="weight",
                    )
                )

        taken = set(by_weight)
        for draft in drafts:
            if name in draft.series and draft.weight in taken:
                issues.append(
                    _issue(
                        draft,
                        "draft-series-weight",
                        f"draft reuses weight {draft.weight} of a published post in {name!r}",
                        severity=Severity.WARNING,
                        field="weight",
                    )
                )
    return issues


def validate_content(
    index: ContentIndex,
    *,
    now: datetime | None = None,
    build_future: bool = False,
) -> ValidationReport:
    """Run every content check and return the combined report.

    Posts that failed to load are reported through ``index.load_issues``.
    Only posts a production build would publish take part in the
    permalink and series checks.
    """
    now = _to_utc(now or datetime.now(tz=UTC))
    report = ValidationReport(issues=list(index.load_issues))

    for post in index.posts:
        report.issues.extend(_check_post(post, now, build_future))

    published = [p for p in index.posts if p.is_published(now, build_future=build_future)]
    drafts = [p for p in index.posts if p.draft]
    report.issues.extend(_check_permalinks(published))
    report.issues.extend(_check_series(published, drafts))

    logger.info(
        "Validated %d post(s): %d error(s), %d warning(s)",
        len(index.posts),
        len(report.errors),
        len(report.warnings),
    )
    return report
