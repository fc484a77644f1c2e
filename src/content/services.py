"""Reading and writing the markdown content tree.

Contains everything that touches disk for content: front-matter parsing,
loading the tree into a ``ContentIndex``, series grouping and scaffolding
new posts. Imports models from ``hugoship.content.models``.
"""

from __future__ import annotations

import json
import logging
import tomllib
from collections import defaultdict
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath

import yaml
from pydantic import ValidationError

from hugoship.content.models import (
    ContentIndex,
    ContentIssue,
    FrontMatter,
    FrontMatterFormat,
    Post,
    Series,
    slugify,
)
from hugoship.core import _atomic_write
from hugoship.shared.errors import ContentError, FrontMatterError

logger = logging.getLogger(__name__)

SECTION_INDEX = "_index.md"

_FENCES: dict[str, FrontMatterFormat] = {
    "---": FrontMatterFormat.YAML,
    "+++": FrontMatterFormat.TOML,
}


# ---------------------------------------------------------------------------
# Front-matter parsing
# ---------------------------------------------------------------------------


def _split_fenced(text: str, fence: str) -> tuple[str, str]:
    lines = text.splitlines(keepends=True)
    for i in range(1, len(lines)):
        if lines[i].rstrip("\r\n").rstrip() == fence:
            return "".join(lines[1:i]), "".join(lines[i + 1 :])
    raise FrontMatterError(f"front-matter opened with {fence!r} is never closed")


def _split_json(text: str) -> tuple[str, str]:
    decoder = json.JSONDecoder()
    try:
        _, end = decoder.raw_decode(text)
    except json.JSONDecodeError as exc:
        raise FrontMatterError(f"invalid JSON front-matter: {exc}") from exc
    return text[:end], text[end:]


def split_front_matter(text: str) -> tuple[dict, str, FrontMatterFormat]:
    """Separate the front-matter block from the markdown body.

    Supports YAML (``---``), TOML (``+++``) and JSON (leading ``{``) blocks,
    the same three Hugo accepts. Text without a block yields an empty dict.

    Raises:
        FrontMatterError: Unterminated fence, syntax error, or a block that
            is not a mapping.
    """
    text = text.lstrip("﻿")
    first_line = text.split("\n", 1)[0].rstrip("\r").rstrip()

    if first_line in _FENCES:
        fmt = _FENCES[first_line]
        raw, body = _split_fenced(text, first_line)
        try:
            if fmt is FrontMatterFormat.YAML:
                data = yaml.safe_load(raw)
            else:
                data = tomllib.loads(raw)
        except (yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
            raise FrontMatterError(f"invalid {fmt} front-matter: {exc}") from exc
        except ValueError as exc:
            # YAML timestamps that match the pattern but are not calendar days
            raise FrontMatterError(
                f"invalid date in {fmt} front-matter: {exc}", field="date"
            ) from exc
    elif text.startswith("{"):
        fmt = FrontMatterFormat.JSON
        raw, body = _split_json(text)
        data = json.loads(raw)
    else:
        return {}, text, FrontMatterFormat.YAML

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"front-matter must be a mapping, got {type(data).__name__}"
        )
    return data, body.lstrip("\r\n"), fmt


def render_front_matter(data: dict) -> str:
    """Render a YAML front-matter block, keys in insertion order."""
    dumped = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{dumped}---\n"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _describe_validation_error(exc: ValidationError) -> tuple[str, str | None]:
    first = exc.errors()[0]
    field = ".".join(str(p) for p in first.get("loc", ())) or None
    message = first.get("msg", str(exc))
    return f"{field}: {message}" if field else message, field


def load_post(path: Path, content_dir: Path) -> Post:
    """Parse one markdown file into a ``Post``.

    Raises:
        FrontMatterError: The file's front-matter is malformed or invalid.
        ContentError: The file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ContentError(f"cannot read {path}: {exc}") from exc

    data, body, fmt = split_front_matter(text)
    try:
        front_matter = FrontMatter.model_validate(data)
    except ValidationError as exc:
        message, field = _describe_validation_error(exc)
        raise FrontMatterError(message, field=field) from exc

    rel = PurePosixPath(path.relative_to(content_dir).as_posix())
    return Post(path=rel, front_matter=front_matter, body=body, format=fmt)


def iter_content_files(content_dir: Path) -> list[Path]:
    """All post files under ``content_dir`` in a stable order."""
    return sorted(
        p for p in content_dir.rglob("*.md") if p.is_file() and p.name != SECTION_INDEX
    )


def load_content(content_dir: Path) -> ContentIndex:
    """Load every post under ``content_dir``.

    Files that fail to parse are reported in ``load_issues`` instead of
    aborting the load, so one bad post does not hide problems in others.

    Raises:
        ContentError: ``content_dir`` does not exist.
    """
    if not content_dir.is_dir():
        raise ContentError(f"content directory not found: {content_dir}")

    index = ContentIndex()
    for path in iter_content_files(content_dir):
        rel = path.relative_to(content_dir).as_posix()
        try:
            index.posts.append(load_post(path, content_dir))
        except FrontMatterError as exc:
            logger.debug("Invalid front-matter in %s: %s", rel, exc)
            index.load_issues.append(
                ContentIssue(
                    path=rel,
                    code="invalid-front-matter",
                    message=str(exc),
                    field=exc.field,
                )
            )
        except ContentError as exc:
            logger.warning("Skipping unreadable post %s: %s", rel, exc)
            index.load_issues.append(
                ContentIssue(path=rel, code="unreadable", message=str(exc))
            )

    logger.info(
        "Loaded %d post(s) from %s (%d failed)",
        len(index.posts),
        content_dir,
        len(index.load_issues),
    )
    return index


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------


def build_series_index(
    posts: Iterable[Post],
    *,
    include_drafts: bool = False,
) -> dict[str, Series]:
    """Group posts by series name, ordered by weight within each series."""
    grouped: dict[str, list[Post]] = defaultdict(list)
    for post in posts:
        if post.draft and not include_drafts:
            continue
        for name in post.series:
            grouped[name].append(post)

    return {
        name: Series(name=name, posts=sorted(members, key=Post.sort_key))
        for name, members in sorted(grouped.items())
    }


def next_series_weight(posts: Iterable[Post], series: str) -> int:
    """Weight for a post appended to the end of ``series``."""
    weights = [
        p.weight for p in posts if series in p.series and p.weight is not None
    ]
    return max(weights, default=0) + 1


# ---------------------------------------------------------------------------
# Scaffolding
# ---------------------------------------------------------------------------


def new_post(
    content_dir: Path,
    title: str,
    *,
    section: str = "posts",
    series: str | None = None,
    tags: Iterable[str] = (),
    bundle: bool = False,
    now: datetime | None = None,
) -> Path:
    """Create a draft post with front-matter filled in.

    When ``series`` is given the post gets the next free weight in that
    series, computed from the posts already on disk (drafts included).

    Returns:
        Path of the new markdown file.

    Raises:
        ContentError: The target file already exists.
    """
    slug = slugify(title)
    section_dir = content_dir / section if section else content_dir
    path = section_dir / slug / "index.md" if bundle else section_dir / f"{slug}.md"
    if path.exists():
        raise ContentError(f"post already exists: {path}")

    now = now or datetime.now(tz=UTC)
    data: dict[str, object] = {
        "title": title,
        "date": now.replace(microsecond=0).isoformat(),
        "draft": True,
        "description": "",
        "tags": list(tags),
    }
    if series:
        existing = load_content(content_dir).posts if content_dir.is_dir() else []
        data["series"] = [series]
        data["weight"] = next_series_weight(existing, series)

    _atomic_write(path, render_front_matter(data) + "\n")
    logger.info("Created %s", path)
    return path
