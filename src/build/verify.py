"""Post-build checks on generated output.

Runs after Hugo and before anything is uploaded, so a bad build never
reaches the bucket.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import unquote, urljoin, urlsplit

from bs4 import BeautifulSoup

from hugoship.build.models import BrokenLink
from hugoship.content.models import ContentIssue, Post

logger = logging.getLogger(__name__)

_LINK_ATTRS: dict[str, tuple[str, ...]] = {
    "a": ("href",),
    "link": ("href",),
    "img": ("src",),
    "script": ("src",),
    "source": ("src",),
    "iframe": ("src",),
    "video": ("src", "poster"),
    "audio": ("src",),
}

_IGNORED_SCHEMES = {"mailto", "tel", "javascript", "data", "sms", "ftp"}


def _output_path_for(output_dir: Path, url_path: str) -> Path:
    return output_dir / url_path.lstrip("/")


def _resolves(output_dir: Path, url_path: str) -> bool:
    target = _output_path_for(output_dir, url_path)
    if target.is_file():
        return True
    return target.is_dir() and (target / "index.html").is_file()


def page_url(output_dir: Path, html_file: Path) -> str:
    """URL path a generated HTML file is served at."""
    rel = html_file.relative_to(output_dir).as_posix()
    if rel == "index.html":
        return "/"
    if rel.endswith("/index.html"):
        return "/" + rel[: -len("index.html")]
    return "/" + rel


def check_drafts_excluded(posts: Iterable[Post], output_dir: Path) -> list[ContentIssue]:
    """Report every draft post whose page exists in the build output."""
    issues: list[ContentIssue] = []
    for post in posts:
        if not post.draft:
            continue
        if _resolves(output_dir, post.permalink):
            issues.append(
                ContentIssue(
                    path=str(post.path),
                    code="draft-published",
                    message=f"draft post was rendered at {post.permalink}",
                )
            )
    return issues


class _LinkResolver:
    def __init__(self, base_url: str) -> None:
        parts = urlsplit(base_url) if base_url else None
        self.host = parts.netloc.lower() if parts else ""
        prefix = parts.path if parts else ""
        self.prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""

    def to_site_path(self, page: str, reference: str) -> str | None:
        """Map a reference to a URL path inside the site, or None if external."""
        reference = reference.strip()
        if not reference or reference.startswith("#"):
            return None
        parts = urlsplit(reference)
        if parts.scheme and parts.scheme.lower() in _IGNORED_SCHEMES:
            return None
        if parts.netloc:
            if not self.host or parts.netloc.lower() != self.host:
                return None
            path = parts.path or "/"
        elif parts.scheme:
            return None
        else:
            path = urljoin(page, parts.path) if parts.path else page

        path = unquote(path)
        if self.prefix and (path == self.prefix or path.startswith(self.prefix + "/")):
            path = path[len(self.prefix) :] or "/"
        return path


def _iter_references(soup: BeautifulSoup):
    for tag_name, attrs in _LINK_ATTRS.items():
        for tag in soup.find_all(tag_name):
            for attr in attrs:
                value = tag.get(attr)
                if value:
                    yield value
            if tag_name in ("img", "source"):
                srcset = tag.get("srcset")
                if srcset:
                    for candidate in srcset.split(","):
                        url = candidate.strip().split(" ")[0]
                        if url:
                            yield url


def check_links(output_dir: Path, *, base_url: str = "") -> list[BrokenLink]:
    """Find references in generated HTML that do not resolve to output files."""
    resolver = _LinkResolver(base_url)
    broken: list[BrokenLink] = []
    html_files = sorted(output_dir.rglob("*.html"))

    for html_file in html_files:
        page = page_url(output_dir, html_file)
        soup = BeautifulSoup(html_file.read_text(encoding="utf-8", errors="replace"), "html.parser")
        seen: set[str] = set()
        for reference in _iter_references(soup):
            site_path = resolver.to_site_path(page, reference)
            if site_path is None or site_path in seen:
                continue
            seen.add(site_path)
            if not _resolves(output_dir, site_path):
                broken.append(BrokenLink(page=page, target=reference))

    logger.info("Checked links in %d page(s): %d broken", len(html_files), len(broken))
    return broken
