"""Data models for generated site output."""

from __future__ import annotations

import hashlib
from pathlib import Path

from pydantic import BaseModel, Field


class FileEntry(BaseModel):
    """One generated file, keyed by its POSIX path relative to the output root."""

    path: str
    size: int
    sha256: str
    md5: str

    @property
    def is_html(self) -> bool:
        return self.path.endswith((".html", ".htm"))


class SiteManifest(BaseModel):
    """Content hashes of every file in a build output."""

    files: dict[str, FileEntry] = Field(default_factory=dict)

    @property
    def digest(self) -> str:
        """Hash over all paths and content hashes; equal digests mean equal output."""
        h = hashlib.sha256()
        for path in sorted(self.files):
            h.update(path.encode("utf-8"))
            h.update(b"\0")
            h.update(self.files[path].sha256.encode("ascii"))
            h.update(b"\n")
        return h.hexdigest()

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files.values())

    def __len__(self) -> int:
        return len(self.files)


class ManifestDiff(BaseModel):
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    changed: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)


class BuildResult(BaseModel):
    """Outcome of one generator run."""

    destination: Path
    manifest: SiteManifest
    duration_seconds: float = 0.0
    stdout: str = ""


class BrokenLink(BaseModel):
    """A reference in generated HTML that does not resolve to an output file."""

    page: str
    target: str
