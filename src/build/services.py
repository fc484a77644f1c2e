"""Running Hugo and fingerprinting its output.

Hugo itself is an external binary invoked through ``subprocess``; this
module only assembles the command line, reports failures and hashes what
was written.
"""

from __future__ import annotations

import hashlib
import logging
import subprocess
import tempfile
import time
from collections.abc import Sequence
from pathlib import Path

from hugoship.build.models import BuildResult, FileEntry, ManifestDiff, SiteManifest
from hugoship.shared.errors import BuildError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


# ---------------------------------------------------------------------------
# Manifests
# ---------------------------------------------------------------------------


def hash_file(path: Path) -> FileEntry:
    sha = hashlib.sha256()
    md5 = hashlib.md5(usedforsecurity=False)
    size = 0
    with open(path, "rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            sha.update(chunk)
            md5.update(chunk)
            size += len(chunk)
    return FileEntry(path=path.name, size=size, sha256=sha.hexdigest(), md5=md5.hexdigest())


def scan_output(directory: Path) -> SiteManifest:
    """Hash every file under ``directory``."""
    manifest = SiteManifest()
    if not directory.is_dir():
        return manifest
    for path in sorted(directory.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(directory).as_posix()
        entry = hash_file(path)
        manifest.files[rel] = entry.model_copy(update={"path": rel})
    return manifest


def compare_manifests(old: SiteManifest, new: SiteManifest) -> ManifestDiff:
    old_paths = set(old.files)
    new_paths = set(new.files)
    return ManifestDiff(
        added=sorted(new_paths - old_paths),
        removed=sorted(old_paths - new_paths),
        changed=sorted(
            p for p in old_paths & new_paths if old.files[p].sha256 != new.files[p].sha256
        ),
    )


# ---------------------------------------------------------------------------
# Hugo
# ---------------------------------------------------------------------------


class HugoBuilder:
    """Builds a site by shelling out to the ``hugo`` binary."""

    def __init__(
        self,
        binary: str = "hugo",
        *,
        timeout: int = 300,
        extra_args: Sequence[str] = (),
    ) -> None:
        self.binary = binary
        self.timeout = timeout
        self.extra_args = list(extra_args)

    def command(
        self,
        source_dir: Path,
        destination: Path,
        *,
        base_url: str | None = None,
        environment: str = "production",
        minify: bool = True,
        build_drafts: bool = False,
        build_future: bool = False,
    ) -> list[str]:
        cmd = [
            self.binary,
            "--source",
            str(source_dir),
            "--destination",
            str(destination),
            "--cleanDestinationDir",
        ]
        if minify:
            cmd.append("--minify")
        if base_url:
            cmd.extend(["--baseURL", base_url])
        if environment:
            cmd.extend(["--environment", environment])
        if build_drafts:
            cmd.append("--buildDrafts")
        if build_future:
            cmd.append("--buildFuture")
        cmd.extend(self.extra_args)
        return cmd

    def build(self, source_dir: Path, destination: Path, **options) -> BuildResult:
        """Run Hugo and return the manifest of what it wrote.

        Raises:
            BuildError: Hugo is missing, timed out, or exited non-zero.
        """
        cmd = self.command(source_dir, destination, **options)
        logger.info("Building site: %s", " ".join(cmd))
        started = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise BuildError(
                f"Hugo not found, is {self.binary!r} on the PATH?"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise BuildError(f"Hugo timed out after {self.timeout}s") from exc

        if result.returncode != 0:
            raise BuildError(
                f"Hugo failed (exit {result.returncode}): {result.stderr.strip()[:500]}",
                stderr=result.stderr,
            )

        duration = time.monotonic() - started
        manifest = scan_output(destination)
        logger.info(
            "Built %d file(s) into %s in %.1fs", len(manifest), destination, duration
        )
        return BuildResult(
            destination=destination,
            manifest=manifest,
            duration_seconds=duration,
            stdout=result.stdout,
        )


def check_determinism(builder: HugoBuilder, source_dir: Path, **options) -> ManifestDiff:
    """Build twice from the same source and report any output differences."""
    with tempfile.TemporaryDirectory(prefix="hugoship-") as tmp:
        first = builder.build(source_dir, Path(tmp) / "first", **options)
        second = builder.build(source_dir, Path(tmp) / "second", **options)
    diff = compare_manifests(first.manifest, second.manifest)
    if diff.is_empty:
        logger.info("Build is deterministic (%s)", first.manifest.digest[:12])
    else:
        logger.warning(
            "Build is not deterministic: %d added, %d removed, %d changed",
            len(diff.added),
            len(diff.removed),
            len(diff.changed),
        )
    return diff
