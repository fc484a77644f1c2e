"""Site build: run the generator, fingerprint and verify its output."""

from hugoship.build.models import (
    BrokenLink,
    BuildResult,
    FileEntry,
    ManifestDiff,
    SiteManifest,
)
from hugoship.build.services import (
    HugoBuilder,
    check_determinism,
    compare_manifests,
    scan_output,
)
from hugoship.build.verify import check_drafts_excluded, check_links

__all__ = [
    "BrokenLink",
    "BuildResult",
    "FileEntry",
    "HugoBuilder",
    "ManifestDiff",
    "SiteManifest",
    "check_determinism",
    "check_drafts_excluded",
    "check_links",
    "compare_manifests",
    "scan_output",
]
