"""Planning and applying a sync from a build output to a deploy target."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from hugoship.build.models import SiteManifest
from hugoship.deploy.models import SyncPlan, SyncResult
from hugoship.deploy.targets.base import DeployTarget

logger = logging.getLogger(__name__)


def _upload_order(path: str) -> tuple[int, str]:
    # assets first, then pages, sitemap/feeds last
    if path.endswith((".html", ".htm")):
        return (1, path)
    if path.endswith(".xml"):
        return (2, path)
    return (0, path)


def plan_sync(
    local: SiteManifest,
    remote: Mapping[str, str],
    *,
    delete_stale: bool = True,
) -> SyncPlan:
    """Compare a local build against what the target already holds.

    A file is uploaded when it is missing remotely or its md5 differs.
    Remote keys absent from the build are deleted when ``delete_stale``.
    """
    uploads: list[str] = []
    unchanged: list[str] = []
    for path, entry in local.files.items():
        if remote.get(path) == entry.md5:
            unchanged.append(path)
        else:
            uploads.append(path)

    deletes = sorted(set(remote) - set(local.files)) if delete_stale else []
    return SyncPlan(
        uploads=sorted(uploads, key=_upload_order),
        deletes=deletes,
        unchanged=sorted(unchanged),
    )


def sync(
    plan: SyncPlan,
    manifest: SiteManifest,
    output_dir: Path,
    target: DeployTarget,
    *,
    dry_run: bool = False,
) -> SyncResult:
    """Apply ``plan`` to ``target``.

    Stops at the first failure; files already uploaded stay uploaded, so a
    failed run can leave a mix of old and new objects until it is re-run.

    Raises:
        DeployError: Propagated from the target.
    """
    result = SyncResult(plan=plan, dry_run=dry_run)
    if dry_run:
        logger.info(
            "Dry run: would upload %d and delete %d file(s) at %s",
            len(plan.uploads),
            len(plan.deletes),
            target.destination,
        )
        return result

    for path in plan.uploads:
        target.upload(manifest.files[path], output_dir / path)
        result.uploaded.append(path)
        logger.debug("Uploaded %s", path)

    if plan.deletes:
        target.delete(plan.deletes)
        result.deleted.extend(plan.deletes)

    logger.info(
        "Synced %s: %d uploaded, %d deleted, %d unchanged",
        target.destination,
        len(result.uploaded),
        len(result.deleted),
        len(plan.unchanged),
    )
    return result
