"""Publish pipeline: content, build, verify, sync, invalidate.

Every stage runs to completion or raises; a failure aborts the remaining
stages and leaves whatever is already published in place.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from hugoship.build import (
    BrokenLink,
    BuildResult,
    HugoBuilder,
    SiteManifest,
    check_drafts_excluded,
    check_links,
    scan_output,
)
from hugoship.config import DeployTargetKind, HugoshipConfig, InvalidationMode
from hugoship.content import ValidationReport, load_content, validate_content
from hugoship.deploy import (
    DeployRecord,
    SyncResult,
    caller_reference,
    invalidation_paths,
    load_deploy_state,
    plan_sync,
    save_deploy_state,
    sync,
)
from hugoship.deploy.cdn import WILDCARD, CloudFrontInvalidator, create_invalidator
from hugoship.deploy.targets import create_target
from hugoship.deploy.targets.base import DeployTarget
from hugoship.integrations.slack import SlackNotifier
from hugoship.shared.errors import (
    HugoshipError,
    PipelineReport,
    ValidationFailed,
    VerificationError,
)

logger = logging.getLogger(__name__)


class PublishResult(BaseModel):
    """Everything a publish run produced, stage by stage."""

    validation: ValidationReport | None = None
    build: BuildResult | None = None
    broken_links: list[BrokenLink] = Field(default_factory=list)
    sync: SyncResult | None = None
    invalidation_paths: list[str] = Field(default_factory=list)
    invalidation_id: str | None = None
    record: DeployRecord | None = None


@contextlib.contextmanager
def _stage(
    name: str,
    report: PipelineReport,
    notifier: SlackNotifier | None,
) -> Iterator[None]:
    logger.info("Stage: %s", name)
    try:
        yield
    except HugoshipError as exc:
        report.add_error(name, str(exc), source=name, error_type=type(exc).__name__)
        if notifier is not None:
            notifier.notify_failure(name, str(exc))
        raise
    report.mark_completed(name)


def _site_prefix(base_url: str) -> str:
    return urlsplit(base_url).path.strip("/") if base_url else ""


def _needs_aws(config: HugoshipConfig, target, invalidator) -> bool:
    if target is None and config.deploy.target == DeployTargetKind.S3:
        return True
    return invalidator is None and config.cdn.is_configured


def _aws_session(config: HugoshipConfig):
    from hugoship.deploy.aws import create_session

    return create_session(
        region=config.deploy.region,
        role_arn=config.aws.role_arn,
        web_identity_token_file=config.aws.web_identity_token_file,
        session_name=config.aws.session_name,
    )


def deploy_site(
    config: HugoshipConfig,
    *,
    output_dir: Path | None = None,
    manifest: SiteManifest | None = None,
    target: DeployTarget | None = None,
    invalidator: CloudFrontInvalidator | None = None,
    notifier: SlackNotifier | None = None,
    dry_run: bool = False,
    report: PipelineReport | None = None,
    result: PublishResult | None = None,
    now: datetime | None = None,
) -> PublishResult:
    """Sync an existing build output and invalidate the CDN.

    Args:
        config: Full configuration.
        output_dir: Built site; defaults to ``config.site.output_path``.
        manifest: Pre-computed manifest of ``output_dir``.
        target: Deploy target; created from config when omitted.
        invalidator: CDN invalidator; created from config when omitted
            and a distribution is configured.
        notifier: Slack notifier; created from config when omitted.
        dry_run: Plan the sync and invalidation without changing anything.
        report: Collects errors per stage.
        result: Result object to fill in (used by ``publish_site``).

    Raises:
        DeployError: Listing, uploading or deleting failed.
        InvalidationError: The CDN invalidation failed.
    """
    report = report if report is not None else PipelineReport()
    result = result if result is not None else PublishResult()
    notifier = notifier if notifier is not None else SlackNotifier(config.notifications)
    output_dir = output_dir or config.site.output_path

    with _stage("sync", report, notifier):
        if manifest is None:
            manifest = scan_output(output_dir)
        if not manifest.files:
            raise VerificationError(f"nothing to deploy: {output_dir} is empty")

        session = _aws_session(config) if _needs_aws(config, target, invalidator) else None
        if target is None:
            target = create_target(config, session=session)
        if invalidator is None:
            invalidator = create_invalidator(config, session=session)

        plan = plan_sync(
            manifest,
            target.remote_manifest(),
            delete_stale=config.deploy.delete_stale,
        )
        result.sync = sync(plan, manifest, output_dir, target, dry_run=dry_run)

    with _stage("invalidate", report, notifier):
        mode = InvalidationMode(config.cdn.invalidation)
        prefix = _site_prefix(config.site.base_url)
        if invalidator is None or mode == InvalidationMode.NONE or plan.is_empty:
            paths: list[str] = []
        elif mode == InvalidationMode.ALL:
            paths = [f"/{prefix}{WILDCARD}" if prefix else WILDCARD]
        else:
            paths = invalidation_paths(
                plan.changed_keys, prefix=prefix, max_paths=config.cdn.max_paths
            )
        result.invalidation_paths = paths
        if paths and not dry_run:
            result.invalidation_id = invalidator.invalidate(
                paths, caller_reference(manifest.digest, paths)
            )

    record = DeployRecord(
        deployed_at=now or datetime.now(tz=UTC),
        target=target.name,
        destination=target.destination,
        digest=manifest.digest,
        uploaded=len(result.sync.uploaded),
        deleted=len(result.sync.deleted),
        invalidation_id=result.invalidation_id,
        dry_run=dry_run,
    )
    result.record = record

    if not dry_run:
        state = load_deploy_state(config.site.source_path)
        state.record(record)
        save_deploy_state(state, config.site.source_path)
        if not plan.is_empty:
            notifier.notify_success(
                target.destination,
                uploaded=record.uploaded,
                deleted=record.deleted,
                invalidation_id=record.invalidation_id,
                site_url=config.site.base_url,
            )
    return result


def publish_site(
    config: HugoshipConfig,
    *,
    builder: HugoBuilder | None = None,
    target: DeployTarget | None = None,
    invalidator: CloudFrontInvalidator | None = None,
    notifier: SlackNotifier | None = None,
    dry_run: bool = False,
    skip_checks: bool = False,
    report: PipelineReport | None = None,
    now: datetime | None = None,
) -> PublishResult:
    """Validate, build, verify and deploy the site.

    Raises:
        ValidationFailed: Content checks found errors.
        BuildError: Hugo failed.
        VerificationError: Drafts leaked into the output or links are broken.
        DeployError: The sync failed.
        InvalidationError: The CDN invalidation failed.
    """
    report = report if report is not None else PipelineReport()
    notifier = notifier if notifier is not None else SlackNotifier(config.notifications)
    builder = builder or HugoBuilder(
        config.build.hugo_binary,
        timeout=config.build.timeout,
        extra_args=config.build.extra_args,
    )
    now = now or datetime.now(tz=UTC)
    result = PublishResult()

    with _stage("validate", report, notifier):
        index = load_content(config.site.content_path)
        if not skip_checks:
            validation = validate_content(
                index, now=now, build_future=config.build.build_future
            )
            result.validation = validation
            if not validation.ok:
                raise ValidationFailed(
                    f"{len(validation.errors)} content error(s)",
                    issues=validation.errors,
                )

    with _stage("build", report, notifier):
        result.build = builder.build(
            config.site.source_path,
            config.site.output_path,
            base_url=config.site.base_url or None,
            environment=config.site.environment,
            minify=config.build.minify,
            build_drafts=config.build.build_drafts,
            build_future=config.build.build_future,
        )

    with _stage("verify", report, notifier):
        output_dir = result.build.destination
        if not config.build.build_drafts:
            leaked = check_drafts_excluded(index.posts, output_dir)
            if leaked:
                raise VerificationError(
                    "draft post(s) in build output: " + ", ".join(i.path for i in leaked)
                )
        if not skip_checks:
            result.broken_links = check_links(output_dir, base_url=config.site.base_url)
            if result.broken_links and config.build.fail_on_broken_links:
                sample = ", ".join(
                    f"{b.page} -> {b.target}" for b in result.broken_links[:5]
                )
                raise VerificationError(
                    f"{len(result.broken_links)} broken link(s): {sample}"
                )

    return deploy_site(
        config,
        output_dir=result.build.destination,
        manifest=result.build.manifest,
        target=target,
        invalidator=invalidator,
        notifier=notifier,
        dry_run=dry_run,
        report=report,
        result=result,
        now=now,
    )
