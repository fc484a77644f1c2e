"""Deploy target factory."""

from __future__ import annotations

from pathlib import Path

from hugoship.config import DeployTargetKind, HugoshipConfig
from hugoship.deploy.targets.base import DeployTarget
from hugoship.shared.errors import DeployError


def create_target(config: HugoshipConfig, *, session=None) -> DeployTarget:
    """Create the deploy target named by ``config.deploy.target``.

    Args:
        config: Full configuration.
        session: Optional boto3 session; one is created from ``[aws]`` when
            an S3 target needs it.

    Raises:
        ValueError: If the target kind is unknown.
        DeployError: If the target is missing required settings.
    """
    kind = DeployTargetKind(config.deploy.target)

    if kind == DeployTargetKind.S3:
        from hugoship.deploy.aws import create_session
        from hugoship.deploy.targets.s3 import S3Target

        if session is None:
            session = create_session(
                region=config.deploy.region,
                role_arn=config.aws.role_arn,
                web_identity_token_file=config.aws.web_identity_token_file,
                session_name=config.aws.session_name,
            )
        return S3Target(
            session.client("s3"),
            config.deploy.bucket,
            prefix=config.deploy.prefix,
            cache_control_rules=config.deploy.cache_control,
        )

    if kind == DeployTargetKind.LOCAL:
        from hugoship.deploy.targets.local import LocalTarget

        if not config.deploy.local_dir:
            raise DeployError("no local directory configured (set [deploy].local_dir)")
        return LocalTarget(Path(config.deploy.local_dir))

    raise ValueError(f"Unknown deploy target: {kind!r}")
