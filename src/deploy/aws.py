"""AWS credentials for deploys.

CI runners federate into a role with an OIDC web-identity token; local
runs fall back to boto3's default credential chain.
"""

from __future__ import annotations

import logging
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from hugoship.shared.errors import DeployError

logger = logging.getLogger(__name__)


def _session_from_credentials(credentials: dict, region: str | None) -> boto3.session.Session:
    return boto3.session.Session(
        aws_access_key_id=credentials["AccessKeyId"],
        aws_secret_access_key=credentials["SecretAccessKey"],
        aws_session_token=credentials["SessionToken"],
        region_name=region,
    )


def create_session(
    *,
    region: str = "",
    role_arn: str = "",
    web_identity_token_file: str = "",
    session_name: str = "hugoship-deploy",
) -> boto3.session.Session:
    """Build a boto3 session, assuming ``role_arn`` when one is configured.

    Raises:
        DeployError: The token file is unreadable or STS refused the role.
    """
    region_name = region or None
    if not role_arn:
        logger.debug("Using default AWS credential chain")
        return boto3.session.Session(region_name=region_name)

    sts = boto3.client("sts", region_name=region_name)
    try:
        if web_identity_token_file:
            token = Path(web_identity_token_file).read_text(encoding="utf-8").strip()
            logger.info("Assuming %s with web identity", role_arn)
            response = sts.assume_role_with_web_identity(
                RoleArn=role_arn,
                RoleSessionName=session_name,
                WebIdentityToken=token,
            )
        else:
            logger.info("Assuming %s", role_arn)
            response = sts.assume_role(RoleArn=role_arn, RoleSessionName=session_name)
    except OSError as exc:
        raise DeployError(
            f"cannot read web identity token {web_identity_token_file}: {exc}"
        ) from exc
    except (ClientError, BotoCoreError) as exc:
        raise DeployError(f"failed to assume role {role_arn}: {exc}") from exc

    return _session_from_credentials(response["Credentials"], region_name)
