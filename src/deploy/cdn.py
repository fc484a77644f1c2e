"""CloudFront cache invalidation."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Sequence
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from hugoship.shared.errors import InvalidationError

logger = logging.getLogger(__name__)

WILDCARD = "/*"


def invalidation_paths(
    keys: Iterable[str],
    *,
    prefix: str = "",
    max_paths: int = 100,
) -> list[str]:
    """CDN paths to invalidate for a set of changed object keys.

    Directory index pages are also invalidated under their pretty URLs
    (``/a/b/`` and ``/a/b``). Above ``max_paths`` everything collapses
    into a single wildcard.
    """
    base = "/" + prefix.strip("/") if prefix.strip("/") else ""
    paths: set[str] = set()
    for key in keys:
        key = key.lstrip("/")
        paths.add(f"{base}/{quote(key)}")
        if key == "index.html":
            paths.add(f"{base}/")
        elif key.endswith("/index.html"):
            directory = quote(key[: -len("/index.html")])
            paths.add(f"{base}/{directory}/")
            paths.add(f"{base}/{directory}")

    if len(paths) > max_paths:
        logger.info("%d paths changed, invalidating %s instead", len(paths), WILDCARD)
        return [f"{base}{WILDCARD}"]
    return sorted(paths)


def caller_reference(digest: str, paths: Sequence[str]) -> str:
    """Stable reference so a retried identical request is not duplicated."""
    h = hashlib.sha256("\n".join(sorted(paths)).encode("utf-8")).hexdigest()
    return f"hugoship-{digest[:16]}-{h[:16]}"


class CloudFrontInvalidator:
    """Issues invalidations against one CloudFront distribution."""

    def __init__(self, client, distribution_id: str, *, wait: bool = False) -> None:
        if not distribution_id:
            raise InvalidationError("no CloudFront distribution configured")
        self.client = client
        self.distribution_id = distribution_id
        self.wait = wait

    def invalidate(self, paths: Sequence[str], reference: str) -> str | None:
        """Invalidate ``paths`` and return the invalidation id.

        Returns None without calling CloudFront when ``paths`` is empty.

        Raises:
            InvalidationError: CloudFront rejected the request or the wait failed.
        """
        if not paths:
            logger.info("Nothing to invalidate")
            return None

        try:
            response = self.client.create_invalidation(
                DistributionId=self.distribution_id,
                InvalidationBatch={
                    "Paths": {"Quantity": len(paths), "Items": list(paths)},
                    "CallerReference": reference,
                },
            )
        except (ClientError, BotoCoreError) as exc:
            raise InvalidationError(
                f"invalidation on {self.distribution_id} failed: {exc}"
            ) from exc

        invalidation_id = response["Invalidation"]["Id"]
        logger.info(
            "Created invalidation %s for %d path(s) on %s",
            invalidation_id,
            len(paths),
            self.distribution_id,
        )

        if self.wait:
            try:
                waiter = self.client.get_waiter("invalidation_completed")
                waiter.wait(DistributionId=self.distribution_id, Id=invalidation_id)
            except (WaiterError, ClientError, BotoCoreError) as exc:
                raise InvalidationError(
                    f"invalidation {invalidation_id} did not complete: {exc}"
                ) from exc
            logger.info("Invalidation %s completed", invalidation_id)

        return invalidation_id


def create_invalidator(config, *, session=None) -> CloudFrontInvalidator | None:
    """Invalidator for ``config.cdn``, or None when no CDN is configured."""
    if not config.cdn.is_configured:
        return None
    if session is None:
        from hugoship.deploy.aws import create_session

        session = create_session(
            region=config.deploy.region,
            role_arn=config.aws.role_arn,
            web_identity_token_file=config.aws.web_identity_token_file,
            session_name=config.aws.session_name,
        )
    return CloudFrontInvalidator(
        session.client("cloudfront"),
        config.cdn.distribution_id,
        wait=config.cdn.wait,
    )
