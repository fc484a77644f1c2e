"""S3 bucket deploy target."""

from __future__ import annotations

import fnmatch
import logging
import mimetypes
from collections.abc import Mapping, Sequence
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError

from hugoship.build.models import FileEntry
from hugoship.deploy.targets.base import DeployTarget
from hugoship.shared.errors import DeployError

logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 1000

_TEXT_TYPES = {
    "application/javascript",
    "application/json",
    "application/xml",
    "application/rss+xml",
    "image/svg+xml",
}


def content_type_for(key: str) -> str:
    """MIME type for ``key``, with a utf-8 charset on text types."""
    guessed, _ = mimetypes.guess_type(key)
    if guessed is None:
        return "application/octet-stream"
    if guessed.startswith("text/") or guessed in _TEXT_TYPES:
        return f"{guessed}; charset=utf-8"
    return guessed


def cache_control_for(key: str, rules: Mapping[str, str]) -> str | None:
    """First rule whose glob matches the key's file name or full path."""
    name = key.rsplit("/", 1)[-1]
    for pattern, value in rules.items():
        if fnmatch.fnmatch(name, pattern) or fnmatch.fnmatch(key, pattern):
            return value
    return None


class S3Target(DeployTarget):
    """Publishes to an S3 bucket, optionally under a key prefix."""

    name = "s3"

    def __init__(
        self,
        client,
        bucket: str,
        *,
        prefix: str = "",
        cache_control_rules: Mapping[str, str] | None = None,
    ) -> None:
        if not bucket:
            raise DeployError("no S3 bucket configured (set S3_BUCKET or [deploy].bucket)")
        self.client = client
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.cache_control_rules = dict(cache_control_rules or {})

    @property
    def destination(self) -> str:
        return f"s3://{self.bucket}/{self.prefix}" if self.prefix else f"s3://{self.bucket}"

    def _key(self, path: str) -> str:
        return f"{self.prefix}/{path}" if self.prefix else path

    def _path(self, key: str) -> str:
        return key[len(self.prefix) + 1 :] if self.prefix else key

    def remote_manifest(self) -> dict[str, str]:
        manifest: dict[str, str] = {}
        kwargs = {"Bucket": self.bucket}
        if self.prefix:
            kwargs["Prefix"] = self.prefix + "/"
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**kwargs):
                for obj in page.get("Contents", []):
                    key = obj["Key"]
                    if key.endswith("/"):
                        continue
                    # multipart ETags contain "-" and never equal an md5
                    manifest[self._path(key)] = obj.get("ETag", "").strip('"')
        except (ClientError, BotoCoreError) as exc:
            raise DeployError(f"failed to list {self.destination}: {exc}") from exc
        logger.debug("Found %d object(s) in %s", len(manifest), self.destination)
        return manifest

    def upload(self, entry: FileEntry, local_path: Path) -> None:
        key = self._key(entry.path)
        extra: dict[str, str] = {"ContentType": content_type_for(entry.path)}
        cache_control = cache_control_for(entry.path, self.cache_control_rules)
        if cache_control:
            extra["CacheControl"] = cache_control
        try:
            with open(local_path, "rb") as body:
                self.client.put_object(Bucket=self.bucket, Key=key, Body=body, **extra)
        except (ClientError, BotoCoreError) as exc:
            raise DeployError(f"failed to upload s3://{self.bucket}/{key}: {exc}") from exc

    def delete(self, keys: Sequence[str]) -> None:
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start : start + DELETE_BATCH_SIZE]
            try:
                response = self.client.delete_objects(
                    Bucket=self.bucket,
                    Delete={
                        "Objects": [{"Key": self._key(k)} for k in batch],
                        "Quiet": True,
                    },
                )
            except (ClientError, BotoCoreError) as exc:
                raise DeployError(f"failed to delete from {self.destination}: {exc}") from exc
            errors = response.get("Errors", [])
            if errors:
                first = errors[0]
                raise DeployError(
                    f"failed to delete {len(errors)} object(s) from {self.destination}: "
                    f"{first.get('Key')}: {first.get('Message')}"
                )
