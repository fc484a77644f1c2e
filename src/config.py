"""Unified configuration loaded from .hugoship.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".hugoship.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG = Path.home() / ".config" / "hugoship" / "config.toml"

DEFAULT_CACHE_CONTROL: dict[str, str] = {
    "*.html": "public, max-age=0, must-revalidate",
    "*.xml": "public, max-age=0, must-revalidate",
    "*.json": "public, max-age=0, must-revalidate",
    "*": "public, max-age=86400",
}


class DeployTargetKind(StrEnum):
    S3 = "s3"
    LOCAL = "local"


class InvalidationMode(StrEnum):
    """Which CDN paths to invalidate after a sync."""

    CHANGED = "changed"
    ALL = "all"
    NONE = "none"


class SiteSectionConfig(BaseModel):
    """[site] section."""

    source_dir: str = "."
    content_dir: str = "content"
    output_dir: str = "public"
    base_url: str = ""
    environment: str = "production"

    @property
    def source_path(self) -> Path:
        return Path(self.source_dir)

    @property
    def content_path(self) -> Path:
        return self.source_path / self.content_dir

    @property
    def output_path(self) -> Path:
        out = Path(self.output_dir)
        return out if out.is_absolute() else self.source_path / out


class BuildSectionConfig(BaseModel):
    """[build] section."""

    hugo_binary: str = "hugo"
    minify: bool = True
    build_drafts: bool = False
    build_future: bool = False
    timeout: int = 300
    extra_args: list[str] = Field(default_factory=list)
    fail_on_broken_links: bool = True


class DeploySectionConfig(BaseModel):
    """[deploy] section."""

    target: DeployTargetKind = DeployTargetKind.S3
    bucket: str = ""
    prefix: str = ""
    region: str = ""
    delete_stale: bool = True
    local_dir: str = ""
    cache_control: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_CACHE_CONTROL))


class CdnSectionConfig(BaseModel):
    """[cdn] section."""

    distribution_id: str = ""
    invalidation: InvalidationMode = InvalidationMode.CHANGED
    max_paths: int = 100
    wait: bool = False

    @property
    def is_configured(self) -> bool:
        return bool(self.distribution_id) and self.invalidation != InvalidationMode.NONE


class AwsSectionConfig(BaseModel):
    """[aws] section: identity federation for CI runners."""

    role_arn: str = ""
    web_identity_token_file: str = ""
    session_name: str = "hugoship-deploy"


class NotificationConfig(BaseModel):
    """[notifications] section."""

    slack_webhook: str = ""
    enabled: bool = True

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.slack_webhook)


class WorkflowSectionConfig(BaseModel):
    """[workflow] section: the generated GitHub Actions deploy job."""

    install_spec: str = "hugoship"
    hugo_version: str = "0.139.0"
    python_version: str = "3.12"


class HugoshipConfig(BaseModel):
    """Top-level configuration model for the whole publish pipeline."""

    site: SiteSectionConfig = Field(default_factory=SiteSectionConfig)
    build: BuildSectionConfig = Field(default_factory=BuildSectionConfig)
    deploy: DeploySectionConfig = Field(default_factory=DeploySectionConfig)
    cdn: CdnSectionConfig = Field(default_factory=CdnSectionConfig)
    aws: AwsSectionConfig = Field(default_factory=AwsSectionConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    workflow: WorkflowSectionConfig = Field(default_factory=WorkflowSectionConfig)


# CLI keyword -> (section, field)
_CLI_FIELDS: dict[str, tuple[str, str]] = {
    "source_dir": ("site", "source_dir"),
    "output_dir": ("site", "output_dir"),
    "base_url": ("site", "base_url"),
    "environment": ("site", "environment"),
    "hugo_binary": ("build", "hugo_binary"),
    "build_drafts": ("build", "build_drafts"),
    "build_future": ("build", "build_future"),
    "target": ("deploy", "target"),
    "bucket": ("deploy", "bucket"),
    "prefix": ("deploy", "prefix"),
    "region": ("deploy", "region"),
    "local_dir": ("deploy", "local_dir"),
    "delete_stale": ("deploy", "delete_stale"),
    "distribution_id": ("cdn", "distribution_id"),
    "invalidation": ("cdn", "invalidation"),
    "install_spec": ("workflow", "install_spec"),
}

# Names match the secrets the generated GitHub workflow exports.
_ENV_FIELDS: dict[str, tuple[str, str]] = {
    "HUGOSHIP_SOURCE_DIR": ("site", "source_dir"),
    "HUGOSHIP_OUTPUT_DIR": ("site", "output_dir"),
    "SITE_URL": ("site", "base_url"),
    "S3_BUCKET": ("deploy", "bucket"),
    "AWS_REGION": ("deploy", "region"),
    "CLOUDFRONT_DISTRIBUTION_ID": ("cdn", "distribution_id"),
    "AWS_ROLE_ARN": ("aws", "role_arn"),
    "AWS_WEB_IDENTITY_TOKEN_FILE": ("aws", "web_identity_token_file"),
    "HUGOSHIP_SLACK_WEBHOOK": ("notifications", "slack_webhook"),
}


def load_config(path: str | Path | None = None) -> HugoshipConfig:
    """Build the site configuration from file and environment.

    With ``path`` only that file is read; a missing file is logged and the
    defaults are used. Otherwise ``.hugoship.toml`` in the working directory
    wins over the per-user ``~/.config/hugoship/config.toml``.

    Deploy settings that CI injects (bucket, distribution, role, webhook)
    are then taken from the environment when set and non-empty.

    Raises:
        pydantic.ValidationError: A value in the file or environment does
            not fit its field (for example an unknown invalidation mode).
    """
    if path is not None:
        source = Path(path)
        if not source.exists():
            logger.warning("Config file not found: %s", source)
            source = None
    else:
        source = _find_config_file()

    data = _load_toml(source) if source is not None else {}
    if data:
        logger.info("Loaded config from %s", source)
    return _overlay(HugoshipConfig.model_validate(data), _env_values())


def merge_cli_overrides(config: HugoshipConfig, **cli_kwargs: object) -> HugoshipConfig:
    """Apply command-line flags on top of ``config``.

    Flags left at ``None`` were not given and leave the configured value
    alone, so ``--no-drafts`` (False) still overrides a ``true`` in the
    file. Keywords without a config field are ignored.
    """
    values = {
        _CLI_FIELDS[key]: value
        for key, value in cli_kwargs.items()
        if value is not None and key in _CLI_FIELDS
    }
    return _overlay(config, values)


def _find_config_file() -> Path | None:
    for search_dir in CONFIG_SEARCH_PATHS:
        candidate = search_dir / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return GLOBAL_CONFIG if GLOBAL_CONFIG.exists() else None


def _load_toml(path: Path) -> dict[str, object]:
    # unreadable or malformed files fall back to defaults
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _env_values() -> dict[tuple[str, str], str]:
    # CI exports unset secrets as empty strings
    return {
        target: value
        for env_var, target in _ENV_FIELDS.items()
        if (value := os.environ.get(env_var))
    }


def _overlay(
    config: HugoshipConfig, values: dict[tuple[str, str], object]
) -> HugoshipConfig:
    """Revalidated copy of ``config`` with ``(section, field)`` values replaced."""
    if not values:
        return config
    data = config.model_dump()
    for (section, field), value in values.items():
        data[section][field] = value
    return HugoshipConfig.model_validate(data)
