"""GitHub Actions workflow that runs ``hugoship publish`` on push."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from hugoship.config import HugoshipConfig
from hugoship.core import _atomic_write
from hugoship.shared.errors import HugoshipError

logger = logging.getLogger(__name__)

DEFAULT_WORKFLOW_PATH = Path(".github") / "workflows" / "deploy.yml"


def build_workflow(config: HugoshipConfig, *, branch: str = "main") -> dict:
    """Workflow definition as a plain dict.

    Hugo, Python and the hugoship install source (a PyPI name, a pinned
    version or a ``git+https://...`` URL) come from ``config.workflow``.
    """
    settings = config.workflow
    env = {
        "S3_BUCKET": "${{ secrets.S3_BUCKET }}",
        "CLOUDFRONT_DISTRIBUTION_ID": "${{ secrets.CLOUDFRONT_DISTRIBUTION_ID }}",
        "AWS_REGION": "${{ vars.AWS_REGION || '%s' }}" % (config.deploy.region or "us-east-1"),
        "SITE_URL": "${{ vars.SITE_URL }}",
    }
    if config.notifications.enabled:
        env["HUGOSHIP_SLACK_WEBHOOK"] = "${{ secrets.SLACK_WEBHOOK_URL }}"

    source = config.site.source_dir
    publish_cmd = "hugoship publish"
    if source not in ("", "."):
        publish_cmd += f" --source {source}"

    return {
        "name": "Deploy site",
        "on": {
            "push": {"branches": [branch]},
            "workflow_dispatch": {},
        },
        "permissions": {"id-token": "write", "contents": "read"},
        "concurrency": {"group": "deploy", "cancel-in-progress": False},
        "jobs": {
            "deploy": {
                "runs-on": "ubuntu-latest",
                "env": env,
                "steps": [
                    {
                        "uses": "actions/checkout@v4",
                        "with": {"submodules": "recursive", "fetch-depth": 0},
                    },
                    {
                        "name": "Set up Hugo",
                        "uses": "peaceiris/actions-hugo@v3",
                        "with": {"hugo-version": settings.hugo_version, "extended": True},
                    },
                    {
                        "uses": "actions/setup-python@v5",
                        "with": {"python-version": settings.python_version},
                    },
                    {"name": "Install hugoship", "run": f"pip install {settings.install_spec}"},
                    {
                        "name": "Configure AWS credentials",
                        "uses": "aws-actions/configure-aws-credentials@v4",
                        "with": {
                            "role-to-assume": "${{ secrets.AWS_ROLE_ARN }}",
                            "aws-region": "${{ env.AWS_REGION }}",
                        },
                    },
                    {"name": "Publish", "run": publish_cmd},
                ],
            }
        },
    }


def render_workflow(config: HugoshipConfig, *, branch: str = "main") -> str:
    """Workflow YAML for deploying on push to ``branch``."""
    return yaml.safe_dump(
        build_workflow(config, branch=branch),
        sort_keys=False,
        default_flow_style=False,
        width=120,
    )


def write_workflow(
    path: Path,
    config: HugoshipConfig,
    *,
    branch: str = "main",
    force: bool = False,
) -> Path:
    """Write the workflow file.

    Raises:
        HugoshipError: ``path`` exists and ``force`` is not set.
    """
    if path.exists() and not force:
        raise HugoshipError(f"{path} already exists (use --force to overwrite)")
    _atomic_write(path, render_workflow(config, branch=branch))
    logger.info("Wrote workflow to %s", path)
    return path
