"""Shared fixtures: a throwaway Hugo project and a clean environment."""

from __future__ import annotations

from pathlib import Path

import pytest

ENV_VARS = (
    "HUGOSHIP_SOURCE_DIR",
    "HUGOSHIP_OUTPUT_DIR",
    "SITE_URL",
    "S3_BUCKET",
    "AWS_REGION",
    "CLOUDFRONT_DISTRIBUTION_ID",
    "AWS_ROLE_ARN",
    "AWS_WEB_IDENTITY_TOKEN_FILE",
    "HUGOSHIP_SLACK_WEBHOOK",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove env vars that config loading reads so tests see only their own values."""
    for key in ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """A Hugo project root with an empty content/posts section."""
    (tmp_path / "content" / "posts").mkdir(parents=True)
    (tmp_path / "hugo.toml").write_text('baseURL = "https://blog.example.com/"\n')
    return tmp_path


@pytest.fixture
def write_post(site_dir: Path):
    """Write a markdown post with YAML front-matter under content/."""

    def _write(rel_path: str, front_matter: str, body: str = "Body text.\n") -> Path:
        path = site_dir / "content" / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"---\n{front_matter.strip()}\n---\n\n{body}", encoding="utf-8")
        return path

    return _write
