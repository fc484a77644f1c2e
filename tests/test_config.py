"""Tests for src/config.py: HugoshipConfig, TOML loading, env vars, CLI overrides."""

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from hugoship.config import (
    DeployTargetKind,
    HugoshipConfig,
    InvalidationMode,
    NotificationConfig,
    load_config,
    merge_cli_overrides,
)


class TestHugoshipConfigDefaults:
    """Test that HugoshipConfig has sensible defaults."""

    def test_default_site(self):
        cfg = HugoshipConfig()
        assert cfg.site.source_dir == "."
        assert cfg.site.content_path == Path("content")
        assert cfg.site.output_path == Path("public")
        assert cfg.site.environment == "production"

    def test_default_build(self):
        cfg = HugoshipConfig()
        assert cfg.build.hugo_binary == "hugo"
        assert cfg.build.minify is True
        assert cfg.build.build_drafts is False
        assert cfg.build.fail_on_broken_links is True

    def test_default_deploy(self):
        cfg = HugoshipConfig()
        assert cfg.deploy.target == DeployTargetKind.S3
        assert cfg.deploy.delete_stale is True
        assert cfg.deploy.cache_control["*.html"].startswith("public, max-age=0")

    def test_default_cdn(self):
        cfg = HugoshipConfig()
        assert cfg.cdn.invalidation == InvalidationMode.CHANGED
        assert cfg.cdn.is_configured is False

    def test_default_notifications(self):
        cfg = HugoshipConfig()
        assert cfg.notifications.enabled is True
        assert cfg.notifications.is_configured is False

    def test_cache_control_not_shared(self):
        a, b = HugoshipConfig(), HugoshipConfig()
        a.deploy.cache_control["*.css"] = "no-store"
        assert "*.css" not in b.deploy.cache_control


class TestSitePaths:
    def test_relative_output_under_source(self):
        cfg = HugoshipConfig.model_validate({"site": {"source_dir": "/srv/blog"}})
        assert cfg.site.content_path == Path("/srv/blog/content")
        assert cfg.site.output_path == Path("/srv/blog/public")

    def test_absolute_output(self):
        cfg = HugoshipConfig.model_validate(
            {"site": {"source_dir": "/srv/blog", "output_dir": "/tmp/out"}}
        )
        assert cfg.site.output_path == Path("/tmp/out")


class TestLoadConfig:
    """Test load_config with TOML files."""

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "site.toml"
        path.write_text(
            '[site]\nbase_url = "https://blog.example.com/"\n\n'
            '[deploy]\nbucket = "my-blog"\nregion = "eu-west-1"\n\n'
            '[deploy.cache_control]\n"*.html" = "no-cache"\n\n'
            '[cdn]\ndistribution_id = "E123"\ninvalidation = "all"\n'
        )
        cfg = load_config(path)
        assert cfg.site.base_url == "https://blog.example.com/"
        assert cfg.deploy.bucket == "my-blog"
        assert cfg.deploy.cache_control == {"*.html": "no-cache"}
        assert cfg.cdn.invalidation == InvalidationMode.ALL
        assert cfg.cdn.is_configured is True

    def test_missing_explicit_path(self, tmp_path):
        cfg = load_config(tmp_path / "nope.toml")
        assert cfg == HugoshipConfig()

    def test_invalid_toml_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("this is [not toml")
        assert load_config(path) == HugoshipConfig()

    def test_search_cwd(self, tmp_path, monkeypatch):
        (tmp_path / ".hugoship.toml").write_text('[deploy]\nbucket = "from-cwd"\n')
        monkeypatch.chdir(tmp_path)
        with patch("hugoship.config.GLOBAL_CONFIG", tmp_path / "missing.toml"):
            cfg = load_config()
        assert cfg.deploy.bucket == "from-cwd"

    def test_cwd_wins_over_global(self, tmp_path, monkeypatch):
        global_path = tmp_path / "global.toml"
        global_path.write_text('[deploy]\nbucket = "from-global"\n')
        (tmp_path / ".hugoship.toml").write_text('[deploy]\nbucket = "from-cwd"\n')
        monkeypatch.chdir(tmp_path)
        with patch("hugoship.config.GLOBAL_CONFIG", global_path):
            assert load_config().deploy.bucket == "from-cwd"

    def test_global_config(self, tmp_path, monkeypatch):
        global_path = tmp_path / "global.toml"
        global_path.write_text('[build]\nhugo_binary = "/opt/hugo"\n')
        workdir = tmp_path / "work"
        workdir.mkdir()
        monkeypatch.chdir(workdir)
        with patch("hugoship.config.GLOBAL_CONFIG", global_path):
            cfg = load_config()
        assert cfg.build.hugo_binary == "/opt/hugo"

    def test_unknown_invalidation_mode_rejected(self, tmp_path):
        path = tmp_path / "site.toml"
        path.write_text('[cdn]\ninvalidation = "sometimes"\n')
        with pytest.raises(ValidationError):
            load_config(path)


class TestEnvVars:
    def test_env_overrides_toml(self, tmp_path, monkeypatch):
        path = tmp_path / "site.toml"
        path.write_text('[deploy]\nbucket = "from-toml"\n')
        monkeypatch.setenv("S3_BUCKET", "from-env")
        monkeypatch.setenv("CLOUDFRONT_DISTRIBUTION_ID", "EENV")
        monkeypatch.setenv("SITE_URL", "https://env.example.com/")
        monkeypatch.setenv("AWS_ROLE_ARN", "arn:aws:iam::1:role/ci")

        cfg = load_config(path)

        assert cfg.deploy.bucket == "from-env"
        assert cfg.cdn.distribution_id == "EENV"
        assert cfg.site.base_url == "https://env.example.com/"
        assert cfg.aws.role_arn == "arn:aws:iam::1:role/ci"

    def test_empty_env_ignored(self, tmp_path, monkeypatch):
        path = tmp_path / "site.toml"
        path.write_text('[deploy]\nbucket = "from-toml"\n')
        monkeypatch.setenv("S3_BUCKET", "")
        assert load_config(path).deploy.bucket == "from-toml"

    def test_slack_webhook_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HUGOSHIP_SLACK_WEBHOOK", "https://hooks.slack.com/services/x")
        cfg = load_config(tmp_path / "none.toml")
        assert cfg.notifications.is_configured is True


class TestMergeCliOverrides:
    def test_none_values_ignored(self):
        base = HugoshipConfig.model_validate({"deploy": {"bucket": "keep"}})
        cfg = merge_cli_overrides(base, bucket=None, base_url=None)
        assert cfg.deploy.bucket == "keep"

    def test_false_flag_overrides_file(self):
        base = HugoshipConfig.model_validate({"build": {"build_drafts": True}})
        assert merge_cli_overrides(base, build_drafts=False).build.build_drafts is False

    def test_invalid_value_rejected(self):
        with pytest.raises(ValidationError):
            merge_cli_overrides(HugoshipConfig(), target="gcs")

    def test_overrides_applied(self):
        cfg = merge_cli_overrides(
            HugoshipConfig(),
            source_dir="/srv/blog",
            bucket="cli-bucket",
            build_drafts=True,
            target="local",
            invalidation="none",
        )
        assert cfg.site.source_dir == "/srv/blog"
        assert cfg.deploy.bucket == "cli-bucket"
        assert cfg.build.build_drafts is True
        assert cfg.deploy.target == DeployTargetKind.LOCAL
        assert cfg.cdn.invalidation == InvalidationMode.NONE

    def test_unknown_keys_ignored(self):
        cfg = merge_cli_overrides(HugoshipConfig(), colour="blue")
        assert cfg == HugoshipConfig()


class TestNotificationConfig:
    def test_disabled_is_not_configured(self):
        cfg = NotificationConfig(slack_webhook="https://hooks.slack.com/x", enabled=False)
        assert cfg.is_configured is False
