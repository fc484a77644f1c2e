"""Tests for the S3 deploy target (boto3 client is mocked)."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from hugoship.build.models import FileEntry
from hugoship.config import DEFAULT_CACHE_CONTROL
from hugoship.deploy.targets.s3 import S3Target, cache_control_for, content_type_for
from hugoship.shared.errors import DeployError


def _client_error(op: str = "PutObject") -> ClientError:
    return ClientError({"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, op)


def _entry(path: str) -> FileEntry:
    return FileEntry(path=path, size=1, sha256="s", md5="m")


class TestContentType:
    def test_html_gets_charset(self):
        assert content_type_for("index.html") == "text/html; charset=utf-8"

    def test_css_and_js(self):
        assert content_type_for("css/a.css") == "text/css; charset=utf-8"
        assert content_type_for("js/a.js").endswith("charset=utf-8")

    def test_binary(self):
        assert content_type_for("img/a.png") == "image/png"

    def test_unknown(self):
        assert content_type_for("LICENSE") == "application/octet-stream"


class TestCacheControl:
    def test_first_match_wins(self):
        assert cache_control_for("posts/a/index.html", DEFAULT_CACHE_CONTROL).startswith(
            "public, max-age=0"
        )
        assert cache_control_for("img/a.png", DEFAULT_CACHE_CONTROL) == "public, max-age=86400"

    def test_path_patterns(self):
        rules = {"assets/*": "immutable", "*": "short"}
        assert cache_control_for("assets/app.1234.js", rules) == "immutable"
        assert cache_control_for("other/app.js", rules) == "short"

    def test_no_rules(self):
        assert cache_control_for("a.html", {}) is None


class TestS3Target:
    def test_requires_bucket(self):
        with pytest.raises(DeployError, match="bucket"):
            S3Target(MagicMock(), "")

    def test_destination(self):
        assert S3Target(MagicMock(), "b").destination == "s3://b"
        assert S3Target(MagicMock(), "b", prefix="/site/").destination == "s3://b/site"

    def test_remote_manifest_strips_prefix_and_quotes(self):
        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = [
            {"Contents": [{"Key": "site/index.html", "ETag": '"abc"'}]},
            {"Contents": [{"Key": "site/css/", "ETag": '"d41d"'}, {"Key": "site/a.css", "ETag": '"def"'}]},
            {},
        ]
        target = S3Target(client, "bucket", prefix="site")

        assert target.remote_manifest() == {"index.html": "abc", "a.css": "def"}
        client.get_paginator.assert_called_once_with("list_objects_v2")
        client.get_paginator.return_value.paginate.assert_called_once_with(
            Bucket="bucket", Prefix="site/"
        )

    def test_remote_manifest_error(self):
        client = MagicMock()
        client.get_paginator.return_value.paginate.side_effect = _client_error("ListObjectsV2")
        with pytest.raises(DeployError, match="failed to list"):
            S3Target(client, "bucket").remote_manifest()

    def test_upload_sets_headers(self, tmp_path):
        local = tmp_path / "index.html"
        local.write_text("<html></html>")
        client = MagicMock()
        target = S3Target(client, "bucket", prefix="site", cache_control_rules=DEFAULT_CACHE_CONTROL)

        target.upload(_entry("posts/a/index.html"), local)

        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "bucket"
        assert kwargs["Key"] == "site/posts/a/index.html"
        assert kwargs["ContentType"] == "text/html; charset=utf-8"
        assert kwargs["CacheControl"] == "public, max-age=0, must-revalidate"

    def test_upload_without_rules_omits_cache_control(self, tmp_path):
        local = tmp_path / "a.png"
        local.write_bytes(b"png")
        client = MagicMock()
        S3Target(client, "bucket").upload(_entry("a.png"), local)
        assert "CacheControl" not in client.put_object.call_args.kwargs
        assert client.put_object.call_args.kwargs["Key"] == "a.png"

    def test_upload_error(self, tmp_path):
        local = tmp_path / "a.css"
        local.write_text("x")
        client = MagicMock()
        client.put_object.side_effect = _client_error()
        with pytest.raises(DeployError, match="failed to upload s3://bucket/a.css"):
            S3Target(client, "bucket").upload(_entry("a.css"), local)

    def test_delete_batches(self):
        client = MagicMock()
        client.delete_objects.return_value = {}
        keys = [f"f{i}.html" for i in range(2500)]

        S3Target(client, "bucket", prefix="p").delete(keys)

        assert client.delete_objects.call_count == 3
        first = client.delete_objects.call_args_list[0].kwargs
        assert len(first["Delete"]["Objects"]) == 1000
        assert first["Delete"]["Objects"][0] == {"Key": "p/f0.html"}
        last = client.delete_objects.call_args_list[2].kwargs
        assert len(last["Delete"]["Objects"]) == 500

    def test_delete_partial_errors_raise(self):
        client = MagicMock()
        client.delete_objects.return_value = {
            "Errors": [{"Key": "a.html", "Code": "AccessDenied", "Message": "Access Denied"}]
        }
        with pytest.raises(DeployError, match="a.html"):
            S3Target(client, "bucket").delete(["a.html"])
