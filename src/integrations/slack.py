"""Slack incoming-webhook notifications for deploy results."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request

from hugoship.config import NotificationConfig

logger = logging.getLogger(__name__)


class SlackNotifier:
    """Posts short deploy summaries to a Slack incoming webhook.

    Delivery problems are logged and swallowed; a notification must never
    fail a deploy that already happened.
    """

    def __init__(self, config: NotificationConfig, *, timeout: int = 10) -> None:
        self.config = config
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def _post(self, payload: dict) -> bool:
        try:
            req = urllib.request.Request(
                self.config.slack_webhook,
                data=json.dumps(payload).encode("utf-8"),
                method="POST",
                headers={"Content-Type": "application/json"},
            )
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return 200 <= resp.status < 300
        except (urllib.error.URLError, OSError, ValueError):
            # ValueError: malformed webhook URL (no scheme, bad host)
            logger.warning("Failed to send Slack notification", exc_info=True)
            return False

    def notify(self, text: str) -> bool:
        if not self.is_configured:
            return False
        return self._post({"text": text})

    def notify_success(
        self,
        destination: str,
        *,
        uploaded: int,
        deleted: int,
        invalidation_id: str | None = None,
        site_url: str = "",
    ) -> bool:
        lines = [f":rocket: Published to {destination}: {uploaded} uploaded, {deleted} deleted"]
        if invalidation_id:
            lines.append(f"CDN invalidation `{invalidation_id}`")
        if site_url:
            lines.append(site_url)
        return self.notify("\n".join(lines))

    def notify_failure(self, stage: str, error: str) -> bool:
        return self.notify(f":x: Publish failed during *{stage}*: {error}")
