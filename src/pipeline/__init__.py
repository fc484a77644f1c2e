"""Pipeline modules: orchestration layer for publishing the site.

  publish: content -> build -> verify -> sync -> invalidate
"""

from hugoship.pipeline.publish import PublishResult, deploy_site, publish_site

__all__ = ["PublishResult", "deploy_site", "publish_site"]
