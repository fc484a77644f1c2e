"""Deployment: sync build output to a target and invalidate the CDN."""

from hugoship.deploy.cdn import (
    CloudFrontInvalidator,
    caller_reference,
    create_invalidator,
    invalidation_paths,
)
from hugoship.deploy.models import DeployRecord, DeployState, SyncPlan, SyncResult
from hugoship.deploy.state import STATE_FILENAME, load_deploy_state, save_deploy_state
from hugoship.deploy.sync import plan_sync, sync
from hugoship.deploy.targets import create_target
from hugoship.deploy.targets.base import DeployTarget

__all__ = [
    "STATE_FILENAME",
    "CloudFrontInvalidator",
    "DeployRecord",
    "DeployState",
    "DeployTarget",
    "SyncPlan",
    "SyncResult",
    "caller_reference",
    "create_invalidator",
    "create_target",
    "invalidation_paths",
    "load_deploy_state",
    "plan_sync",
    "save_deploy_state",
    "sync",
]
