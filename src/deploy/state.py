"""Deploy history persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from hugoship.core import _atomic_write
from hugoship.deploy.models import DeployState

logger = logging.getLogger(__name__)

STATE_FILENAME = ".hugoship-state.json"


def load_deploy_state(source_dir: Path) -> DeployState:
    """Load deploy state from disk.

    Returns empty DeployState if file doesn't exist or is corrupt.
    """
    state_path = source_dir / STATE_FILENAME
    if not state_path.exists():
        return DeployState()
    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
        return DeployState.model_validate(data)
    except (json.JSONDecodeError, ValueError, KeyError):
        logger.warning("Corrupt deploy state at %s, starting fresh", state_path)
        return DeployState()


def save_deploy_state(state: DeployState, source_dir: Path) -> None:
    """Save deploy state to disk."""
    _atomic_write(source_dir / STATE_FILENAME, state.model_dump_json(indent=2))
