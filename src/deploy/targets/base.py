"""Base class for deploy targets."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from hugoship.build.models import FileEntry


class DeployTarget(ABC):
    """Somewhere generated files are published to."""

    name: str = "target"

    @property
    @abstractmethod
    def destination(self) -> str:
        """Human-readable location, e.g. ``s3://bucket/prefix``."""

    @abstractmethod
    def remote_manifest(self) -> dict[str, str]:
        """Map each published key to the md5 hex digest of its content."""

    @abstractmethod
    def upload(self, entry: FileEntry, local_path: Path) -> None:
        """Publish one file under ``entry.path``."""

    @abstractmethod
    def delete(self, keys: Sequence[str]) -> None:
        """Remove published keys."""
