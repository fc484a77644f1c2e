"""Local directory deploy target, for self-hosting and dry rehearsals."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from pathlib import Path

from hugoship.build.models import FileEntry
from hugoship.build.services import hash_file
from hugoship.deploy.targets.base import DeployTarget
from hugoship.shared.errors import DeployError

logger = logging.getLogger(__name__)


class LocalTarget(DeployTarget):
    """Mirrors the build output into a directory."""

    name = "local"

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    @property
    def destination(self) -> str:
        return str(self.directory)

    def remote_manifest(self) -> dict[str, str]:
        if not self.directory.is_dir():
            return {}
        return {
            p.relative_to(self.directory).as_posix(): hash_file(p).md5
            for p in sorted(self.directory.rglob("*"))
            if p.is_file()
        }

    def upload(self, entry: FileEntry, local_path: Path) -> None:
        dest = self.directory / entry.path
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(local_path, dest)
        except OSError as exc:
            raise DeployError(f"failed to copy {entry.path} to {dest}: {exc}") from exc

    def delete(self, keys: Sequence[str]) -> None:
        for key in keys:
            path = self.directory / key
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise DeployError(f"failed to delete {path}: {exc}") from exc
            parent = path.parent
            while parent != self.directory and parent.is_dir() and not any(parent.iterdir()):
                parent.rmdir()
                parent = parent.parent
