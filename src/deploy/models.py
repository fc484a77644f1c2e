"""Pure data models for deployment: sync plans, results and deploy history."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

MAX_HISTORY = 50


class SyncPlan(BaseModel):
    """What a sync has to do to make the target match the local build.

    ``uploads`` lists assets before HTML pages so a page is never live
    before the files it references.
    """

    uploads: list[str] = Field(default_factory=list)
    deletes: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.uploads or self.deletes)

    @property
    def changed_keys(self) -> list[str]:
        return self.uploads + self.deletes


class SyncResult(BaseModel):
    plan: SyncPlan
    uploaded: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    dry_run: bool = False


class DeployRecord(BaseModel):
    """Record of one deploy run."""

    deployed_at: datetime
    target: str
    destination: str = ""
    digest: str = ""
    uploaded: int = 0
    deleted: int = 0
    invalidation_id: str | None = None
    dry_run: bool = False


class DeployState(BaseModel):
    """Tracks past deploys of this site."""

    deploys: list[DeployRecord] = Field(default_factory=list)

    @property
    def last(self) -> DeployRecord | None:
        live = [d for d in self.deploys if not d.dry_run]
        return live[-1] if live else None

    def record(self, record: DeployRecord) -> None:
        """Append a deploy, keeping the most recent ``MAX_HISTORY``."""
        self.deploys.append(record)
        self.deploys = self.deploys[-MAX_HISTORY:]
