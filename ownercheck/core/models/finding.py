"""
Finding models — what the checker reports.

A Finding is one classified problem with one ownerReference. Failures
(DiscoveryFailure, ListFailure) are the degraded-but-continuing records
that downgrade related checks from Error to Warning.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from ownercheck.core.models.objects import ObjectRef, OwnerReference
from ownercheck.core.models.resource import GroupResource, GroupVersion, GroupVersionResource


class Level(StrEnum):
    """Severity of a finding."""

    ERROR = "Error"
    WARNING = "Warning"


class DiscoveryFailure(BaseModel):
    """A group/version whose resource list could not be retrieved."""

    model_config = ConfigDict(frozen=True)

    group_version: GroupVersion
    error: str


class ListFailure(BaseModel):
    """A resource type whose objects could not be listed."""

    model_config = ConfigDict(frozen=True)

    group_resource: GroupResource
    error: str


class Finding(BaseModel):
    """One invalid (or unverifiable) ownerReference on one child object."""

    model_config = ConfigDict(frozen=True)

    resource: GroupVersionResource
    child: ObjectRef
    owner_reference: OwnerReference
    level: Level
    message: str

    def to_dict(self) -> dict:
        """JSON record shape: one self-contained object per finding."""
        return {
            "resource": {
                "group": self.resource.group,
                "version": self.resource.version,
                "resource": self.resource.resource,
            },
            "kind": {
                "group": self.resource.group,
                "version": self.resource.version,
                "kind": self.child.kind,
            },
            "namespace": self.child.namespace,
            "name": self.child.name,
            "ownerReference": self.owner_reference.to_dict(),
            "level": str(self.level),
            "message": self.message,
        }

    def to_row(self) -> list[str]:
        """Table row in GROUP..MESSAGE column order."""
        return [
            self.resource.group,
            self.resource.resource,
            self.child.namespace,
            self.child.name,
            self.owner_reference.uid,
            str(self.level),
            self.message,
        ]


class Tally(BaseModel):
    """Final error/warning counts for a run."""

    model_config = ConfigDict(frozen=True)

    errors: int = 0
    warnings: int = 0

    def add(self, level: Level) -> Tally:
        """Return a new tally with one more finding of ``level`` counted."""
        if level == Level.ERROR:
            return Tally(errors=self.errors + 1, warnings=self.warnings)
        return Tally(errors=self.errors, warnings=self.warnings + 1)

    @property
    def clean(self) -> bool:
        return self.errors == 0 and self.warnings == 0

    def summary(self) -> str:
        if self.clean:
            return "No invalid ownerReferences found"
        return f"{pluralize(self.errors, 'error', 'errors')}, {pluralize(self.warnings, 'warning', 'warnings')}"


def pluralize(count: int, singular: str, plural: str) -> str:
    """``1 item`` / ``0 items`` / ``2 items``."""
    return f"{count} {singular if count == 1 else plural}"
