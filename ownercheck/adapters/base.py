"""
Adapter base — the contract between the checker and a cluster.

The checker only reads from a cluster through this protocol:
discovery (what resource types exist) and paginated listing (what
objects exist). The REST mapping layer is built from discovery by
ownercheck.core.services.catalog.

To create a new client:
    1. Subclass ClusterClient
    2. Implement name, discover, list
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from ownercheck.core.models.objects import ObjectRef
from ownercheck.core.models.resource import APIResource, GroupVersion, GroupVersionResource


class APIGroupInfo(BaseModel):
    """An API group and its served versions, in server priority order."""

    name: str = ""
    versions: list[str] = Field(default_factory=list)
    preferred_version: str = ""

    def group_versions(self) -> list[GroupVersion]:
        return [GroupVersion(group=self.name, version=v) for v in self.versions]

    @property
    def preferred(self) -> GroupVersion:
        version = self.preferred_version or (self.versions[0] if self.versions else "")
        return GroupVersion(group=self.name, version=version)


class DiscoveryResult(BaseModel):
    """Everything discovery could find, plus what it could not.

    ``resources`` and ``failures`` are keyed by the group/version string
    (``v1``, ``apps/v1``). A group/version appears in exactly one of them.
    """

    groups: list[APIGroupInfo] = Field(default_factory=list)
    resources: dict[str, list[APIResource]] = Field(default_factory=dict)
    failures: dict[str, str] = Field(default_factory=dict)


class ObjectPage(BaseModel):
    """One page of a list call."""

    items: list[ObjectRef] = Field(default_factory=list)
    continue_token: str = ""


class ClusterClient(ABC):
    """Abstract read-only view of a cluster.

    ``discover`` raises DiscoveryError only when nothing at all can be
    discovered; per-group/version failures go into
    ``DiscoveryResult.failures``. ``list`` raises ListError when a page
    cannot be fetched.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Client identifier (e.g. 'kubectl', 'snapshot')."""

    @abstractmethod
    def discover(self) -> DiscoveryResult:
        """Return the server's API groups and resource lists."""

    @abstractmethod
    def list(
        self,
        gvr: GroupVersionResource,
        continue_token: str = "",
        limit: int = 500,
    ) -> ObjectPage:
        """Return one page of objects of the given resource type."""
