"""
Resource identity models — group/version/resource/kind tuples.

Immutable value types. Their string forms follow kubectl conventions
so they can be dropped straight into diagnostic and finding messages.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from ownercheck.core.models.errors import InvalidGroupVersionError


class Scope(StrEnum):
    """Whether a resource type lives inside a namespace."""

    NAMESPACED = "Namespaced"
    CLUSTER = "Cluster"


class GroupVersion(BaseModel):
    """An API group and version, e.g. ``apps/v1`` or ``v1``."""

    model_config = ConfigDict(frozen=True)

    group: str = ""
    version: str = ""

    def __str__(self) -> str:
        if not self.group and not self.version:
            return ""
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    def with_resource(self, resource: str) -> GroupVersionResource:
        return GroupVersionResource(group=self.group, version=self.version, resource=resource)

    def with_kind(self, kind: str) -> GroupVersionKind:
        return GroupVersionKind(group=self.group, version=self.version, kind=kind)


class GroupResource(BaseModel):
    """A resource qualified only by group (version-independent)."""

    model_config = ConfigDict(frozen=True)

    group: str = ""
    resource: str

    def __str__(self) -> str:
        if not self.group:
            return self.resource
        return f"{self.resource}.{self.group}"


class GroupVersionResource(BaseModel):
    """A resource qualified by API group and version."""

    model_config = ConfigDict(frozen=True)

    group: str = ""
    version: str
    resource: str

    @property
    def group_version(self) -> GroupVersion:
        return GroupVersion(group=self.group, version=self.version)

    @property
    def group_resource(self) -> GroupResource:
        return GroupResource(group=self.group, resource=self.resource)

    def sort_key(self) -> tuple[str, str, str]:
        return (self.group, self.version, self.resource)

    def __str__(self) -> str:
        return f"{self.group_version}, Resource={self.resource}"


class GroupVersionKind(BaseModel):
    """A kind qualified by API group and version."""

    model_config = ConfigDict(frozen=True)

    group: str = ""
    version: str = ""
    kind: str

    @property
    def group_version(self) -> GroupVersion:
        return GroupVersion(group=self.group, version=self.version)

    def __str__(self) -> str:
        return f"{self.group_version}, Kind={self.kind}"


class APIResource(BaseModel):
    """One resource entry from a discovery document."""

    name: str
    kind: str
    namespaced: bool = False
    verbs: list[str] = Field(default_factory=list)

    @property
    def is_subresource(self) -> bool:
        return "/" in self.name


class ResourceType(BaseModel):
    """An enumerable resource type selected for the scan."""

    model_config = ConfigDict(frozen=True)

    gvr: GroupVersionResource
    kind: str
    scope: Scope
    verbs: tuple[str, ...] = ()

    @property
    def group_resource(self) -> GroupResource:
        return self.gvr.group_resource

    def supports_all(self, verbs: tuple[str, ...]) -> bool:
        return all(v in self.verbs for v in verbs)


def parse_group_version(value: str) -> GroupVersion:
    """Parse an apiVersion string into a GroupVersion.

    ``""`` is the empty GroupVersion, ``"v1"`` is the core group,
    ``"apps/v1"`` splits on the slash. Anything with more than one
    slash is rejected.

    Raises:
        InvalidGroupVersionError: If the string has more than one ``/``.
    """
    if not value:
        return GroupVersion()
    slashes = value.count("/")
    if slashes == 0:
        return GroupVersion(version=value)
    if slashes == 1:
        group, version = value.split("/", 1)
        return GroupVersion(group=group, version=version)
    raise InvalidGroupVersionError(f"unexpected GroupVersion string: {value}")
