"""
Resource catalog — which resource types exist and how kinds map to them.

Built once per run from discovery:
  * a RESTMapper over every resource of every discovered group/version
    (all versions, so ownerReferences to non-preferred versions resolve);
  * the sorted list of preferred, garbage-collectable resource types
    (verbs include get, list and delete) that the index will fetch;
  * the group/versions whose discovery failed.

Partial discovery is not fatal. Only a client that cannot discover
anything at all (DiscoveryError) aborts the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ownercheck.adapters.base import ClusterClient, DiscoveryResult
from ownercheck.core.models.errors import NoKindMatchError
from ownercheck.core.models.finding import DiscoveryFailure
from ownercheck.core.models.resource import (
    APIResource,
    GroupResource,
    GroupVersion,
    GroupVersionKind,
    GroupVersionResource,
    ResourceType,
    Scope,
    parse_group_version,
)
from ownercheck.core.services.report import Diagnostics

logger = logging.getLogger(__name__)

# Verbs the garbage collector needs; a proxy for "can own/be owned"
GC_VERBS = ("get", "list", "delete")


@dataclass(frozen=True)
class RESTMapping:
    """Where a kind lives: its canonical resource and scope."""

    gvk: GroupVersionKind
    resource: GroupVersionResource
    scope: Scope

    @property
    def group_resource(self) -> GroupResource:
        return self.resource.group_resource


class RESTMapper:
    """Kind <-> resource lookups built from discovery documents.

    Every kind is also registered in all-lowercase, so ``pod`` resolves
    like ``Pod``. The proper-case registration is made last and wins
    reverse (resource -> kind) lookups.
    """

    def __init__(self) -> None:
        self._versions: dict[str, list[str]] = {}
        self._by_kind: dict[GroupVersionKind, RESTMapping] = {}
        self._by_resource: dict[GroupVersionResource, GroupVersionKind] = {}

    def add_group_version(self, gv: GroupVersion) -> None:
        versions = self._versions.setdefault(gv.group, [])
        if gv.version not in versions:
            versions.append(gv.version)

    def add(self, gv: GroupVersion, resource: APIResource) -> None:
        """Register one discovered resource. Subresources are ignored."""
        if resource.is_subresource or not resource.kind:
            return
        self.add_group_version(gv)
        gvr = gv.with_resource(resource.name)
        scope = Scope.NAMESPACED if resource.namespaced else Scope.CLUSTER
        for kind in (resource.kind.lower(), resource.kind):
            gvk = gv.with_kind(kind)
            self._by_kind[gvk] = RESTMapping(gvk=gv.with_kind(resource.kind), resource=gvr, scope=scope)
            self._by_resource[gvr] = gvk

    def versions_for(self, group: str) -> list[str]:
        """Known versions of a group, in server priority order."""
        return list(self._versions.get(group, []))

    def resolve(self, gvk: GroupVersionKind) -> RESTMapping:
        """Map a group/version/kind to its resource and scope.

        An empty version searches every known version of the group in
        priority order.

        Raises:
            NoKindMatchError: If no searched version serves the kind.
        """
        versions = [gvk.version] if gvk.version else self.versions_for(gvk.group)
        for version in versions:
            mapping = self._by_kind.get(
                GroupVersionKind(group=gvk.group, version=version, kind=gvk.kind)
            )
            if mapping is not None:
                return mapping
        raise NoKindMatchError(gvk.group, gvk.kind, versions)

    def kind_for(self, gvr: GroupVersionResource) -> GroupVersionKind | None:
        """Reverse lookup: the kind served by a resource, if known."""
        return self._by_resource.get(gvr)


@dataclass
class Catalog:
    """Read-only result of discovery for one run."""

    resource_types: list[ResourceType] = field(default_factory=list)
    mapper: RESTMapper = field(default_factory=RESTMapper)
    discovery_failures: dict[GroupVersion, DiscoveryFailure] = field(default_factory=dict)

    def discovery_failure(self, gv: GroupVersion) -> DiscoveryFailure | None:
        return self.discovery_failures.get(gv)


def build_mapper(discovery: DiscoveryResult) -> RESTMapper:
    """REST mapper over every successfully discovered group/version."""
    mapper = RESTMapper()
    for group in discovery.groups:
        for gv in group.group_versions():
            for resource in discovery.resources.get(str(gv), []):
                mapper.add(gv, resource)
    return mapper


def preferred_resources(discovery: DiscoveryResult) -> list[ResourceType]:
    """One version per group/resource: the preferred one when it serves it.

    Resources missing from the preferred version fall back to the first
    version (server priority order) that serves them. Subresources are
    skipped.
    """
    chosen: dict[GroupResource, ResourceType] = {}
    for group in discovery.groups:
        preferred = group.preferred.version
        for gv in group.group_versions():
            for resource in discovery.resources.get(str(gv), []):
                if resource.is_subresource:
                    continue
                gr = GroupResource(group=gv.group, resource=resource.name)
                if gr in chosen and gv.version != preferred:
                    continue
                chosen[gr] = ResourceType(
                    gvr=gv.with_resource(resource.name),
                    kind=resource.kind,
                    scope=Scope.NAMESPACED if resource.namespaced else Scope.CLUSTER,
                    verbs=tuple(resource.verbs),
                )
    return list(chosen.values())


def build_catalog(client: ClusterClient, diagnostics: Diagnostics | None = None) -> Catalog:
    """Discover resource types and build the mapping layer.

    Raises:
        DiscoveryError: If the client cannot discover anything at all.
    """
    diagnostics = diagnostics or Diagnostics()
    discovery = client.discover()

    failures: dict[GroupVersion, DiscoveryFailure] = {}
    for gv_string, error in discovery.failures.items():
        gv = parse_group_version(gv_string)
        if gv in failures:
            continue
        failures[gv] = DiscoveryFailure(group_version=gv, error=error)
        diagnostics.warning(f"could not discover resources in {gv}: {error}")

    mapper = build_mapper(discovery)

    resource_types = [
        rt for rt in preferred_resources(discovery) if rt.supports_all(GC_VERBS)
    ]
    # Plain string order, so the core group ("") sorts first
    resource_types.sort(key=lambda rt: rt.gvr.sort_key())

    logger.info(
        "Catalog: %d resource types to fetch, %d discovery failures",
        len(resource_types), len(failures),
    )
    return Catalog(resource_types=resource_types, mapper=mapper, discovery_failures=failures)
