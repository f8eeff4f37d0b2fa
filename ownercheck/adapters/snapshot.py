"""
Snapshot client — an offline, in-memory cluster.

Serves discovery and paginated lists from a YAML/JSON document, so a
check can run without a cluster (``ownercheck check --snapshot``) and
tests can build exact scenarios. Failures can be injected per
group/version (discovery) or per group/resource (list).

Document shape::

    resources:
      - groupVersion: v1
        resources:
          - {name: pods, kind: Pod, namespaced: true, verbs: [get, list, delete]}
    preferredVersions:            # optional, default: first version seen
      group1: v1
    objects:
      - apiVersion: v1
        resource: pods
        kind: Pod                 # omit to serve metadata without type info
        metadata: {name: pod1, namespace: ns1, uid: poduid1, ownerReferences: [...]}
    discoveryFailures:
      unavailable/v1: "the server is currently unable to handle the request"
    listFailures:
      forbiddenresources.forbidden: "forbiddenresources is forbidden: not authorized"
    pageSize: 2                   # optional, caps every page
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ownercheck.adapters.base import APIGroupInfo, ClusterClient, DiscoveryResult, ObjectPage
from ownercheck.core.models.errors import ConfigError, DiscoveryError, ListError
from ownercheck.core.models.objects import ObjectRef, OwnerReference
from ownercheck.core.models.resource import (
    APIResource,
    GroupVersionResource,
    parse_group_version,
)

logger = logging.getLogger(__name__)


class SnapshotClient(ClusterClient):
    """In-memory ClusterClient.

    By default serves everything it holds. Can be configured to fail
    discovery of a group/version or listing of a group/resource.
    """

    def __init__(self, page_size: int | None = None):
        self._api_lists: dict[str, list[APIResource]] = {}
        self._preferred: dict[str, str] = {}
        self._objects: dict[GroupVersionResource, list[ObjectRef]] = {}
        self._discovery_failures: dict[str, str] = {}
        self._list_failures: dict[str, str] = {}
        self._discovery_unavailable: str | None = None
        self._page_size = page_size
        self._list_log: list[tuple[GroupVersionResource, str]] = []

    @property
    def name(self) -> str:
        return "snapshot"

    @property
    def list_log(self) -> list[tuple[GroupVersionResource, str]]:
        """Every (gvr, continue_token) this client has been asked to list."""
        return self._list_log

    # ── Setup ────────────────────────────────────────────────────

    def add_resources(self, group_version: str, resources: list[APIResource | dict]) -> None:
        """Serve a discovery document for ``group_version``."""
        parse_group_version(group_version)
        entries = self._api_lists.setdefault(group_version, [])
        for resource in resources:
            entries.append(
                resource if isinstance(resource, APIResource) else APIResource.model_validate(resource)
            )

    def set_preferred_version(self, group: str, version: str) -> None:
        self._preferred[group] = version

    def add_object(
        self,
        api_version: str,
        resource: str,
        name: str,
        namespace: str = "",
        uid: str = "",
        kind: str = "",
        owners: list[OwnerReference | dict] | tuple = (),
    ) -> ObjectRef:
        """Store an object to be served when ``resource`` is listed.

        An empty ``kind`` serves the object without apiVersion/kind, as
        metadata-only list responses do.
        """
        gvr = parse_group_version(api_version).with_resource(resource)
        obj = ObjectRef(
            api_version=api_version if kind else "",
            kind=kind,
            namespace=namespace,
            name=name,
            uid=uid,
            owner_references=tuple(
                o if isinstance(o, OwnerReference) else OwnerReference.model_validate(o)
                for o in owners
            ),
        )
        self._objects.setdefault(gvr, []).append(obj)
        return obj

    def fail_discovery(self, group_version: str, error: str) -> None:
        """Make discovery of one group/version fail."""
        self._discovery_failures[group_version] = error

    def fail_all_discovery(self, error: str) -> None:
        """Make ``discover`` raise, as if the server were unreachable."""
        self._discovery_unavailable = error

    def fail_list(self, group_resource: str, error: str) -> None:
        """Make every list of ``<resource>.<group>`` (or ``<resource>``) fail."""
        self._list_failures[group_resource] = error

    # ── ClusterClient ────────────────────────────────────────────

    def discover(self) -> DiscoveryResult:
        if self._discovery_unavailable is not None:
            raise DiscoveryError(self._discovery_unavailable)

        versions_by_group: dict[str, list[str]] = {}
        for gv_string in [*self._api_lists, *self._discovery_failures]:
            gv = parse_group_version(gv_string)
            versions = versions_by_group.setdefault(gv.group, [])
            if gv.version not in versions:
                versions.append(gv.version)

        groups = [
            APIGroupInfo(
                name=group,
                versions=versions,
                preferred_version=self._preferred.get(group, versions[0]),
            )
            for group, versions in versions_by_group.items()
        ]

        result = DiscoveryResult(groups=groups)
        for group in groups:
            for gv in group.group_versions():
                key = str(gv)
                if key in self._discovery_failures:
                    result.failures[key] = self._discovery_failures[key]
                else:
                    result.resources[key] = list(self._api_lists.get(key, []))
        return result

    def list(
        self,
        gvr: GroupVersionResource,
        continue_token: str = "",
        limit: int = 500,
    ) -> ObjectPage:
        self._list_log.append((gvr, continue_token))

        error = self._list_failures.get(str(gvr.group_resource))
        if error is not None:
            raise ListError(error)

        items = self._objects.get(gvr, [])
        page_size = min(limit, self._page_size) if self._page_size else limit
        try:
            start = int(continue_token) if continue_token else 0
        except ValueError as e:
            raise ListError(f"invalid continue token {continue_token!r}") from e

        end = start + page_size
        token = str(end) if end < len(items) else ""
        return ObjectPage(items=items[start:end], continue_token=token)

    # ── Loading ──────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SnapshotClient:
        """Build a client from a parsed snapshot document."""
        client = cls(page_size=data.get("pageSize"))

        for entry in data.get("resources") or []:
            client.add_resources(str(entry["groupVersion"]), entry.get("resources") or [])

        for group, version in (data.get("preferredVersions") or {}).items():
            client.set_preferred_version(str(group or ""), str(version))

        for obj in data.get("objects") or []:
            metadata = obj.get("metadata") or {}
            client.add_object(
                api_version=str(obj["apiVersion"]),
                resource=str(obj["resource"]),
                kind=obj.get("kind") or "",
                name=metadata.get("name", ""),
                namespace=metadata.get("namespace") or "",
                uid=metadata.get("uid", ""),
                owners=metadata.get("ownerReferences") or [],
            )

        for gv, error in (data.get("discoveryFailures") or {}).items():
            client.fail_discovery(str(gv), str(error))
        for gr, error in (data.get("listFailures") or {}).items():
            client.fail_list(str(gr), str(error))

        return client

    @classmethod
    def from_file(cls, path: Path) -> SnapshotClient:
        """Load a snapshot from a YAML or JSON file.

        Raises:
            ConfigError: If the file is missing or malformed.
        """
        if not path.is_file():
            raise ConfigError(f"Snapshot file not found: {path}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot load snapshot {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping in snapshot {path}, got {type(data).__name__}")
        try:
            client = cls.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid snapshot {path}: {e}") from e
        logger.info("Loaded snapshot %s (%d object types)", path, len(client._objects))
        return client
