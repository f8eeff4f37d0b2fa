"""
Object index — every object of every catalog resource type.

Two views over the same objects:
  * by_resource[gvr] — objects of one type, in fetch order
  * by_uid[uid]      — every object sharing a UID (no dedup: the same
                       object can be served by several groups/versions)

A list failure for one type is recorded as a ListFailure and never
stops the scan of the others.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field

from ownercheck.adapters.base import ClusterClient
from ownercheck.core.models.errors import CheckCancelled, ListError
from ownercheck.core.models.finding import ListFailure, pluralize
from ownercheck.core.models.objects import ObjectRef
from ownercheck.core.models.resource import GroupResource, GroupVersionResource, ResourceType
from ownercheck.core.services.catalog import Catalog
from ownercheck.core.services.report import Diagnostics

logger = logging.getLogger(__name__)


@dataclass
class ObjectIndex:
    """Read-only after build_index() returns."""

    by_resource: dict[GroupVersionResource, list[ObjectRef]] = field(default_factory=dict)
    by_uid: dict[str, list[ObjectRef]] = field(default_factory=dict)
    list_failures: dict[GroupResource, ListFailure] = field(default_factory=dict)

    def add(self, gvr: GroupVersionResource, obj: ObjectRef) -> None:
        self.by_resource.setdefault(gvr, []).append(obj)
        self.by_uid.setdefault(obj.uid, []).append(obj)

    def objects(self, gvr: GroupVersionResource) -> list[ObjectRef]:
        return self.by_resource.get(gvr, [])

    def candidates(self, uid: str) -> list[ObjectRef]:
        return self.by_uid.get(uid, [])

    def list_failure(self, gr: GroupResource) -> ListFailure | None:
        return self.list_failures.get(gr)

    @property
    def total(self) -> int:
        return sum(len(items) for items in self.by_resource.values())


@dataclass
class _Fetched:
    """Outcome of fetching one resource type."""

    items: list[ObjectRef] = field(default_factory=list)
    error: str | None = None


def _check_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise CheckCancelled("check cancelled while fetching objects")


def fetch_resource(
    client: ClusterClient,
    resource_type: ResourceType,
    catalog: Catalog,
    diagnostics: Diagnostics,
    page_size: int = 500,
    cancel: threading.Event | None = None,
) -> _Fetched:
    """Fetch every page of one resource type.

    Items with neither apiVersion nor kind (metadata-only responses)
    get them back-filled from the REST mapper.
    """
    gvr = resource_type.gvr
    diagnostics.progress(f"fetching {gvr.group_version}, {gvr.resource}")

    gvk = catalog.mapper.kind_for(gvr)
    items: list[ObjectRef] = []
    token = ""
    pages = 0
    while True:
        _check_cancelled(cancel)
        try:
            page = client.list(gvr, token, page_size)
        except ListError as e:
            diagnostics.warning(f"could not list {gvr}: {e}")
            return _Fetched(error=str(e))
        pages += 1
        for item in page.items:
            if not item.api_version and not item.kind and gvk is not None:
                item = item.with_type(str(gvk.group_version), gvk.kind)
            items.append(item)
        token = page.continue_token
        if not token:
            break

    logger.debug("Fetched %s: %d items in %d pages", gvr, len(items), pages)
    diagnostics.progress(f"got {pluralize(len(items), 'item', 'items')}")
    return _Fetched(items=items)


def _insert(index: ObjectIndex, resource_type: ResourceType, fetched: _Fetched) -> None:
    if fetched.error is not None:
        index.list_failures[resource_type.group_resource] = ListFailure(
            group_resource=resource_type.group_resource, error=fetched.error,
        )
        return
    # Types with no objects still get an (empty) bucket
    index.by_resource.setdefault(resource_type.gvr, [])
    for item in fetched.items:
        index.add(resource_type.gvr, item)


def build_index(
    client: ClusterClient,
    catalog: Catalog,
    diagnostics: Diagnostics | None = None,
    page_size: int = 500,
    workers: int = 1,
    cancel: threading.Event | None = None,
    index: ObjectIndex | None = None,
) -> ObjectIndex:
    """Fetch and index all objects of every catalog resource type.

    With ``workers > 1`` resource types are fetched concurrently.
    Results are always inserted in catalog order, so the index is the
    same as a sequential build.

    Pass ``index`` to fill a caller-owned index: after a cancellation it
    holds the types fetched so far, and the list failures of every type
    that finished.

    Raises:
        CheckCancelled: If ``cancel`` is set before fetching completes.
    """
    diagnostics = diagnostics or Diagnostics()
    index = index if index is not None else ObjectIndex()
    types = catalog.resource_types

    if workers <= 1 or len(types) <= 1:
        for rt in types:
            _check_cancelled(cancel)
            _insert(index, rt, fetch_resource(client, rt, catalog, diagnostics, page_size, cancel))
    else:
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=min(workers, len(types)),
        ) as pool:
            futures = [
                pool.submit(fetch_resource, client, rt, catalog, diagnostics, page_size, cancel)
                for rt in types
            ]
            try:
                for rt, future in zip(types, futures):
                    _insert(index, rt, future.result())
            except CheckCancelled:
                for future in futures:
                    future.cancel()
                for rt, future in zip(types, futures):
                    if future.done() and not future.cancelled() and future.exception() is None:
                        fetched = future.result()
                        if fetched.error is not None:
                            _insert(index, rt, fetched)
                raise

    logger.info(
        "Indexed %d objects across %d types (%d list failures)",
        index.total, len(types), len(index.list_failures),
    )
    return index
