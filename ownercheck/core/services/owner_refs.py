"""
Owner reference validation — the checks themselves.

Pure with respect to a built Catalog and ObjectIndex: no I/O, no
counters, no output. check_owner_reference() classifies one
ownerReference; iter_findings() walks every reference of every object
in catalog, fetch, declaration order.

Checks run in order and stop at the first that fires:

    1. apiVersion parses              → Error
    2. apiVersion/kind resolves       → Warning if its group/version
                                        failed discovery, else Error
    3. namespaced owner, cluster child → Error
    4. some object has the UID        → Warning if the owner's resource
                                        failed to list, else Error
    5. some object with the UID matches namespace, then name, then
       group/kind                     → Error
"""

from __future__ import annotations

import threading
from typing import Iterator

from ownercheck.core.models.errors import (
    CheckCancelled,
    InvalidGroupVersionError,
    NoKindMatchError,
)
from ownercheck.core.models.finding import Finding, Level
from ownercheck.core.models.objects import ObjectRef, OwnerReference
from ownercheck.core.models.resource import (
    GroupVersion,
    GroupVersionResource,
    Scope,
    parse_group_version,
)
from ownercheck.core.services.catalog import Catalog
from ownercheck.core.services.object_index import ObjectIndex


def _safe_group(api_version: str) -> str:
    try:
        return parse_group_version(api_version).group
    except InvalidGroupVersionError:
        return ""


def _namespace_ok(candidate: ObjectRef, child: ObjectRef) -> bool:
    return candidate.namespace == "" or candidate.namespace == child.namespace


def _name_ok(candidate: ObjectRef, ref: OwnerReference) -> bool:
    return candidate.name == ref.name


def _group_kind_ok(candidate: ObjectRef, ref: OwnerReference, owner_gv: GroupVersion) -> bool:
    if not candidate.api_version or not candidate.kind:
        return True
    if _safe_group(candidate.api_version) != owner_gv.group:
        return False
    # The REST mapper accepts an all-lowercase kind, so a reference
    # written that way is valid against the proper-case object
    return candidate.kind == ref.kind or candidate.kind.lower() == ref.kind


def _last_mismatch(candidates: list[ObjectRef], ok) -> ObjectRef | None:
    mismatched = [c for c in candidates if not ok(c)]
    return mismatched[-1] if mismatched else None


def check_owner_reference(
    child: ObjectRef,
    ref: OwnerReference,
    catalog: Catalog,
    index: ObjectIndex,
) -> tuple[Level, str] | None:
    """Classify one ownerReference.

    Returns:
        (level, message) for the first check that fails, or None when
        the reference is valid.
    """
    try:
        owner_gv = parse_group_version(ref.api_version)
    except InvalidGroupVersionError as e:
        return Level.ERROR, f"invalid owner apiVersion {ref.api_version}: {e}"

    owner_gvk = owner_gv.with_kind(ref.kind)
    try:
        mapping = catalog.mapper.resolve(owner_gvk)
    except NoKindMatchError as e:
        failure = catalog.discovery_failure(owner_gv)
        if failure is not None:
            return Level.WARNING, f"failed resolving resources for {ref.api_version}: {failure.error}"
        return Level.ERROR, f"cannot resolve owner apiVersion/kind: {e}"

    if mapping.scope == Scope.NAMESPACED and child.namespace == "":
        return Level.ERROR, (
            f"cannot reference namespaced type as owner "
            f"(apiVersion={owner_gv},kind={owner_gvk.kind})"
        )

    candidates = index.candidates(ref.uid)
    if not candidates:
        if index.list_failure(mapping.group_resource) is not None:
            return Level.WARNING, f"could not list parent resource {mapping.group_resource}"
        return Level.ERROR, "no object found for uid"

    # Each aspect only needs one candidate to agree; the same object may be
    # served under several groups/versions with one UID
    if not any(_namespace_ok(c, child) for c in candidates):
        actual = _last_mismatch(candidates, lambda c: _namespace_ok(c, child))
        return Level.ERROR, (
            f"child namespace does not match owner namespace ({actual.namespace})"
        )

    if not any(_name_ok(c, ref) for c in candidates):
        actual = _last_mismatch(candidates, lambda c: _name_ok(c, ref))
        return Level.ERROR, (
            f"ownerReference name ({ref.name}) does not match owner name ({actual.name})"
        )

    if not any(_group_kind_ok(c, ref, owner_gv) for c in candidates):
        actual = _last_mismatch(candidates, lambda c: _group_kind_ok(c, ref, owner_gv))
        actual_group = _safe_group(actual.api_version)
        return Level.ERROR, (
            f"ownerReference group/kind ({owner_gv.group}/{ref.kind}) does not match "
            f"owner group/kind ({actual_group}/{actual.kind})"
        )

    return None


def check_object(
    gvr: GroupVersionResource,
    child: ObjectRef,
    catalog: Catalog,
    index: ObjectIndex,
) -> Iterator[Finding]:
    """Findings for every ownerReference of one object, in declaration order."""
    for ref in child.owner_references:
        result = check_owner_reference(child, ref, catalog, index)
        if result is None:
            continue
        level, message = result
        yield Finding(resource=gvr, child=child, owner_reference=ref, level=level, message=message)


def iter_findings(
    catalog: Catalog,
    index: ObjectIndex,
    cancel: threading.Event | None = None,
) -> Iterator[Finding]:
    """Every finding, in catalog, fetch, declaration order.

    Raises:
        CheckCancelled: If ``cancel`` is set between objects.
    """
    for resource_type in catalog.resource_types:
        gvr = resource_type.gvr
        for child in index.objects(gvr):
            if cancel is not None and cancel.is_set():
                raise CheckCancelled("check cancelled while validating ownerReferences")
            yield from check_object(gvr, child, catalog, index)
