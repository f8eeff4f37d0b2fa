"""
Domain models — Pydantic types for the ownerReference checker.

All models are re-exported here for convenient access:

    from ownercheck.core.models import Finding, ObjectRef, GroupVersionResource
"""

from ownercheck.core.models.errors import (
    CheckCancelled,
    ConfigError,
    DiscoveryError,
    InvalidGroupVersionError,
    ListError,
    NoKindMatchError,
    OwnerCheckError,
)
from ownercheck.core.models.finding import (
    DiscoveryFailure,
    Finding,
    Level,
    ListFailure,
    Tally,
    pluralize,
)
from ownercheck.core.models.objects import ObjectRef, OwnerReference
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
from ownercheck.core.models.settings import CheckSettings

__all__ = [
    # errors.py
    "CheckCancelled",
    "ConfigError",
    "DiscoveryError",
    "InvalidGroupVersionError",
    "ListError",
    "NoKindMatchError",
    "OwnerCheckError",
    # finding.py
    "DiscoveryFailure",
    "Finding",
    "Level",
    "ListFailure",
    "Tally",
    "pluralize",
    # objects.py
    "ObjectRef",
    "OwnerReference",
    # resource.py
    "APIResource",
    "GroupResource",
    "GroupVersion",
    "GroupVersionKind",
    "GroupVersionResource",
    "ResourceType",
    "Scope",
    "parse_group_version",
    # settings.py
    "CheckSettings",
]
