"""
Object models — the metadata slice of cluster objects the checker needs.

Only identity and ownerReferences are kept. Everything else in an
object (spec, status, labels) is dropped at parse time.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OwnerReference(BaseModel):
    """A child's claim that some other object owns it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_version: str = Field(default="", alias="apiVersion")
    kind: str = ""
    name: str = ""
    uid: str = ""
    controller: bool | None = None
    block_owner_deletion: bool | None = Field(default=None, alias="blockOwnerDeletion")

    def to_dict(self) -> dict:
        """Serialize with Kubernetes field names, omitting unset flags."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ObjectRef(BaseModel):
    """Minimal identity of a fetched object."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_version: str = Field(default="", alias="apiVersion")
    kind: str = ""
    namespace: str = ""
    name: str = ""
    uid: str = ""
    owner_references: tuple[OwnerReference, ...] = Field(
        default=(), alias="ownerReferences",
    )

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> ObjectRef:
        """Build from a raw API object (``{apiVersion, kind, metadata}``)."""
        metadata = obj.get("metadata") or {}
        return cls(
            api_version=obj.get("apiVersion") or "",
            kind=obj.get("kind") or "",
            namespace=metadata.get("namespace") or "",
            name=metadata.get("name") or "",
            uid=metadata.get("uid") or "",
            owner_references=tuple(
                OwnerReference.model_validate(ref)
                for ref in metadata.get("ownerReferences") or []
            ),
        )

    def with_type(self, api_version: str, kind: str) -> ObjectRef:
        """Return a copy with apiVersion/kind filled in."""
        return self.model_copy(update={"api_version": api_version, "kind": kind})
