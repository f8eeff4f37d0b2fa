"""
CheckSettings — run configuration for one check.

Loaded from ownercheck.yml (optional), OWNERCHECK_* environment
variables and CLI flags, in increasing order of precedence. See
ownercheck.core.config.loader.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CheckSettings(BaseModel):
    """Validated options for a check run."""

    model_config = ConfigDict(extra="forbid")

    output: Literal["", "json"] = ""

    # Client-side throttling of kubectl calls; qps=-1 disables it, 0 is invalid
    qps: int = Field(default=25, ge=-1)
    burst: int = Field(default=100, gt=0)

    workers: int = Field(default=1, ge=1)
    page_size: int = Field(default=500, gt=0)

    kubeconfig: str | None = None
    context: str | None = None
    request_timeout: str | None = None

    # Offline mode: read the cluster from a snapshot file instead of kubectl
    snapshot: str | None = None

    @field_validator("output", mode="before")
    @classmethod
    def _normalize_output(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("qps")
    @classmethod
    def _nonzero_qps(cls, value: int) -> int:
        if value == 0:
            raise ValueError("must be positive, or -1 to disable throttling")
        return value
