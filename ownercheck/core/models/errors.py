"""
Error types — the failure vocabulary shared by all layers.

Only setup failures (configuration, kubectl, total discovery) reach the
CLI. Per-type failures are caught where they happen and recorded as
DiscoveryFailure / ListFailure entries instead.
"""

from __future__ import annotations


class OwnerCheckError(Exception):
    """Base class for every error raised by ownercheck."""


class ConfigError(OwnerCheckError):
    """Raised when settings are invalid or the settings file is unreadable."""


class KubectlError(OwnerCheckError):
    """Raised when the kubectl binary is missing or cannot be run."""


class APIRequestError(OwnerCheckError):
    """Raised when one API request made through kubectl fails."""

    def __init__(self, path: str, message: str, reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(message)


class DiscoveryError(OwnerCheckError):
    """Raised when no discovery information can be obtained at all."""


class ListError(OwnerCheckError):
    """Raised by a client when listing one resource type fails."""


class InvalidGroupVersionError(OwnerCheckError, ValueError):
    """Raised when an apiVersion string cannot be parsed."""


class NoKindMatchError(OwnerCheckError, LookupError):
    """Raised when a group/version/kind has no REST mapping."""

    def __init__(self, group: str, kind: str, searched_versions: list[str]):
        self.group = group
        self.kind = kind
        self.searched_versions = searched_versions
        super().__init__(self._render())

    def _render(self) -> str:
        searched = sorted({
            f"{self.group}/{v}" if self.group else v for v in self.searched_versions
        })
        if not searched:
            return f'no matches for kind "{self.kind}" in group "{self.group}"'
        if len(searched) == 1:
            return f'no matches for kind "{self.kind}" in version "{searched[0]}"'
        quoted = " ".join(f'"{s}"' for s in searched)
        return f'no matches for kind "{self.kind}" in versions [{quoted}]'


class CheckCancelled(OwnerCheckError):
    """Raised when a run is cancelled before it completes."""
