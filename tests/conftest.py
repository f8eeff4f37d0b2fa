"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from ownercheck.adapters.snapshot import SnapshotClient

GC_VERBS = ["get", "list", "delete"]


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def gc_verbs() -> list[str]:
    """Verbs that make a resource type garbage-collectable."""
    return list(GC_VERBS)


@pytest.fixture
def v1_client() -> SnapshotClient:
    """Snapshot cluster serving core nodes (cluster) and pods (namespaced)."""
    client = SnapshotClient()
    client.add_resources("v1", [
        {"name": "nodes", "kind": "Node", "namespaced": False, "verbs": GC_VERBS},
        {"name": "pods", "kind": "Pod", "namespaced": True, "verbs": GC_VERBS},
    ])
    return client
