"""
Check use case — the full Catalog → Index → Validator → Reporter run.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from ownercheck.adapters.base import ClusterClient
from ownercheck.adapters.kubectl import KubectlClient
from ownercheck.adapters.snapshot import SnapshotClient
from ownercheck.core.models.errors import CheckCancelled
from ownercheck.core.models.finding import Tally
from ownercheck.core.models.settings import CheckSettings
from ownercheck.core.services.catalog import Catalog, build_catalog
from ownercheck.core.services.object_index import ObjectIndex, build_index
from ownercheck.core.services.owner_refs import iter_findings
from ownercheck.core.services.report import Diagnostics, Reporter, make_sink

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Outcome of one check run."""

    tally: Tally = field(default_factory=Tally)
    resource_types: int = 0
    objects: int = 0
    discovery_failures: int = 0
    list_failures: int = 0
    cancelled: bool = False

    @property
    def completed(self) -> bool:
        return not self.cancelled


def make_client(settings: CheckSettings) -> ClusterClient:
    """Snapshot client when a snapshot is configured, kubectl otherwise.

    Raises:
        ConfigError: If the snapshot cannot be loaded.
        KubectlError: If kubectl is not installed.
    """
    if settings.snapshot:
        return SnapshotClient.from_file(Path(settings.snapshot))
    client = KubectlClient.from_settings(settings)
    version = client.ensure_available()
    logger.info("Using kubectl %s", version or "(unknown version)")
    return client


def run_check(
    client: ClusterClient,
    settings: CheckSettings | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    progress: bool = True,
    cancel: threading.Event | None = None,
) -> CheckResult:
    """Check every ownerReference visible through ``client``.

    Findings go to ``stdout`` (table or JSON lines); progress, warnings
    and the summary go to ``stderr``.

    Returns:
        CheckResult. ``cancelled`` is set, and the tally is partial, when
        ``cancel`` fired before the run completed.

    Raises:
        DiscoveryError: If no discovery information is available at all.
    """
    settings = settings or CheckSettings()
    diagnostics = Diagnostics(stderr, progress=progress)
    reporter = Reporter(make_sink(settings.output, stdout), diagnostics)
    result = CheckResult()

    catalog: Catalog = build_catalog(client, diagnostics)
    result.resource_types = len(catalog.resource_types)
    result.discovery_failures = len(catalog.discovery_failures)
    result.tally = Tally(warnings=result.discovery_failures)

    index = ObjectIndex()
    validating = False
    try:
        build_index(
            client,
            catalog,
            diagnostics,
            page_size=settings.page_size,
            workers=settings.workers,
            cancel=cancel,
            index=index,
        )
        result.objects = index.total
        result.list_failures = len(index.list_failures)
        result.tally = Tally(warnings=result.discovery_failures + result.list_failures)

        validating = True
        findings = iter_findings(catalog, index, cancel)
        result.tally = reporter.consume(findings, result.tally)
    except CheckCancelled as e:
        logger.warning("%s", e)
        result.cancelled = True
        if validating:
            result.tally = reporter.tally
        else:
            result.objects = index.total
            result.list_failures = len(index.list_failures)
            result.tally = Tally(warnings=result.discovery_failures + result.list_failures)
        return result

    reporter.summarize(result.tally)
    return result

