"""
Kubectl client — reads a live cluster through ``kubectl get --raw``.

Discovery walks /api, /apis and every group/version document. Lists
use the API's native chunking (?limit=&continue=). Authentication,
kubeconfig and in-cluster fallback are whatever kubectl does.
"""

from __future__ import annotations

import logging
from urllib.parse import quote, urlencode

from ownercheck.adapters.base import APIGroupInfo, ClusterClient, DiscoveryResult, ObjectPage
from ownercheck.core.models.errors import APIRequestError, DiscoveryError, KubectlError, ListError
from ownercheck.core.models.objects import ObjectRef
from ownercheck.core.models.resource import APIResource, GroupVersion, GroupVersionResource
from ownercheck.core.models.settings import CheckSettings
from ownercheck.core.reliability.rate_limiter import TokenBucket
from ownercheck.core.services import k8s_common

logger = logging.getLogger(__name__)


def group_version_path(gv: GroupVersion) -> str:
    """``/api/v1`` for the core group, ``/apis/<group>/<version>`` otherwise."""
    if not gv.group:
        return f"/api/{gv.version}"
    return f"/apis/{gv.group}/{gv.version}"


class KubectlClient(ClusterClient):
    """ClusterClient backed by the kubectl binary."""

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        request_timeout: str | None = None,
        qps: float = 25,
        burst: int = 100,
        timeout: int = 120,
    ):
        self._global_args: list[str] = []
        if kubeconfig:
            self._global_args += ["--kubeconfig", kubeconfig]
        if context:
            self._global_args += ["--context", context]
        if request_timeout:
            self._global_args += ["--request-timeout", request_timeout]
        self._limiter = TokenBucket(qps=qps, burst=burst)
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: CheckSettings) -> KubectlClient:
        return cls(
            kubeconfig=settings.kubeconfig,
            context=settings.context,
            request_timeout=settings.request_timeout,
            qps=settings.qps,
            burst=settings.burst,
        )

    @property
    def name(self) -> str:
        return "kubectl"

    @property
    def global_args(self) -> list[str]:
        return list(self._global_args)

    def ensure_available(self) -> str:
        """Return the kubectl client version.

        Raises:
            KubectlError: If kubectl is not installed.
        """
        kubectl = k8s_common._kubectl_available()
        if not kubectl.get("available"):
            raise KubectlError("kubectl not available — install it or use --snapshot")
        return kubectl.get("version") or ""

    def _get(self, path: str) -> dict:
        self._limiter.acquire()
        return k8s_common.get_raw(path, self._global_args, timeout=self._timeout)

    def discover(self) -> DiscoveryResult:
        try:
            core = self._get("/api")
            apis = self._get("/apis")
        except APIRequestError as e:
            raise DiscoveryError(f"unable to retrieve the server API groups: {e}") from e

        groups: list[APIGroupInfo] = []
        core_versions = [str(v) for v in core.get("versions") or []]
        if core_versions:
            groups.append(APIGroupInfo(name="", versions=core_versions, preferred_version=core_versions[0]))

        for group in apis.get("groups") or []:
            versions = [v.get("version", "") for v in group.get("versions") or []]
            preferred = (group.get("preferredVersion") or {}).get("version", "")
            groups.append(APIGroupInfo(
                name=group.get("name", ""),
                versions=[v for v in versions if v],
                preferred_version=preferred,
            ))

        result = DiscoveryResult(groups=groups)
        for group in groups:
            for gv in group.group_versions():
                try:
                    doc = self._get(group_version_path(gv))
                except APIRequestError as e:
                    logger.debug("Discovery failed for %s: %s", gv, e)
                    result.failures[str(gv)] = str(e)
                    continue
                result.resources[str(gv)] = [
                    APIResource.model_validate(r) for r in doc.get("resources") or []
                ]

        logger.info(
            "Discovered %d groups, %d group/versions (%d failed)",
            len(groups), len(result.resources) + len(result.failures), len(result.failures),
        )
        return result

    def list(
        self,
        gvr: GroupVersionResource,
        continue_token: str = "",
        limit: int = 500,
    ) -> ObjectPage:
        params: dict[str, str | int] = {"limit": limit}
        if continue_token:
            params["continue"] = continue_token
        path = (
            f"{group_version_path(gvr.group_version)}/{quote(gvr.resource, safe='')}"
            f"?{urlencode(params)}"
        )
        try:
            data = self._get(path)
        except APIRequestError as e:
            raise ListError(str(e)) from e

        items = [ObjectRef.from_object(item) for item in data.get("items") or []]
        token = (data.get("metadata") or {}).get("continue") or ""
        logger.debug("GET %s -> %d items, more=%s", path, len(items), bool(token))
        return ObjectPage(items=items, continue_token=token)
